"""
Core protocol types for the Sans-I/O CalDAV layer.

These dataclasses represent HTTP requests and responses at the protocol level,
independent of any I/O implementation.
"""
from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import Dict
from typing import List
from typing import Optional


class DAVMethod(Enum):
    """The HTTP methods this client issues."""

    PUT = "PUT"
    DELETE = "DELETE"
    PROPFIND = "PROPFIND"
    REPORT = "REPORT"


@dataclass(frozen=True)
class DAVRequest:
    """
    Represents an HTTP request to be made.

    This is a pure data structure with no I/O. It describes what request
    should be made, but does not make it.

    Attributes:
        method: HTTP method
        url: Full URL for the request
        headers: HTTP headers as dict
        body: Request body as bytes (optional)
    """

    method: DAVMethod
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    def with_header(self, name: str, value: str) -> "DAVRequest":
        """Return new request with additional header."""
        return DAVRequest(
            method=self.method,
            url=self.url,
            headers={**self.headers, name: value},
            body=self.body,
        )


_REASONS = {
    200: "OK",
    201: "Created",
    204: "No Content",
    207: "Multi-Status",
    301: "Moved Permanently",
    302: "Found",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    412: "Precondition Failed",
    415: "Unsupported Media Type",
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


@dataclass(frozen=True)
class DAVResponse:
    """
    Represents an HTTP response received.

    Attributes:
        status: HTTP status code
        headers: HTTP headers as dict
        body: Response body as bytes
    """

    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        """True if status indicates success (2xx)."""
        return 200 <= self.status < 300

    @property
    def is_multistatus(self) -> bool:
        """True if this is a 207 Multi-Status response."""
        return self.status == 207

    @property
    def reason(self) -> str:
        return _REASONS.get(self.status, "Unknown")

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        lname = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lname:
                return value
        return default


@dataclass
class CalendarQueryResult:
    """
    Parsed result of a calendar-query or calendar-multiget REPORT for a
    single resource.

    Attributes:
        href: href of the calendar object, as the server reported it
        etag: ETag of the object (for conditional updates)
        calendar_data: iCalendar text, carriage return escapes resolved
        status: HTTP status for this resource (default 200)
    """

    href: str
    etag: Optional[str] = None
    calendar_data: Optional[str] = None
    status: int = 200


@dataclass
class DecodeReport:
    """
    Outcome of decoding a batch of calendar objects.  ``items`` holds what
    decoded, ``failures`` one ``ItemDecodeError`` per resource that didn't.
    """

    items: List[object] = field(default_factory=list)
    failures: List[object] = field(default_factory=list)
