"""
CalDAV protocol operations: request assembly.

This class knows which method, depth, headers and body each CalDAV
operation of the client needs, while remaining completely I/O-free.
"""
from datetime import datetime
from typing import Dict
from typing import Iterable
from typing import Optional

from caldavsync.lib.url import URL

from .types import DAVMethod
from .types import DAVRequest
from .xml_builders import build_calendar_home_body
from .xml_builders import build_calendar_multiget_body
from .xml_builders import build_calendar_query_body
from .xml_builders import build_calendars_body
from .xml_builders import build_ctag_body
from .xml_builders import build_etag_body
from .xml_builders import build_principal_body

XML_CONTENT_TYPE = "application/xml; charset=utf-8"
ICAL_CONTENT_TYPE = "text/calendar; charset=utf-8"


class CalDAVProtocol:
    """
    Sans-I/O CalDAV protocol handler.

    Builds requests without doing any I/O.  Authentication is the
    business of the transport; the protocol only knows the base URL that
    relative paths are joined onto.

    Example:
        protocol = CalDAVProtocol(base_url="https://cal.example.com/dav")

        request = protocol.ctag_request("/calendars/user/work/")
        # -> PROPFIND https://cal.example.com/dav/calendars/user/work/
        response = io.execute(request)
    """

    def __init__(self, base_url: str = "") -> None:
        self.base_url = URL.objectify(base_url or "")

    def _resolve_url(self, path: str) -> str:
        return str(self.base_url.join(path))

    def _xml_headers(self, depth: Optional[int] = None) -> Dict[str, str]:
        headers = {"Content-Type": XML_CONTENT_TYPE}
        if depth is not None:
            headers["Depth"] = str(depth)
        return headers

    def _propfind(self, path: str, body: bytes, depth: int) -> DAVRequest:
        return DAVRequest(
            method=DAVMethod.PROPFIND,
            url=self._resolve_url(path),
            headers=self._xml_headers(depth),
            body=body,
        )

    def _report(self, path: str, body: bytes) -> DAVRequest:
        return DAVRequest(
            method=DAVMethod.REPORT,
            url=self._resolve_url(path),
            headers=self._xml_headers(1),
            body=body,
        )

    # =========================================================================
    # Discovery
    # =========================================================================

    def principal_request(self, path: str = "/") -> DAVRequest:
        """Depth-0 PROPFIND for DAV:current-user-principal."""
        request = self._propfind(path, build_principal_body(), 0)
        return request.with_header("Prefer", "return=minimal")

    def calendar_home_request(self, principal: str) -> DAVRequest:
        """Depth-0 PROPFIND for calendar-home-set on the principal."""
        return self._propfind(principal, build_calendar_home_body(), 0)

    def calendars_request(self, calendar_home: str) -> DAVRequest:
        return self._propfind(calendar_home, build_calendars_body(), 1)

    # =========================================================================
    # Queries
    # =========================================================================

    def calendar_query_request(
        self,
        calendar_url: str,
        component: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> DAVRequest:
        """
        Build a calendar-query REPORT fetching calendar data.

        Args:
            calendar_url: Calendar collection path or URL
            component: VEVENT or VTODO
            start: Start of time range, None for no time range
            end: End of time range, None for no time range

        Returns:
            DAVRequest ready for execution
        """
        return self._report(
            calendar_url, build_calendar_query_body(component, start, end)
        )

    def item_refs_request(self, calendar_url: str, component: str) -> DAVRequest:
        """calendar-query REPORT asking for getetag only"""
        return self._report(
            calendar_url, build_calendar_query_body(component, include_data=False)
        )

    def calendar_multiget_request(
        self, calendar_url: str, hrefs: Iterable[str]
    ) -> DAVRequest:
        return self._report(calendar_url, build_calendar_multiget_body(hrefs))

    def etag_request(self, href: str) -> DAVRequest:
        return self._propfind(href, build_etag_body(), 0)

    def ctag_request(self, calendar_url: str) -> DAVRequest:
        return self._propfind(calendar_url, build_ctag_body(), 0)

    # =========================================================================
    # Mutations
    # =========================================================================

    def put_request(
        self,
        href: str,
        data: bytes,
        headers: Optional[Dict[str, str]] = None,
    ) -> DAVRequest:
        """
        Build a PUT request to create/update a calendar object.

        Args:
            href: Object path or URL
            data: iCalendar text, UTF-8 encoded
            headers: Conditional headers (If-Match, If-None-Match)

        Returns:
            DAVRequest ready for execution
        """
        return DAVRequest(
            method=DAVMethod.PUT,
            url=self._resolve_url(href),
            headers={"Content-Type": ICAL_CONTENT_TYPE, **(headers or {})},
            body=data,
        )

    def delete_request(
        self, href: str, headers: Optional[Dict[str, str]] = None
    ) -> DAVRequest:
        return DAVRequest(
            method=DAVMethod.DELETE,
            url=self._resolve_url(href),
            headers=dict(headers or {}),
        )
