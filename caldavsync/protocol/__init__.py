"""
Sans-I/O CalDAV protocol implementation.

This module provides protocol-level operations without any I/O.
It builds requests and parses responses as pure data transformations.

The protocol layer is organized into:
- types: Core data structures (DAVRequest, DAVResponse, result types)
- xml_builders: Pure functions to build XML request bodies
- xml_parsers: Pure functions to parse XML response bodies
- operations: CalDAVProtocol class assembling the requests

Example usage:

    from caldavsync.protocol import CalDAVProtocol, parse_calendars

    protocol = CalDAVProtocol(base_url="https://cal.example.com")

    # Build a request (no I/O)
    request = protocol.calendars_request("/calendars/user/")

    # Execute via your preferred I/O (real or mock)
    response = your_http_client.execute(request)

    # Parse response (no I/O)
    calendars = parse_calendars(response.body)
"""
from .operations import CalDAVProtocol
from .types import CalendarQueryResult
from .types import DAVMethod
from .types import DAVRequest
from .types import DAVResponse
from .types import DecodeReport
from .xml_parsers import parse_calendar_home
from .xml_parsers import parse_calendar_query_response
from .xml_parsers import parse_calendars
from .xml_parsers import parse_ctag
from .xml_parsers import parse_etag
from .xml_parsers import parse_events
from .xml_parsers import parse_item_refs
from .xml_parsers import parse_principal
from .xml_parsers import parse_todos

__all__ = [
    "CalDAVProtocol",
    "CalendarQueryResult",
    "DAVMethod",
    "DAVRequest",
    "DAVResponse",
    "DecodeReport",
    "parse_calendar_home",
    "parse_calendar_query_response",
    "parse_calendars",
    "parse_ctag",
    "parse_etag",
    "parse_events",
    "parse_item_refs",
    "parse_principal",
    "parse_todos",
]
