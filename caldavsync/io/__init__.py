"""
I/O layer for the CalDAV protocol.

This module provides the implementation for executing DAVRequest
objects and returning DAVResponse objects.

The I/O layer is intentionally thin - it only handles HTTP transport.
All protocol logic (XML building/parsing) is in caldavsync.protocol.

Example:
    from caldavsync.protocol import CalDAVProtocol
    from caldavsync.io import SyncIO

    protocol = CalDAVProtocol(base_url="https://cal.example.com")
    with SyncIO() as io:
        request = protocol.ctag_request("/calendars/user/work/")
        response = io.execute(request)
"""
from .base import SyncIOProtocol
from .sync import SyncIO

__all__ = [
    "SyncIOProtocol",
    "SyncIO",
]
