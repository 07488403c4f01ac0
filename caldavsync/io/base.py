"""
Abstract I/O protocol definition.

This module defines the interface that all I/O implementations must follow.
"""
from typing import Protocol
from typing import runtime_checkable

from caldavsync.protocol.types import DAVRequest
from caldavsync.protocol.types import DAVResponse


@runtime_checkable
class SyncIOProtocol(Protocol):
    """
    Protocol defining the synchronous I/O interface.

    Implementations must provide a way to execute DAVRequest objects
    and return DAVResponse objects synchronously.  A failure to get any
    response at all is reported by raising
    ``requests.RequestException``.
    """

    def execute(self, request: DAVRequest) -> DAVResponse:
        """
        Execute a request and return the response.

        Args:
            request: The DAVRequest to execute

        Returns:
            DAVResponse with status, headers, and body
        """
        ...

    def close(self) -> None:
        """Close any resources (e.g., HTTP session)."""
        ...
