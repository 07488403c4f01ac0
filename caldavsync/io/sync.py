"""
Synchronous I/O implementation using the requests library.
"""
import logging
from typing import Dict
from typing import Optional
from typing import Union

import requests
from requests.auth import AuthBase

from caldavsync.protocol.types import DAVRequest
from caldavsync.protocol.types import DAVResponse

log = logging.getLogger("caldavsync")

DEFAULT_TIMEOUT = 5.0


class SyncIO:
    """
    Synchronous I/O shell using the requests library.

    This is a thin wrapper that executes DAVRequest objects via HTTP
    and returns DAVResponse objects.  There are no retries; a transport
    failure propagates as ``requests.RequestException``.

    Example:
        io = SyncIO(auth=HTTPBasicAuth("user", "secret"))
        request = protocol.ctag_request("/calendars/user/work/")
        response = io.execute(request)
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify: Union[bool, str] = True,
        auth: Optional[AuthBase] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        """
        Initialize the sync I/O handler.

        Args:
            session: Existing requests Session to use (creates new if None)
            timeout: Per-request timeout in seconds
            verify: Verify SSL certificates, or path to a CA bundle
            auth: requests auth object attached to every request
            headers: Default headers sent with every request
        """
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.timeout = timeout
        self.verify = verify
        self.auth = auth
        self.headers = dict(headers or {})

    def execute(self, request: DAVRequest) -> DAVResponse:
        """
        Execute a DAVRequest and return DAVResponse.

        Args:
            request: The request to execute

        Returns:
            DAVResponse with status, headers, and body
        """
        log.debug(
            "sending request - method={0}, url={1}, headers={2}\nbody:\n{3}".format(
                request.method.value, request.url, request.headers, request.body
            )
        )
        response = self.session.request(
            method=request.method.value,
            url=request.url,
            headers={**self.headers, **request.headers},
            data=request.body,
            auth=self.auth,
            timeout=self.timeout,
            verify=self.verify,
        )
        log.debug("server responded with %i %s" % (response.status_code, response.reason))

        return DAVResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=response.content,
        )

    def close(self) -> None:
        """Close the session if we created it."""
        if self._owns_session and self.session:
            self.session.close()

    def __enter__(self) -> "SyncIO":
        return self

    def __exit__(self, *args) -> None:
        self.close()
