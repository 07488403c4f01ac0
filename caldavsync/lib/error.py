#!/usr/bin/env python
import logging
import os
from collections import defaultdict
from typing import Dict
from typing import Optional
from typing import Type

from caldavsync import __version__

## one of DEBUG, DEVELOPMENT, PRODUCTION
debugmode = os.environ.get("PYTHON_CALDAVSYNC_DEBUGMODE")
if not debugmode:
    if "dev" in __version__:
        debugmode = "DEVELOPMENT"
    else:
        debugmode = "PRODUCTION"

log = logging.getLogger("caldavsync")
if debugmode.startswith("DEBUG"):
    log.setLevel(logging.DEBUG)
else:
    log.setLevel(logging.WARNING)


def errmsg(r) -> str:
    """Utility for formatting an error response to an error string"""
    return "%s %s" % (r.status, r.reason)


def weirdness(*reasons) -> None:
    from caldavsync.lib.debug import xmlstring

    reason = " : ".join([xmlstring(x) for x in reasons])
    log.warning(f"Deviation from expectations found: {reason}")


class DAVError(Exception):
    url: Optional[str] = None
    reason: str = "no reason"

    def __init__(self, url: Optional[str] = None, reason: Optional[str] = None) -> None:
        if url:
            self.url = url
        if reason:
            self.reason = reason

    def __str__(self) -> str:
        return "%s at '%s', reason %s" % (
            self.__class__.__name__,
            self.url,
            self.reason,
        )


class AuthenticationError(DAVError):
    """
    The current-user-principal could not be resolved, either because
    the request failed (bad credentials, unreachable server) or because
    the server did not report the property.
    """

    pass


class DiscoveryError(DAVError):
    """
    The calendar-home-set of the principal could not be found, or a
    cached discovery state was incomplete.
    """

    pass


class RequestError(DAVError):
    """
    A request failed at the transport level or returned an unexpected
    status.  ``component`` names the component kind (VEVENT, VTODO) when
    the request was a component query.
    """

    component: Optional[str] = None

    def __init__(
        self,
        url: Optional[str] = None,
        reason: Optional[str] = None,
        component: Optional[str] = None,
    ) -> None:
        super(RequestError, self).__init__(url, reason)
        if component:
            self.component = component


class PropfindError(RequestError):
    pass


class ReportError(RequestError):
    pass


class PutError(RequestError):
    pass


class DeleteError(RequestError):
    pass


class PreconditionFailedError(DAVError):
    """
    The server answered 412 Precondition Failed to a conditional write.
    ``kind`` is "event" or "todo".
    """

    kind: str = "item"

    def __init__(
        self,
        url: Optional[str] = None,
        reason: Optional[str] = None,
        kind: Optional[str] = None,
    ) -> None:
        super(PreconditionFailedError, self).__init__(url, reason)
        if kind:
            self.kind = kind


class UidCollisionError(PreconditionFailedError):
    pass


class EtagMismatchError(PreconditionFailedError):
    pass


class NotFoundError(DAVError):
    pass


class ItemDecodeError(DAVError):
    component: Optional[str] = None

    def __init__(
        self,
        url: Optional[str] = None,
        reason: Optional[str] = None,
        component: Optional[str] = None,
    ) -> None:
        super(ItemDecodeError, self).__init__(url, reason)
        if component:
            self.component = component


exception_by_method: Dict[str, Type[RequestError]] = defaultdict(lambda: RequestError)
for method in (
    "delete",
    "put",
    "report",
    "propfind",
):
    exception_by_method[method] = locals()[method[0].upper() + method[1:] + "Error"]
