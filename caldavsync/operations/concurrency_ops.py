"""
Optimistic concurrency - Sans-I/O logic for conditional writes.

Creates are sent with ``If-None-Match: *`` so they never overwrite an
existing object.  Updates are sent with ``If-Match`` carrying the last
known etag, unless that etag is a weak validator.  Deletes use the
supplied etag or ``*``.  The functions here derive those headers and
classify the server's answer; no locking is involved anywhere.
"""
from __future__ import annotations

from typing import Dict
from typing import Optional

WEAK_MARKER = "W/"

## Statuses accepted per operation
CREATE_OK = (201, 204)
DELETE_OK = (204,)
PRECONDITION_FAILED = 412


def is_weak(etag: Optional[str]) -> bool:
    """True if the etag carries the weak validator marker, ``W/`` or ``W/"``"""
    return bool(etag) and etag.startswith(WEAK_MARKER)


def strip_weak(etag: Optional[str]) -> Optional[str]:
    """Removes one leading weak validator marker and surrounding whitespace"""
    if etag is None:
        return None
    if etag.startswith(WEAK_MARKER):
        etag = etag[len(WEAK_MARKER) :]
    return etag.strip()


def item_href(calendar_url: str, uid: str) -> str:
    """``{calendar_url}/{uid}.ics``, without doubling a trailing slash"""
    return "%s/%s.ics" % (calendar_url.rstrip("/"), uid)


def create_headers() -> Dict[str, str]:
    return {"If-None-Match": "*"}


def update_headers(etag: Optional[str]) -> Dict[str, str]:
    """
    Conditional headers for an update.

    A weak stored etag can't be expressed as a strong match, so the
    update then goes out without ``If-Match``.  A strong etag is sent
    trimmed.
    """
    if is_weak(etag):
        return {}
    value = strip_weak(etag)
    if not value:
        return {}
    return {"If-Match": value}


def delete_headers(etag: Optional[str] = None) -> Dict[str, str]:
    return {"If-Match": etag if etag else "*"}


def create_succeeded(status: int) -> bool:
    return status in CREATE_OK


def update_succeeded(status: int) -> bool:
    return 200 <= status < 300


def delete_succeeded(status: int) -> bool:
    return status in DELETE_OK


def is_precondition_failure(status: int) -> bool:
    return status == PRECONDITION_FAILED


def collision_message(kind: str) -> str:
    return "%s with the specified uid already exists." % kind.capitalize()


def mismatch_message(kind: str) -> str:
    return "%s with the specified uid does not match." % kind.capitalize()
