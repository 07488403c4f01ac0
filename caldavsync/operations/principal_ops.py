"""
Principal operations - Sans-I/O logic for discovery.

This module contains pure functions for the discovery phase: choosing
where to look for the current-user-principal and normalizing the paths
the server hands back.
"""
from __future__ import annotations

from typing import Optional

from caldavsync.lib.url import URL

GOOGLE_API_HOST = "apidata.googleusercontent.com"
GOOGLE_DISCOVERY_PATH = "/caldav/v2/"


def discovery_path_for(base_url: Optional[str]) -> str:
    """
    Returns the path where the principal lookup should be done.

    Google serves CalDAV below ``/caldav/v2/`` on its API host, everyone
    else is asked at the root of the base URL.
    """
    if base_url and GOOGLE_API_HOST in base_url:
        return GOOGLE_DISCOVERY_PATH
    return "/"


def normalize_path(path: str, base_url: Optional[str]) -> str:
    """
    Strip the base URL path prefix from a server href.

    Servers often report absolute paths that include the mount point the
    base URL already points at (``/dav/calendars/user/`` while the base
    URL is ``https://host/dav``).  Joining such a path onto the base URL
    would repeat the prefix, so it is removed here.  The result always
    starts with a slash.  Paths outside the prefix, and any path when
    the base URL has no path beyond ``/``, are returned unchanged.

    Args:
        path: href as reported by the server
        base_url: the configured base URL

    Returns:
        The normalized path
    """
    if not base_url:
        return path
    base_path = URL.objectify(base_url).path or "/"
    if base_path != "/" and path.startswith(base_path):
        stripped = path[len(base_path) :]
        return stripped if stripped.startswith("/") else "/" + stripped
    return path
