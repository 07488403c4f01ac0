#!/usr/bin/env python
import urllib.parse
from typing import Any
from typing import cast
from typing import Optional
from typing import Union
from urllib.parse import ParseResult
from urllib.parse import SplitResult
from urllib.parse import urljoin
from urllib.parse import urlparse


class URL:
    """
    Thin wrapper around a URL string.  Used internally to join paths
    onto the configured base URL and to pick apart server hrefs.

    Addresses may be one out of three:

    1) a path relative to the base URL, i.e. "someuser/calendar"

    2) an absolute path, i.e. "/dav/someuser/calendar"

    3) a fully qualified URL, i.e. "https://cal.example.com/dav/someuser/calendar"
    """

    def __init__(self, url: Union[str, ParseResult, SplitResult]) -> None:
        if isinstance(url, (ParseResult, SplitResult)):
            self.url_parsed: Optional[Union[ParseResult, SplitResult]] = url
            self.url_raw: Optional[str] = None
        else:
            self.url_raw = url
            self.url_parsed = None

    def __bool__(self) -> bool:
        return bool(self.url_raw or self.url_parsed)

    def __eq__(self, other: object) -> bool:
        return str(self) == str(other)

    def __ne__(self, other: object) -> bool:
        return not self == other

    def __hash__(self) -> int:
        return hash(str(self))

    @classmethod
    def objectify(cls, url: Union["URL", str, ParseResult, SplitResult, None]) -> "URL":
        if url is None or isinstance(url, URL):
            return url
        return URL(url)

    # gives access to scheme, netloc, path, etc of the parsed url
    def __getattr__(self, attr: str) -> Any:
        if "url_parsed" not in vars(self):
            raise AttributeError(attr)
        if self.url_parsed is None:
            self.url_parsed = cast(urllib.parse.ParseResult, urlparse(self.url_raw))
        return getattr(self.url_parsed, attr)

    def __str__(self) -> str:
        if self.url_raw is None:
            if self.url_parsed is None:
                raise ValueError("Unexpected value None for self.url_parsed")
            self.url_raw = self.url_parsed.geturl()
        return self.url_raw

    def __repr__(self) -> str:
        return "URL(%s)" % str(self)

    def strip_trailing_slash(self) -> "URL":
        if str(self).endswith("/"):
            return URL.objectify(str(self)[:-1])
        return self

    def is_absolute(self) -> bool:
        return bool(self.scheme and self.netloc)

    def join(self, path: Any) -> "URL":
        """
        Appends a path to this base URL.  Unlike urljoin, an absolute
        path keeps the base path as prefix - ``https://h/dav`` joined
        with ``/cal/x.ics`` gives ``https://h/dav/cal/x.ics``.  Fully
        qualified URLs are returned as they are.
        """
        path_str = str(path) if path is not None else ""
        if not path_str:
            return self
        path_url = URL.objectify(path_str)
        if path_url.is_absolute():
            return path_url
        base = str(self)
        if not base:
            return path_url
        return URL("%s/%s" % (base.rstrip("/"), path_str.lstrip("/")))

    def resolve(self, href: str) -> "URL":
        """RFC 3986 resolution of a server href against this URL"""
        return URL(urljoin(str(self), href))
