#!/usr/bin/env python
"""
The ``DAVClient`` class is the entry point of the library.  It is
obtained through ``DAVClient.create`` (runs discovery against the
server) or ``DAVClient.from_cache`` (restores a previous discovery
without any network traffic), or through ``get_davclient``, which finds
the connection parameters in the environment or a config file.

Once constructed the client holds no mutable state: the principal, the
calendar home, the product identifier and the base URL are fixed, so
read operations may be issued from several threads at once.
"""
import datetime
import logging
import uuid
from types import TracebackType
from typing import Any
from typing import Callable
from typing import Iterable
from typing import List
from typing import Optional
from typing import Type

import requests
from lxml import etree

from caldavsync import __version__
from caldavsync.config import ClientOptions
from caldavsync.config import options_from_config
from caldavsync.config import options_from_env
from caldavsync.io import SyncIO
from caldavsync.io import SyncIOProtocol
from caldavsync.lib import error
from caldavsync.lib import vcal
from caldavsync.lib.observe import emit
from caldavsync.lib.observe import EventSink
from caldavsync.lib.observe import LoggingSink
from caldavsync.objects import Calendar
from caldavsync.objects import ClientCache
from caldavsync.objects import Event
from caldavsync.objects import ItemRef
from caldavsync.objects import MutationResult
from caldavsync.objects import SyncResult
from caldavsync.objects import Todo
from caldavsync.operations import concurrency_ops
from caldavsync.operations import principal_ops
from caldavsync.operations import sync_ops
from caldavsync.protocol import CalDAVProtocol
from caldavsync.protocol import DAVRequest
from caldavsync.protocol import DAVResponse
from caldavsync.protocol import DecodeReport
from caldavsync.protocol import xml_parsers

log = logging.getLogger("caldavsync")

## Window used by get_events/get_todos when no bounds are given
DEFAULT_WINDOW = datetime.timedelta(days=21)


class _Channel:
    """
    Transport, protocol and observability bundled, so that discovery
    can run before any client object exists.
    """

    def __init__(
        self,
        options: ClientOptions,
        transport: Optional[SyncIOProtocol] = None,
        sink: Optional[EventSink] = None,
    ) -> None:
        self.options = options
        self.protocol = CalDAVProtocol(options.base_url)
        self.sink = sink if sink is not None else LoggingSink()
        self._owns_transport = transport is None
        if transport is None:
            transport = SyncIO(
                timeout=options.timeout,
                verify=options.ssl_verify_cert,
                auth=options.build_auth(),
                headers={"User-Agent": "caldavsync/" + __version__, **options.headers},
            )
        self.transport = transport

    def execute(self, request: DAVRequest, component: Optional[str] = None) -> DAVResponse:
        """
        Sends the request.  A transport failure is raised as the
        ``RequestError`` subclass matching the method.
        """
        if self.options.log_requests:
            emit(self.sink, "request", method=request.method.value, url=request.url)
        try:
            return self.transport.execute(request)
        except requests.RequestException as e:
            raise error.exception_by_method[request.method.value.lower()](
                request.url, str(e), component
            )

    def normalize(self, path: str) -> str:
        return principal_ops.normalize_path(path, self.options.base_url)

    def close(self) -> None:
        if self._owns_transport:
            self.transport.close()


def validate_principal(channel: _Channel, discovery_path: str) -> str:
    """
    Asks the server for the current-user-principal.  Anything but a 2xx
    answer naming a principal means the credentials were not accepted,
    and raises ``AuthenticationError``.  Returns the normalized
    principal path.
    """
    request = channel.protocol.principal_request(channel.normalize(discovery_path))
    try:
        response = channel.execute(request)
    except error.RequestError as e:
        raise error.AuthenticationError(
            request.url, "Unable to authenticate with the server: %s" % e.reason
        )
    if not response.ok:
        raise error.AuthenticationError(request.url, error.errmsg(response))
    try:
        href = xml_parsers.parse_principal(response.body)
    except etree.XMLSyntaxError as e:
        raise error.AuthenticationError(request.url, "unparseable response: %s" % e)
    if not href:
        raise error.AuthenticationError(
            request.url, "User principal not found: Unable to authenticate with the server."
        )
    return channel.normalize(href)


def resolve_calendar_home(channel: _Channel, principal: str) -> str:
    """
    Asks the principal for its calendar-home-set.  Raises
    ``DiscoveryError`` if the lookup fails or the property is absent.
    """
    request = channel.protocol.calendar_home_request(principal)
    try:
        response = channel.execute(request)
    except error.RequestError as e:
        raise error.DiscoveryError(request.url, e.reason)
    if not response.ok:
        raise error.DiscoveryError(request.url, error.errmsg(response))
    try:
        href = xml_parsers.parse_calendar_home(response.body)
    except etree.XMLSyntaxError as e:
        raise error.DiscoveryError(request.url, "unparseable response: %s" % e)
    if not href:
        raise error.DiscoveryError(request.url, "calendar-home-set not found")
    return channel.normalize(href)


class DAVClient:
    """
    CalDAV client for listing calendars, reading, writing and syncing
    events and todos.

    Do not call the constructor directly; use ``create`` or
    ``from_cache``, which guarantee a client never exists with only
    part of its discovery state set::

        with DAVClient.create(ClientOptions(base_url=..., username=..., password=...)) as client:
            for calendar in client.get_calendars():
                events = client.get_events(calendar.url)
    """

    def __init__(
        self,
        channel: _Channel,
        user_principal: str,
        calendar_home: str,
        prod_id: str,
    ) -> None:
        self._channel = channel
        self._user_principal = user_principal
        self._calendar_home = calendar_home
        self._prod_id = prod_id

    @classmethod
    def create(
        cls,
        options: ClientOptions,
        transport: Optional[SyncIOProtocol] = None,
        sink: Optional[EventSink] = None,
    ) -> "DAVClient":
        """
        Runs discovery and returns a ready client.

        Args:
          options: connection parameters
          transport: something implementing ``SyncIOProtocol``; a
            requests based ``SyncIO`` is set up if not given
          sink: receives structured events, defaults to ``LoggingSink``

        Raises ``AuthenticationError`` if the principal can't be
        resolved and ``DiscoveryError`` if the calendar home can't be.
        """
        channel = _Channel(options, transport, sink)
        try:
            principal = validate_principal(
                channel, principal_ops.discovery_path_for(options.base_url)
            )
            home = resolve_calendar_home(channel, principal)
        except error.DAVError:
            channel.close()
            raise
        return cls(channel, principal, home, options.prod_id)

    @classmethod
    def from_cache(
        cls,
        options: ClientOptions,
        cache: ClientCache,
        transport: Optional[SyncIOProtocol] = None,
        sink: Optional[EventSink] = None,
    ) -> "DAVClient":
        """
        Rebuilds a client from an earlier ``export_cache``, without
        talking to the server.  A prod id in the cache overrides the one
        in the options.
        """
        if not cache.user_principal or not cache.calendar_home:
            raise error.DiscoveryError(options.base_url, "incomplete client cache")
        channel = _Channel(options, transport, sink)
        return cls(
            channel,
            channel.normalize(cache.user_principal),
            channel.normalize(cache.calendar_home),
            cache.prod_id or options.prod_id,
        )

    def __enter__(self) -> "DAVClient":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]] = None,
        exc_value: Optional[BaseException] = None,
        traceback: Optional[TracebackType] = None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """
        Closes the transport if the client set it up itself
        """
        self._channel.close()

    @property
    def user_principal(self) -> str:
        return self._user_principal

    @property
    def calendar_home(self) -> str:
        return self._calendar_home

    @property
    def prod_id(self) -> str:
        return self._prod_id

    @property
    def base_url(self) -> str:
        return self._channel.options.base_url

    def get_calendar_home(self) -> str:
        return self._calendar_home

    def export_cache(self) -> ClientCache:
        return ClientCache(
            user_principal=self._user_principal,
            calendar_home=self._calendar_home,
            prod_id=self._prod_id,
        )

    def _execute(self, request: DAVRequest, component: Optional[str] = None) -> DAVResponse:
        return self._channel.execute(request, component)

    def _emit(self, event: str, **fields: Any) -> None:
        emit(self._channel.sink, event, **fields)

    def _report_failures(self, report: DecodeReport) -> list:
        for failure in report.failures:
            self._emit(
                "item_decode_failed",
                href=failure.url,
                component=failure.component,
                reason=failure.reason,
            )
        return report.items

    def _parse(self, parse: Callable, request: DAVRequest, response: DAVResponse, *args):
        try:
            return parse(response.body, *args)
        except etree.XMLSyntaxError as e:
            raise error.exception_by_method[request.method.value.lower()](
                request.url, "unparseable response: %s" % e
            )

    ## Calendars

    def get_calendars(self) -> List[Calendar]:
        """
        Lists the calendar collections in the calendar home that hold
        events or todos.  Calendar urls are normalized paths.
        """
        request = self._channel.protocol.calendars_request(self._calendar_home)
        response = self._execute(request)
        if not response.ok:
            raise error.PropfindError(request.url, error.errmsg(response))
        calendars = self._parse(xml_parsers.parse_calendars, request, response)
        for calendar in calendars:
            calendar.url = self._channel.normalize(calendar.url)
        return calendars

    ## Queries

    def _get_components(
        self,
        calendar_url: str,
        component: str,
        parse: Callable[[bytes], DecodeReport],
        start: Optional[datetime.datetime],
        end: Optional[datetime.datetime],
        all: bool,
    ) -> list:
        if all:
            start = end = None
        else:
            now = datetime.datetime.now(tz=datetime.timezone.utc)
            if start is None:
                start = now
            if end is None:
                end = now + DEFAULT_WINDOW
        request = self._channel.protocol.calendar_query_request(
            calendar_url, component, start, end
        )
        response = self._execute(request, component)
        if not response.ok:
            raise error.ReportError(
                request.url,
                "Failed to retrieve %ss from the CalDAV server: %s"
                % (component.lower(), error.errmsg(response)),
                component,
            )
        return self._report_failures(self._parse(parse, request, response))

    def get_events(
        self,
        calendar_url: str,
        start: Optional[datetime.datetime] = None,
        end: Optional[datetime.datetime] = None,
        all: bool = False,
    ) -> List[Event]:
        """
        Fetches events of a calendar.

        Without ``all``, only events within [start, end) are fetched and
        recurring events are expanded by the server into their
        instances.  ``start`` defaults to now, ``end`` to three weeks
        after start.  With ``all`` every event is fetched, unexpanded.

        Calendar objects that can't be decoded are skipped and reported
        to the event sink as ``item_decode_failed``.
        """
        return self._get_components(
            calendar_url, "VEVENT", xml_parsers.parse_events, start, end, all
        )

    def get_todos(
        self,
        calendar_url: str,
        start: Optional[datetime.datetime] = None,
        end: Optional[datetime.datetime] = None,
        all: bool = True,
    ) -> List[Todo]:
        """
        Fetches todos of a calendar.  Same as ``get_events``, except that
        ``all`` defaults to True and nothing is expanded.
        """
        return self._get_components(
            calendar_url, "VTODO", xml_parsers.parse_todos, start, end, all
        )

    def _get_by_href(
        self,
        calendar_url: str,
        hrefs: Iterable[str],
        parse: Callable[[bytes], DecodeReport],
    ) -> list:
        hrefs = [href for href in hrefs if href.endswith(".ics")]
        if not hrefs:
            return []
        request = self._channel.protocol.calendar_multiget_request(calendar_url, hrefs)
        response = self._execute(request)
        if not response.ok:
            raise error.ReportError(request.url, error.errmsg(response))
        return self._report_failures(self._parse(parse, request, response))

    def get_events_by_href(self, calendar_url: str, hrefs: Iterable[str]) -> List[Event]:
        """
        Fetches the given events with one calendar-multiget.  Only hrefs
        ending with ``.ics`` are asked for; if none is left, no request
        is sent.
        """
        return self._get_by_href(calendar_url, hrefs, xml_parsers.parse_events)

    def get_todos_by_href(self, calendar_url: str, hrefs: Iterable[str]) -> List[Todo]:
        return self._get_by_href(calendar_url, hrefs, xml_parsers.parse_todos)

    def _get_refs(self, calendar_url: str, component: str) -> List[ItemRef]:
        request = self._channel.protocol.item_refs_request(calendar_url, component)
        response = self._execute(request, component)
        if not response.ok:
            raise error.ReportError(request.url, error.errmsg(response), component)
        return self._parse(xml_parsers.parse_item_refs, request, response)

    def get_event_refs(self, calendar_url: str) -> List[ItemRef]:
        """(href, etag) of every event in the calendar, no calendar data"""
        return self._get_refs(calendar_url, "VEVENT")

    def get_todo_refs(self, calendar_url: str) -> List[ItemRef]:
        return self._get_refs(calendar_url, "VTODO")

    ## Tags

    def get_etag(self, href: str) -> str:
        """
        Fetches the current etag of one object, with a weak validator
        marker removed.  Useful with servers that don't return an ETag
        header on PUT.  Raises ``NotFoundError`` if no etag is reported.
        """
        request = self._channel.protocol.etag_request(href)
        response = self._execute(request)
        if not response.ok:
            raise error.PropfindError(
                request.url, "Failed to retrieve ETag: %s" % error.errmsg(response)
            )
        etag = self._parse(xml_parsers.parse_etag, request, response)
        if not etag:
            raise error.NotFoundError(request.url, "ETag not found in PROPFIND response.")
        return concurrency_ops.strip_weak(etag)

    def get_ctag(self, calendar_url: str) -> Optional[str]:
        """
        Fetches the collection's ctag.  The server must answer with 207
        Multi-Status, anything else raises ``PropfindError``.
        """
        request = self._channel.protocol.ctag_request(calendar_url)
        response = self._execute(request)
        if not response.is_multistatus:
            raise error.PropfindError(request.url, error.errmsg(response))
        return self._parse(xml_parsers.parse_ctag, request, response)

    ## Mutations

    def _put(self, href: str, data: str, headers: dict):
        request = self._channel.protocol.put_request(href, data.encode("utf-8"), headers)
        return request, self._execute(request)

    def _create_item(self, calendar_url: str, item, encode: Callable, kind: str) -> MutationResult:
        if not calendar_url:
            raise ValueError("Calendar URL is required to create a %s." % kind)
        calendar_url = calendar_url.rstrip("/")
        uid = item.uid or str(uuid.uuid4())
        href = concurrency_ops.item_href(calendar_url, uid)
        data = encode(item, uid=uid, prod_id=self._prod_id)

        request, response = self._put(href, data, concurrency_ops.create_headers())
        if concurrency_ops.is_precondition_failure(response.status):
            raise error.UidCollisionError(
                request.url, concurrency_ops.collision_message(kind), kind
            )
        if not concurrency_ops.create_succeeded(response.status):
            raise error.PutError(
                request.url, "Failed to create %s: %s" % (kind, error.errmsg(response))
            )
        self._emit("item_written", kind=kind, href=href, status=response.status)

        return MutationResult(
            uid=uid,
            href=href,
            etag=response.header("ETag") or "",
            new_ctag=self.get_ctag(calendar_url),
        )

    def _update_item(self, calendar_url: str, item, encode: Callable, kind: str) -> MutationResult:
        if not item.uid or not item.href:
            raise ValueError("Both 'uid' and 'href' are required to update a %s." % kind)
        data = encode(item, uid=item.uid, prod_id=self._prod_id)
        headers = concurrency_ops.update_headers(item.etag)

        request, response = self._put(item.href, data, headers)
        if concurrency_ops.is_precondition_failure(response.status):
            raise error.EtagMismatchError(
                request.url, concurrency_ops.mismatch_message(kind), kind
            )
        if not concurrency_ops.update_succeeded(response.status):
            raise error.PutError(
                request.url, "Failed to update %s: %s" % (kind, error.errmsg(response))
            )
        self._emit("item_written", kind=kind, href=item.href, status=response.status)

        return MutationResult(
            uid=item.uid,
            href=item.href,
            etag=response.header("ETag") or "",
            new_ctag=self.get_ctag(calendar_url.rstrip("/")),
        )

    def _delete_item(
        self, calendar_url: str, uid: str, kind: str, etag: Optional[str] = None
    ) -> None:
        href = concurrency_ops.item_href(calendar_url, uid)
        request = self._channel.protocol.delete_request(
            href, concurrency_ops.delete_headers(etag)
        )
        response = self._execute(request)
        if not concurrency_ops.delete_succeeded(response.status):
            raise error.DeleteError(
                request.url, "Failed to delete %s: %s" % (kind, error.errmsg(response))
            )
        self._emit("item_written", kind=kind, href=href, status=response.status)

    def create_event(self, calendar_url: str, event: Event) -> MutationResult:
        """
        Stores a new event as ``{calendar_url}/{uid}.ics``, generating a
        uid if the event has none.  The write is conditional on the
        object not existing; if it does, ``UidCollisionError`` is raised.

        Returns the uid, href and etag of the new object plus the
        calendar's ctag after the write.
        """
        return self._create_item(calendar_url, event, vcal.encode_event, "event")

    def create_todo(self, calendar_url: str, todo: Todo) -> MutationResult:
        return self._create_item(calendar_url, todo, vcal.encode_todo, "todo")

    def update_event(self, calendar_url: str, event: Event) -> MutationResult:
        """
        Overwrites an existing event at ``event.href``.  The write is
        conditional on ``event.etag`` unless that etag is weak; a
        mismatch raises ``EtagMismatchError``.
        """
        return self._update_item(calendar_url, event, vcal.encode_event, "event")

    def update_todo(self, calendar_url: str, todo: Todo) -> MutationResult:
        return self._update_item(calendar_url, todo, vcal.encode_todo, "todo")

    def delete_event(self, calendar_url: str, uid: str, etag: Optional[str] = None) -> None:
        """
        Deletes ``{calendar_url}/{uid}.ics``, conditional on ``etag`` if
        given.  Anything but 204 No Content raises ``DeleteError``.
        """
        self._delete_item(calendar_url, uid, "event", etag)

    def delete_todo(self, calendar_url: str, uid: str, etag: Optional[str] = None) -> None:
        self._delete_item(calendar_url, uid, "todo", etag)

    ## Sync

    def _sync(
        self,
        calendar_url: str,
        ctag: Optional[str],
        local_refs: Iterable[ItemRef],
        component: str,
    ) -> SyncResult:
        remote_ctag = self.get_ctag(calendar_url)
        if sync_ops.is_unchanged(ctag, remote_ctag):
            self._emit("sync_unchanged", calendar_url=calendar_url, ctag=remote_ctag)
            return SyncResult(changed=False, new_ctag=remote_ctag)

        diff = sync_ops.diff_refs(self._get_refs(calendar_url, component), local_refs)
        self._emit(
            "sync_diff",
            calendar_url=calendar_url,
            new=len(diff.new_items),
            updated=len(diff.updated_items),
            deleted=len(diff.deleted_items),
        )
        return SyncResult(
            changed=True,
            new_ctag=remote_ctag,
            new_items=diff.new_items,
            updated_items=diff.updated_items,
            deleted_items=diff.deleted_items,
        )

    def sync_changes(
        self, calendar_url: str, ctag: Optional[str], local_events: Iterable[ItemRef]
    ) -> SyncResult:
        """
        Finds out what changed in a calendar's events since ``ctag``.

        If the calendar's ctag still equals ``ctag``, nothing beyond the
        ctag lookup is requested and ``changed`` is False.  Note that an
        empty ``ctag`` also gives ``changed=False``, so a first sync
        should list the calendar with ``get_event_refs`` instead.
        Otherwise the remote (href, etag) list is compared with
        ``local_events``.
        """
        return self._sync(calendar_url, ctag, local_events, "VEVENT")

    def sync_todo_changes(
        self, calendar_url: str, ctag: Optional[str], local_todos: Iterable[ItemRef]
    ) -> SyncResult:
        return self._sync(calendar_url, ctag, local_todos, "VTODO")


def get_davclient(
    config_file: Optional[str] = None,
    config_section: str = "default",
    environment: bool = True,
    sink: Optional[EventSink] = None,
    **config_data,
) -> DAVClient:
    """
    This function will yield a discovered DAVClient.  It will read
    configuration from various sources, in this order:

    * Data from the parameters given (``ClientOptions`` fields)
    * Environment variables ``CALDAV_URL``, ``CALDAV_USERNAME``,
      ``CALDAV_PASSWORD``, ``CALDAV_TOKEN``, ...
    * The JSON configuration file
    """
    options = None
    if config_data:
        options = ClientOptions(**config_data)
    if options is None and environment:
        options = options_from_env()
    if options is None:
        options = options_from_config(config_file, config_section)
    if options is None:
        raise error.DiscoveryError(reason="no connection parameters found")
    return DAVClient.create(options, sink=sink)
