"""
Pure functions for parsing CalDAV XML responses.

All functions in this module take XML bytes in and return structured
data out, with no I/O.  Elements are matched on their local name, so
whatever namespace prefixes a server picks don't matter, and every
repeatable element is handled as a list, be it of length zero, one or
more.
"""
from typing import Callable
from typing import Iterable
from typing import List
from typing import Optional

from lxml import etree
from lxml.etree import _Element

from caldavsync.lib import error
from caldavsync.lib import vcal
from caldavsync.lib.url import URL
from caldavsync.objects import Calendar
from caldavsync.objects import ItemRef
from caldavsync.objects import KNOWN_COMPONENTS

from .types import CalendarQueryResult
from .types import DecodeReport


def _localname(elem: _Element) -> Optional[str]:
    if not isinstance(elem.tag, str):
        ## comments and processing instructions
        return None
    return etree.QName(elem).localname


def _children(elem: Optional[_Element], name: str) -> List[_Element]:
    if elem is None:
        return []
    return [child for child in elem if _localname(child) == name]


def _child(elem: Optional[_Element], name: str) -> Optional[_Element]:
    found = _children(elem, name)
    return found[0] if found else None


def _text(elem: Optional[_Element]) -> Optional[str]:
    if elem is None or elem.text is None:
        return None
    return elem.text.strip()


def _parse_xml(body: bytes, huge_tree: bool = False) -> Optional[_Element]:
    if not body or not body.strip():
        return None
    parser = etree.XMLParser(huge_tree=huge_tree)
    return etree.fromstring(body, parser)


def _response_elements(body: bytes) -> List[_Element]:
    """
    Strip outer elements to get to the DAV:response elements.

    The general format is:
        <multistatus>
            <response>...</response>
            <response>...</response>
        </multistatus>

    A body without multistatus root gives an empty list.
    """
    tree = _parse_xml(body)
    if tree is None:
        return []
    if _localname(tree) != "multistatus":
        error.weirdness("expected multistatus root element", tree)
        return []
    return _children(tree, "response")


def _status_ok(status: Optional[str]) -> bool:
    return status is not None and "200 ok" in status.lower()


def _first_ok_prop(response: _Element) -> Optional[_Element]:
    """
    Returns the DAV:prop of the first propstat block that reports
    success, or None if there is no such block.  Later success blocks
    are ignored.
    """
    for propstat in _children(response, "propstat"):
        if _status_ok(_text(_child(propstat, "status"))):
            return _child(propstat, "prop")
    return None


def _any_prop(response: _Element, name: str) -> Optional[_Element]:
    """
    Returns the first property with the given local name found in any
    propstat block of the response.
    """
    for propstat in _children(response, "propstat"):
        found = _child(_child(propstat, "prop"), name)
        if found is not None:
            return found
    return None


def _href_of(response: _Element) -> Optional[str]:
    return _text(_child(response, "href"))


def parse_href_property(body: bytes, name: str) -> Optional[str]:
    """
    Finds the DAV:href nested in the named property, as in
    ``current-user-principal`` and ``calendar-home-set``.  Returns None
    if no response carries it.
    """
    for response in _response_elements(body):
        href = _text(_child(_any_prop(response, name), "href"))
        if href:
            return href
    return None


def parse_principal(body: bytes) -> Optional[str]:
    return parse_href_property(body, "current-user-principal")


def parse_calendar_home(body: bytes) -> Optional[str]:
    return parse_href_property(body, "calendar-home-set")


def parse_text_property(body: bytes, name: str) -> Optional[str]:
    for response in _response_elements(body):
        value = _text(_any_prop(response, name))
        if value:
            return value
    return None


def parse_etag(body: bytes) -> Optional[str]:
    return parse_text_property(body, "getetag")


def parse_ctag(body: bytes) -> Optional[str]:
    return parse_text_property(body, "getctag")


def parse_calendars(body: bytes, base_url: Optional[str] = None) -> List[Calendar]:
    """
    Parses the depth-1 PROPFIND over a calendar home into calendars.

    Only the first propstat block with status "200 OK" of each response
    is looked at.  Collections that support neither VEVENT nor VTODO are
    left out, which also drops the home collection itself.
    """
    calendars = []
    for response in _response_elements(body):
        prop = _first_ok_prop(response)
        if prop is None:
            continue
        comp_set = _child(prop, "supported-calendar-component-set")
        names = [comp.get("name") for comp in _children(comp_set, "comp")]
        supported = frozenset(name for name in names if name in KNOWN_COMPONENTS)
        if "VEVENT" not in supported and "VTODO" not in supported:
            continue
        href = _href_of(response)
        if href is None:
            error.weirdness("calendar response without href", response)
            continue
        calendars.append(
            Calendar(
                display_name=_text(_child(prop, "displayname")) or "",
                url=str(URL(base_url).resolve(href)) if base_url else href,
                ctag=_text(_child(prop, "getctag")),
                supported_components=supported,
            )
        )
    return calendars


def parse_calendar_query_response(
    body: bytes, component: str = "VEVENT"
) -> List[CalendarQueryResult]:
    """
    Parses a calendar-query or calendar-multiget REPORT.  Entries
    without calendar-data are dropped.  ``&#13;`` escapes left in the
    data are normalized for the given component kind.
    """
    results = []
    for response in _response_elements(body):
        data = None
        etag = None
        for propstat in _children(response, "propstat"):
            prop = _child(propstat, "prop")
            data_elem = _child(prop, "calendar-data")
            if data_elem is not None and data_elem.text:
                data = data_elem.text
            etag = etag or _text(_child(prop, "getetag"))
        if not data:
            continue
        results.append(
            CalendarQueryResult(
                href=_href_of(response) or "",
                etag=etag,
                calendar_data=vcal.normalize_calendar_data(data, component),
            )
        )
    return results


def parse_item_refs(body: bytes) -> List[ItemRef]:
    """
    Collects (href, etag) pairs from an etag-only calendar-query.
    Responses lacking either are skipped.
    """
    refs = []
    for response in _response_elements(body):
        href = _href_of(response)
        etag = _text(_any_prop(response, "getetag"))
        if href and etag:
            refs.append(ItemRef(href=href, etag=etag))
    return refs


def _decode_batch(
    results: Iterable[CalendarQueryResult],
    decode: Callable,
    base_url: Optional[str],
) -> DecodeReport:
    report = DecodeReport()
    for result in results:
        href = str(URL(base_url).resolve(result.href)) if base_url else result.href
        try:
            report.items.extend(decode(result.calendar_data, href, result.etag or ""))
        except error.ItemDecodeError as e:
            report.failures.append(e)
    return report


def parse_events(body: bytes, base_url: Optional[str] = None) -> DecodeReport:
    """
    Decodes all events in a REPORT response.  One broken calendar object
    does not stop the others from being decoded; it ends up in
    ``failures`` instead.
    """
    return _decode_batch(
        parse_calendar_query_response(body, "VEVENT"), vcal.decode_events, base_url
    )


def parse_todos(body: bytes, base_url: Optional[str] = None) -> DecodeReport:
    return _decode_batch(
        parse_calendar_query_response(body, "VTODO"), vcal.decode_todos, base_url
    )
