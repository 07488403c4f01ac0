"""
Pure functions for building CalDAV XML request bodies.

All functions in this module are pure - they take data in and return XML out,
with no side effects or I/O.
"""
from datetime import datetime
from typing import Iterable
from typing import List
from typing import Optional

from lxml import etree

from caldavsync.elements import cdav
from caldavsync.elements import cs
from caldavsync.elements import dav
from caldavsync.elements.base import BaseElement


def _serialize(root: BaseElement) -> bytes:
    return etree.tostring(root.xmlelement(), encoding="utf-8", xml_declaration=True)


def build_propfind_body(props: List[BaseElement]) -> bytes:
    """
    Build PROPFIND request body XML.

    Args:
        props: property elements to ask for

    Returns:
        UTF-8 encoded XML bytes
    """
    return _serialize(dav.Propfind() + (dav.Prop() + props))


def build_principal_body() -> bytes:
    return build_propfind_body([dav.CurrentUserPrincipal()])


def build_calendar_home_body() -> bytes:
    return build_propfind_body([cdav.CalendarHomeSet()])


def build_calendars_body() -> bytes:
    return build_propfind_body(
        [
            dav.ResourceType(),
            dav.DisplayName(),
            cs.GetCTag(),
            cdav.SupportedCalendarComponentSet(),
        ]
    )


def build_etag_body() -> bytes:
    return build_propfind_body([dav.GetEtag()])


def build_ctag_body() -> bytes:
    return build_propfind_body([cs.GetCTag()])


def build_calendar_query_body(
    component: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    include_data: bool = True,
) -> bytes:
    """
    Build calendar-query REPORT request body.

    With both ``start`` and ``end`` given, the component filter gets a
    time-range condition.  For VEVENT the server is additionally asked
    to expand recurring events within the same window.

    Args:
        component: component type filter name (VEVENT, VTODO)
        start: start of time range filter
        end: end of time range filter
        include_data: ask for calendar-data, not only getetag

    Returns:
        UTF-8 encoded XML bytes
    """
    windowed = start is not None and end is not None

    props: List[BaseElement] = [dav.GetEtag()]
    if include_data:
        data = cdav.CalendarData()
        if windowed and component == "VEVENT":
            data += cdav.Expand(start, end)
        props.append(data)

    comp_filter = cdav.CompFilter(component)
    if windowed:
        comp_filter += cdav.TimeRange(start, end)

    filter_elem = cdav.Filter() + (cdav.CompFilter("VCALENDAR") + comp_filter)
    root = cdav.CalendarQuery() + [dav.Prop() + props, filter_elem]
    return _serialize(root)


def build_calendar_multiget_body(hrefs: Iterable[str]) -> bytes:
    """
    Build calendar-multiget REPORT request body.

    Used to retrieve multiple calendar objects by their hrefs in a single request.
    """
    elements: List[BaseElement] = [dav.Prop() + [dav.GetEtag(), cdav.CalendarData()]]
    for href in hrefs:
        elements.append(dav.Href(href))
    return _serialize(cdav.CalendarMultiGet() + elements)
