#!/usr/bin/env python
from datetime import date
from datetime import datetime
from datetime import timezone
from typing import ClassVar
from typing import Optional
from typing import Union

from .base import BaseElement
from .base import NamedBaseElement
from .base import ValuedBaseElement
from caldavsync.lib.namespace import ns

utc_tz = timezone.utc


def _to_utc_date_string(ts: Union[date, datetime]) -> str:
    """coerce datetimes to UTC (assume localtime if nothing is given)"""
    if isinstance(ts, datetime):
        ## a naive timestamp is taken as localtime by astimezone()
        ts = ts.astimezone(utc_tz)
    return ts.strftime("%Y%m%dT%H%M%SZ")


# Operations
class CalendarQuery(BaseElement):
    tag: ClassVar[str] = ns("C", "calendar-query")


class CalendarMultiGet(BaseElement):
    tag: ClassVar[str] = ns("C", "calendar-multiget")


# Filters
class Filter(BaseElement):
    tag: ClassVar[str] = ns("C", "filter")


class CompFilter(NamedBaseElement):
    tag: ClassVar[str] = ns("C", "comp-filter")


# Conditions
class TimeRange(BaseElement):
    tag: ClassVar[str] = ns("C", "time-range")

    def __init__(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> None:
        ## start and end should be an icalendar "date with UTC time",
        ## ref https://tools.ietf.org/html/rfc4791#section-9.9
        super(TimeRange, self).__init__()

        if start is not None:
            self.attributes["start"] = _to_utc_date_string(start)
        if end is not None:
            self.attributes["end"] = _to_utc_date_string(end)


# Components / Data
class CalendarData(BaseElement):
    tag: ClassVar[str] = ns("C", "calendar-data")


class Expand(BaseElement):
    tag: ClassVar[str] = ns("C", "expand")

    def __init__(self, start: datetime, end: datetime) -> None:
        super(Expand, self).__init__()
        self.attributes["start"] = _to_utc_date_string(start)
        self.attributes["end"] = _to_utc_date_string(end)


# Properties
class CalendarHomeSet(BaseElement):
    tag: ClassVar[str] = ns("C", "calendar-home-set")


class SupportedCalendarComponentSet(ValuedBaseElement):
    tag: ClassVar[str] = ns("C", "supported-calendar-component-set")
