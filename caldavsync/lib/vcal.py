#!/usr/bin/env python
"""
Conversion between the domain objects in ``caldavsync.objects`` and
iCalendar text.  The icalendar library does the actual grammar work,
this module only decides which properties go where.
"""
import datetime
import logging
from typing import List
from typing import Optional
from typing import Union

import icalendar
from icalendar.prop import vDDDTypes

from caldavsync.lib import error
from caldavsync.objects import Alarm
from caldavsync.objects import AudioAlarm
from caldavsync.objects import DisplayAlarm
from caldavsync.objects import EmailAlarm
from caldavsync.objects import Event
from caldavsync.objects import FREQUENCIES
from caldavsync.objects import RecurrenceRule
from caldavsync.objects import Todo

log = logging.getLogger(__name__)

utc = datetime.timezone.utc

DEFAULT_PROD_ID = "-//caldavsync//CalDAV Client//EN"
SORT_ORDER_PROPERTY = "X-APPLE-SORT-ORDER"

DateLike = Union[datetime.date, datetime.datetime]


def normalize_calendar_data(data: str, component: str = "VEVENT") -> str:
    """
    Some servers double-escape carriage returns, so that the calendar
    data arrives with literal ``&#13;`` sequences even after the XML
    parser has done its job.  Events get a bare CR back, todos a CRLF.
    """
    replacement = "\r\n" if component == "VTODO" else "\r"
    return data.replace("&#13;", replacement)


def _to_utc(ts: datetime.datetime) -> datetime.datetime:
    ## naive timestamps are taken as localtime, same as in the
    ## time-range filters
    return ts.astimezone(utc)


def _add_timestamp(
    component: icalendar.cal.Component,
    name: str,
    value: DateLike,
    tzid: Optional[str] = None,
) -> None:
    if not isinstance(value, datetime.datetime):
        component.add(name, value)
    elif tzid:
        ## The wall clock time is passed on as given, the server is
        ## responsible for interpreting it in the named zone
        component.add(name, value.replace(tzinfo=None), parameters={"TZID": tzid})
    else:
        component.add(name, _to_utc(value))


def _as_date(value: DateLike) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def _recurrence_to_ical(rule: RecurrenceRule) -> dict:
    rrule = {}
    if rule.freq:
        rrule["FREQ"] = rule.freq
    if rule.interval:
        rrule["INTERVAL"] = rule.interval
    if rule.count:
        rrule["COUNT"] = rule.count
    if rule.until:
        until = rule.until
        if isinstance(until, datetime.datetime):
            until = _to_utc(until)
        rrule["UNTIL"] = until
    if rule.byday:
        rrule["BYDAY"] = list(rule.byday)
    if rule.bymonthday:
        rrule["BYMONTHDAY"] = list(rule.bymonthday)
    if rule.bymonth:
        rrule["BYMONTH"] = list(rule.bymonth)
    return rrule


def _alarm_to_ical(alarm: Alarm) -> icalendar.Alarm:
    valarm = icalendar.Alarm()
    trigger = alarm.trigger
    if isinstance(trigger, str):
        trigger = vDDDTypes.from_ical(trigger)
    if isinstance(trigger, datetime.datetime):
        valarm.add("trigger", _to_utc(trigger), parameters={"VALUE": "DATE-TIME"})
    else:
        valarm.add("trigger", trigger)
    valarm.add("action", alarm.action)

    if isinstance(alarm, DisplayAlarm):
        if alarm.description:
            valarm.add("description", alarm.description)
    elif isinstance(alarm, EmailAlarm):
        if alarm.summary:
            valarm.add("summary", alarm.summary)
        if alarm.description:
            valarm.add("description", alarm.description)
        for attendee in alarm.attendees:
            valarm.add("attendee", attendee)
    elif isinstance(alarm, AudioAlarm):
        pass
    else:
        raise TypeError("not an alarm: %r" % (alarm,))
    return valarm


def _new_calendar(prod_id: Optional[str]) -> icalendar.Calendar:
    cal = icalendar.Calendar()
    cal.add("version", "2.0")
    cal.add("prodid", prod_id or DEFAULT_PROD_ID)
    return cal


def encode_event(
    event: Event, uid: Optional[str] = None, prod_id: Optional[str] = None
) -> str:
    """
    Serializes an event into a complete VCALENDAR with a single VEVENT.

    Whole-day events get date-only DTSTART/DTEND.  Timed events are
    written in UTC unless a start/end timezone identifier is given, in
    which case that identifier is attached as TZID parameter.
    """
    cal = _new_calendar(prod_id)
    cal.add("method", "REQUEST")

    vevent = icalendar.Event()
    vevent.add("uid", uid or event.uid)
    vevent.add("dtstamp", datetime.datetime.now(tz=utc))

    end = event.end if event.end is not None else event.start
    if event.whole_day:
        vevent.add("dtstart", _as_date(event.start))
        vevent.add("dtend", _as_date(end))
    else:
        _add_timestamp(vevent, "dtstart", event.start, event.start_tzid)
        _add_timestamp(vevent, "dtend", end, event.end_tzid)

    vevent.add("summary", event.summary)
    if event.description:
        vevent.add("description", event.description)
    if event.location:
        vevent.add("location", event.location)
    if event.recurrence_rule:
        vevent.add("rrule", _recurrence_to_ical(event.recurrence_rule))
    for alarm in event.alarms:
        vevent.add_component(_alarm_to_ical(alarm))

    cal.add_component(vevent)
    return cal.to_ical().decode("utf-8")


def encode_todo(
    todo: Todo, uid: Optional[str] = None, prod_id: Optional[str] = None
) -> str:
    """Serializes a todo into a complete VCALENDAR with a single VTODO."""
    cal = _new_calendar(prod_id)

    vtodo = icalendar.Todo()
    vtodo.add("uid", uid or todo.uid)
    vtodo.add("dtstamp", datetime.datetime.now(tz=utc))
    for name in ("start", "due", "completed"):
        value = getattr(todo, name)
        if value is not None:
            _add_timestamp(vtodo, "dtstart" if name == "start" else name, value)

    vtodo.add("summary", todo.summary)
    if todo.description:
        vtodo.add("description", todo.description)
    if todo.location:
        vtodo.add("location", todo.location)
    if todo.status:
        vtodo.add("status", todo.status)
    if todo.sort_order is not None:
        vtodo.add(SORT_ORDER_PROPERTY, str(todo.sort_order))
    for alarm in todo.alarms:
        vtodo.add_component(_alarm_to_ical(alarm))

    cal.add_component(vtodo)
    return cal.to_ical().decode("utf-8")


def _text(component: icalendar.cal.Component, name: str) -> Optional[str]:
    value = component.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        value = value[0]
    return str(value) or None


def _value(component: icalendar.cal.Component, name: str):
    prop = component.get(name)
    if prop is None:
        return None
    return prop.dt


def _tzid(component: icalendar.cal.Component, name: str) -> Optional[str]:
    prop = component.get(name)
    if prop is None:
        return None
    tzid = prop.params.get("TZID")
    if isinstance(tzid, list):
        tzid = tzid[0] if tzid else None
    return tzid


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _recurrence_from_ical(rrule) -> RecurrenceRule:
    def first(key):
        values = rrule.get(key)
        return values[0] if values else None

    freq = first("FREQ")
    freq = str(freq).upper() if freq is not None else None
    interval = first("INTERVAL")
    count = first("COUNT")
    return RecurrenceRule(
        freq=freq if freq in FREQUENCIES else None,
        interval=int(interval) if interval is not None else None,
        count=int(count) if count else None,
        until=first("UNTIL"),
        byday=[str(x) for x in rrule["BYDAY"]] if rrule.get("BYDAY") else None,
        bymonthday=(
            [int(x) for x in rrule["BYMONTHDAY"]] if rrule.get("BYMONTHDAY") else None
        ),
        bymonth=[int(x) for x in rrule["BYMONTH"]] if rrule.get("BYMONTH") else None,
    )


def _alarms_from_ical(component: icalendar.cal.Component) -> List[Alarm]:
    alarms: List[Alarm] = []
    for valarm in component.walk("VALARM"):
        action = _text(valarm, "ACTION")
        trigger = _value(valarm, "TRIGGER")
        if not action or trigger is None:
            continue
        action = action.upper()
        if action == "DISPLAY":
            alarms.append(
                DisplayAlarm(trigger=trigger, description=_text(valarm, "DESCRIPTION"))
            )
        elif action == "EMAIL":
            alarms.append(
                EmailAlarm(
                    trigger=trigger,
                    description=_text(valarm, "DESCRIPTION"),
                    summary=_text(valarm, "SUMMARY"),
                    attendees=[str(x) for x in _as_list(valarm.get("ATTENDEE"))],
                )
            )
        elif action == "AUDIO":
            alarms.append(AudioAlarm(trigger=trigger))
        else:
            log.debug("dropping alarm with unknown action %s", action)
    return alarms


def _parse_sort_order(raw: Optional[str]) -> Optional[Union[int, float]]:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return float(raw)


def _event_from_ical(vevent, href, etag) -> Event:
    start = _value(vevent, "DTSTART")
    if start is None:
        raise ValueError("VEVENT without DTSTART")
    end = _value(vevent, "DTEND")
    if end is None:
        duration = _value(vevent, "DURATION")
        end = start + duration if duration is not None else start
    rrule = vevent.get("RRULE")
    return Event(
        uid=_text(vevent, "UID"),
        summary=_text(vevent, "SUMMARY") or "Untitled Event",
        start=start,
        end=end,
        description=_text(vevent, "DESCRIPTION"),
        location=_text(vevent, "LOCATION"),
        etag=etag,
        href=href,
        whole_day=not isinstance(start, datetime.datetime),
        recurrence_rule=_recurrence_from_ical(rrule) if rrule is not None else None,
        start_tzid=_tzid(vevent, "DTSTART"),
        end_tzid=_tzid(vevent, "DTEND"),
        alarms=_alarms_from_ical(vevent),
    )


def _todo_from_ical(vtodo, href, etag) -> Todo:
    return Todo(
        uid=_text(vtodo, "UID"),
        summary=_text(vtodo, "SUMMARY") or "Untitled Todo",
        start=_value(vtodo, "DTSTART"),
        due=_value(vtodo, "DUE"),
        completed=_value(vtodo, "COMPLETED"),
        status=_text(vtodo, "STATUS"),
        description=_text(vtodo, "DESCRIPTION"),
        location=_text(vtodo, "LOCATION"),
        href=href,
        etag=etag,
        alarms=_alarms_from_ical(vtodo),
        sort_order=_parse_sort_order(_text(vtodo, SORT_ORDER_PROPERTY)),
    )


def _decode(data: str, component: str, factory, href, etag) -> list:
    try:
        cal = icalendar.Calendar.from_ical(normalize_calendar_data(data, component))
        return [factory(sub, href, etag) for sub in cal.walk(component)]
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        raise error.ItemDecodeError(href, "%s: %s" % (e.__class__.__name__, e), component)


def decode_events(
    data: str, href: Optional[str] = None, etag: Optional[str] = None
) -> List[Event]:
    """
    Decodes every VEVENT in one blob of calendar data.  Raises
    ``ItemDecodeError`` if the blob can't be parsed.
    """
    return _decode(data, "VEVENT", _event_from_ical, href, etag)


def decode_todos(
    data: str, href: Optional[str] = None, etag: Optional[str] = None
) -> List[Todo]:
    return _decode(data, "VTODO", _todo_from_ical, href, etag)
