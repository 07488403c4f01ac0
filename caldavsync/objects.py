"""
Domain objects handed to and returned from the client.

Events and todos are plain dataclasses; the client never keeps them
after an operation returns.  ``ItemRef`` is the (href, etag) pair the
sync logic compares, and ``ClientCache`` is the discovery state that may
be persisted between runs.
"""
from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from datetime import date
from datetime import datetime
from datetime import timedelta
from typing import Any
from typing import Dict
from typing import FrozenSet
from typing import List
from typing import Optional
from typing import Union

## The component kinds a calendar collection may advertise
KNOWN_COMPONENTS = (
    "VEVENT",
    "VTODO",
    "VJOURNAL",
    "VFREEBUSY",
    "VTIMEZONE",
    "VAVAILABILITY",
)

FREQUENCIES = ("DAILY", "WEEKLY", "MONTHLY", "YEARLY")

Trigger = Union[timedelta, datetime, str]


@dataclass
class Calendar:
    display_name: str
    url: str
    ctag: Optional[str] = None
    supported_components: FrozenSet[str] = frozenset()


@dataclass
class RecurrenceRule:
    freq: Optional[str] = None
    interval: Optional[int] = None
    count: Optional[int] = None
    until: Optional[Union[date, datetime]] = None
    byday: Optional[List[str]] = None
    bymonthday: Optional[List[int]] = None
    bymonth: Optional[List[int]] = None


@dataclass
class DisplayAlarm:
    trigger: Trigger
    description: Optional[str] = None

    action = "DISPLAY"


@dataclass
class EmailAlarm:
    trigger: Trigger
    description: Optional[str] = None
    summary: Optional[str] = None
    attendees: List[str] = field(default_factory=list)

    action = "EMAIL"


@dataclass
class AudioAlarm:
    trigger: Trigger

    action = "AUDIO"


Alarm = Union[DisplayAlarm, EmailAlarm, AudioAlarm]


@dataclass
class Event:
    summary: str
    start: Union[date, datetime]
    end: Optional[Union[date, datetime]] = None
    uid: Optional[str] = None
    href: Optional[str] = None
    etag: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    whole_day: bool = False
    recurrence_rule: Optional[RecurrenceRule] = None
    start_tzid: Optional[str] = None
    end_tzid: Optional[str] = None
    alarms: List[Alarm] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.end is None:
            self.end = self.start


@dataclass
class Todo:
    summary: str = "Untitled Todo"
    uid: Optional[str] = None
    start: Optional[Union[date, datetime]] = None
    due: Optional[Union[date, datetime]] = None
    completed: Optional[Union[date, datetime]] = None
    status: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    href: Optional[str] = None
    etag: Optional[str] = None
    alarms: List[Alarm] = field(default_factory=list)
    sort_order: Optional[Union[int, float]] = None


@dataclass(frozen=True)
class ItemRef:
    """An href and the etag last seen for it"""

    href: str
    etag: str


## Same shape for both kinds, the aliases only document intent
EventRef = ItemRef
TodoRef = ItemRef


@dataclass
class SyncResult:
    changed: bool
    new_ctag: Optional[str]
    new_items: List[str] = field(default_factory=list)
    updated_items: List[str] = field(default_factory=list)
    deleted_items: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class MutationResult:
    uid: str
    href: str
    etag: str
    new_ctag: Optional[str]


@dataclass(frozen=True)
class ClientCache:
    """
    Discovery state that is sufficient to rebuild a client without
    talking to the server.  ``to_dict``/``from_dict`` use the persisted
    key names (``userPrincipal``, ``calendarHome``, ``prodId``).
    """

    user_principal: str
    calendar_home: str
    prod_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userPrincipal": self.user_principal,
            "calendarHome": self.calendar_home,
            "prodId": self.prod_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientCache":
        return cls(
            user_principal=data.get("userPrincipal") or "",
            calendar_home=data.get("calendarHome") or "",
            prod_id=data.get("prodId"),
        )


__all__ = [
    "Alarm",
    "AudioAlarm",
    "Calendar",
    "ClientCache",
    "DisplayAlarm",
    "EmailAlarm",
    "Event",
    "EventRef",
    "ItemRef",
    "MutationResult",
    "RecurrenceRule",
    "SyncResult",
    "Todo",
    "TodoRef",
]
