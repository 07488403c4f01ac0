"""
Structured event hook.

A sink is any callable taking an event name and a dict of fields.  The
client reports requests, skipped items, sync outcomes and writes through
it; the default sink hands everything to the package logger.
"""
import logging
from typing import Any
from typing import Callable
from typing import Dict
from typing import Optional

log = logging.getLogger("caldavsync")

EventSink = Callable[[str, Dict[str, Any]], None]

## Events worth a warning rather than a debug line
WARNING_EVENTS = frozenset(["item_decode_failed"])


class LoggingSink:
    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or log

    def __call__(self, event: str, fields: Dict[str, Any]) -> None:
        level = logging.WARNING if event in WARNING_EVENTS else logging.DEBUG
        details = ", ".join("%s=%r" % (k, v) for k, v in sorted(fields.items()))
        self.logger.log(level, "%s: %s", event, details)


def emit(sink: Optional[EventSink], event: str, **fields: Any) -> None:
    """
    Hands an event to the sink.  A sink raising an exception is logged
    and otherwise ignored, so observation never breaks an operation.
    """
    if sink is None:
        return
    try:
        sink(event, fields)
    except Exception:
        log.error("event sink failed on %s" % event, exc_info=True)
