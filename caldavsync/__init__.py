#!/usr/bin/env python
import logging

__version__ = "0.4.0"

from .davclient import DAVClient
from .config import ClientOptions
from .objects import *

# Silence notification of no default logging handler
log = logging.getLogger("caldavsync")


class NullHandler(logging.Handler):
    def emit(self, record) -> None:
        pass


log.addHandler(NullHandler())

__all__ = [
    "__version__",
    "DAVClient",
    "ClientOptions",
    "AudioAlarm",
    "Calendar",
    "ClientCache",
    "DisplayAlarm",
    "EmailAlarm",
    "Event",
    "ItemRef",
    "MutationResult",
    "RecurrenceRule",
    "SyncResult",
    "Todo",
]
