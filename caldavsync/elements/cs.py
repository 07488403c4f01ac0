#!/usr/bin/env python
from typing import ClassVar

from .base import ValuedBaseElement
from caldavsync.lib.namespace import ns


# Properties
## getctag is not part of any RFC, but it is what calendarserver and
## most servers derived from it offer as a collection change tag
class GetCTag(ValuedBaseElement):
    tag: ClassVar[str] = ns("CS", "getctag")
