#!/usr/bin/env python
"""
Request body elements.

Each subclass binds one namespaced tag.  Trees are assembled with ``+``
(or ``append``) and turned into lxml elements by ``xmlelement()``; the
builders in ``caldavsync.protocol.xml_builders`` do the serializing.
"""
import sys
from collections.abc import Iterable
from typing import ClassVar
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

from lxml import etree
from lxml.etree import _Element

from caldavsync.lib.namespace import nsmap

if sys.version_info < (3, 11):
    from typing_extensions import Self
else:
    from typing import Self


class BaseElement:
    tag: ClassVar[Optional[str]] = None

    def __init__(self, name: Optional[str] = None, value: Optional[str] = None) -> None:
        self.children: List[BaseElement] = []
        self.attributes: Dict[str, str] = {}
        self.value = value
        if name is not None:
            self.attributes["name"] = name

    def __add__(self, other: Union["BaseElement", Iterable["BaseElement"]]) -> Self:
        return self.append(other)

    def append(self, element: Union["BaseElement", Iterable["BaseElement"]]) -> Self:
        if isinstance(element, Iterable):
            self.children.extend(element)
        else:
            self.children.append(element)
        return self

    def xmlelement(self) -> _Element:
        if self.tag is None:
            raise ValueError("%s has no tag" % type(self).__name__)
        root = etree.Element(self.tag, nsmap=nsmap)
        if self.value is not None:
            root.text = self.value
        for key, val in self.attributes.items():
            root.set(key, val)
        self.xmlchildren(root)
        return root

    def xmlchildren(self, root: _Element) -> None:
        for child in self.children:
            root.append(child.xmlelement())


class NamedBaseElement(BaseElement):
    """An element identified by its ``name`` attribute, like comp-filter"""

    def __init__(self, name: str) -> None:
        super(NamedBaseElement, self).__init__(name=name)


class ValuedBaseElement(BaseElement):
    def __init__(self, value: Optional[str] = None) -> None:
        super(ValuedBaseElement, self).__init__(value=value)
