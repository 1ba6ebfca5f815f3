"""Kinds of document nodes."""

from __future__ import annotations

from enum import IntEnum


class NodeType(IntEnum):
    """The type of a node, numbered as in the DOM."""

    ELEMENT = 1
    TEXT = 3
    XML_CDATA = 4
    COMMENT = 8
    DOCUMENT = 9
    HTML_DOCTYPE = 10
    DOCUMENT_FRAGMENT = 11
    OTHER = 14

    def is_element(self) -> bool:
        """Return True for element nodes."""
        return self is NodeType.ELEMENT