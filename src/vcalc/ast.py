"""Parse-tree nodes for numeric structure found in a line of text."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class NodeType(str, Enum):
    LIST = "list"
    SCALAR = "scalar"
    VECTOR = "vector"
    MATRIX = "matrix"


_CLOSERS = {
    "(": ")",
    "[": "]",
    "{": "}",
}


def closer_for(opener: str) -> str:
    return _CLOSERS.get(opener, "")


@dataclass(frozen=True)
class Node:
    type: NodeType
    begin: int
    end: int
    items: tuple["Node", ...] = ()
    delim: str = ""

    @property
    def is_numeric(self) -> bool:
        return self.type is not NodeType.LIST

    @property
    def shape_label(self) -> str:
        """Short hover-style description, e.g. ``vector3`` or ``matrix2x3``."""
        if self.type is NodeType.VECTOR:
            return f"vector{len(self.items)}"
        if self.type is NodeType.MATRIX:
            return f"matrix{len(self.items[0].items)}x{len(self.items)}"
        return self.type.value


def scalar(begin: int, end: int) -> Node:
    return Node(type=NodeType.SCALAR, begin=begin, end=end)
