"""Single-pass parser that infers scalar/vector/matrix structure in a line of text.

The parser is lenient: it never raises. Unbalanced brackets are closed at the
end of input, and groups whose children do not form a uniform numeric shape
are kept as untyped ``List`` nodes.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from .ast import Node, NodeType, closer_for, scalar
from .lexer import is_ident_start, is_literal_start, is_opener, is_separator, match_literal


@dataclass
class _OpenNode:
    begin: int
    delim: str
    items: list[Node] = field(default_factory=list)


def close_node(begin: int, end: int, items: tuple[Node, ...] | list[Node], delim: str = "") -> Node | None:
    """Classify a finished bracket group; empty groups yield ``None``."""
    items = tuple(items)
    if not items:
        return None

    kind = items[0].type
    count = len(items[0].items)
    for item in items[1:]:
        if item.type is not kind:
            kind = NodeType.LIST
        if len(item.items) != count:
            count = -1

    if kind is NodeType.SCALAR:
        if len(items) == 1:
            # (x) is just x
            return items[0]
        return Node(type=NodeType.VECTOR, begin=begin, end=end, items=items, delim=delim)

    if kind is NodeType.VECTOR and count > 1:
        if len(items) == 1:
            # Nx1 matrix is a vector
            return items[0]
        return Node(type=NodeType.MATRIX, begin=begin, end=end, items=items, delim=delim)

    return Node(type=NodeType.LIST, begin=begin, end=end, items=items, delim=delim)


def _shed_singleton_lists(node: Node) -> Node:
    while node.type is NodeType.LIST and len(node.items) == 1:
        node = node.items[0]
    return node


def parse(line: str) -> Node:
    """Parse ``line`` into a tree of numeric nodes.

    For example, a line holding two 3-vectors yields a ``List`` with one
    ``Vector`` child per vector, each with one ``Scalar`` child per component.
    """
    stack: list[_OpenNode] = [_OpenNode(begin=0, delim="")]
    accept_number = True
    i = 0

    while i < len(line):
        ch = line[i]

        if is_opener(ch):
            stack.append(_OpenNode(begin=i, delim=closer_for(ch)))
            accept_number = True
        elif len(stack) > 1 and ch == stack[-1].delim:
            done = stack.pop()
            closed = close_node(done.begin, i + 1, done.items, done.delim)
            if closed is not None:
                stack[-1].items.append(closed)
            accept_number = True
        elif accept_number:
            if is_ident_start(ch):
                accept_number = False
            elif is_literal_start(ch):
                # A separator is required before the next literal can begin.
                accept_number = False
                literal = match_literal(line, i)
                if literal is not None:
                    stack[-1].items.append(scalar(literal.pos, literal.end))
                    i = literal.end
                    continue
        elif is_separator(ch):
            accept_number = True

        i += 1

    while len(stack) > 1:
        child = stack.pop()
        if child.items:
            closed = close_node(child.begin, child.items[-1].end, child.items, child.delim)
            if closed is not None:
                stack[-1].items.append(closed)

    root = stack[0]
    end = root.items[-1].end if root.items else 0
    return _shed_singleton_lists(Node(type=NodeType.LIST, begin=0, end=end, items=tuple(root.items)))


def scalar_leaves(node: Node) -> Iterator[Node]:
    """Yield every ``Scalar`` leaf of ``node`` from left to right."""
    if node.type is NodeType.SCALAR:
        yield node
        return
    for item in node.items:
        yield from scalar_leaves(item)


def literal_texts(line: str, node: Node | None = None) -> list[str]:
    if node is None:
        node = parse(line)
    return [line[leaf.begin : leaf.end] for leaf in scalar_leaves(node)]
