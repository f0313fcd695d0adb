"""Numeric literal scanning for plain-text operands."""

from __future__ import annotations

import re
from dataclasses import dataclass

_OPENERS = frozenset("([{")
_LITERAL_START = frozenset("0123456789-.")

# A literal must end at a non-alphanumeric character or at the end of input.
_BOUNDARY = r"(?=[^a-zA-Z0-9]|\Z)"

_HEX_RE = re.compile(r"0x[0-9A-Fa-f]+" + _BOUNDARY)
_DECIMAL_RE = re.compile(
    r"""
    -?[0-9]+              # integer part
    \.?[0-9]*             # optional fraction
    (?:[eE][+-]?[0-9]+)?  # exponent
    [fF]?                 # float suffix
    """
    + _BOUNDARY,
    re.VERBOSE,
)
_LEADING_DECIMAL_RE = re.compile(
    r"""
    -?\.[0-9]+
    (?:[eE][+-]?[0-9]+)?
    [fF]?
    """
    + _BOUNDARY,
    re.VERBOSE,
)

_LITERAL_PATTERNS = (_HEX_RE, _DECIMAL_RE, _LEADING_DECIMAL_RE)


@dataclass(frozen=True)
class Literal:
    text: str
    pos: int
    end: int
    is_hex: bool


def is_opener(ch: str) -> bool:
    return ch in _OPENERS


def is_ident_start(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def is_literal_start(ch: str) -> bool:
    return ch in _LITERAL_START


def is_separator(ch: str) -> bool:
    """Characters that re-enable number matching after a word or failed literal."""
    return not (ch.isascii() and (ch.isalnum() or ch == "-"))


def is_hex_text(text: str) -> bool:
    return text[:2] == "0x"


def match_literal(source: str, pos: int) -> Literal | None:
    """Return the longest numeric literal starting at ``pos``, or ``None``."""
    for pattern in _LITERAL_PATTERNS:
        m = pattern.match(source, pos)
        if m is not None:
            text = m.group(0)
            return Literal(text=text, pos=pos, end=m.end(), is_hex=pattern is _HEX_RE)
    return None


def literal_value(text: str) -> float:
    """Decode literal text produced by :func:`match_literal`."""
    if is_hex_text(text):
        return float(int(text[2:], 16))
    if text[-1:] in {"f", "F"}:
        text = text[:-1]
    return float(text)
