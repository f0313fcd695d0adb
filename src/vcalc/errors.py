"""Structured error types for calculation sessions."""

from __future__ import annotations

from dataclasses import dataclass


class VCalcError(Exception):
    """Base class for structured vcalc errors."""


class ShapeMismatchError(VCalcError):
    """Operand shapes are incompatible with the requested operator."""

    def __init__(self, operator: str, *shapes: str) -> None:
        self.operator = operator
        self.shapes = shapes
        detail = f" for {', '.join(shapes)}" if shapes else ""
        super().__init__(f"invalid operands to {operator}{detail}")


@dataclass(frozen=True)
class ParseFailureError(VCalcError):
    """Submitted text holds no numeric literal."""

    source: str

    def __str__(self) -> str:
        return f"no numeric value in {self.source!r}"


@dataclass(frozen=True)
class StaleSourceError(VCalcError):
    """The range backing a replace no longer holds its captured text."""

    expected: str
    found: str

    def __str__(self) -> str:
        return f"source changed from {self.expected!r} to {self.found!r}, not replacing"


class HostIOError(VCalcError):
    """The host declined or failed an insert/replace request."""


class EmptyStackError(VCalcError):
    """``pop`` was requested on an empty auxiliary stack."""

    def __init__(self) -> None:
        super().__init__("stack is empty")


class UnknownConstantError(VCalcError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown constant {name!r}")
