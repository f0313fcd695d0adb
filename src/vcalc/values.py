"""Value model: scalars, vectors and column-major matrices over a flat array."""

from __future__ import annotations

import math
from collections.abc import Iterable
from decimal import Decimal
from enum import Enum
from typing import Final

import jax.numpy as jnp

from .config import ENABLE_X64

FLOAT_DTYPE: Final = jnp.float64 if ENABLE_X64 else jnp.float32
HEX32_MAX: Final[int] = 0xFFFFFFFF


class ValueMode(str, Enum):
    DECIMAL = "decimal"
    HEXADECIMAL = "hexadecimal"


def format_decimal(x: float) -> str:
    """Shortest round-trip decimal text; integral values carry no fraction."""
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    if x == 0:
        return "0"
    text = repr(x)
    mantissa, sep, exp = text.partition("e")
    if not sep:
        # integral values drop the ".0" repr appends
        return text[:-2] if text.endswith(".0") else text
    exponent = int(exp)
    if -7 < exponent < 21:
        return format(Decimal(text), "f")
    return f"{mantissa}e{exponent:+d}"


def format_hex32(x: float) -> str:
    if not math.isfinite(x):
        return format_decimal(x)
    return "0x" + format(int(x) & HEX32_MAX, "08x")


def format_scalar(x: float, mode: ValueMode) -> str:
    if mode is ValueMode.HEXADECIMAL:
        return format_hex32(x)
    return format_decimal(x)


class Value:
    """Immutable flat sequence of numbers plus a row count.

    Matrices are stored column-major: column ``c`` occupies
    ``components[c * rows:(c + 1) * rows]``.
    """

    __slots__ = ("_components", "_rows")

    def __init__(self, components: jnp.ndarray, rows: int) -> None:
        self._components = components
        self._rows = int(rows)

    @classmethod
    def of(cls, numbers: Iterable[float] | jnp.ndarray, rows: int | None = None) -> "Value":
        if not isinstance(numbers, jnp.ndarray):
            numbers = list(numbers)
        arr = jnp.ravel(jnp.asarray(numbers, dtype=FLOAT_DTYPE))
        length = int(arr.shape[0])
        return cls(arr, length if rows is None else rows)

    @classmethod
    def scalar(cls, x: float) -> "Value":
        return cls.of([x], 1)

    @classmethod
    def from_matrix(cls, matrix: jnp.ndarray) -> "Value":
        """Build a Value from a 2-D ``(rows, cols)`` array."""
        return cls(jnp.ravel(matrix.T), int(matrix.shape[0]))

    @property
    def components(self) -> jnp.ndarray:
        return self._components

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def length(self) -> int:
        return int(self._components.shape[0])

    def __len__(self) -> int:
        return self.length

    @property
    def dimensions(self) -> int:
        """0 scalar, 1 vector, 2 matrix, -1 invalid."""
        length = self.length
        if self._rows <= 0 or length == 0:
            return -1
        if length == 1:
            return 0
        if length == self._rows:
            return 1
        if length % self._rows == 0:
            return 2
        return -1

    @property
    def valid(self) -> bool:
        return self._rows > 0 and self.dimensions >= 0

    @property
    def cols(self) -> int:
        if self._rows <= 0:
            return 0
        return self.length // self._rows

    def col(self, i: int) -> "Value":
        start = i * self._rows
        return Value.of(self._components[start : start + self._rows])

    def index(self, row: int, col: int) -> int:
        return col * self._rows + row

    def entry(self, row: int, col: int) -> float:
        return float(self._components[self.index(row, col)])

    def as_matrix(self) -> jnp.ndarray:
        """View as a 2-D ``(rows, cols)`` array."""
        return self._components.reshape(self.cols, self._rows).T

    def tolist(self) -> list[float]:
        return [float(x) for x in self._components.tolist()]

    def stringify(self, mode: ValueMode = ValueMode.DECIMAL) -> str:
        dims = self.dimensions
        if dims == 0:
            return format_scalar(float(self._components[0]), mode)
        if dims == 1:
            return _stringify_vector(self.tolist(), mode)
        if dims == 2:
            return "(" + ", ".join(_stringify_vector(self.col(i).tolist(), mode) for i in range(self.cols)) + ")"
        return "error"

    def __str__(self) -> str:
        return self.stringify()

    def __repr__(self) -> str:
        return f"Value({self.tolist()!r}, rows={self._rows})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self._rows == other._rows and self.tolist() == other.tolist()

    __hash__ = None  # type: ignore[assignment]


def _stringify_vector(items: list[float], mode: ValueMode) -> str:
    return "(" + ", ".join(format_scalar(x, mode) for x in items) + ")"


INVALID: Final[Value] = Value.of([], 0)


def is_hex_eligible(value: Value) -> bool:
    """True when every component is an integer in ``[0, 0xFFFFFFFF]``."""
    if not value.valid:
        return False
    c = value.components
    ok = (c >= 0) & (c <= HEX32_MAX) & (jnp.floor(c) == c)
    return bool(jnp.all(ok))
