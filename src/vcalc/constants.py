"""Named constants offered as operands outside the document."""

from __future__ import annotations

import math
from typing import Final

from .values import Value

POP: Final[str] = "pop"

CONSTANTS: Final[dict[str, Value]] = {
    "pi": Value.scalar(math.pi),
    "e": Value.scalar(math.e),
    "epsilon": Value.scalar(2.0**-23),
    "sqrt2": Value.scalar(math.sqrt(2.0)),
    "sqrt3": Value.scalar(math.sqrt(3.0)),
    "i": Value.of([1.0, 0.0, 0.0]),
    "j": Value.of([0.0, 1.0, 0.0]),
    "k": Value.of([0.0, 0.0, 1.0]),
}


def constant_names() -> tuple[str, ...]:
    """Catalogue entries in menu order; ``pop`` comes last."""
    return (*CONSTANTS, POP)
