"""Calculation session: chains operand submissions and operator choices.

A session moves between three states:

* ``IDLE``: nothing selected.
* ``SHOWING_MENU``: a current selection exists and a :class:`Menu` of legal
  next operators has been returned to the host.
* ``AWAITING_SECOND_OPERAND``: a binary operator was chosen; the next
  :meth:`CalculationSession.submit_operand` completes it.

Failures never leave partial state behind: the session reports
``error: <message>`` through the host and resets to ``IDLE``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Final

from . import operators as ops
from .ast import Node, NodeType
from .constants import CONSTANTS, POP
from .errors import EmptyStackError, HostIOError, ParseFailureError, ShapeMismatchError, StaleSourceError, UnknownConstantError, VCalcError
from .host import Host, TextRange
from .lexer import is_hex_text, literal_value
from .parser import literal_texts, parse
from .values import Value, ValueMode, format_scalar, is_hex_eligible

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    IDLE = "idle"
    AWAITING_SECOND_OPERAND = "awaiting_second_operand"
    SHOWING_MENU = "showing_menu"


class OperatorKind(str, Enum):
    # output
    COPY = "copy"
    PUSH = "push"
    APPEND = "append"
    REPLACE = "replace"
    # display mode
    HEX32 = "hex32"
    DECIMAL = "decimal"
    # shape-specific unary
    COMPONENT = "component"
    XYZ = "xyz"
    LENGTH = "length"
    NORMALIZE = "normalize"
    COLUMN = "col"
    TRANSPOSE = "transpose"
    # binary
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    POWER = "power"
    DOT = "dot"
    CROSS = "cross"
    PROJECT = "project"
    REJECT = "reject"
    ANGLE = "angle"
    PLANE = "plane"
    PLANE_DISTANCE = "distance"
    # elementwise unary
    SQUARE = "square"
    SQRT = "sqrt"
    RECIPROCAL = "reciprocal"
    NEGATE = "negate"
    ABS = "abs"
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    ASIN = "asin"
    ACOS = "acos"
    ATAN = "atan"
    LN = "ln"
    EXP2 = "2^x"
    EXP = "e^x"
    RAD2DEG = "rad->deg"
    DEG2RAD = "deg->rad"


_AXIS_LABELS: Final[str] = "xyzw"

_OUTPUT_KINDS: Final[frozenset[OperatorKind]] = frozenset(
    {OperatorKind.COPY, OperatorKind.PUSH, OperatorKind.APPEND, OperatorKind.REPLACE}
)
_MODE_KINDS: Final[dict[OperatorKind, ValueMode]] = {
    OperatorKind.HEX32: ValueMode.HEXADECIMAL,
    OperatorKind.DECIMAL: ValueMode.DECIMAL,
}

_BINARY_OPERATIONS: Final[dict[OperatorKind, Callable[[Value, Value], Value]]] = {
    OperatorKind.ADD: ops.add,
    OperatorKind.SUBTRACT: ops.subtract,
    OperatorKind.MULTIPLY: ops.multiply,
    OperatorKind.DIVIDE: ops.divide,
    OperatorKind.POWER: ops.power,
    OperatorKind.DOT: ops.dot,
    OperatorKind.CROSS: ops.cross,
    OperatorKind.PROJECT: ops.project,
    OperatorKind.REJECT: ops.reject,
    OperatorKind.ANGLE: ops.angle,
    OperatorKind.PLANE: ops.plane,
    OperatorKind.PLANE_DISTANCE: ops.point_plane_distance,
}
_ARITHMETIC_KINDS: Final[tuple[OperatorKind, ...]] = (
    OperatorKind.ADD,
    OperatorKind.SUBTRACT,
    OperatorKind.MULTIPLY,
    OperatorKind.DIVIDE,
    OperatorKind.POWER,
)

_ELEMENTWISE_OPERATIONS: Final[dict[OperatorKind, Callable[[Value], Value]]] = {
    OperatorKind.SQUARE: ops.square,
    OperatorKind.SQRT: ops.sqrt,
    OperatorKind.RECIPROCAL: ops.reciprocal,
    OperatorKind.NEGATE: ops.negate,
    OperatorKind.ABS: ops.absolute,
    OperatorKind.SIN: ops.sin,
    OperatorKind.COS: ops.cos,
    OperatorKind.TAN: ops.tan,
    OperatorKind.ASIN: ops.asin,
    OperatorKind.ACOS: ops.acos,
    OperatorKind.ATAN: ops.atan,
    OperatorKind.LN: ops.ln,
    OperatorKind.EXP2: ops.exp2,
    OperatorKind.EXP: ops.exp,
    OperatorKind.RAD2DEG: ops.rad2deg,
    OperatorKind.DEG2RAD: ops.deg2rad,
}
_UNARY_OPERATIONS: Final[dict[OperatorKind, Callable[[Value], Value]]] = {
    OperatorKind.XYZ: ops.xyz,
    OperatorKind.LENGTH: ops.magnitude,
    OperatorKind.NORMALIZE: ops.normalize,
    OperatorKind.TRANSPOSE: ops.transpose,
    **_ELEMENTWISE_OPERATIONS,
}


def is_binary(kind: OperatorKind) -> bool:
    return kind in _BINARY_OPERATIONS


@dataclass(frozen=True)
class MenuEntry:
    kind: OperatorKind
    index: int | None = None
    description: str = ""

    @property
    def label(self) -> str:
        if self.kind is OperatorKind.COMPONENT and self.index is not None:
            return _AXIS_LABELS[self.index]
        if self.kind is OperatorKind.COLUMN:
            return f"col{self.index}"
        return self.kind.value


@dataclass(frozen=True)
class Menu:
    selection: Value
    mode: ValueMode
    entries: tuple[MenuEntry, ...]

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(entry.label for entry in self.entries)

    def entry(self, label: str) -> MenuEntry:
        for candidate in self.entries:
            if candidate.label == label:
                return candidate
        raise KeyError(label)

    def __contains__(self, label: object) -> bool:
        return label in self.labels


@dataclass(frozen=True)
class Operand:
    value: Value
    all_hex: bool


def operand_from_text(source: str) -> Operand:
    """Parse ``source`` and flatten its literals into a single Value."""
    tree = parse(source)
    texts = literal_texts(source, tree)
    if not texts:
        raise ParseFailureError(source)
    numbers = [literal_value(text) for text in texts]
    value = Value.of(numbers, _rows_for(tree, len(numbers)))
    return Operand(value=value, all_hex=all(is_hex_text(text) for text in texts))


def _rows_for(tree: Node, length: int) -> int:
    if tree.type is NodeType.SCALAR:
        return 1
    if tree.type is NodeType.MATRIX:
        return length // len(tree.items)
    # vectors, and loose lists of literals read as one vector
    return length


class CalculationSession:
    """Owns the state of one calculation chain plus the auxiliary stack.

    Not thread-safe: hosts must serialize operand and operator events.
    """

    def __init__(self, host: Host) -> None:
        self.host = host
        self.mode = ValueMode.DECIMAL
        # entries remember whether they were pushed from a hexadecimal chain
        self._stack: list[Operand] = []
        self.reset()

    def reset(self) -> None:
        """Return to ``IDLE``; the auxiliary stack survives."""
        self._selection: Value | None = None
        self._pending_operand: Value | None = None
        self._pending_operator: OperatorKind | None = None
        self._source_range: TextRange | None = None
        self._source_text: str | None = None
        self._menu: Menu | None = None

    @property
    def state(self) -> EngineState:
        if self._pending_operator is not None:
            return EngineState.AWAITING_SECOND_OPERAND
        if self._menu is not None:
            return EngineState.SHOWING_MENU
        return EngineState.IDLE

    @property
    def selection(self) -> Value | None:
        return self._selection

    @property
    def pending_operand(self) -> Value | None:
        return self._pending_operand

    @property
    def pending_operator(self) -> OperatorKind | None:
        return self._pending_operator

    @property
    def source_range(self) -> TextRange | None:
        return self._source_range

    @property
    def menu(self) -> Menu | None:
        return self._menu

    @property
    def stack(self) -> tuple[Value, ...]:
        return tuple(entry.value for entry in self._stack)

    # -- operand submission --------------------------------------------------

    def submit_operand(self, source: str, source_range: TextRange | None = None) -> Menu | None:
        """Submit literal text; returns the next menu, or None after an error."""
        try:
            operand = operand_from_text(source)
            return self._accept(operand, source_range=source_range, source_text=source)
        except VCalcError as err:
            self._fail(err)
            return None

    def submit_range(self, text_range: TextRange) -> Menu | None:
        try:
            source = self.host.read_range(text_range)
        except HostIOError as err:
            self._fail(err)
            return None
        return self.submit_operand(source, text_range)

    def submit_constant(self, name: str) -> Menu | None:
        """Submit a catalogue constant, or ``pop`` the auxiliary stack."""
        try:
            if name == POP:
                if not self._stack:
                    raise EmptyStackError()
                operand = self._stack.pop()
            else:
                if name not in CONSTANTS:
                    raise UnknownConstantError(name)
                operand = Operand(value=CONSTANTS[name], all_hex=False)
            return self._accept(operand)
        except VCalcError as err:
            self._fail(err)
            return None

    def _accept(self, operand: Operand, *, source_range: TextRange | None = None, source_text: str | None = None) -> Menu:
        operator = self._pending_operator
        if operator is None:
            # first operand of a new chain
            self.reset()
            if source_range is not None:
                self._source_range = source_range
                self._source_text = source_text
            chain_hex = operand.all_hex
        else:
            chain_hex = self.mode is ValueMode.HEXADECIMAL and operand.all_hex
        self.mode = ValueMode.HEXADECIMAL if chain_hex else ValueMode.DECIMAL

        value = operand.value
        if operator is None:
            self._selection = value
            self._trace(f"Select {self._fmt(value)}")
            return self._show_menu()

        left = self._pending_operand
        assert left is not None
        result = _BINARY_OPERATIONS[operator](left, value)
        if not result.valid:
            raise ShapeMismatchError(operator.value, self._fmt(left), self._fmt(value))
        self._trace(f"{self._fmt(left)} {operator.value} {self._fmt(value)} = {self._fmt(result)}")
        self._pending_operand = None
        self._pending_operator = None
        self._selection = result
        return self._show_menu()

    # -- operator choice -----------------------------------------------------

    def choose(self, entry: MenuEntry | str | None) -> Menu | None:
        """Apply a menu entry (or its label); ``None`` cancels the chain.

        Returns the next menu after unary and mode entries, and ``None`` once
        the chain suspends on a binary operator, ends on an output, or fails.
        """
        if entry is None:
            logger.debug("chain cancelled")
            self.reset()
            return None
        menu = self._menu
        if menu is None:
            raise VCalcError("no operator menu is being shown")
        if isinstance(entry, str):
            try:
                entry = menu.entry(entry)
            except KeyError:
                raise VCalcError(f"{entry!r} is not offered for the current selection") from None
        if entry not in menu.entries:
            raise VCalcError(f"{entry.label!r} is not offered for the current selection")

        try:
            return self._apply(entry)
        except VCalcError as err:
            self._fail(err)
            return None

    def _apply(self, entry: MenuEntry) -> Menu | None:
        current = self._selection
        assert current is not None
        kind = entry.kind

        if kind in _OUTPUT_KINDS:
            self._output(kind, current)
            self.reset()
            return None

        if kind in _MODE_KINDS:
            before = self._fmt(current)
            self.mode = _MODE_KINDS[kind]
            self._trace(f"{entry.label} {before} = {self._fmt(current)}")
            return self._show_menu()

        if is_binary(kind):
            self._pending_operand = current
            self._pending_operator = kind
            self._selection = None
            self._menu = None
            logger.debug("%s %s ...", self._fmt(current), kind.value)
            return None

        result = _unary_result(entry, current)
        if not result.valid:
            raise ShapeMismatchError(entry.label, self._fmt(current))
        self._trace(f"{entry.label} {self._fmt(current)} = {self._fmt(result)}")
        self._selection = result
        return self._show_menu()

    def _output(self, kind: OperatorKind, value: Value) -> None:
        text = self._fmt(value)
        if kind is OperatorKind.COPY:
            self.host.copy(text)
        elif kind is OperatorKind.PUSH:
            self._stack.append(Operand(value=value, all_hex=self.mode is ValueMode.HEXADECIMAL))
        elif kind is OperatorKind.APPEND:
            if not self.host.append(self.host.line_terminator + text):
                raise HostIOError("could not insert")
        elif kind is OperatorKind.REPLACE:
            text_range = self._source_range
            expected = self._source_text
            assert text_range is not None and expected is not None
            found = self.host.read_range(text_range)
            if found != expected:
                raise StaleSourceError(expected=expected, found=found)
            if not self.host.replace_range(text_range, text):
                raise HostIOError("could not replace")
        logger.info("%s %s", kind.value, text)

    # -- menus ---------------------------------------------------------------

    def _show_menu(self) -> Menu:
        value = self._selection
        assert value is not None
        self._menu = Menu(selection=value, mode=self.mode, entries=tuple(self._menu_entries(value)))
        return self._menu

    def _menu_entries(self, value: Value) -> list[MenuEntry]:
        text = self._fmt(value)
        entries = [
            MenuEntry(OperatorKind.COPY, description=text),
            MenuEntry(OperatorKind.PUSH, description=text),
            MenuEntry(OperatorKind.APPEND, description=text),
        ]
        if self._source_range is not None:
            entries.append(MenuEntry(OperatorKind.REPLACE, description=f"{self._source_text} -> {text}"))

        if is_hex_eligible(value):
            if self.mode is ValueMode.DECIMAL:
                entries.append(MenuEntry(OperatorKind.HEX32, description=value.stringify(ValueMode.HEXADECIMAL)))
            else:
                entries.append(MenuEntry(OperatorKind.DECIMAL, description=value.stringify(ValueMode.DECIMAL)))

        if value.dimensions == 1:
            entries.extend(self._vector_entries(value))
        elif value.dimensions == 2:
            for i in range(value.cols):
                entries.append(MenuEntry(OperatorKind.COLUMN, index=i, description=self._fmt(value.col(i))))
            entries.append(MenuEntry(OperatorKind.TRANSPOSE, description=self._fmt(ops.transpose(value))))

        entries.extend(MenuEntry(kind) for kind in _ARITHMETIC_KINDS)
        for kind, fn in _ELEMENTWISE_OPERATIONS.items():
            entries.append(MenuEntry(kind, description=self._fmt(fn(value))))
        return entries

    def _vector_entries(self, value: Value) -> list[MenuEntry]:
        components = value.tolist()
        entries = [
            MenuEntry(OperatorKind.COMPONENT, index=i, description=format_scalar(components[i], self.mode))
            for i in range(min(value.length, len(_AXIS_LABELS)))
        ]
        if value.length > 3:
            entries.append(MenuEntry(OperatorKind.XYZ, description=self._fmt(ops.xyz(value))))
        magnitude = ops.magnitude(value)
        entries.append(MenuEntry(OperatorKind.LENGTH, description=self._fmt(magnitude)))
        entries.append(MenuEntry(OperatorKind.NORMALIZE, description=self._fmt(ops.normalize(value))))
        entries.append(MenuEntry(OperatorKind.DOT))
        entries.append(MenuEntry(OperatorKind.PROJECT))
        entries.append(MenuEntry(OperatorKind.REJECT))
        if value.length >= 3:
            entries.append(MenuEntry(OperatorKind.CROSS))
            entries.append(MenuEntry(OperatorKind.PLANE))
            entries.append(MenuEntry(OperatorKind.PLANE_DISTANCE))
        if value.length in (2, 3) and magnitude.tolist()[0] != 0.0:
            entries.append(MenuEntry(OperatorKind.ANGLE))
        return entries

    # -- reporting -----------------------------------------------------------

    def _fmt(self, value: Value) -> str:
        return value.stringify(self.mode)

    def _trace(self, line: str) -> None:
        logger.info("%s", line)
        self.host.report(line)

    def _fail(self, err: VCalcError) -> None:
        message = f"error: {err}"
        logger.warning("%s", message)
        self.host.report(message)
        self.reset()


def _unary_result(entry: MenuEntry, value: Value) -> Value:
    if entry.kind is OperatorKind.COMPONENT:
        return ops.component(value, entry.index if entry.index is not None else -1)
    if entry.kind is OperatorKind.COLUMN:
        return ops.column(value, entry.index if entry.index is not None else -1)
    return _UNARY_OPERATIONS[entry.kind](value)
