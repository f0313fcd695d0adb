"""vcalc public API."""

from .ast import Node, NodeType
from .constants import CONSTANTS, constant_names
from .engine import CalculationSession, EngineState, Menu, MenuEntry, OperatorKind, operand_from_text
from .errors import (
    EmptyStackError,
    HostIOError,
    ParseFailureError,
    ShapeMismatchError,
    StaleSourceError,
    UnknownConstantError,
    VCalcError,
)
from .host import Host, InMemoryHost, TextRange
from .parser import close_node, parse, scalar_leaves
from .values import INVALID, Value, ValueMode, is_hex_eligible

__all__ = [
    "parse",
    "close_node",
    "scalar_leaves",
    "Node",
    "NodeType",
    "Value",
    "ValueMode",
    "INVALID",
    "is_hex_eligible",
    "CalculationSession",
    "EngineState",
    "Menu",
    "MenuEntry",
    "OperatorKind",
    "operand_from_text",
    "CONSTANTS",
    "constant_names",
    "Host",
    "InMemoryHost",
    "TextRange",
    "VCalcError",
    "ShapeMismatchError",
    "ParseFailureError",
    "StaleSourceError",
    "HostIOError",
    "EmptyStackError",
    "UnknownConstantError",
]
