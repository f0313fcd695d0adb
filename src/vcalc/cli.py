"""Terminal front end for a calculation session over an in-memory document."""

from __future__ import annotations

import argparse
import logging
import re
import sys
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import TextIO

from .ast import Node
from .constants import constant_names
from .engine import CalculationSession, EngineState, Menu
from .host import InMemoryHost, TextRange
from .logging_config import setup_logging
from .parser import parse

_RANGE_RE = re.compile(r"^(\d+):(\d+):(\d+)$")


def numeric_nodes(node: Node) -> Iterator[Node]:
    """Yield the outermost typed nodes of a parse tree."""
    if node.is_numeric:
        yield node
        return
    for item in node.items:
        yield from numeric_nodes(item)


def describe_document(host: InMemoryHost) -> list[str]:
    lines = []
    for number, line in enumerate(host.lines):
        for node in numeric_nodes(parse(line)):
            text_range = TextRange(number, node.begin, node.end)
            lines.append(f"{text_range}  {node.shape_label:<10} {line[node.begin:node.end]}")
    return lines


def render_menu(menu: Menu) -> list[str]:
    out = []
    for number, entry in enumerate(menu.entries, start=1):
        suffix = f"  {entry.description}" if entry.description else ""
        out.append(f"{number:3d}. {entry.label}{suffix}")
    return out


def submit(session: CalculationSession, command: str) -> Menu | None:
    """Route one operand command: ``@name`` constant, ``L:B:E`` range, or literal text."""
    if command.startswith("@"):
        return session.submit_constant(command[1:])
    m = _RANGE_RE.match(command)
    if m is not None:
        line, begin, end = (int(part) for part in m.groups())
        return session.submit_range(TextRange(line, begin, end))
    return session.submit_operand(command)


def run(session: CalculationSession, commands: Iterable[str], out: TextIO) -> None:
    menu: Menu | None = None
    for raw in commands:
        command = raw.strip()
        if menu is None:
            if not command:
                continue
            if command in {"q", "quit"}:
                break
            menu = submit(session, command)
        else:
            choice = None
            if command:
                try:
                    choice = menu.entries[int(command) - 1]
                except (ValueError, IndexError):
                    print(f"choose 1-{len(menu.entries)}, or nothing to cancel", file=out)
                    continue
            menu = session.choose(choice)

        if menu is not None:
            print("\n".join(render_menu(menu)), file=out)
        elif session.state is EngineState.AWAITING_SECOND_OPERAND:
            print("operand?", file=out)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("document", nargs="?", help="text file whose values can be selected by LINE:BEGIN:END")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None, help="also append log records to this file")
    args = parser.parse_args(argv)

    setup_logging(getattr(logging, args.log_level), args.log_file)

    path = Path(args.document) if args.document else None
    original = path.read_text(encoding="utf-8") if path is not None else ""
    out = sys.stdout
    host = InMemoryHost(original, echo=out)
    session = CalculationSession(host)

    for line in describe_document(host):
        print(line, file=out)
    print(f"constants: {', '.join('@' + name for name in constant_names())}", file=out)

    run(session, sys.stdin, out)

    if host.clipboard is not None:
        print(f"clipboard: {host.clipboard}", file=out)
    if path is not None and host.text != original:
        path.write_text(host.text, encoding="utf-8")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
