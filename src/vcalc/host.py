"""Host boundary: the document, clipboard and message sink a session talks to."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import TextIO

from .errors import HostIOError


@dataclass(frozen=True)
class TextRange:
    """Half-open character span ``[begin, end)`` on one document line."""

    line: int
    begin: int
    end: int

    def __str__(self) -> str:
        return f"{self.line}:{self.begin}:{self.end}"


class Host(abc.ABC):
    line_terminator: str = "\n"

    @abc.abstractmethod
    def read_range(self, text_range: TextRange) -> str:
        """Current text of ``text_range``; raises HostIOError if it is gone."""

    @abc.abstractmethod
    def copy(self, text: str) -> None: ...

    @abc.abstractmethod
    def append(self, text: str) -> bool:
        """Insert ``text`` at the end of the document; False if declined."""

    @abc.abstractmethod
    def replace_range(self, text_range: TextRange, text: str) -> bool: ...

    @abc.abstractmethod
    def report(self, message: str) -> None: ...


class InMemoryHost(Host):
    """Host over a list of document lines, an internal clipboard and a message log."""

    def __init__(
        self,
        text: str = "",
        *,
        line_terminator: str = "\n",
        read_only: bool = False,
        echo: TextIO | None = None,
    ) -> None:
        self.lines: list[str] = text.split(line_terminator) if text else [""]
        self.line_terminator = line_terminator
        self.read_only = read_only
        self.clipboard: str | None = None
        self.messages: list[str] = []
        self.echo = echo

    @property
    def text(self) -> str:
        return self.line_terminator.join(self.lines)

    def _line(self, index: int) -> str:
        if not 0 <= index < len(self.lines):
            raise HostIOError(f"line {index} is outside the document")
        return self.lines[index]

    def read_range(self, text_range: TextRange) -> str:
        line = self._line(text_range.line)
        if not 0 <= text_range.begin <= text_range.end <= len(line):
            raise HostIOError(f"range {text_range} is outside line {text_range.line}")
        return line[text_range.begin : text_range.end]

    def copy(self, text: str) -> None:
        self.clipboard = text

    def append(self, text: str) -> bool:
        if self.read_only:
            return False
        # text usually begins with the line terminator, opening a new line
        self.lines = (self.text + text).split(self.line_terminator)
        return True

    def replace_range(self, text_range: TextRange, text: str) -> bool:
        if self.read_only:
            return False
        self.read_range(text_range)
        current = self.lines[text_range.line]
        self.lines[text_range.line] = current[: text_range.begin] + text + current[text_range.end :]
        return True

    def report(self, message: str) -> None:
        self.messages.append(message)
        if self.echo is not None:
            print(message, file=self.echo)
