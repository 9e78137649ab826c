"""Character input with one character of pushback and position tracking."""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import TextIO, Union

# Returned by get_char() once the input is exhausted.
EOF = ""

DEFAULT_NAME = "{input}"


@dataclass
class Position:
    line: int = 1
    column: int = 0

    def advance(self, ch: str) -> None:
        if ch == "\n":
            self.line += 1
            self.column = 0
        else:
            self.column += 1


class ParserInput:
    """
    Reads a text stream one character at a time.

    ``line``/``column`` describe the most recently consumed character
    (1-based); ``unget_char`` pushes one character back and restores the
    position that preceded it.
    """

    def __init__(self, source: Union[str, TextIO], name: str = DEFAULT_NAME):
        if isinstance(source, str):
            source = io.StringIO(source)
        self._stream = source
        self.name = name
        self._pos = Position()
        self._prev = Position()
        self._pushback = EOF

    def get_char(self) -> str:
        if self._pushback:
            ch, self._pushback = self._pushback, EOF
        else:
            ch = self._stream.read(1)
        if ch:
            self._prev = Position(self._pos.line, self._pos.column)
            self._pos.advance(ch)
        return ch

    def unget_char(self, ch: str) -> None:
        if not ch:
            return
        self._pos = Position(self._prev.line, self._prev.column)
        self._pushback = ch

    @property
    def line(self) -> int:
        return self._pos.line

    @property
    def column(self) -> int:
        return self._pos.column

    def get_position(self) -> str:
        return f"{self.name}:{self._pos.line}:{self._pos.column}"
