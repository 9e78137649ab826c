"""
JSON tokenizer pulling characters from a ParserInput.

Besides standard JSON the lexer recognises bare identifiers (SYMBOL), which
the parser may accept as object keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Union

from jot.errors import JSONParserError
from jot.jsonparser.input import EOF, ParserInput


class TokenType(Enum):
    """Token categories produced by the lexer."""
    EOF = auto()
    OBJ_START = auto()   # {
    OBJ_END = auto()     # }
    ARR_START = auto()   # [
    ARR_END = auto()     # ]
    COLON = auto()       # :
    COMMA = auto()       # ,
    STRING = auto()
    NUMBER = auto()
    TRUE = auto()
    FALSE = auto()
    NULL = auto()
    SYMBOL = auto()


_STRUCTURAL = {
    "{": TokenType.OBJ_START,
    "}": TokenType.OBJ_END,
    "[": TokenType.ARR_START,
    "]": TokenType.ARR_END,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
}

_KEYWORDS = {
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "null": TokenType.NULL,
}

_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}


@dataclass(frozen=True)
class Token:
    """
    A lexical token.

    Attributes:
        typ: TokenType
        value: STRING/SYMBOL -> str, NUMBER -> int or float, otherwise None
        position: ``name:line:column`` of the token's first character
    """
    typ: TokenType
    value: Union[str, int, float, None]
    position: str


def _is_identifier_start(ch: str) -> bool:
    return ch.isalpha() or ch in "_$"


def _is_digit(ch: str) -> bool:
    return len(ch) == 1 and ch in "0123456789"


class JSONLexer:
    def __init__(self, input: ParserInput):
        self.input = input
        self._started = False

    def _error(self, message: str, position: Optional[str] = None) -> JSONParserError:
        return JSONParserError(message, position or self.input.get_position())

    def next_token(self) -> Token:
        """Return the next token; whitespace before the first one is an error."""
        try:
            return self._next_token()
        except OSError as e:
            raise self._error("I/O error") from e

    def _next_token(self) -> Token:
        inp = self.input
        while True:
            ch = inp.get_char()
            if ch == EOF:
                return Token(TokenType.EOF, None, inp.get_position())
            pos = inp.get_position()

            if ch in _STRUCTURAL:
                typ = _STRUCTURAL[ch]
                if typ in (TokenType.OBJ_START, TokenType.ARR_START):
                    self._started = True
                return Token(typ, None, pos)

            if ch.isspace():
                if not self._started:
                    raise self._error("Invalid JSON start: expected { or [", pos)
                continue

            if _is_identifier_start(ch):
                return self._read_symbol(ch, pos)
            if ch == '"':
                return Token(TokenType.STRING, self._read_string(pos), pos)
            if ch == "-" or _is_digit(ch):
                return Token(TokenType.NUMBER, self._read_number(ch, pos), pos)

            raise self._error(f"Unexpected character {ch!r}", pos)

    def _read_symbol(self, first: str, pos: str) -> Token:
        buf = [first]
        ch = self.input.get_char()
        while ch and _is_identifier_start(ch):
            buf.append(ch)
            ch = self.input.get_char()
        self.input.unget_char(ch)
        text = "".join(buf)
        typ = _KEYWORDS.get(text, TokenType.SYMBOL)
        return Token(typ, text if typ is TokenType.SYMBOL else None, pos)

    def _read_string(self, start: str) -> str:
        inp = self.input
        buf: list[str] = []
        while True:
            ch = inp.get_char()
            if ch == EOF:
                raise self._error("Unterminated string constant", start)
            if ch == '"':
                return "".join(buf)
            if ch != "\\":
                buf.append(ch)
                continue
            ch = inp.get_char()
            if ch == "u":
                buf.append(self._read_unicode_escape())
            elif ch in _ESCAPES:
                buf.append(_ESCAPES[ch])
            elif ch == EOF:
                raise self._error("Unterminated string constant", start)
            else:
                raise self._error(f"Invalid escape character in string constant: \\{ch}")

    def _read_hex4(self) -> int:
        digits = []
        for _ in range(4):
            ch = self.input.get_char()
            if not ch or ch not in "0123456789abcdefABCDEF":
                raise self._error("Invalid \\u escape in string constant")
            digits.append(ch)
        return int("".join(digits), 16)

    def _read_unicode_escape(self) -> str:
        code = self._read_hex4()
        if 0xD800 <= code <= 0xDBFF:
            ch = self.input.get_char()
            if ch != "\\":
                self.input.unget_char(ch)
                return chr(code)
            ch = self.input.get_char()
            if ch in _ESCAPES:
                return chr(code) + _ESCAPES[ch]
            if ch != "u":
                raise self._error(f"Invalid escape character in string constant: \\{ch}")
            low = self._read_hex4()
            if 0xDC00 <= low <= 0xDFFF:
                return chr(0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00))
            return chr(code) + chr(low)
        return chr(code)

    def _read_number(self, first: str, pos: str) -> Union[int, float]:
        inp = self.input
        buf = [first]
        ch = first
        if ch == "-":
            ch = inp.get_char()
            if not _is_digit(ch):
                raise self._error("Invalid number: expected digit after '-'", pos)
            buf.append(ch)
        # integer part; no leading zeros
        if ch == "0":
            ch = inp.get_char()
        else:
            ch = self._read_digits(buf)

        is_float = False
        if ch == ".":
            is_float = True
            buf.append(ch)
            ch = inp.get_char()
            if not _is_digit(ch):
                raise self._error("Invalid number: expected digit after '.'", pos)
            buf.append(ch)
            ch = self._read_digits(buf)
        if ch in ("e", "E"):
            is_float = True
            buf.append(ch)
            ch = inp.get_char()
            if ch in ("+", "-"):
                buf.append(ch)
                ch = inp.get_char()
            if not _is_digit(ch):
                raise self._error("Invalid number: expected exponent digits", pos)
            buf.append(ch)
            ch = self._read_digits(buf)
        if _is_digit(ch):
            raise self._error("Invalid number: leading zeros are not allowed", pos)
        inp.unget_char(ch)

        text = "".join(buf)
        return float(text) if is_float else int(text)

    def _read_digits(self, buf: list[str]) -> str:
        """Append digits following the current one; return the first non-digit."""
        while True:
            ch = self.input.get_char()
            if not _is_digit(ch):
                return ch
            buf.append(ch)
