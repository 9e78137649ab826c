"""
Streaming JSON parser.

Tokens from ``JSONLexer`` are checked against a stack of contexts. Each
context walks a fixed cycle of expected tokens:

    OBJECT   string-or-object-end, colon, value, comma-or-object-end
    ARRAY    value-or-array-end, comma-or-array-end
    TERMINAL end-of-input

Accepted tokens are reported to a ``JSONParserListener`` as they arrive.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from pathlib import Path
from typing import TextIO, Union

from jot.errors import JSONParserError
from jot.jsonparser.input import DEFAULT_NAME, ParserInput
from jot.jsonparser.lexer import JSONLexer, Token, TokenType
from jot.jsonparser.listener import JSONParserListener

logger = logging.getLogger(__name__)


class Context(Enum):
    OBJECT = auto()
    ARRAY = auto()
    TERMINAL = auto()


class Expect(Enum):
    STRING_OR_OBJ_END = auto()
    COLON = auto()
    VALUE = auto()
    VALUE_OR_ARR_END = auto()
    COMMA_OR_OBJ_END = auto()
    COMMA_OR_ARR_END = auto()
    EOF = auto()


_CYCLES: dict[Context, tuple[Expect, ...]] = {
    Context.OBJECT: (
        Expect.STRING_OR_OBJ_END,
        Expect.COLON,
        Expect.VALUE,
        Expect.COMMA_OR_OBJ_END,
    ),
    Context.ARRAY: (
        Expect.VALUE_OR_ARR_END,
        Expect.COMMA_OR_ARR_END,
    ),
    Context.TERMINAL: (Expect.EOF,),
}


class StackItem:
    """One open context and its position in the expectation cycle."""

    def __init__(self, context: Context, strict: bool = False):
        self.context = context
        self.strict = strict
        self._cycle = _CYCLES[context]
        self._pos = 0
        self._after_comma = False

    @property
    def expected(self) -> Expect:
        return self._cycle[self._pos]

    def accept(self, token: Token, listener: JSONParserListener) -> bool:
        """Check *token* against the current slot, emit events and advance."""
        expected = self.expected
        typ = token.typ
        result = False

        if expected is Expect.STRING_OR_OBJ_END:
            if typ is TokenType.STRING or (typ is TokenType.SYMBOL and not self.strict):
                listener.on_property(token.value)
                result = True
            elif typ is TokenType.OBJ_END:
                result = not (self.strict and self._after_comma)

        elif expected is Expect.COLON:
            result = typ is TokenType.COLON

        elif expected in (Expect.VALUE, Expect.VALUE_OR_ARR_END):
            if expected is Expect.VALUE_OR_ARR_END and typ is TokenType.ARR_END:
                result = not (self.strict and self._after_comma)
            else:
                result = _emit_value(token, listener)

        elif expected is Expect.COMMA_OR_OBJ_END:
            result = typ in (TokenType.COMMA, TokenType.OBJ_END)

        elif expected is Expect.COMMA_OR_ARR_END:
            result = typ in (TokenType.COMMA, TokenType.ARR_END)

        elif expected is Expect.EOF:
            result = typ is TokenType.EOF

        if result:
            self._after_comma = typ is TokenType.COMMA
            self._pos = (self._pos + 1) % len(self._cycle)
        return result


def _emit_value(token: Token, listener: JSONParserListener) -> bool:
    typ = token.typ
    if typ in (TokenType.OBJ_START, TokenType.ARR_START):
        # the driver pushes the new context and reports the start
        return True
    if typ is TokenType.STRING:
        listener.on_string_value(token.value)
    elif typ is TokenType.NUMBER:
        listener.on_number_value(token.value)
    elif typ is TokenType.TRUE:
        listener.on_boolean_value(True)
    elif typ is TokenType.FALSE:
        listener.on_boolean_value(False)
    elif typ is TokenType.NULL:
        listener.on_null_value()
    else:
        return False
    return True


class JSONParser:
    """
    Parses one JSON document and reports it to *listener*.

    Not reentrant: a parser instance holds its stack and input state.

    Args:
        source: JSON text or a readable text stream.
        listener: Receiver of parse events.
        name: Input name used in error positions.
        strict: Reject bare identifiers as keys and trailing commas.
    """

    def __init__(
        self,
        source: Union[str, TextIO],
        listener: JSONParserListener,
        name: str = DEFAULT_NAME,
        strict: bool = False,
    ):
        self.input = ParserInput(source, name)
        self.lexer = JSONLexer(self.input)
        self.listener = listener
        self.strict = strict
        self._stack: list[StackItem] = []

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        listener: JSONParserListener,
        strict: bool = False,
    ) -> "JSONParser":
        """Parse a UTF-8 encoded JSON file; error positions carry the path."""
        path = Path(path)
        logger.debug(f"Parsing JSON file {path}")
        with open(path, "r", encoding="utf-8") as f:
            parser = cls(f, listener, str(path), strict)
            parser.parse()
        return parser

    def parse(self) -> None:
        listener = self.listener
        while True:
            token = self.lexer.next_token()
            typ = token.typ

            if typ is TokenType.EOF:
                self._accept(token)
                return

            if typ is TokenType.OBJ_START:
                self._accept(token)
                self._push(Context.OBJECT)
                listener.on_object_start()
            elif typ is TokenType.ARR_START:
                self._accept(token)
                self._push(Context.ARRAY)
                listener.on_array_start()
            elif typ is TokenType.OBJ_END:
                self._accept(token)
                self._pop(Context.OBJECT, token)
                listener.on_object_end()
            elif typ is TokenType.ARR_END:
                self._accept(token)
                self._pop(Context.ARRAY, token)
                listener.on_array_end()
            else:
                self._accept(token)

    # -- stack -----------------------------------------------------------------

    def _accept(self, token: Token) -> None:
        if not self._stack:
            if token.typ in (TokenType.OBJ_START, TokenType.ARR_START):
                return
        elif self._stack[-1].accept(token, self.listener):
            return
        raise JSONParserError(f"Unexpected token: {token.typ.name}", token.position)

    def _push(self, context: Context) -> None:
        self._stack.append(StackItem(context, self.strict))

    def _pop(self, context: Context, token: Token) -> None:
        if not self._stack:
            raise JSONParserError(f"Unmatched end-tag: {context.name}", token.position)
        item = self._stack.pop()
        if item.context is not context:
            raise JSONParserError(f"Wrong end-tag: {context.name}", token.position)
        if not self._stack:
            self._push(Context.TERMINAL)


def parse_string(
    text: str,
    listener: JSONParserListener,
    name: str = DEFAULT_NAME,
    strict: bool = False,
) -> None:
    JSONParser(text, listener, name, strict).parse()


def parse_file(path: Union[str, Path], listener: JSONParserListener, strict: bool = False) -> None:
    JSONParser.from_file(path, listener, strict)
