"""Streaming JSON parser with a listener callback interface."""

from jot.jsonparser.input import EOF, ParserInput
from jot.jsonparser.lexer import JSONLexer, Token, TokenType
from jot.jsonparser.listener import EventRecorder, JSONParserListener, ValueBuilder
from jot.jsonparser.parser import JSONParser, parse_file, parse_string

__all__ = [
    "EOF", "ParserInput",
    "JSONLexer", "Token", "TokenType",
    "JSONParserListener", "EventRecorder", "ValueBuilder",
    "JSONParser", "parse_string", "parse_file",
]
