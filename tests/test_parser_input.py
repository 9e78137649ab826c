"""Unit tests for ParserInput position tracking and pushback."""

from __future__ import annotations

import io
import unittest

from jot.jsonparser.input import EOF, ParserInput


class TestParserInput(unittest.TestCase):
    def test_positions_follow_consumed_characters(self):
        inp = ParserInput("ab\nc")
        seen = []
        for _ in range(4):
            ch = inp.get_char()
            seen.append((ch, inp.line, inp.column))
        self.assertEqual(seen, [("a", 1, 1), ("b", 1, 2), ("\n", 2, 0), ("c", 2, 1)])

    def test_end_of_input_is_idempotent(self):
        inp = ParserInput("x")
        self.assertEqual(inp.get_char(), "x")
        self.assertEqual(inp.get_char(), EOF)
        self.assertEqual(inp.get_char(), EOF)
        self.assertEqual((inp.line, inp.column), (1, 1))

    def test_unget_restores_position(self):
        inp = ParserInput("xy")
        inp.get_char()
        before = (inp.line, inp.column)
        ch = inp.get_char()
        inp.unget_char(ch)
        self.assertEqual((inp.line, inp.column), before)
        self.assertEqual(inp.get_char(), "y")
        self.assertEqual((inp.line, inp.column), (1, 2))

    def test_unget_across_newline(self):
        inp = ParserInput("a\nb")
        inp.get_char()
        ch = inp.get_char()
        self.assertEqual((inp.line, inp.column), (2, 0))
        inp.unget_char(ch)
        self.assertEqual((inp.line, inp.column), (1, 1))
        self.assertEqual(inp.get_char(), "\n")

    def test_unget_of_end_of_input_is_ignored(self):
        inp = ParserInput("a")
        inp.get_char()
        inp.unget_char(inp.get_char())
        self.assertEqual((inp.line, inp.column), (1, 1))
        self.assertEqual(inp.get_char(), EOF)

    def test_position_string(self):
        inp = ParserInput(io.StringIO("{}"), name="data.json")
        inp.get_char()
        self.assertEqual(inp.get_position(), "data.json:1:1")
        self.assertEqual(ParserInput("").get_position(), "{input}:1:0")


if __name__ == "__main__":
    unittest.main()
