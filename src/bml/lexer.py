"""
Token Grammar - the lexical shapes of BML.

Five shapes are recognized at the cursor position: a name, the three value
forms (quoted, unquoted, colon) and a comment. Every decision looks at most a
couple of characters ahead; there is no general backtracking.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import ParseError
from .indent import INDENT_CHARS

NAME_CHARS = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-.")

# Characters that end an unquoted value; stopping on a quote is an error.
UNQUOTED_TERMINATORS = frozenset(' \t\r\n"')


class ValueForm(Enum):
    """Which syntax produced a value."""
    QUOTED = "quoted"      # name="text"
    UNQUOTED = "unquoted"  # name=text
    COLON = "colon"        # name: text


@dataclass(frozen=True)
class Value:
    """A value token. The form is kept for diagnostics only."""
    form: ValueForm
    text: str
    offset: int


class Cursor:
    """Position in the source text with bounded lookahead primitives."""

    def __init__(self, text: str, pos: int = 0):
        self.text = text
        self.pos = pos

    def error(self, expected: str, offset: int | None = None) -> ParseError:
        return ParseError.at(self.text, self.pos if offset is None else offset, expected)

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self, n: int = 1) -> str:
        """Return up to n characters ahead without consuming them."""
        return self.text[self.pos:self.pos + n]

    def at_line_end(self) -> bool:
        """True at "\\n", "\\r\\n" or end of input."""
        ch = self.peek()
        return ch == "" or ch == "\n" or self.peek(2) == "\r\n"

    def line_end_offset(self) -> int:
        """Offset of the terminator of the current line (or end of input)."""
        end = self.text.find("\n", self.pos)
        if end == -1:
            return len(self.text)
        if end > self.pos and self.text[end - 1] == "\r":
            return end - 1
        return end

    def read_line_end(self) -> None:
        """Consume a line terminator; end of input also counts."""
        if self.peek(2) == "\r\n":
            self.pos += 2
        elif self.peek() == "\n":
            self.pos += 1
        elif not self.at_end:
            raise self.error("line end")

    def read_indent(self) -> str:
        """Consume a (possibly empty) run of spaces and tabs."""
        start = self.pos
        text = self.text
        while self.pos < len(text) and text[self.pos] in INDENT_CHARS:
            self.pos += 1
        return text[start:self.pos]

    def peek_indent(self) -> str:
        """Return the run of spaces and tabs at the cursor without consuming it."""
        end = self.pos
        text = self.text
        while end < len(text) and text[end] in INDENT_CHARS:
            end += 1
        return text[self.pos:end]

    def at_name(self) -> bool:
        return self.peek() in NAME_CHARS

    def read_name(self) -> str:
        """Consume a name: one or more of A-Z a-z 0-9 - ."""
        start = self.pos
        text = self.text
        while self.pos < len(text) and text[self.pos] in NAME_CHARS:
            self.pos += 1
        if self.pos == start:
            raise self.error("name")
        return text[start:self.pos]

    def read_value(self) -> Value | None:
        """Consume a value in any of the three forms, or return None if none starts here."""
        ch = self.peek()
        if ch == "=":
            if self.peek(2) == '="':
                return self._read_quoted()
            return self._read_unquoted()
        if ch == ":":
            return self.read_colon_value()
        return None

    def _read_quoted(self) -> Value:
        start = self.pos
        self.pos += 2
        text = self.text
        begin = self.pos
        while self.pos < len(text) and text[self.pos] not in '"\n':
            self.pos += 1
        if self.pos >= len(text) or text[self.pos] != '"':
            raise self.error("closing quote")
        value = text[begin:self.pos]
        self.pos += 1
        return Value(ValueForm.QUOTED, value, start)

    def _read_unquoted(self) -> Value:
        start = self.pos
        self.pos += 1
        text = self.text
        begin = self.pos
        while self.pos < len(text) and text[self.pos] not in UNQUOTED_TERMINATORS:
            self.pos += 1
        if self.peek() == '"':
            raise self.error("value terminator")
        return Value(ValueForm.UNQUOTED, text[begin:self.pos], start)

    def read_colon_value(self) -> Value:
        """Consume ':', at most one space or tab, and the rest of the line."""
        start = self.pos
        if self.peek() != ":":
            raise self.error("':'")
        self.pos += 1
        if self.peek() and self.peek() in INDENT_CHARS:
            self.pos += 1
        end = self.line_end_offset()
        value = self.text[self.pos:end]
        self.pos = end
        return Value(ValueForm.COLON, value, start)

    def at_comment(self) -> bool:
        return self.peek(2) == "//"

    def read_comment(self) -> str:
        """Consume '//' through the line terminator, returning the comment text."""
        if not self.at_comment():
            raise self.error("'//'")
        self.pos += 2
        self.read_indent()
        end = self.line_end_offset()
        comment = self.text[self.pos:end]
        self.pos = end
        self.read_line_end()
        return comment
