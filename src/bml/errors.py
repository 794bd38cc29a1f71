"""
Errors raised while parsing BML.

There is exactly one failure kind for malformed input. It carries enough
position information to point an editor at the offending character.
"""

from __future__ import annotations


class ParseError(ValueError):
    """Raised when text is not a well-formed BML document.

    Attributes:
        offset: 0-based character offset of the failure.
        line: 1-based line number.
        column: 1-based column number.
        expected: What the parser expected to find (e.g. "name").
        source_line: The offending line without its terminator.
    """

    def __init__(self, expected: str, offset: int, line: int, column: int, source_line: str = "") -> None:
        self.expected = expected
        self.offset = offset
        self.line = line
        self.column = column
        self.source_line = source_line
        super().__init__(self._render())

    def _render(self) -> str:
        message = f"Invalid BML at line {self.line}, column {self.column}: expected {self.expected}"
        if not self.source_line and self.column == 1:
            return message
        caret = " " * (self.column - 1) + "^"
        return f"{message}\n{self.source_line}\n{caret}"

    @classmethod
    def at(cls, text: str, offset: int, expected: str) -> ParseError:
        """Build an error for ``offset`` in ``text``, computing line and column."""
        offset = max(0, min(offset, len(text)))
        line_start = text.rfind("\n", 0, offset) + 1
        line_end = text.find("\n", offset)
        if line_end == -1:
            line_end = len(text)
        source_line = text[line_start:line_end].rstrip("\r")
        line = text.count("\n", 0, offset) + 1
        column = offset - line_start + 1
        return cls(expected, offset, line, column, source_line)
