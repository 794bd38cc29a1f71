"""
Indent Tracker - the nesting primitive of the parser.

Scopes are kept as a stack of literal whitespace prefixes. A line belongs to
the current scope when its leading whitespace equals the concatenation of all
pushed prefixes; it opens a deeper scope when it strictly extends that
concatenation. Indentation is never measured in characters, so tabs and
spaces can be mixed freely as long as each scope repeats its own prefix
byte for byte.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

INDENT_CHARS = " \t"


def is_indent(prefix: str) -> bool:
    """True if prefix consists only of spaces and tabs (empty counts)."""
    return all(ch in INDENT_CHARS for ch in prefix)


class IndentTracker:
    """Stack of indentation prefixes from the document root to the current node.

    Owned by a single parse; not safe to share between concurrent parses.
    """

    def __init__(self):
        self._stack: list[str] = []
        # cumulative[i] == "".join(self._stack[:i])
        self._cumulative: list[str] = [""]

    def __len__(self) -> int:
        return len(self._stack)

    @property
    def depth(self) -> int:
        """Number of pushed scopes."""
        return len(self._stack)

    def peek_all(self) -> str:
        """Total indentation expected for a sibling at the current depth."""
        return self._cumulative[-1]

    def push(self, prefix: str, *, allow_empty: bool = False) -> str:
        """
        Push the additional prefix of a new scope and return the new total.

        A deeper scope (child or continuation) needs a non-empty prefix;
        ``allow_empty`` is for re-confirming the same depth, which is how the
        document establishes the indentation of its top-level nodes.
        """
        if not is_indent(prefix):
            raise ValueError(f"Indentation may only contain spaces and tabs, got {prefix!r}")
        if not prefix and not allow_empty:
            raise ValueError("Deeper scope requires a non-empty indentation prefix")
        self._stack.append(prefix)
        total = self._cumulative[-1] + prefix
        self._cumulative.append(total)
        logger.debug("push indent %r (depth %d, total %r)", prefix, len(self._stack), total)
        return total

    def drop(self) -> str:
        """Pop the innermost scope, returning its prefix."""
        if not self._stack:
            raise IndexError("drop from empty indent stack")
        self._cumulative.pop()
        prefix = self._stack.pop()
        logger.debug("drop indent %r (depth %d)", prefix, len(self._stack))
        return prefix

    def matches(self, whitespace: str) -> bool:
        """True if whitespace is exactly the current scope's indentation (a sibling)."""
        return whitespace == self.peek_all()

    def extension(self, whitespace: str) -> str | None:
        """
        Return the additional prefix if whitespace strictly extends the current
        scope, otherwise None.
        """
        total = self.peek_all()
        if len(whitespace) > len(total) and whitespace.startswith(total):
            return whitespace[len(total):]
        return None

    def admits(self, whitespace: str) -> bool:
        """
        True if whitespace is a valid position for a comment: aligned with any
        open scope, or deeper than the innermost one.
        """
        return whitespace in self._cumulative or self.extension(whitespace) is not None

    def prefixes(self) -> tuple[str, ...]:
        """Pushed prefixes, outermost first."""
        return tuple(self._stack)
