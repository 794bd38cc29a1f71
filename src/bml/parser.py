"""
Structural Grammar - nodes, attributes and nesting by indentation.

    document   = (node | blank | comment)*
    node       = indent name value? attribute* line-end
                 (blank | comment)*
                 (deeper-indent ":" value line-end)*
                 (deeper-indent node)*
    attribute  = indent+ name value?

Each open node owns at most one indentation frame: the first line deeper
than the node opens it, every continuation line and child must repeat it
exactly, and the frame is dropped when a line no longer matches. That line
is then handed back to the enclosing node, up to the document, which
rejects it if no open scope accepts it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .builder import TreeBuilder
from .config import get_config
from .dom import Document, Duplicates
from .indent import IndentTracker
from .lexer import Cursor

logger = logging.getLogger(__name__)


@dataclass
class _OpenNode:
    """A node whose line has been read but whose scope is still open."""
    scoped: bool = False  # an indentation frame was pushed for it
    seen_child: bool = False


class BmlParser:
    """Single-use parser: one instance per parse, not reentrant."""

    def __init__(self, text: str, builder: TreeBuilder):
        self.cursor = Cursor(text)
        self.indent = IndentTracker()
        self.builder = builder
        self.line_no = 1

    def parse(self) -> Document:
        cursor = self.cursor
        top_level = 0

        self._skip_trivia()
        while not cursor.at_end:
            ws = cursor.peek_indent()
            if self.indent.depth == 0:
                # First node establishes the indentation of all top-level nodes
                self.indent.push(ws, allow_empty=True)
            elif not self.indent.matches(ws):
                raise cursor.error("matching indentation", cursor.pos + len(ws))
            cursor.pos += len(ws)
            self._parse_tree()
            top_level += 1
            self._skip_trivia()

        if self.indent.depth:
            self.indent.drop()
        logger.debug("parsed %d top-level node(s) from %d line(s)", top_level, self.line_no)
        return self.builder.finish()

    def _end_line(self) -> None:
        before = self.cursor.pos
        self.cursor.read_line_end()
        if self.cursor.pos > before:
            self.line_no += 1

    def _skip_trivia(self) -> None:
        """Skip blank lines and comments; comments must sit on an open scope."""
        cursor = self.cursor
        while not cursor.at_end:
            start = cursor.pos
            ws = cursor.read_indent()
            if cursor.at_line_end():
                self._end_line()
                continue
            if cursor.at_comment():
                if not self.indent.admits(ws):
                    raise cursor.error("matching indentation")
                cursor.read_comment()
                self.line_no += 1
                continue
            cursor.pos = start
            return

    def _parse_tree(self) -> None:
        """
        Parse one top-level node and everything nested under it; the cursor
        sits just after the node's indentation.

        Open nodes live on an explicit stack that moves in step with the
        indent tracker and the builder, so nesting depth is not limited by
        the interpreter's recursion limit.
        """
        cursor = self.cursor
        open_nodes: list[_OpenNode] = [self._open_node()]
        while open_nodes:
            node = open_nodes[-1]
            if node.scoped and not cursor.at_end and self.indent.matches(cursor.peek_indent()):
                cursor.pos += len(cursor.peek_indent())
                if cursor.peek() == ":":
                    if node.seen_child:
                        raise cursor.error("continuation line before child nodes")
                    self.builder.add_value(cursor.read_colon_value().text)
                    self._end_line()
                    self._skip_trivia()
                else:
                    node.seen_child = True
                    open_nodes.append(self._open_node())
                continue

            # Line belongs to an enclosing scope (or input ended)
            if node.scoped:
                self.indent.drop()
            self.builder.end_node()
            open_nodes.pop()

    def _open_node(self) -> _OpenNode:
        """Read a node's own line and open its deeper scope if the next line has one."""
        cursor = self.cursor
        builder = self.builder

        name = cursor.read_name()
        builder.start_node(name, source_line=self.line_no)
        token = cursor.read_value()
        if token is not None:
            logger.debug("line %d: %s has a %s value", self.line_no, name, token.form.value)
            builder.add_value(token.text)
        self._parse_attributes()
        self._end_line()
        self._skip_trivia()

        scoped = False
        if not cursor.at_end:
            extra = self.indent.extension(cursor.peek_indent())
            if extra is not None:
                self.indent.push(extra)
                scoped = True
        return _OpenNode(scoped=scoped)

    def _parse_attributes(self) -> None:
        cursor = self.cursor
        builder = self.builder
        while True:
            start = cursor.pos
            if not cursor.read_indent():
                return
            if not cursor.at_name():
                # trailing whitespace; read_line_end reports it
                cursor.pos = start
                return
            builder.start_node(cursor.read_name(), is_attribute=True, source_line=self.line_no)
            token = cursor.read_value()
            if token is not None:
                builder.add_value(token.text)
            builder.end_node()


def parse(text: str, duplicates: Duplicates | str | None = None) -> Document:
    """
    Parse BML text into a Document.

    Args:
        text: Complete document source.
        duplicates: Storage policy for entries sharing a name. Defaults to the
            configured policy ("preserve-all" unless overridden).

    Raises:
        ParseError: If text is not a well-formed document. No partial tree
            is returned.
    """
    if duplicates is None:
        duplicates = get_config().storage.duplicates
    return BmlParser(text, TreeBuilder(duplicates)).parse()


loads = parse


def load(path: str | Path, duplicates: Duplicates | str | None = None) -> Document:
    """Read a UTF-8 file and parse it."""
    return parse(Path(path).read_text(encoding="utf-8"), duplicates)
