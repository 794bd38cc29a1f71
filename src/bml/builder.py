"""
Tree Builder - turns parser events into immutable Nodes.

The parser reports a node when it starts, each value line as it is read, and
the node's end once its indentation scope is dropped. Nodes are materialized
bottom-up at that end event and appended to the enclosing node's entries, so
entry order is exactly source order. Duplicate-name handling is delegated to
the injected storage policy; the parser never sees it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .dom import Document, Duplicates, EntryStore, Node


@dataclass
class _Frame:
    """A node under construction."""
    name: str
    store: EntryStore
    lines: list[str] = field(default_factory=list)
    is_attribute: bool = False
    source_line: int | None = None


class TreeBuilder:
    """Consumes start/value/end events in parse order."""

    def __init__(self, duplicates: Duplicates | str = Duplicates.PRESERVE_ALL):
        self.duplicates = Duplicates.coerce(duplicates)
        self._root = _Frame(name="", store=self.duplicates.new_store())
        self._stack: list[_Frame] = [self._root]

    @property
    def depth(self) -> int:
        """Number of open nodes below the document."""
        return len(self._stack) - 1

    def start_node(self, name: str, is_attribute: bool = False, source_line: int | None = None) -> None:
        self._stack.append(_Frame(
            name=name,
            store=self.duplicates.new_store(),
            is_attribute=is_attribute,
            source_line=source_line,
        ))

    def add_value(self, line: str) -> None:
        if len(self._stack) == 1:
            raise RuntimeError("value line outside of a node")
        self._stack[-1].lines.append(line)

    def end_node(self) -> Node:
        if len(self._stack) == 1:
            raise RuntimeError("end_node without matching start_node")
        frame = self._stack.pop()
        node = Node(
            name=frame.name,
            lines=tuple(frame.lines),
            store=frame.store,
            is_attribute=frame.is_attribute,
            source_line=frame.source_line,
        )
        self._stack[-1].store.append(frame.name, node)
        return node

    def finish(self) -> Document:
        """Return the document once every node has ended."""
        if len(self._stack) != 1:
            raise RuntimeError(f"{len(self._stack) - 1} node(s) still open")
        return Document(store=self._root.store, duplicates=self.duplicates)
