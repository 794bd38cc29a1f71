"""
DOM - Document Object Model for BML

Every parsed document is a tree of Nodes. A node has a name, zero or more
value lines and an ordered collection of (name, Node) entries. Attributes
declared on a node's own line and child nodes declared on deeper lines live in
the same collection: attributes first, then children, in source order.

Key invariant: nodes are built once by the parser and never mutated after.
The query functions at the bottom of this module are the read-only API.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Collection, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class View(Generic[T]):
    """Read-only view over stored items: lazy, sized, reversible and re-iterable."""

    __slots__ = ("_items",)

    def __init__(self, items: Collection[T]):
        self._items = items

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __reversed__(self) -> Iterator[T]:
        return reversed(self._items)  # type: ignore[call-overload]

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"View({list(self._items)!r})"

    def first(self) -> T | None:
        """First item, or None if the view is empty."""
        return next(iter(self._items), None)


class EntryStore(ABC):
    """Storage strategy for a node's (name, Node) entries.

    A store is filled while its node is being built and frozen when the Node
    is created; after that, append raises and the store is hashable.
    """

    frozen: bool = False

    @abstractmethod
    def append(self, name: str, node: Node) -> None:
        ...

    @abstractmethod
    def pairs(self) -> Collection[tuple[str, Node]]:
        """All entries in stored order."""
        ...

    @abstractmethod
    def get_all(self, name: str) -> Collection[Node]:
        """Entries named ``name`` in stored order."""
        ...

    def __len__(self) -> int:
        return len(self.pairs())

    def freeze(self) -> None:
        self.frozen = True

    def _check_open(self) -> None:
        if self.frozen:
            raise RuntimeError("entries of a built node cannot be changed")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EntryStore):
            return NotImplemented
        return list(self.pairs()) == list(other.pairs())

    def __hash__(self) -> int:
        if not self.frozen:
            raise TypeError("unhashable: entries still being built")
        return hash(tuple(self.pairs()))


class OrderedMultimap(EntryStore):
    """Keeps every entry, duplicates included, with an index for named lookup."""

    def __init__(self):
        self._pairs: list[tuple[str, Node]] | tuple[tuple[str, Node], ...] = []
        self._index: dict[str, list[Node]] = {}

    def append(self, name: str, node: Node) -> None:
        self._check_open()
        self._pairs.append((name, node))
        self._index.setdefault(name, []).append(node)

    def pairs(self) -> Collection[tuple[str, Node]]:
        return self._pairs

    def get_all(self, name: str) -> Collection[Node]:
        return self._index.get(name, ())

    def freeze(self) -> None:
        self._pairs = tuple(self._pairs)
        self._index = {name: tuple(nodes) for name, nodes in self._index.items()}  # type: ignore[misc]
        super().freeze()


class LastWinsMap(EntryStore):
    """One entry per name; a later entry replaces the node but keeps the first position."""

    def __init__(self):
        self._nodes: dict[str, Node] = {}

    def append(self, name: str, node: Node) -> None:
        self._check_open()
        self._nodes[name] = node

    def pairs(self) -> Collection[tuple[str, Node]]:
        return self._nodes.items()

    def get_all(self, name: str) -> Collection[Node]:
        node = self._nodes.get(name)
        return () if node is None else (node,)


class Duplicates(str, Enum):
    """Policy for entries that share a name."""
    PRESERVE_ALL = "preserve-all"
    LAST_WINS = "last-wins"

    @classmethod
    def coerce(cls, value: Duplicates | str) -> Duplicates:
        """Accept a member or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown duplicates policy {value!r}, expected one of: {choices}") from None

    def new_store(self) -> EntryStore:
        if self is Duplicates.LAST_WINS:
            return LastWinsMap()
        return OrderedMultimap()


@dataclass(frozen=True)
class Node:
    """A named entry with value lines and ordered sub-entries."""
    name: str = field(compare=False)
    lines: tuple[str, ...] = ()
    store: EntryStore = field(default_factory=OrderedMultimap, repr=False)
    is_attribute: bool = field(default=False, compare=False)  # declared on the parent's own line
    source_line: int | None = field(default=None, compare=False)

    def __post_init__(self):
        self.store.freeze()

    def value(self) -> str:
        """First value line, or "" if the node has none."""
        return self.lines[0] if self.lines else ""

    def values(self) -> View[str]:
        """All value lines in file order."""
        return View(self.lines)

    @property
    def text(self) -> str:
        """All value lines joined with newlines."""
        return "\n".join(self.lines)

    def entries(self) -> View[tuple[str, Node]]:
        """Direct entries as (name, node) pairs in stored order."""
        return View(self.store.pairs())

    def named(self, name: str) -> View[Node]:
        """Direct entries called ``name``, in stored order."""
        return View(self.store.get_all(name))

    def get(self, name: str) -> Node | None:
        """First direct entry called ``name``."""
        return self.named(name).first()

    def attributes(self) -> Iterator[tuple[str, Node]]:
        """Entries declared inline on this node's line."""
        for name, node in self.store.pairs():
            if node.is_attribute:
                yield name, node

    def children(self) -> Iterator[tuple[str, Node]]:
        """Entries declared on deeper lines."""
        for name, node in self.store.pairs():
            if not node.is_attribute:
                yield name, node

    def depth_first(self, path: tuple[str, ...] = ()) -> Iterator[tuple[tuple[str, ...], Node]]:
        """Traverse depth-first, yielding (path, node) for every descendant entry."""
        stack = [(path, iter(self.store.pairs()))]
        while stack:
            parent_path, pending = stack[-1]
            for name, node in pending:
                child_path = (*parent_path, name)
                yield child_path, node
                stack.append((child_path, iter(node.store.pairs())))
                break
            else:
                stack.pop()

    def find(self, path: str) -> list[Node]:
        """
        Resolve a slash-separated path of names (e.g. "server/proxy/port"),
        returning every matching node in document order.
        """
        current: list[Node] = [self]
        for part in (p for p in path.split("/") if p):
            current = [match for node in current for match in node.named(part)]
        return current


@dataclass(frozen=True)
class Document(Node):
    """The virtual root: no name, no value, top-level nodes as entries."""
    name: str = field(default="", compare=False)
    duplicates: Duplicates = field(default=Duplicates.PRESERVE_ALL, compare=False)


def entries(node: Node) -> View[tuple[str, Node]]:
    """Direct entries of node as (name, node) pairs."""
    return node.entries()


def named(node: Node, name: str) -> View[Node]:
    """Direct entries of node called name."""
    return node.named(name)


def value(node: Node) -> str:
    """First value line of node ("" if none)."""
    return node.value()


def values(node: Node) -> View[str]:
    """All value lines of node."""
    return node.values()
