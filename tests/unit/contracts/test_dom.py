"""
Data Model Contract Tests

These tests pin down the Node/Document structure and the read-only query
API that callers rely on.
"""

import pytest

from bml.dom import (
    Document,
    Duplicates,
    LastWinsMap,
    Node,
    OrderedMultimap,
    View,
    entries,
    named,
    value,
    values,
)
from bml.parser import parse


def make_node(name, lines=(), children=(), store=None):
    store = store if store is not None else OrderedMultimap()
    for child in children:
        store.append(child.name, child)
    return Node(name=name, lines=tuple(lines), store=store)


class TestNodeValues:
    def test_value_is_first_line(self):
        node = make_node("description", ["one", "two"])
        assert node.value() == "one"
        assert list(node.values()) == ["one", "two"]

    def test_value_empty_without_lines(self):
        node = make_node("empty")
        assert node.value() == ""
        assert list(node.values()) == []

    def test_text_joins_lines(self):
        assert make_node("d", ["a", "b"]).text == "a\nb"

    def test_module_level_functions(self):
        child = make_node("port", ["80"])
        node = make_node("server", children=[child])
        assert value(child) == "80"
        assert list(values(child)) == ["80"]
        assert list(entries(node)) == [("port", child)]
        assert list(named(node, "port")) == [child]
        assert list(named(node, "host")) == []


class TestViews:
    def test_views_are_restartable(self):
        node = make_node("n", ["a", "b"])
        view = node.values()
        assert list(view) == ["a", "b"]
        assert list(view) == ["a", "b"]

    def test_views_are_sized_and_reversible(self):
        children = [make_node("x", ["1"]), make_node("y", ["2"]), make_node("x", ["3"])]
        node = make_node("n", children=children)
        assert len(node.entries()) == 3
        assert [name for name, _ in reversed(node.entries())] == ["x", "y", "x"]
        assert len(node.named("x")) == 2
        assert [n.value() for n in reversed(node.named("x"))] == ["3", "1"]

    def test_first(self):
        assert View([]).first() is None
        assert View(["a", "b"]).first() == "a"


class TestEntryStores:
    def test_multimap_keeps_duplicates_in_order(self):
        store = OrderedMultimap()
        a1, b, a2 = make_node("a", ["1"]), make_node("b"), make_node("a", ["2"])
        for node in (a1, b, a2):
            store.append(node.name, node)
        assert [name for name, _ in store.pairs()] == ["a", "b", "a"]
        assert list(store.get_all("a")) == [a1, a2]
        assert list(store.get_all("missing")) == []
        assert len(store) == 3

    def test_last_wins_replaces_in_place(self):
        store = LastWinsMap()
        a1, b, a2 = make_node("a", ["1"]), make_node("b"), make_node("a", ["2"])
        for node in (a1, b, a2):
            store.append(node.name, node)
        assert [(name, node.value()) for name, node in store.pairs()] == [("a", "2"), ("b", "")]
        assert list(store.get_all("a")) == [a2]

    def test_store_is_frozen_once_node_is_built(self):
        node = make_node("a", children=[make_node("b")])
        assert node.store.frozen
        with pytest.raises(RuntimeError):
            node.store.append("c", make_node("c"))
        assert [name for name, _ in node.entries()] == ["b"]

    def test_parsed_stores_reject_appends(self):
        for policy in Duplicates:
            root = parse("a x=1\n", duplicates=policy)
            with pytest.raises(RuntimeError):
                root.store.append("b", make_node("b"))
            with pytest.raises(RuntimeError):
                root.get("a").store.append("y", make_node("y"))
            assert [name for name, _ in root.entries()] == ["a"]

    def test_frozen_pairs_are_not_a_live_list(self):
        root = parse("a\nb\n")
        assert isinstance(root.store.pairs(), tuple)
        assert isinstance(root.store.get_all("a"), tuple)

    def test_open_store_is_unhashable(self):
        store = OrderedMultimap()
        with pytest.raises(TypeError):
            hash(store)

    def test_stores_compare_by_pairs(self):
        multi, last = OrderedMultimap(), LastWinsMap()
        for store in (multi, last):
            store.append("a", make_node("a", ["1"]))
        assert multi == last


class TestDuplicatesEnum:
    def test_coerce_string(self):
        assert Duplicates.coerce("last-wins") is Duplicates.LAST_WINS
        assert Duplicates.coerce(" Preserve-All ") is Duplicates.PRESERVE_ALL
        assert Duplicates.coerce(Duplicates.LAST_WINS) is Duplicates.LAST_WINS

    def test_coerce_unknown(self):
        with pytest.raises(ValueError, match="preserve-all, last-wins"):
            Duplicates.coerce("newest")

    def test_new_store(self):
        assert isinstance(Duplicates.PRESERVE_ALL.new_store(), OrderedMultimap)
        assert isinstance(Duplicates.LAST_WINS.new_store(), LastWinsMap)


class TestEquality:
    def test_attribute_and_child_compare_equal(self):
        assert parse('a x="1"\n') == parse("a\n  x: 1\n")

    def test_different_values_differ(self):
        assert parse("a: 1\n") != parse("a: 2\n")

    def test_different_order_differs(self):
        assert parse("a\nb\n") != parse("b\na\n")

    def test_equal_nodes_hash_equal(self):
        assert hash(parse("a: 1\n")) == hash(parse("a: 1\n"))
        assert hash(parse('a x="1"\n')) == hash(parse("a\n  x: 1\n"))
        assert len({parse("a: 1\n"), parse("a: 1\n"), parse("a: 2\n")}) == 2

    def test_last_wins_nodes_are_hashable(self):
        root = parse("a: 1\na: 2\n", duplicates="last-wins")
        assert root.get("a") in {root.get("a")}
        assert hash(root) == hash(parse("a: 2\n", duplicates="last-wins"))

    def test_nodes_are_frozen(self):
        node = make_node("a")
        with pytest.raises(AttributeError):
            node.lines = ("x",)


class TestTraversal:
    def test_document_has_no_name_or_value(self):
        root = parse("a: 1\n")
        assert isinstance(root, Document)
        assert root.name == ""
        assert root.value() == ""

    def test_depth_first_paths(self):
        root = parse("a x=1\n  b\n    c\nd\n")
        assert [path for path, _ in root.depth_first()] == [
            ("a",), ("a", "x"), ("a", "b"), ("a", "b", "c"), ("d",),
        ]

    def test_depth_first_on_deep_tree(self):
        depth = 600
        root = parse("".join(" " * i + f"n{i}\n" for i in range(depth)))
        paths = [path for path, _ in root.depth_first()]
        assert len(paths) == depth
        assert paths[-1] == tuple(f"n{i}" for i in range(depth))

    def test_find_by_path(self):
        root = parse("s\n  p: 1\ns\n  p: 2\n  q: 3\n")
        assert [n.value() for n in root.find("s/p")] == ["1", "2"]
        assert [n.value() for n in root.find("/s/q/")] == ["3"]
        assert root.find("s/missing") == []
        assert root.find("") == [root]
