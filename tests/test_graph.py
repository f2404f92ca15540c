"""Tests for linkage graphs and ancestor path search."""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from drorg.graph import LinkageGraph, find_parent_paths, load_linkage_graph


def _graph(edges: list[tuple[str, str]], *, account_id: int = 1) -> LinkageGraph:
    """Transposed graph from (parent, child) pairs."""
    graph = LinkageGraph(account_id=account_id, transposed=True)
    for parent, child in edges:
        graph.add_edge(graph.node(child), graph.node(parent))
    return graph


def _assert_valid_path(graph: LinkageGraph, start: str, path: list[str]) -> None:
    """Path is simple, ends at a root and follows child -> parent edges."""
    assert len(set(path)) == len(path)
    assert start not in path
    hops = [start, *reversed(path)]
    for child, parent in zip(hops, hops[1:]):
        assert graph.index[parent] in graph.neighbors(graph.index[child])
    if path:
        assert graph.index[path[0]] in graph.externals()


class TestLoadLinkageGraph:
    """Tests for building graphs from the link table."""

    @pytest.fixture
    def linked_store(self, store):
        alice = store.get_or_create_account("alice@example.com")
        bob = store.get_or_create_account("bob@example.com")
        with store.transaction():
            store.upsert_link(alice.id, "root", "F")
            store.upsert_link(alice.id, "F", "D")
            store.upsert_link(bob.id, "other-root", "D")
        return store, alice, bob

    def test_orientation(self, linked_store) -> None:
        """Edges point parent -> child unless transposed."""
        store, alice, _ = linked_store
        forward = load_linkage_graph(store, alice.id, transposed=False)
        backward = load_linkage_graph(store, alice.id, transposed=True)

        assert forward.neighbors(forward.index["root"]) == [forward.index["F"]]
        assert backward.neighbors(backward.index["F"]) == [backward.index["root"]]
        assert backward.neighbors(backward.index["root"]) == []

    def test_scoped_to_one_account(self, linked_store) -> None:
        store, alice, bob = linked_store
        graph = load_linkage_graph(store, bob.id, transposed=True)

        assert set(graph.nodes) == {"other-root", "D"}
        assert graph.account_id == bob.id

    def test_duplicate_links_do_not_duplicate_edges(self, linked_store) -> None:
        store, alice, _ = linked_store
        store.upsert_link(alice.id, "root", "F")
        graph = load_linkage_graph(store, alice.id, transposed=True)

        assert graph.neighbors(graph.index["F"]) == [graph.index["root"]]


class TestFindParentPaths:
    """Tests for find_parent_paths."""

    def test_requires_transposed_graph(self) -> None:
        graph = LinkageGraph(account_id=1, transposed=False)
        with pytest.raises(ValueError, match="transposed"):
            find_parent_paths(graph, "anything")

    def test_unknown_start_has_no_paths(self) -> None:
        """A document with no links at all (shared, never filed) has no paths."""
        graph = _graph([("root", "F")])
        assert find_parent_paths(graph, "stranger") == []

    def test_root_start_yields_single_empty_path(self) -> None:
        graph = _graph([("root", "F")])
        assert find_parent_paths(graph, "root") == [[]]

    def test_chain_is_outermost_first(self) -> None:
        graph = _graph([("root", "A"), ("A", "B"), ("B", "doc")])
        assert find_parent_paths(graph, "doc") == [["root", "A", "B"]]

    def test_two_parents_give_two_paths(self) -> None:
        """A node with two root parents yields one single-element path per parent."""
        graph = _graph([("P1", "doc"), ("P2", "doc")])
        paths = find_parent_paths(graph, "doc")

        assert sorted(paths) == [["P1"], ["P2"]]

    def test_reconverging_folders(self) -> None:
        """Two routes to the same root both show up."""
        graph = _graph([("root", "A"), ("root", "B"), ("A", "doc"), ("B", "doc")])
        paths = find_parent_paths(graph, "doc")

        assert sorted(paths) == [["root", "A"], ["root", "B"]]

    def test_cycle_terminates(self) -> None:
        graph = _graph([("root", "A"), ("A", "B"), ("B", "A"), ("A", "doc")])
        paths = find_parent_paths(graph, "doc")

        assert paths == [["root", "A"]]

    def test_pure_cycle_has_no_root(self) -> None:
        """With no root reachable there are no paths, and the search still stops."""
        graph = _graph([("A", "B"), ("B", "A"), ("B", "doc")])
        assert find_parent_paths(graph, "doc") == []

    def test_shared_document_per_account(self, store) -> None:
        """The same id filed under each account's own root gives one path per account."""
        alice = store.get_or_create_account("alice@example.com")
        bob = store.get_or_create_account("bob@example.com")
        with store.transaction():
            store.upsert_link(alice.id, "alice-root", "shared1")
            store.upsert_link(bob.id, "bob-root", "shared1")

        alice_paths = find_parent_paths(load_linkage_graph(store, alice.id, transposed=True), "shared1")
        bob_paths = find_parent_paths(load_linkage_graph(store, bob.id, transposed=True), "shared1")

        assert alice_paths == [["alice-root"]]
        assert bob_paths == [["bob-root"]]


# =============================================================================
# Property tests
# =============================================================================

NODE_NAMES = [f"n{i}" for i in range(6)]

edge_lists = st.lists(
    st.tuples(st.sampled_from(NODE_NAMES), st.sampled_from(NODE_NAMES)).filter(lambda e: e[0] != e[1]),
    max_size=14,
    unique=True,
)


@settings(max_examples=200, deadline=None)
@given(edges=edge_lists, start=st.sampled_from(NODE_NAMES))
def test_paths_are_simple_and_reach_roots(edges, start) -> None:
    """Arbitrary graphs, cycles included, only ever produce simple paths up to a root."""
    graph = _graph(edges)
    paths = find_parent_paths(graph, start)

    if start not in graph.index:
        assert paths == []
        return
    for path in paths:
        _assert_valid_path(graph, start, path)


@settings(max_examples=100, deadline=None)
@given(edges=edge_lists)
def test_root_nodes_report_empty_path(edges) -> None:
    graph = _graph(edges)
    for root_ix in graph.externals():
        assert [] in find_parent_paths(graph, graph.nodes[root_ix])
