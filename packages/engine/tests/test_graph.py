"""
Unit tests for graph traversal: cycle detection, path finding, chains.

Edges are (dependent, blocker) pairs; plain strings stand in for task ids.

Tests cover:
- Cycle detection, including deep chains and random DAGs
- Path finding and the reported cycle path
- Adjacency and upstream / downstream walks
"""

from __future__ import annotations

import itertools
import random

from taskgraph.services.graph import (
    build_adjacency,
    cycle_path,
    downstream,
    find_path,
    upstream,
    would_create_cycle,
)


def _reaches(edges, start, goal) -> bool:
    """Reference reachability via repeated relaxation."""
    reached = {start}
    changed = True
    while changed:
        changed = False
        for dependent, blocker in edges:
            if dependent in reached and blocker not in reached:
                reached.add(blocker)
                changed = True
    return goal in reached


class TestCycleDetection:
    """Test would_create_cycle."""

    def test_no_cycle_on_empty_graph(self):
        """Nothing can cycle in an empty graph."""
        assert not would_create_cycle([], "A", "B")

    def test_direct_cycle(self):
        """A depends on B; B depending on A would cycle."""
        edges = [("A", "B")]
        assert would_create_cycle(edges, "B", "A")
        assert not would_create_cycle(edges, "A", "C")

    def test_indirect_cycle(self):
        """A -> B -> C exists; C -> A would close a cycle."""
        edges = [("A", "B"), ("B", "C")]
        assert would_create_cycle(edges, "C", "A")

    def test_no_indirect_cycle(self):
        """A -> B, C -> D: D depends on A has no cycle."""
        edges = [("A", "B"), ("C", "D")]
        assert not would_create_cycle(edges, "D", "A")

    def test_diamond_no_cycle(self):
        """A diamond accepts edges that do not point back up."""
        edges = [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")]
        assert not would_create_cycle(edges, "E", "A")
        assert not would_create_cycle(edges, "B", "C")

    def test_diamond_cycle(self):
        """D depends on A closes a cycle through the diamond."""
        edges = [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")]
        assert would_create_cycle(edges, "D", "A")

    def test_deep_chain_does_not_recurse(self):
        """A 5000-long chain is searched without hitting the recursion limit."""
        n = 5000
        edges = [(i, i + 1) for i in range(n)]
        assert would_create_cycle(edges, n, 0)
        assert not would_create_cycle(edges, 0, n)

    def test_matches_reachability_on_random_dags(self):
        """Cycle detection agrees with plain reachability on random DAGs."""
        rng = random.Random(7)
        nodes = list(range(12))
        for _ in range(30):
            # Only edges from lower to higher index, so the graph is a DAG.
            edges = [
                (a, b)
                for a, b in itertools.combinations(nodes, 2)
                if rng.random() < 0.2
            ]
            for a, b in itertools.permutations(nodes, 2):
                assert would_create_cycle(edges, a, b) == _reaches(edges, b, a)


class TestPaths:
    """Test find_path and cycle_path."""

    def test_find_path_follows_depends_on(self):
        """find_path walks depends-on edges only."""
        edges = [("A", "B"), ("B", "C")]
        assert find_path(edges, "A", "C") == ["A", "B", "C"]
        assert find_path(edges, "C", "A") is None

    def test_find_path_same_node(self):
        """The path from a node to itself is just that node."""
        assert find_path([], "A", "A") == ["A"]

    def test_cycle_path_direct(self):
        """A depends on B; adding B depends on A reports [B, A]."""
        assert cycle_path([("A", "B")], "B", "A") == ["B", "A"]

    def test_cycle_path_chain(self):
        """A -> B -> C; adding C depends on A reports [C, B, A]."""
        edges = [("A", "B"), ("B", "C")]
        assert cycle_path(edges, "C", "A") == ["C", "B", "A"]

    def test_cycle_path_none_without_cycle(self):
        """No cycle, no path."""
        assert cycle_path([("A", "B")], "A", "C") is None

    def test_cycle_path_is_real_chain(self):
        """The reported path is made of existing edges."""
        edges = [("A", "B"), ("B", "C"), ("A", "D"), ("D", "C"), ("C", "E")]
        path = cycle_path(edges, "E", "A")
        assert path[0] == "E" and path[-1] == "A"
        # each element blocks the next one
        for blocker, dependent in zip(path, path[1:]):
            assert (dependent, blocker) in edges


class TestChains:
    """Test adjacency and transitive walks."""

    def test_adjacency_keeps_edge_order(self):
        """Adjacency lists keep insertion order."""
        adj = build_adjacency([("A", "C"), ("A", "B")])
        assert adj["A"] == ["C", "B"]

    def test_upstream_depths(self):
        """Each blocker is reported once, at its shortest depth."""
        edges = [("A", "B"), ("B", "C"), ("A", "C")]
        result = {node: depth for node, depth, _ in upstream(edges, "A")}
        assert result == {"B": 1, "C": 1}

    def test_downstream_reports_parent(self):
        """Downstream entries name the task they were reached from."""
        edges = [("A", "B"), ("B", "C")]
        assert downstream(edges, "C") == [("B", 1, "C"), ("A", 2, "B")]

    def test_chains_of_isolated_node_are_empty(self):
        """A node without edges has empty chains."""
        assert upstream([("A", "B")], "Z") == []
        assert downstream([("A", "B")], "Z") == []
