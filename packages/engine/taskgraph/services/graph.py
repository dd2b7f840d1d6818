"""
Graph traversal over dependency edges.

The graph is a flat list of ``(dependent_id, blocker_id)`` pairs. An adjacency
index is built on demand for each query; nothing here holds state between
calls, so every function is safe to use on any snapshot of edges.

Direction: an edge ``(a, b)`` means "a depends on b" (b blocks a).
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Hashable, Iterable
from typing import Optional, Sequence, TypeVar

from taskgraph.models.dependency import TaskDependency

NodeId = TypeVar("NodeId", bound=Hashable)


def edge_pairs(dependencies: Iterable[TaskDependency]) -> list[tuple]:
    """Reduce stored edge records to ``(dependent, blocker)`` pairs."""
    return [(d.dependent_task_id, d.blocking_task_id) for d in dependencies]


def build_adjacency(edges: Iterable[tuple[NodeId, NodeId]]) -> dict[NodeId, list[NodeId]]:
    """dependent -> [blockers], in edge order."""
    adj: dict = defaultdict(list)
    for dependent, blocker in edges:
        adj[dependent].append(blocker)
    return adj


def build_reverse_adjacency(edges: Iterable[tuple[NodeId, NodeId]]) -> dict[NodeId, list[NodeId]]:
    """blocker -> [dependents], in edge order."""
    adj: dict = defaultdict(list)
    for dependent, blocker in edges:
        adj[blocker].append(dependent)
    return adj


def _dfs_path(
    adj: dict[NodeId, list[NodeId]], start: NodeId, goal: NodeId
) -> Optional[list[NodeId]]:
    """Iterative DFS; returns the first path found from start to goal."""
    if start == goal:
        return [start]

    visited = {start}
    parent: dict = {}
    stack = [start]
    while stack:
        current = stack.pop()
        # Reversed so neighbours are explored in edge order.
        for nxt in reversed(adj.get(current, [])):
            if nxt in visited:
                continue
            visited.add(nxt)
            parent[nxt] = current
            if nxt == goal:
                path = [goal]
                while path[-1] != start:
                    path.append(parent[path[-1]])
                path.reverse()
                return path
            stack.append(nxt)
    return None


def find_path(
    edges: Iterable[tuple[NodeId, NodeId]], start: NodeId, goal: NodeId
) -> Optional[list[NodeId]]:
    """
    Follow "depends on" edges from ``start`` and return ``[start, ..., goal]``,
    or ``None`` when ``goal`` is unreachable.
    """
    return _dfs_path(build_adjacency(edges), start, goal)


def would_create_cycle(
    edges: Iterable[tuple[NodeId, NodeId]],
    candidate_dependent: NodeId,
    candidate_blocker: NodeId,
) -> bool:
    """
    True iff adding "candidate_dependent depends on candidate_blocker" closes a
    cycle, i.e. the dependent is already a (transitive) blocker of the blocker.
    """
    return find_path(edges, candidate_blocker, candidate_dependent) is not None


def cycle_path(
    edges: Iterable[tuple[NodeId, NodeId]],
    candidate_dependent: NodeId,
    candidate_blocker: NodeId,
) -> Optional[list[NodeId]]:
    """
    The chain a new edge would close, in blocking order starting at the
    candidate dependent: each element blocks the next one, and the last
    (the candidate blocker) would block the first.
    """
    path = find_path(edges, candidate_blocker, candidate_dependent)
    if path is None:
        return None
    return list(reversed(path))


def _walk(adj: dict[NodeId, list[NodeId]], start: NodeId) -> list[tuple[NodeId, int, NodeId]]:
    # Breadth-first so each node is reported once, at its shortest depth,
    # together with the node it was reached from.
    seen = {start}
    out: list[tuple[NodeId, int, NodeId]] = []
    frontier: Sequence[NodeId] = [start]
    depth = 0
    while frontier:
        depth += 1
        nxt_frontier = []
        for node in frontier:
            for nxt in adj.get(node, []):
                if nxt in seen:
                    continue
                seen.add(nxt)
                out.append((nxt, depth, node))
                nxt_frontier.append(nxt)
        frontier = nxt_frontier
    return out


def upstream(
    edges: Iterable[tuple[NodeId, NodeId]], task_id: NodeId
) -> list[tuple[NodeId, int, NodeId]]:
    """All transitive blockers of ``task_id`` as ``(id, depth, reached_from)``."""
    return _walk(build_adjacency(edges), task_id)


def downstream(
    edges: Iterable[tuple[NodeId, NodeId]], task_id: NodeId
) -> list[tuple[NodeId, int, NodeId]]:
    """All transitive dependents of ``task_id`` as ``(id, depth, reached_from)``."""
    return _walk(build_reverse_adjacency(edges), task_id)
