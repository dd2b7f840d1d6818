"""
Blocking status resolution.

Blocking state is never stored. Every function here derives it from the edges
and task statuses it is handed, so a reopened blocker re-blocks its dependents
on the very next call. Edges pointing at a task that no longer exists are
skipped rather than treated as errors.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from typing import Optional

import structlog

from taskgraph.models.dependency import TaskDependency
from taskgraph.models.task import Task
from taskgraph.services.graph import downstream, edge_pairs, upstream
from taskgraph_shared.schemas.common import DependencyStatus, TaskStatus
from taskgraph_shared.schemas.tasks import (
    BlockedTaskSummary,
    DependencyChainEntry,
    DependencyInfo,
    TaskRead,
)

log = structlog.get_logger()


def to_task_read(task: Task) -> TaskRead:
    return TaskRead(id=task.id, title=task.title, status=TaskStatus(task.status))


def _index(tasks: Iterable[Task]) -> dict[uuid.UUID, Task]:
    return {t.id: t for t in tasks}


def _is_open(task: Task) -> bool:
    return task.status != TaskStatus.COMPLETED.value


def resolve(
    task_id: uuid.UUID,
    tasks: Iterable[Task],
    edges: Iterable[TaskDependency],
) -> DependencyInfo:
    """Derive the full dependency info of one task from live data."""
    by_id = _index(tasks)

    blocked_by_ids: list[uuid.UUID] = []
    blocked_by: list[TaskRead] = []
    blocks_ids: list[uuid.UUID] = []
    blocks: list[TaskRead] = []

    for edge in edges:
        if edge.dependent_task_id == task_id:
            blocker = by_id.get(edge.blocking_task_id)
            if blocker is None:
                log.debug(
                    "dependency.orphan_skipped",
                    dependency_id=str(edge.id),
                    missing_task_id=str(edge.blocking_task_id),
                )
                continue
            blocked_by_ids.append(blocker.id)
            if _is_open(blocker):
                blocked_by.append(to_task_read(blocker))
        elif edge.blocking_task_id == task_id:
            dependent = by_id.get(edge.dependent_task_id)
            if dependent is None:
                log.debug(
                    "dependency.orphan_skipped",
                    dependency_id=str(edge.id),
                    missing_task_id=str(edge.dependent_task_id),
                )
                continue
            blocks_ids.append(dependent.id)
            blocks.append(to_task_read(dependent))

    is_blocked = bool(blocked_by)
    status: Optional[DependencyStatus] = None
    if is_blocked:
        status = DependencyStatus.BLOCKED
    elif blocks:
        status = DependencyStatus.BLOCKING
    elif blocked_by_ids:
        status = DependencyStatus.READY

    return DependencyInfo(
        is_blocked=is_blocked,
        blocked_by=blocked_by,
        blocked_by_ids=blocked_by_ids,
        blocks=blocks,
        blocks_ids=blocks_ids,
        dependency_status=status,
        dependency_count=len(blocked_by_ids),
    )


def build_dependency_map(
    tasks: Sequence[Task], edges: Sequence[TaskDependency]
) -> dict[uuid.UUID, DependencyInfo]:
    """task id -> DependencyInfo for every task."""
    return {t.id: resolve(t.id, tasks, edges) for t in tasks}


def blocked_task_ids(
    task_ids: Iterable[uuid.UUID],
    tasks: Iterable[Task],
    edges: Iterable[TaskDependency],
) -> set[uuid.UUID]:
    """The subset of ``task_ids`` that has at least one open blocker."""
    wanted = set(task_ids)
    by_id = _index(tasks)
    blocked: set[uuid.UUID] = set()
    for edge in edges:
        if edge.dependent_task_id not in wanted:
            continue
        blocker = by_id.get(edge.blocking_task_id)
        if blocker is not None and _is_open(blocker):
            blocked.add(edge.dependent_task_id)
    return blocked


def blocked_tasks_summary(
    task_ids: Iterable[uuid.UUID],
    tasks: Iterable[Task],
    edges: Iterable[TaskDependency],
) -> list[BlockedTaskSummary]:
    """Per blocked task: its title and how many open blockers hold it."""
    wanted = set(task_ids)
    by_id = _index(tasks)
    open_blockers: dict[uuid.UUID, int] = {}
    for edge in edges:
        if edge.dependent_task_id not in wanted:
            continue
        blocker = by_id.get(edge.blocking_task_id)
        if blocker is not None and _is_open(blocker):
            open_blockers[edge.dependent_task_id] = open_blockers.get(edge.dependent_task_id, 0) + 1

    summary = []
    for tid, count in open_blockers.items():
        task = by_id.get(tid)
        if task is None:
            continue
        summary.append(BlockedTaskSummary(task_id=tid, title=task.title, blocked_by_count=count))
    return summary


def upstream_chain(
    task_id: uuid.UUID, tasks: Sequence[Task], edges: Sequence[TaskDependency]
) -> list[DependencyChainEntry]:
    """Every task that transitively blocks ``task_id``, nearest first."""
    by_id = _index(tasks)
    edge_ids = {(d.dependent_task_id, d.blocking_task_id): d.id for d in edges}
    chain = []
    for tid, depth, via in upstream(edge_pairs(edges), task_id):
        task = by_id.get(tid)
        if task is None:
            continue
        chain.append(
            DependencyChainEntry(task=to_task_read(task), depth=depth, dependency_id=edge_ids[(via, tid)])
        )
    return chain


def downstream_chain(
    task_id: uuid.UUID, tasks: Sequence[Task], edges: Sequence[TaskDependency]
) -> list[DependencyChainEntry]:
    """Every task transitively blocked by ``task_id``, nearest first."""
    by_id = _index(tasks)
    edge_ids = {(d.dependent_task_id, d.blocking_task_id): d.id for d in edges}
    chain = []
    for tid, depth, via in downstream(edge_pairs(edges), task_id):
        task = by_id.get(tid)
        if task is None:
            continue
        chain.append(
            DependencyChainEntry(task=to_task_read(task), depth=depth, dependency_id=edge_ids[(tid, via)])
        )
    return chain


def format_cycle_path(path: Sequence[uuid.UUID], tasks: Iterable[Task]) -> str:
    """Render a cycle as "A → B → C → A" using task titles where known."""
    by_id = _index(tasks)
    names = [by_id[tid].title if tid in by_id else str(tid) for tid in path]
    if names:
        names.append(names[0])
    return " → ".join(names)
