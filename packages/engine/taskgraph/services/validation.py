"""
Validation engine: decides whether a new dependent -> blocker edge is allowed.

Checks run in a fixed order and stop at the first failure; the cheap local
checks come before the graph-wide cycle search.
"""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taskgraph.core.errors import DependencyError
from taskgraph.services import dependency_store
from taskgraph.services.graph import cycle_path, edge_pairs
from taskgraph.services.tasks import tasks_exist
from taskgraph_shared.schemas.common import MAX_DEPENDENCIES_PER_TASK, DependencyErrorCode


async def validate_new_dependency(
    session: AsyncSession,
    dependent_task_id: uuid.UUID,
    blocking_task_id: uuid.UUID,
    *,
    limit: int = MAX_DEPENDENCIES_PER_TASK,
) -> Optional[DependencyError]:
    """Return the first reason the edge is invalid, or None if it may be added."""
    # 1. Self-reference
    if dependent_task_id == blocking_task_id:
        return DependencyError.of(DependencyErrorCode.SELF_REFERENCE)

    # 2. Both tasks must exist
    if not await tasks_exist(session, dependent_task_id, blocking_task_id):
        return DependencyError.of(DependencyErrorCode.TASK_NOT_FOUND)

    # 3. Duplicate
    if await dependency_store.dependency_exists(session, dependent_task_id, blocking_task_id):
        return DependencyError.of(DependencyErrorCode.DUPLICATE)

    # 4. Per-task limit
    if await dependency_store.count_outgoing(session, dependent_task_id) >= limit:
        return DependencyError.of(
            DependencyErrorCode.LIMIT_EXCEEDED,
            message=f"Maximum of {limit} dependencies per task reached",
        )

    # 5. Cycle
    edges = edge_pairs(await dependency_store.list_live(session))
    path = cycle_path(edges, dependent_task_id, blocking_task_id)
    if path is not None:
        return DependencyError.of(DependencyErrorCode.CIRCULAR, path=path)

    return None
