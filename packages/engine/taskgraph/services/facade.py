"""
Dependency facade: the surface a UI (or the CLI) talks to.

Delegates to the store, the validation engine and the blocking resolver. All
edge mutations share one write lock, and an add runs validation and insert in
a single transaction inside that lock, so no other writer can slip in between
the check and the commit.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Dict, List, Sequence, Union

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskgraph.core.database import session_scope
from taskgraph.core.errors import DependencyError, DuplicateEdgeError
from taskgraph.services import blocking, dependency_store
from taskgraph.services.cascade import CascadeCoordinator
from taskgraph.services.graph import edge_pairs, would_create_cycle
from taskgraph.services.tasks import TaskStore, list_tasks
from taskgraph.services.validation import validate_new_dependency
from taskgraph_shared.schemas.common import (
    MAX_DEPENDENCIES_PER_TASK,
    DependencyErrorCode,
)
from taskgraph_shared.schemas.tasks import (
    BlockedTaskSummary,
    DependencyChainEntry,
    DependencyCheck,
    DependencyInfo,
    DependencyRead,
    TaskRead,
)

log = structlog.get_logger()


class DependencyFacade:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        max_dependencies: int = MAX_DEPENDENCIES_PER_TASK,
    ):
        self._session_factory = session_factory
        self._max_dependencies = max_dependencies
        self._write_lock = asyncio.Lock()
        self.cascade = CascadeCoordinator()

    def attach(self, task_store: TaskStore) -> None:
        """Hook cascade cleanup into the task store's deletion path.

        The store takes over the facade's write lock, so a deletion and its
        edge cleanup can never interleave with an add.
        """
        task_store.share_write_lock(self._write_lock)
        task_store.add_deletion_hook(self.cascade.on_task_deleted)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add_dependency(
        self,
        dependent_task_id: uuid.UUID,
        blocking_task_id: uuid.UUID,
        created_by: str | None,
    ) -> Union[DependencyRead, DependencyError]:
        """Create "dependent depends on blocker", or return why it is rejected."""
        async with self._write_lock:
            async with session_scope(self._session_factory) as session:
                error = await validate_new_dependency(
                    session,
                    dependent_task_id,
                    blocking_task_id,
                    limit=self._max_dependencies,
                )
                if error is None:
                    try:
                        dep = await dependency_store.create_dependency(
                            session, dependent_task_id, blocking_task_id, created_by
                        )
                    except DuplicateEdgeError:
                        await session.rollback()
                        error = DependencyError.of(DependencyErrorCode.DUPLICATE)

        if error is not None:
            log.info(
                "dependency.rejected",
                dependent_task_id=str(dependent_task_id),
                blocking_task_id=str(blocking_task_id),
                reason=error.code.value,
            )
            return error

        log.info(
            "dependency.added",
            dependency_id=str(dep.id),
            dependent_task_id=str(dependent_task_id),
            blocking_task_id=str(blocking_task_id),
            created_by=created_by,
        )
        return DependencyRead.model_validate(dep)

    async def remove_dependency(self, dependency_id: uuid.UUID) -> None:
        """Remove one edge; an unknown id is a no-op."""
        async with self._write_lock:
            async with session_scope(self._session_factory) as session:
                removed = await dependency_store.delete_dependency(session, dependency_id)

        if removed:
            log.info("dependency.removed", dependency_id=str(dependency_id))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_status(self, task_id: uuid.UUID) -> DependencyInfo:
        async with session_scope(self._session_factory) as session:
            tasks = await list_tasks(session)
            edges = await dependency_store.list_all(session)
        return blocking.resolve(task_id, tasks, edges)

    async def get_dependency_info(self, task_id: uuid.UUID) -> DependencyInfo:
        return await self.get_status(task_id)

    async def get_dependency_count(self, task_id: uuid.UUID) -> int:
        async with session_scope(self._session_factory) as session:
            return await dependency_store.count_outgoing(session, task_id)

    async def list_dependencies(self) -> List[DependencyRead]:
        async with session_scope(self._session_factory) as session:
            edges = await dependency_store.list_all(session)
        return [DependencyRead.model_validate(e) for e in edges]

    async def can_add_dependency(
        self, dependent_task_id: uuid.UUID, blocking_task_id: uuid.UUID
    ) -> DependencyCheck:
        """Non-mutating pre-check, e.g. to disable invalid picker options."""
        async with session_scope(self._session_factory) as session:
            error = await validate_new_dependency(
                session,
                dependent_task_id,
                blocking_task_id,
                limit=self._max_dependencies,
            )
            if error is None:
                return DependencyCheck(valid=True)
            tasks = await list_tasks(session) if error.path else []

        by_id = {t.id: t for t in tasks}
        cycle = [
            blocking.to_task_read(by_id[tid]) for tid in error.path if tid in by_id
        ]
        return DependencyCheck(
            valid=False,
            reason=error.code,
            message=error.message,
            cycle_path=cycle,
        )

    async def get_available_tasks(self, task_id: uuid.UUID) -> List[TaskRead]:
        """Tasks that could become blockers of ``task_id`` without breaking a rule."""
        async with session_scope(self._session_factory) as session:
            tasks = await list_tasks(session)
            edges = await dependency_store.list_live(session)

        pairs = edge_pairs(edges)
        existing = {b for d, b in pairs if d == task_id}
        return [
            blocking.to_task_read(t)
            for t in tasks
            if t.id != task_id
            and t.id not in existing
            and not would_create_cycle(pairs, task_id, t.id)
        ]

    async def get_dependency_map(self) -> Dict[uuid.UUID, DependencyInfo]:
        """DependencyInfo for every task, from one snapshot of tasks and edges."""
        async with session_scope(self._session_factory) as session:
            tasks = await list_tasks(session)
            edges = await dependency_store.list_all(session)
        return blocking.build_dependency_map(tasks, edges)

    async def get_upstream_chain(self, task_id: uuid.UUID) -> List[DependencyChainEntry]:
        async with session_scope(self._session_factory) as session:
            tasks = await list_tasks(session)
            edges = await dependency_store.list_all(session)
        return blocking.upstream_chain(task_id, tasks, edges)

    async def get_downstream_chain(self, task_id: uuid.UUID) -> List[DependencyChainEntry]:
        async with session_scope(self._session_factory) as session:
            tasks = await list_tasks(session)
            edges = await dependency_store.list_all(session)
        return blocking.downstream_chain(task_id, tasks, edges)

    async def get_blocked_tasks(self, task_ids: Sequence[uuid.UUID]) -> List[BlockedTaskSummary]:
        async with session_scope(self._session_factory) as session:
            tasks = await list_tasks(session)
            edges = await dependency_store.list_all(session)
        return blocking.blocked_tasks_summary(task_ids, tasks, edges)

    async def format_cycle_path(self, path: Sequence[uuid.UUID]) -> str:
        async with session_scope(self._session_factory) as session:
            tasks = await list_tasks(session)
        return blocking.format_cycle_path(path, tasks)
