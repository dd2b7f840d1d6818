"""
Cascade cleanup: drop every edge touching a task that is being deleted.

Attached to the task store's deletion hook. The store calls it with the
session that is about to delete the task row, while holding the shared write
lock, so no new edge can be added between the cleanup and the row delete.
Cleanup is best-effort: a failure is logged and never stops the task deletion
itself (the blocking resolver skips any orphan edge left behind).
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskgraph.services import dependency_store

log = structlog.get_logger()


class CascadeCoordinator:
    async def on_task_deleted(self, session: AsyncSession, task_id: uuid.UUID) -> int:
        """Delete all edges of ``task_id``. Returns the count, or 0 on failure."""
        try:
            count = await dependency_store.delete_all_for_task(session, task_id)
        except Exception:
            log.exception("dependency.cascade_failed", task_id=str(task_id))
            return 0

        if count:
            log.info("dependency.cascade_deleted", task_id=str(task_id), count=count)
        return count
