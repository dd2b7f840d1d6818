"""
Dependency store: persisted edge records with indexed CRUD.

Every function works inside the caller's session; the caller owns the
transaction boundary (commit / rollback).
"""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import delete, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
from sqlmodel import select

from taskgraph.core.errors import DuplicateEdgeError, StorageFailure
from taskgraph.models.dependency import TaskDependency
from taskgraph.models.task import Task


async def get_dependency(
    session: AsyncSession, dependency_id: uuid.UUID
) -> Optional[TaskDependency]:
    try:
        return await session.get(TaskDependency, dependency_id)
    except SQLAlchemyError as exc:
        raise StorageFailure(f"Failed to load dependency {dependency_id}") from exc


async def get_by_tasks(
    session: AsyncSession, dependent_task_id: uuid.UUID, blocking_task_id: uuid.UUID
) -> Optional[TaskDependency]:
    try:
        result = await session.execute(
            select(TaskDependency).where(
                TaskDependency.dependent_task_id == dependent_task_id,
                TaskDependency.blocking_task_id == blocking_task_id,
            )
        )
        return result.scalars().first()
    except SQLAlchemyError as exc:
        raise StorageFailure("Failed to look up dependency pair") from exc


async def dependency_exists(
    session: AsyncSession, dependent_task_id: uuid.UUID, blocking_task_id: uuid.UUID
) -> bool:
    return await get_by_tasks(session, dependent_task_id, blocking_task_id) is not None


async def create_dependency(
    session: AsyncSession,
    dependent_task_id: uuid.UUID,
    blocking_task_id: uuid.UUID,
    created_by: Optional[str] = None,
) -> TaskDependency:
    """Insert one edge. Raises DuplicateEdgeError if the pair is already stored."""
    if await dependency_exists(session, dependent_task_id, blocking_task_id):
        raise DuplicateEdgeError(dependent_task_id, blocking_task_id)

    dep = TaskDependency(
        dependent_task_id=dependent_task_id,
        blocking_task_id=blocking_task_id,
        created_by=created_by,
    )
    session.add(dep)
    try:
        await session.flush()
    except IntegrityError as exc:
        # Unique pair index fired after the pre-check.
        raise DuplicateEdgeError(dependent_task_id, blocking_task_id) from exc
    except SQLAlchemyError as exc:
        raise StorageFailure("Failed to create dependency") from exc
    return dep


async def delete_dependency(session: AsyncSession, dependency_id: uuid.UUID) -> bool:
    """Delete one edge. Returns False (not an error) when the id is unknown."""
    try:
        result = await session.execute(
            delete(TaskDependency).where(TaskDependency.id == dependency_id)
        )
    except SQLAlchemyError as exc:
        raise StorageFailure(f"Failed to delete dependency {dependency_id}") from exc
    return result.rowcount > 0


async def delete_all_for_task(session: AsyncSession, task_id: uuid.UUID) -> int:
    """Delete every edge where the task is either endpoint; returns the count."""
    try:
        result = await session.execute(
            delete(TaskDependency).where(
                or_(
                    TaskDependency.dependent_task_id == task_id,
                    TaskDependency.blocking_task_id == task_id,
                )
            )
        )
    except SQLAlchemyError as exc:
        raise StorageFailure(f"Failed to delete dependencies of task {task_id}") from exc
    return int(result.rowcount or 0)


async def list_all(session: AsyncSession) -> list[TaskDependency]:
    try:
        result = await session.execute(
            select(TaskDependency).order_by(TaskDependency.created_at)
        )
        return list(result.scalars().all())
    except SQLAlchemyError as exc:
        raise StorageFailure("Failed to list dependencies") from exc


async def list_live(session: AsyncSession) -> list[TaskDependency]:
    """Edges whose two endpoints both still exist; orphans are left out."""
    dependent = aliased(Task)
    blocker = aliased(Task)
    try:
        result = await session.execute(
            select(TaskDependency)
            .join(dependent, dependent.id == TaskDependency.dependent_task_id)
            .join(blocker, blocker.id == TaskDependency.blocking_task_id)
            .order_by(TaskDependency.created_at)
        )
        return list(result.scalars().all())
    except SQLAlchemyError as exc:
        raise StorageFailure("Failed to list dependencies") from exc


async def list_for_task(
    session: AsyncSession, task_id: uuid.UUID
) -> tuple[list[TaskDependency], list[TaskDependency]]:
    """
    Edges touching one task as ``(blocked_by, blocks)``:
    - blocked_by: edges where the task is the dependent
    - blocks: edges where the task is the blocker
    """
    try:
        blocked_by = await session.execute(
            select(TaskDependency)
            .where(TaskDependency.dependent_task_id == task_id)
            .order_by(TaskDependency.created_at)
        )
        blocks = await session.execute(
            select(TaskDependency)
            .where(TaskDependency.blocking_task_id == task_id)
            .order_by(TaskDependency.created_at)
        )
        return list(blocked_by.scalars().all()), list(blocks.scalars().all())
    except SQLAlchemyError as exc:
        raise StorageFailure(f"Failed to list dependencies of task {task_id}") from exc


async def count_outgoing(session: AsyncSession, task_id: uuid.UUID) -> int:
    """Number of "depends on" edges held by the task whose blocker still exists."""
    try:
        result = await session.execute(
            select(func.count())
            .select_from(TaskDependency)
            .join(Task, Task.id == TaskDependency.blocking_task_id)
            .where(TaskDependency.dependent_task_id == task_id)
        )
        return int(result.scalar_one())
    except SQLAlchemyError as exc:
        raise StorageFailure(f"Failed to count dependencies of task {task_id}") from exc
