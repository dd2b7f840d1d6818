"""
Tests for the dependency store against a real SQLite database.

Tests cover:
- Create, lookup and duplicate detection
- Idempotent single delete and two-sided delete_all_for_task
- Per-task listing, and counting that ignores edges to deleted tasks
"""

import uuid

import pytest

from taskgraph.core.database import session_scope
from taskgraph.core.errors import DuplicateEdgeError
from taskgraph.services import dependency_store


@pytest.fixture
def ids():
    return [uuid.uuid4() for _ in range(4)]


async def test_create_and_lookup(session_factory, ids):
    """A created edge can be read back by id and by its task pair."""
    a, b = ids[:2]
    async with session_scope(session_factory) as session:
        dep = await dependency_store.create_dependency(session, a, b, "user-1")

    async with session_scope(session_factory) as session:
        loaded = await dependency_store.get_dependency(session, dep.id)
        assert loaded is not None
        assert loaded.dependent_task_id == a
        assert loaded.blocking_task_id == b
        assert loaded.created_by == "user-1"
        assert loaded.created_at is not None

        assert await dependency_store.dependency_exists(session, a, b)
        assert not await dependency_store.dependency_exists(session, b, a)
        pair = await dependency_store.get_by_tasks(session, a, b)
        assert pair.id == dep.id


async def test_create_duplicate_raises(session_factory, ids):
    """Storing the same pair twice raises and leaves a single row."""
    a, b = ids[:2]
    async with session_scope(session_factory) as session:
        await dependency_store.create_dependency(session, a, b)

    with pytest.raises(DuplicateEdgeError):
        async with session_scope(session_factory) as session:
            await dependency_store.create_dependency(session, a, b)

    async with session_scope(session_factory) as session:
        assert len(await dependency_store.list_all(session)) == 1


async def test_delete_is_idempotent(session_factory, ids):
    """Deleting an unknown or already deleted edge reports False, never raises."""
    a, b = ids[:2]
    async with session_scope(session_factory) as session:
        dep = await dependency_store.create_dependency(session, a, b)

    async with session_scope(session_factory) as session:
        assert await dependency_store.delete_dependency(session, dep.id) is True
    async with session_scope(session_factory) as session:
        assert await dependency_store.delete_dependency(session, dep.id) is False
        assert await dependency_store.delete_dependency(session, uuid.uuid4()) is False
        assert await dependency_store.list_all(session) == []


async def test_delete_all_for_task_removes_both_directions(session_factory, ids):
    """Edges where the task is dependent or blocker all go; others stay."""
    a, b, c, d = ids
    async with session_scope(session_factory) as session:
        await dependency_store.create_dependency(session, a, b)  # a depends on b
        await dependency_store.create_dependency(session, b, c)  # b depends on c
        await dependency_store.create_dependency(session, d, c)  # unrelated to b

    async with session_scope(session_factory) as session:
        assert await dependency_store.delete_all_for_task(session, b) == 2

    async with session_scope(session_factory) as session:
        remaining = await dependency_store.list_all(session)
        assert [(e.dependent_task_id, e.blocking_task_id) for e in remaining] == [(d, c)]
        assert await dependency_store.delete_all_for_task(session, b) == 0


async def test_list_for_task_and_count(session_factory, make_task):
    """list_for_task splits edges by direction; count_outgoing counts depends-on edges."""
    a, b, c = await make_task("A"), await make_task("B"), await make_task("C")
    async with session_scope(session_factory) as session:
        await dependency_store.create_dependency(session, a.id, b.id)
        await dependency_store.create_dependency(session, a.id, c.id)
        await dependency_store.create_dependency(session, b.id, c.id)

    async with session_scope(session_factory) as session:
        blocked_by, blocks = await dependency_store.list_for_task(session, b.id)
        assert [e.blocking_task_id for e in blocked_by] == [c.id]
        assert [e.dependent_task_id for e in blocks] == [a.id]

        assert await dependency_store.count_outgoing(session, a.id) == 2
        assert await dependency_store.count_outgoing(session, b.id) == 1
        assert await dependency_store.count_outgoing(session, c.id) == 0


async def test_edges_to_missing_tasks_are_not_counted_or_live(session_factory, make_task):
    """An edge whose blocker row is gone is listed, but neither counted nor live."""
    a, b = await make_task("A"), await make_task("B")
    ghost = uuid.uuid4()
    async with session_scope(session_factory) as session:
        await dependency_store.create_dependency(session, a.id, b.id)
        await dependency_store.create_dependency(session, a.id, ghost)

    async with session_scope(session_factory) as session:
        assert len(await dependency_store.list_all(session)) == 2
        live = await dependency_store.list_live(session)
        assert [(e.dependent_task_id, e.blocking_task_id) for e in live] == [(a.id, b.id)]
        assert await dependency_store.count_outgoing(session, a.id) == 1
