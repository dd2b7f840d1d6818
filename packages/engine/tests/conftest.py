"""
Shared fixtures: a fresh SQLite database per test, wired task store and facade.
"""

import pytest
import structlog

from taskgraph.core.config import Settings
from taskgraph.core.database import create_engine, create_session_factory, init_db
from taskgraph.services.facade import DependencyFacade
from taskgraph.services.tasks import TaskStore
from taskgraph_shared.schemas.common import TaskStatus
from taskgraph_shared.schemas.tasks import TaskCreate


@pytest.fixture(autouse=True)
def reset_logging():
    # CLI runs bind structlog to the captured stderr of that test.
    yield
    structlog.reset_defaults()


@pytest.fixture
def settings(tmp_path):
    return Settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'taskgraph.db'}")


@pytest.fixture
async def engine(settings):
    eng = create_engine(settings)
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def task_store(session_factory):
    return TaskStore(session_factory)


@pytest.fixture
def facade(session_factory, task_store):
    f = DependencyFacade(session_factory)
    f.attach(task_store)
    return f


@pytest.fixture
def make_task(task_store):
    async def _make(title: str, status: TaskStatus = TaskStatus.PENDING):
        return await task_store.create_task(TaskCreate(title=title, status=status))

    return _make
