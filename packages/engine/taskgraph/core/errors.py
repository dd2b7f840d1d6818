"""
Error taxonomy for the dependency engine.

Validation failures are expected: they are returned to callers as
``DependencyError`` values so a UI can render a specific message. Only storage
problems travel as exceptions.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Optional

from taskgraph_shared.schemas.common import DEPENDENCY_ERROR_MESSAGES, DependencyErrorCode


@dataclass(frozen=True)
class DependencyError:
    """A rejected dependency; ``path`` is set for circular attempts."""

    code: DependencyErrorCode
    message: str = ""
    path: tuple[uuid.UUID, ...] = field(default_factory=tuple)

    @classmethod
    def of(
        cls,
        code: DependencyErrorCode,
        path: Optional[list[uuid.UUID]] = None,
        message: Optional[str] = None,
    ) -> "DependencyError":
        return cls(
            code=code,
            message=message or DEPENDENCY_ERROR_MESSAGES[code],
            path=tuple(path or ()),
        )


class StorageFailure(Exception):
    """The dependency store could not complete a database operation."""


class DuplicateEdgeError(StorageFailure):
    """The (dependent, blocker) pair is already stored."""

    def __init__(self, dependent_task_id: uuid.UUID, blocking_task_id: uuid.UUID):
        super().__init__(
            f"Dependency {dependent_task_id} -> {blocking_task_id} already exists"
        )
        self.dependent_task_id = dependent_task_id
        self.blocking_task_id = blocking_task_id
