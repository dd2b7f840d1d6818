from enum import Enum


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class DependencyStatus(str, Enum):
    BLOCKED = "blocked"
    BLOCKING = "blocking"
    READY = "ready"  # has blockers, all completed


class DependencyErrorCode(str, Enum):
    SELF_REFERENCE = "self_reference"
    DUPLICATE = "duplicate"
    LIMIT_EXCEEDED = "limit_exceeded"
    CIRCULAR = "circular"
    TASK_NOT_FOUND = "task_not_found"


DEPENDENCY_ERROR_MESSAGES: dict[DependencyErrorCode, str] = {
    DependencyErrorCode.SELF_REFERENCE: "A task cannot depend on itself",
    DependencyErrorCode.DUPLICATE: "This dependency already exists",
    DependencyErrorCode.LIMIT_EXCEEDED: "Maximum number of dependencies for this task reached",
    DependencyErrorCode.CIRCULAR: "This would create a circular dependency",
    DependencyErrorCode.TASK_NOT_FOUND: "One or both tasks were not found",
}

MAX_DEPENDENCIES_PER_TASK = 10
