"""Custom exceptions for the bake task runner."""

from __future__ import annotations


class BakeError(RuntimeError):
    """Base class for every failure the runner reports."""

    exit_code = 1


class UsageError(BakeError):
    """Raised for bad command line input or an unusable task file."""


class MissingValue(UsageError):
    """Raised when a flag that requires a value did not receive one."""


class NotFound(UsageError):
    """Raised when the task file cannot be located."""


class NotAFile(UsageError):
    """Raised when the task file path exists but is not a regular file."""


class ConfigurationError(UsageError):
    """Raised when a configuration option or settings file is invalid."""


class TaskNotFound(BakeError):
    """Raised when the requested task is not declared in the task file."""

    def __init__(self, task_name: str) -> None:
        super().__init__(f"Task '{task_name}' not found")
        self.task_name = task_name


class TaskFailure(BakeError):
    """Raised when a task body signals failure."""

    def __init__(self, code: int, message: str = "") -> None:
        super().__init__(message or f"Task failed with exit code {code}")
        self.code = code

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        return self.code


class TaskAborted(TaskFailure):
    """Raised by ``bake.die`` to stop the running task."""

    def __init__(self, message: str = "") -> None:
        super().__init__(1, message)
        self.reason = message


class InternalError(BakeError):
    """Raised when an invariant inside the runner itself is violated."""
