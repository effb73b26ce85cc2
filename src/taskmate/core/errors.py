# src/taskmate/core/errors.py

"""
Error taxonomy shared by the service layer and its callers.

Services do not raise these into the console layer. They are carried inside
an OpResult so the caller can branch on the error type and print its message.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..tasks.task_models import Task


class TaskBoardError(Exception):
    """Base class for board errors."""


class ValidationError(TaskBoardError):
    """Blank title, unknown status/priority, bad argument."""


class NotFoundError(TaskBoardError):
    """Operation referenced an unknown task id."""


class PersistenceError(TaskBoardError):
    """Storage failure (the transaction was rolled back)."""


class TaskImportError(TaskBoardError):
    """Bulk file is missing, unreadable or malformed."""


@dataclass(slots=True)
class OpResult:
    ok: bool
    task: Task | None = None
    error: TaskBoardError | None = None

    @classmethod
    def success(cls, task: Task | None = None) -> OpResult:
        return cls(ok=True, task=task)

    @classmethod
    def failure(cls, error: TaskBoardError) -> OpResult:
        return cls(ok=False, error=error)

    @property
    def message(self) -> str:
        return str(self.error) if self.error is not None else ""

    def __bool__(self) -> bool:
        return self.ok
