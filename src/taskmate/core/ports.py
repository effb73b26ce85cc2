# src/taskmate/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the services.

Services depend on Protocols instead of concrete implementations.
This keeps the storage swappable and makes testing easier.
"""

import sqlite3
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Callable, Protocol

from ..tasks.task_models import Task, TaskPriority, TaskStatus

Clock = Callable[[], datetime]
# Returns local wall-clock time; services pass it down to Task mutators.


class ConnectionProvider(Protocol):
    """Yields a scoped storage handle per operation (closed on exit)."""

    def connection(self) -> AbstractContextManager[sqlite3.Connection]: ...


class IdAllocator(Protocol):
    def next_id(self) -> str: ...


class TaskRepo(Protocol):
    """
    Durable task storage.

    Implementations never raise storage errors: writes report False,
    lookups report None, queries report [].
    """

    def insert(self, task: Task) -> bool: ...
    def update(self, task: Task) -> bool: ...
    def delete(self, task_id: str) -> bool: ...

    def exists(self, task_id: str) -> bool: ...
    def count_tasks(self) -> int | None: ...

    def get_all(self) -> list[Task]: ...
    def get_by_id(self, task_id: str) -> Task | None: ...
    def get_by_status(self, status: TaskStatus) -> list[Task]: ...

    def search(self, term: str) -> list[Task]: ...
    def filter_by_priority(self, priority: TaskPriority) -> list[Task]: ...
    def filter_by_tag(self, tag: str) -> list[Task]: ...
    def filter_by_assigned_user(self, user: str) -> list[Task]: ...
