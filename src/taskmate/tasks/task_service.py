# src/taskmate/tasks/task_service.py

"""
Board-level operations.

The service is the only place that:
- validates user input (blank titles, unknown status/priority, unknown ids),
- enforces the single-running-timer rule across the whole board,
- turns storage failures into PersistenceError results.

Flow for every mutation: validate -> load Task -> mutate in memory ->
repo writes header + tags atomically -> OpResult back to the caller.
Nothing here raises into the console layer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..core.errors import (
    NotFoundError,
    OpResult,
    PersistenceError,
    TaskBoardError,
    ValidationError,
)
from ..core.ports import Clock, IdAllocator, TaskRepo
from .task_models import BOARD_COLUMNS, Task, TaskPriority, TaskStatus, clean_tag, now_ts

logger = logging.getLogger(__name__)

_STATUS_HELP = "Use: To-Do, In-Progress, or Done"
_PRIORITY_HELP = "Use: low, medium, or high"


def parse_status(raw: str | None) -> TaskStatus:
    status = TaskStatus.parse(raw)
    if status is None:
        raise ValidationError(f"Invalid status {raw!r}. {_STATUS_HELP}")
    return status


def parse_priority(raw: str | None) -> TaskPriority:
    priority = TaskPriority.parse(raw)
    if priority is None:
        raise ValidationError(f"Invalid priority {raw!r}. {_PRIORITY_HELP}")
    return priority


def require_title(raw: str | None) -> str:
    title = (raw or "").strip()
    if not title:
        raise ValidationError("Task title is required")
    return title


class TaskService:
    def __init__(self, repo: TaskRepo, ids: IdAllocator, *, clock: Clock | None = None) -> None:
        self._repo = repo
        self._ids = ids
        self._clock = clock or now_ts

    @property
    def repo(self) -> TaskRepo:
        return self._repo

    def now(self) -> datetime:
        return self._clock()

    def next_id(self) -> str:
        return self._ids.next_id()

    # ---- helpers ----

    @staticmethod
    def _fail(error: TaskBoardError) -> OpResult:
        logger.debug("Rejected: %s: %s", type(error).__name__, error)
        return OpResult.failure(error)

    def _load(self, task_id: str | None) -> Task:
        task = self._repo.get_by_id(task_id) if task_id else None
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        return task

    def _save(self, task: Task, action: str) -> OpResult:
        if not self._repo.update(task):
            return self._fail(PersistenceError(f"Could not save task {task.id} ({action})"))
        logger.debug("Task %s: %s", task.id, action)
        return OpResult.success(task)

    def _mutate(self, task_id: str, action: str, fn: Callable[[Task, datetime], bool | None]) -> OpResult:
        """
        Load, apply `fn`, persist.

        `fn` returns False to signal "nothing changed": the result is then a
        success without a write.
        """
        try:
            task = self._load(task_id)
        except TaskBoardError as e:
            return self._fail(e)
        if fn(task, self._clock()) is False:
            return OpResult.success(task)
        return self._save(task, action)

    # ---- create / edit / delete ----

    def add_task(self, title: str, description: str | None = "", priority: str | None = None) -> OpResult:
        try:
            clean_title = require_title(title)
            prio = parse_priority(priority) if priority is not None else TaskPriority.MEDIUM
        except ValidationError as e:
            return self._fail(e)

        task = Task.new(self._ids.next_id(), clean_title, description, prio, now=self._clock())
        if not self._repo.insert(task):
            return self._fail(PersistenceError(f"Could not store new task {task.id}"))

        logger.info("Task created id=%s priority=%s", task.id, task.priority)
        return OpResult.success(task)

    def update_task(
        self,
        task_id: str,
        title: str | None = None,
        description: str | None = None,
        priority: str | None = None,
    ) -> OpResult:
        """Overwrite only the provided fields; None leaves a field untouched."""
        try:
            new_title = require_title(title) if title is not None else None
            new_priority = parse_priority(priority) if priority is not None else None
        except ValidationError as e:
            return self._fail(e)

        def apply(task: Task, now: datetime) -> None:
            task.edit(title=new_title, description=description, priority=new_priority, now=now)

        return self._mutate(task_id, "edit", apply)

    def delete_task(self, task_id: str) -> OpResult:
        try:
            task = self._load(task_id)
        except TaskBoardError as e:
            return self._fail(e)
        if not self._repo.delete(task.id):
            return self._fail(PersistenceError(f"Could not delete task {task.id}"))
        logger.info("Task deleted id=%s", task.id)
        return OpResult.success(task)

    # ---- board moves ----

    def move_task(self, task_id: str, status: str | TaskStatus) -> OpResult:
        try:
            target = parse_status(status)
        except ValidationError as e:
            return self._fail(e)

        def apply(task: Task, now: datetime) -> None:
            task.move_to_status(target, now)

        return self._mutate(task_id, f"move to {target}", apply)

    # ---- timer ----

    def running_task(self) -> Task | None:
        for task in self._repo.get_all():
            if task.is_timer_running:
                return task
        return None

    def _pause_others(self, keep_id: str, now: datetime) -> PersistenceError | None:
        for other in self._repo.get_all():
            if other.id == keep_id or not other.is_timer_running:
                continue
            other.pause_timer(now)
            if not self._repo.update(other):
                return PersistenceError(f"Could not pause running timer on task {other.id}")
            logger.info("Paused timer on %s before starting another task", other.id)
        return None

    def start_timer(self, task_id: str) -> OpResult:
        """
        Start the stopwatch on `task_id`.

        At most one timer runs on the board: any other running timer is paused
        (and that pause persisted) before this one starts. Starting a task that
        is already running keeps its session, but still stops any stray timer
        left running elsewhere.
        """
        try:
            task = self._load(task_id)
        except TaskBoardError as e:
            return self._fail(e)

        now = self._clock()
        error = self._pause_others(task.id, now)
        if error is not None:
            return self._fail(error)

        if task.is_timer_running:
            return OpResult.success(task)

        task.start_timer(now)
        return self._save(task, "start timer")

    def stop_timer(self, task_id: str) -> OpResult:
        def apply(task: Task, now: datetime) -> bool:
            if not task.is_timer_running:
                return False
            task.stop_timer(now)
            return True

        return self._mutate(task_id, "stop timer", apply)

    def pause_timer(self, task_id: str) -> OpResult:
        def apply(task: Task, now: datetime) -> bool:
            if not task.is_timer_running:
                return False
            task.pause_timer(now)
            return True

        return self._mutate(task_id, "pause timer", apply)

    # ---- tags / assignment ----

    def add_tag(self, task_id: str, tag: str) -> OpResult:
        if not clean_tag(tag):
            return self._fail(ValidationError("Tag must not be empty"))
        return self._mutate(task_id, f"tag {tag!r}", lambda task, now: task.add_tag(tag, now))

    def remove_tag(self, task_id: str, tag: str) -> OpResult:
        if not clean_tag(tag):
            return self._fail(ValidationError("Tag must not be empty"))
        return self._mutate(task_id, f"untag {tag!r}", lambda task, now: task.remove_tag(tag, now))

    def assign_task(self, task_id: str, user: str | None) -> OpResult:
        def apply(task: Task, now: datetime) -> None:
            task.assign(user, now)

        return self._mutate(task_id, "assign", apply)

    # ---- queries ----

    def get_all_tasks(self) -> list[Task]:
        return self._repo.get_all()

    def get_task(self, task_id: str | None) -> Task | None:
        if not task_id:
            return None
        return self._repo.get_by_id(task_id)

    def get_tasks_by_status(self, status: str | TaskStatus) -> list[Task]:
        parsed = TaskStatus.parse(status)
        if parsed is None:
            logger.warning("Invalid status filter %r", status)
            return []
        return self._repo.get_by_status(parsed)

    def board(self) -> dict[TaskStatus, list[Task]]:
        """All tasks grouped into the three columns (one read)."""
        columns: dict[TaskStatus, list[Task]] = {s: [] for s in BOARD_COLUMNS}
        for task in self._repo.get_all():
            columns[task.status].append(task)
        return columns

    def search_tasks(self, term: str) -> list[Task]:
        return self._repo.search(term or "")

    def filter_by_priority(self, priority: str | TaskPriority) -> list[Task]:
        parsed = TaskPriority.parse(priority)
        if parsed is None:
            logger.warning("Invalid priority filter %r", priority)
            return []
        return self._repo.filter_by_priority(parsed)

    def filter_by_tag(self, tag: str) -> list[Task]:
        if not clean_tag(tag):
            return []
        return self._repo.filter_by_tag(tag)

    def filter_by_assigned_user(self, user: str) -> list[Task]:
        u = (user or "").strip()
        if not u:
            return []
        return self._repo.filter_by_assigned_user(u)
