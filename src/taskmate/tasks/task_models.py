# src/taskmate/tasks/task_models.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

# One explicit format for storage and the JSON interchange file.
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def now_ts() -> datetime:
    """Local wall-clock time truncated to the precision we persist."""
    return datetime.now().replace(microsecond=0)


def format_ts(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.strftime(TIMESTAMP_FORMAT)


def parse_ts(raw: str | None) -> datetime | None:
    """Parse a stored timestamp. Raises ValueError on a malformed string."""
    if raw is None:
        return None
    s = str(raw).strip()
    if not s:
        return None
    return datetime.strptime(s, TIMESTAMP_FORMAT)


def clean_tag(tag: str | None) -> str:
    return str(tag or "").strip()


def clean_tags(tags: Iterable[str] | None) -> set[str]:
    return {t for t in (clean_tag(x) for x in (tags or ())) if t}


class TaskStatus(StrEnum):
    """
    Board column of a task.

    Values are the labels the board has always stored, so existing databases
    and export files stay readable.
    """

    TODO = "To-Do"
    IN_PROGRESS = "In-Progress"
    DONE = "Done"

    @classmethod
    def parse(cls, raw: str | None) -> TaskStatus | None:
        """Lenient lookup: case and separators are ignored. None if unknown."""
        if raw is None:
            return None
        if isinstance(raw, cls):
            return raw
        key = str(raw).strip().casefold()
        for sep in ("-", "_", " "):
            key = key.replace(sep, "")
        return _STATUS_KEYS.get(key)

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        return cls.parse(raw) or cls.TODO


_STATUS_KEYS = {
    "todo": TaskStatus.TODO,
    "inprogress": TaskStatus.IN_PROGRESS,
    "done": TaskStatus.DONE,
}

# Display / iteration order of the board columns.
BOARD_COLUMNS: tuple[TaskStatus, ...] = (TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.DONE)


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, raw: str | None) -> TaskPriority | None:
        if raw is None:
            return None
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return None

    @classmethod
    def from_db(cls, raw: str | None) -> TaskPriority:
        return cls.parse(raw) or cls.MEDIUM


@dataclass(slots=True)
class Task:
    """
    A card on the board plus its stopwatch.

    Timer state is encoded by the two timestamps:
    - running:  timer_start set, timer_end None
    - stopped:  timer_start None (timer_end holds the last stop, if any)

    Mutators never fail; input validation is the service's job.
    Every mutator accepts `now` so callers (and tests) control the clock.
    """

    id: str
    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    time_spent: float = 0.0
    timer_start: datetime | None = None
    timer_end: datetime | None = None
    tags: set[str] = field(default_factory=set)
    assigned_to: str | None = None
    created_at: datetime = field(default_factory=now_ts)
    updated_at: datetime = field(default_factory=now_ts)

    @classmethod
    def new(
        cls,
        task_id: str,
        title: str,
        description: str | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        *,
        now: datetime | None = None,
    ) -> Task:
        ts = now or now_ts()
        return cls(
            id=task_id,
            title=title.strip(),
            description=description,
            priority=priority,
            created_at=ts,
            updated_at=ts,
        )

    # ---- timer ----

    @property
    def is_timer_running(self) -> bool:
        return self.timer_start is not None and self.timer_end is None

    def start_timer(self, now: datetime | None = None) -> None:
        ts = now or now_ts()
        self.timer_start = ts
        self.timer_end = None
        self.status = TaskStatus.IN_PROGRESS
        self.updated_at = ts

    def stop_timer(self, now: datetime | None = None) -> float:
        """
        Close the running session and bank whole elapsed minutes.

        Returns the hours added (0.0 when nothing was running).
        """
        if not self.is_timer_running or self.timer_start is None:
            return 0.0

        ts = now or now_ts()
        minutes = max(0, int((ts - self.timer_start).total_seconds() // 60))
        hours = minutes / 60.0

        self.time_spent += hours
        self.timer_end = ts
        self.timer_start = None
        self.updated_at = ts
        return hours

    def pause_timer(self, now: datetime | None = None) -> float:
        # Same as stop: there is no resumable session, status stays as it is.
        return self.stop_timer(now)

    # ---- board / fields ----

    def move_to_status(self, new_status: TaskStatus, now: datetime | None = None) -> None:
        ts = now or now_ts()
        if self.status == TaskStatus.IN_PROGRESS and self.is_timer_running:
            self.pause_timer(ts)
        self.status = new_status
        self.updated_at = ts

    def edit(
        self,
        *,
        title: str | None = None,
        description: str | None = None,
        priority: TaskPriority | None = None,
        now: datetime | None = None,
    ) -> None:
        if title is not None:
            self.title = title.strip()
        if description is not None:
            self.description = description
        if priority is not None:
            self.priority = priority
        self.updated_at = now or now_ts()

    def add_tag(self, tag: str, now: datetime | None = None) -> bool:
        t = clean_tag(tag)
        if not t or t in self.tags:
            return False
        self.tags.add(t)
        self.updated_at = now or now_ts()
        return True

    def remove_tag(self, tag: str, now: datetime | None = None) -> bool:
        t = clean_tag(tag)
        if not t or t not in self.tags:
            return False
        self.tags.discard(t)
        self.updated_at = now or now_ts()
        return True

    def assign(self, user: str | None, now: datetime | None = None) -> None:
        u = (user or "").strip()
        self.assigned_to = u or None
        self.updated_at = now or now_ts()

    # ---- display ----

    @property
    def formatted_time_spent(self) -> str:
        return f"{self.time_spent:.2f}h"

    def sorted_tags(self) -> list[str]:
        return sorted(self.tags)

    def summary(self) -> str:
        running = " [timer running]" if self.is_timer_running else ""
        who = self.assigned_to or "Unassigned"
        return (
            f"{self.id}: {self.title} [{self.status}] ({self.priority}) "
            f"{self.formatted_time_spent} @{who}{running}"
        )
