# src/taskmate/tasks/task_transfer.py

"""
JSON import/export of the whole board.

File shape: a JSON array of task objects

    {"id": "T1", "title": "...", "description": "...", "status": "To-Do",
     "priority": "medium", "timeSpent": 1.5, "startTime": null,
     "endTime": "2024-05-01 10:30:00", "tags": ["api"], "assignedTo": null,
     "createdAt": "2024-05-01 09:00:00", "updatedAt": "2024-05-01 10:30:00"}

All timestamps use TIMESTAMP_FORMAT. Import is per record: a bad record is
skipped and counted, it never aborts the batch.
"""

from __future__ import annotations

import json
import math
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from ..core.errors import PersistenceError, TaskBoardError, TaskImportError, ValidationError
from .task_models import TIMESTAMP_FORMAT, Task, TaskPriority, TaskStatus, clean_tags, format_ts, parse_ts
from .task_service import TaskService

logger = logging.getLogger(__name__)

EXPORT_PREFIX = "taskmate_export_"


@dataclass(slots=True)
class ExportResult:
    ok: bool
    path: Path | None = None
    count: int = 0
    error: TaskBoardError | None = None


@dataclass(slots=True)
class ImportReport:
    imported: int = 0
    skipped: int = 0
    messages: list[str] = field(default_factory=list)
    error: TaskImportError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def skip(self, message: str) -> None:
        self.skipped += 1
        self.messages.append(message)


def task_to_dict(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "priority": task.priority.value,
        "timeSpent": round(float(task.time_spent), 6),
        "startTime": format_ts(task.timer_start),
        "endTime": format_ts(task.timer_end),
        "tags": task.sorted_tags(),
        "assignedTo": task.assigned_to,
        "createdAt": format_ts(task.created_at),
        "updatedAt": format_ts(task.updated_at),
    }


def _ts_field(record: dict[str, Any], key: str) -> datetime | None:
    raw = record.get(key)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ValidationError(f"{key} must be a string in {TIMESTAMP_FORMAT!r} format")
    try:
        return parse_ts(raw)
    except ValueError as e:
        raise ValidationError(f"{key} {raw!r} does not match {TIMESTAMP_FORMAT!r}") from e


def task_from_dict(record: dict[str, Any], *, task_id: str, now: datetime) -> Task:
    """
    Build a Task from one interchange record.

    Missing status/priority/timestamps get defaults; present-but-invalid
    values raise ValidationError.
    """
    title = str(record.get("title") or "").strip()
    if not title:
        raise ValidationError("missing title")

    raw_status = record.get("status")
    status = TaskStatus.parse(raw_status) if raw_status is not None else TaskStatus.TODO
    if status is None:
        raise ValidationError(f"invalid status {raw_status!r}")

    raw_priority = record.get("priority")
    priority = TaskPriority.parse(raw_priority) if raw_priority is not None else TaskPriority.MEDIUM
    if priority is None:
        raise ValidationError(f"invalid priority {raw_priority!r}")

    raw_spent = record.get("timeSpent", 0.0)
    if raw_spent is None:
        raw_spent = 0.0
    if isinstance(raw_spent, bool) or not isinstance(raw_spent, (int, float)):
        raise ValidationError(f"invalid timeSpent {raw_spent!r}")
    try:
        spent = float(raw_spent)
    except OverflowError as e:
        raise ValidationError(f"invalid timeSpent {raw_spent!r}") from e
    if not math.isfinite(spent) or spent < 0:
        raise ValidationError(f"invalid timeSpent {raw_spent!r}")

    raw_tags = record.get("tags") or []
    if not isinstance(raw_tags, list) or not all(isinstance(t, str) for t in raw_tags):
        raise ValidationError("tags must be a list of strings")

    description = record.get("description")
    assigned = record.get("assignedTo")

    created_at = _ts_field(record, "createdAt") or now
    updated_at = _ts_field(record, "updatedAt") or now

    timer_start = _ts_field(record, "startTime")
    timer_end = _ts_field(record, "endTime")
    if timer_end is not None:
        # A stopped session keeps only its end; a start means "running".
        timer_start = None

    return Task(
        id=task_id,
        title=title,
        description=None if description is None else str(description),
        status=status,
        priority=priority,
        time_spent=spent,
        timer_start=timer_start,
        timer_end=timer_end,
        tags=clean_tags(raw_tags),
        assigned_to=(str(assigned).strip() or None) if assigned is not None else None,
        created_at=created_at,
        updated_at=updated_at,
    )


class ImportExportService:
    def __init__(self, service: TaskService, *, export_dir: str | Path, import_path: str | Path) -> None:
        self._service = service
        self._export_dir = Path(export_dir)
        self._import_path = Path(import_path)

    def default_export_path(self) -> Path:
        stamp = self._service.now().strftime("%Y%m%d_%H%M%S")
        return self._export_dir / f"{EXPORT_PREFIX}{stamp}.json"

    # ---- export ----

    def export_to_json(self, path: str | Path | None = None) -> ExportResult:
        tasks = self._service.get_all_tasks()
        if not tasks:
            return ExportResult(ok=False, error=PersistenceError("No tasks to export"))

        target = Path(path) if path is not None else self.default_export_path()
        payload = json.dumps([task_to_dict(t) for t in tasks], ensure_ascii=False, indent=2)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp = target.with_suffix(target.suffix + ".tmp")
            tmp.write_text(payload, "utf-8")
            os.replace(tmp, target)
        except OSError as e:
            logger.exception("Failed to export tasks to %s", target)
            return ExportResult(ok=False, path=target, error=PersistenceError(f"Could not write {target}: {e}"))

        logger.info("Exported %d tasks to %s", len(tasks), target)
        return ExportResult(ok=True, path=target, count=len(tasks))

    # ---- import ----

    def _read_records(self, path: Path) -> list[Any]:
        if not path.exists():
            raise TaskImportError(f"File not found: {path}")
        try:
            raw = path.read_text("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise TaskImportError(f"Could not read {path}: {e}") from e
        if not raw.strip():
            raise TaskImportError(f"File is empty: {path}")
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise TaskImportError(f"Malformed JSON in {path}: {e}") from e
        if not isinstance(data, list):
            raise TaskImportError(f"Expected a JSON array of tasks in {path}")
        return data

    def import_from_json(self, path: str | Path | None = None) -> ImportReport:
        report = ImportReport()
        source = Path(path) if path is not None else self._import_path

        try:
            records = self._read_records(source)
        except TaskImportError as e:
            logger.warning("Import aborted: %s", e)
            report.error = e
            return report

        repo = self._service.repo
        running = self._service.running_task()
        running_id = running.id if running is not None else None
        now = self._service.now()

        for index, record in enumerate(records, start=1):
            if not isinstance(record, dict):
                report.skip(f"#{index}: not an object")
                continue

            raw_id = str(record.get("id") or "").strip()
            if raw_id and repo.exists(raw_id):
                report.skip(f"#{index}: task {raw_id} already exists")
                continue

            try:
                task = task_from_dict(record, task_id=raw_id or self._service.next_id(), now=now)
            except ValidationError as e:
                report.skip(f"#{index}: {e}")
                continue

            if task.is_timer_running and running_id is not None:
                # Board already has a running timer: keep the record, drop its session.
                logger.info("Import %s: timer already running on %s; clearing", task.id, running_id)
                task.timer_start = None

            if repo.insert(task):
                report.imported += 1
                if task.is_timer_running:
                    running_id = task.id
            else:
                report.skip(f"#{index}: could not store task {task.id}")

        logger.info(
            "Import from %s: imported=%d skipped=%d", source, report.imported, report.skipped
        )
        return report
