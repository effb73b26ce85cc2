# src/taskmate/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..tasks.reports import ReportService
from ..tasks.task_service import TaskService
from ..tasks.task_store import TaskStore
from ..tasks.task_transfer import ImportExportService


@dataclass
class AppState:
    # Settings object (real Settings or a test SimpleNamespace).
    settings: object

    task_store: TaskStore
    tasks: TaskService
    transfer: ImportExportService
    reports: ReportService
