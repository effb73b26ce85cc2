# src/taskmate/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- opens the SQLite store (creating the schema on first use),
- wires allocator, services and collaborators into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import Clock
from ..core.state import AppState
from ..tasks.reports import ReportService
from ..tasks.task_ids import SequentialIdAllocator
from ..tasks.task_service import TaskService
from ..tasks.task_store import TaskStore
from ..tasks.task_transfer import ImportExportService

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.export_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, clock: Clock | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = TaskStore(settings.db_path)
    service = TaskService(store, SequentialIdAllocator(store), clock=clock)

    state = AppState(
        settings=settings,
        task_store=store,
        tasks=service,
        transfer=ImportExportService(
            service,
            export_dir=settings.export_dir,
            import_path=settings.import_path,
        ),
        reports=ReportService(service),
    )
    logger.debug("AppState ready db=%s", settings.db_path)
    return state
