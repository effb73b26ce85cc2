# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskmate.cli.bootstrap import create_initial_state
from taskmate.core.state import AppState
from taskmate.tasks.task_ids import SequentialIdAllocator
from taskmate.tasks.task_service import TaskService
from taskmate.tasks.task_store import TaskStore

from .fakes import FakeClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment / .env.
    """
    data_dir = tmp_path / "data"
    return SimpleNamespace(
        app_name="TaskMate",
        log_level="INFO",
        console_enabled=False,
        data_dir=data_dir,
        db_path=data_dir / "tasks.sqlite3",
        export_dir=data_dir / "exports",
        import_path=data_dir / "taskmate_data.json",
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 5, 1, 9, 0, 0))


@pytest.fixture()
def store(tmp_path: Path) -> TaskStore:
    return TaskStore(tmp_path / "tasks.sqlite3")


@pytest.fixture()
def service(store: TaskStore, clock: FakeClock) -> TaskService:
    return TaskService(store, SequentialIdAllocator(store), clock=clock)


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FakeClock) -> AppState:
    """
    AppState built through the real composition root.

    NOTE: We keep the real SQLite store here because its correctness is part
    of what we want to test; only the clock is faked.
    """
    return create_initial_state(settings=settings, clock=clock)
