# tests/test_task_service.py

from __future__ import annotations

from pathlib import Path

from taskmate.core.errors import NotFoundError, PersistenceError, ValidationError
from taskmate.tasks.task_ids import SequentialIdAllocator
from taskmate.tasks.task_models import TaskPriority, TaskStatus
from taskmate.tasks.task_service import TaskService

from .fakes import FailingTagStore, FakeClock


def test_add_task_defaults(service: TaskService, clock: FakeClock) -> None:
    res = service.add_task("Write tests")
    assert res.ok
    task = res.task
    assert task.id == "T1"
    assert task.status == TaskStatus.TODO
    assert task.priority == TaskPriority.MEDIUM
    assert task.description == ""
    assert task.created_at == clock()

    stored = service.get_task("T1")
    assert stored is not None
    assert stored.title == "Write tests"


def test_sequential_ids_and_priority_filter(service: TaskService) -> None:
    assert service.add_task("A", "", "high").task.id == "T1"
    assert service.add_task("B", "", "low").task.id == "T2"
    assert [t.id for t in service.filter_by_priority("HIGH")] == ["T1"]
    assert service.filter_by_priority("urgent") == []


def test_add_task_validation(service: TaskService) -> None:
    res = service.add_task("   ")
    assert not res.ok
    assert isinstance(res.error, ValidationError)

    res = service.add_task("Fine title", "", "urgent")
    assert not res
    assert isinstance(res.error, ValidationError)
    assert "urgent" in res.message

    assert service.get_all_tasks() == []


def test_unknown_id_is_not_found(service: TaskService) -> None:
    for res in (
        service.move_task("T99", "Done"),
        service.start_timer("T99"),
        service.stop_timer("T99"),
        service.add_tag("T99", "x"),
        service.assign_task("T99", "bob"),
        service.update_task("T99", title="x"),
        service.delete_task("T99"),
    ):
        assert not res.ok
        assert isinstance(res.error, NotFoundError)


def test_update_task_only_given_fields(service: TaskService, clock: FakeClock) -> None:
    service.add_task("Old title", "old desc", "low")
    clock.advance(minutes=5)

    res = service.update_task("T1", priority="high")
    assert res.ok
    task = service.get_task("T1")
    assert task.title == "Old title"
    assert task.description == "old desc"
    assert task.priority == TaskPriority.HIGH
    assert task.updated_at == clock()

    bad = service.update_task("T1", title="  ")
    assert isinstance(bad.error, ValidationError)
    assert service.get_task("T1").title == "Old title"


def test_move_task_validates_status(service: TaskService) -> None:
    service.add_task("Card")
    res = service.move_task("T1", "blocked")
    assert isinstance(res.error, ValidationError)

    assert service.move_task("T1", "in progress").ok
    assert service.get_task("T1").status == TaskStatus.IN_PROGRESS


def test_single_running_timer(service: TaskService, clock: FakeClock) -> None:
    service.add_task("First")
    service.add_task("Second")

    assert service.start_timer("T1").ok
    clock.advance(minutes=30)
    assert service.start_timer("T2").ok

    first = service.get_task("T1")
    second = service.get_task("T2")
    assert not first.is_timer_running
    assert first.time_spent == 0.5
    assert second.is_timer_running
    assert service.running_task().id == "T2"
    assert [t.id for t in service.get_all_tasks() if t.is_timer_running] == ["T2"]


def test_start_already_running_is_noop(service: TaskService, clock: FakeClock) -> None:
    service.add_task("Work")
    service.start_timer("T1")
    started = service.get_task("T1").timer_start

    clock.advance(minutes=10)
    assert service.start_timer("T1").ok
    assert service.get_task("T1").timer_start == started


def test_stop_and_move_bank_time(service: TaskService, clock: FakeClock) -> None:
    service.add_task("Work")
    service.start_timer("T1")
    clock.advance(minutes=90)
    res = service.stop_timer("T1")
    assert res.ok
    assert res.task.time_spent == 1.5

    # Stopping again changes nothing.
    clock.advance(minutes=90)
    assert service.stop_timer("T1").task.time_spent == 1.5

    service.start_timer("T1")
    clock.advance(minutes=15)
    assert service.move_task("T1", "Done").ok
    task = service.get_task("T1")
    assert task.status == TaskStatus.DONE
    assert not task.is_timer_running
    assert task.time_spent == 1.75


def test_tags_and_assignment(service: TaskService) -> None:
    service.add_task("Card")
    assert service.add_tag("T1", "backend").ok
    assert service.add_tag("T1", "backend").ok
    assert service.add_tag("T1", "urgent").ok
    assert service.get_task("T1").tags == {"backend", "urgent"}

    assert isinstance(service.add_tag("T1", "  ").error, ValidationError)

    assert service.remove_tag("T1", "urgent").ok
    assert [t.id for t in service.filter_by_tag("backend")] == ["T1"]
    assert service.filter_by_tag("urgent") == []

    assert service.assign_task("T1", "carol").ok
    assert [t.id for t in service.filter_by_assigned_user("carol")] == ["T1"]
    assert service.assign_task("T1", None).ok
    assert service.get_task("T1").assigned_to is None


def test_delete_then_not_found(service: TaskService) -> None:
    service.add_task("Short lived")
    res = service.delete_task("T1")
    assert res.ok
    assert res.task.id == "T1"
    assert service.get_task("T1") is None
    assert isinstance(service.delete_task("T1").error, NotFoundError)


def test_queries(service: TaskService) -> None:
    service.add_task("Design login", "oauth flow")
    service.add_task("Ship it")
    service.move_task("T2", "Done")

    assert [t.id for t in service.search_tasks("LOGIN")] == ["T1"]
    assert [t.id for t in service.get_tasks_by_status("done")] == ["T2"]
    assert service.get_tasks_by_status("blocked") == []

    board = service.board()
    assert [t.id for t in board[TaskStatus.TODO]] == ["T1"]
    assert board[TaskStatus.IN_PROGRESS] == []
    assert [t.id for t in board[TaskStatus.DONE]] == ["T2"]


def test_storage_failure_is_persistence_error(tmp_path: Path, clock: FakeClock) -> None:
    store = FailingTagStore(tmp_path / "tasks.sqlite3")
    service = TaskService(store, SequentialIdAllocator(store), clock=clock)
    service.add_task("Card")

    store.fail_tags = True
    res = service.add_tag("T1", "x")
    assert isinstance(res.error, PersistenceError)
    assert service.get_task("T1").tags == set()

    res = service.add_task("Another")
    assert isinstance(res.error, PersistenceError)
    assert [t.id for t in service.get_all_tasks()] == ["T1"]


def test_start_running_task_repairs_stray_timer(service: TaskService, store, clock: FakeClock) -> None:
    service.add_task("Mine")
    service.add_task("Stray")
    # Two timers running at once, as a hand-edited database could leave it.
    for task_id in ("T1", "T2"):
        task = store.get_by_id(task_id)
        task.start_timer(clock())
        assert store.update(task)

    clock.advance(minutes=20)
    res = service.start_timer("T1")
    assert res.ok

    assert service.get_task("T1").timer_start == res.task.timer_start
    assert service.get_task("T1").is_timer_running
    stray = service.get_task("T2")
    assert not stray.is_timer_running
    assert stray.time_spent == 20 / 60
    assert [t.id for t in service.get_all_tasks() if t.is_timer_running] == ["T1"]
