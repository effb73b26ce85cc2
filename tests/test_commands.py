# tests/test_commands.py

from __future__ import annotations

from taskmate.cli.commands import CommandRegistry, registry
from taskmate.core.state import AppState

from .fakes import FakeClock


def test_command_registry_routes_and_aliases(state: AppState) -> None:
    reg = CommandRegistry()
    seen: list[list[str]] = []

    def handler(state, args):
        seen.append(args)
        return "ok"

    reg.register("Do", handler, "do things", aliases=["d"])

    assert reg.handle(state, '/do a "b c"') == "ok"
    assert reg.handle(state, "/D x") == "ok"
    assert seen == [["a", "b c"], ["x"]]
    assert "/do - do things" in reg.build_help()


def test_command_registry_unknown_and_non_command(state: AppState) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")
    assert "Could not parse" in (reg.handle(state, '/add "unclosed') or "")


def test_help_lists_board_commands(state: AppState) -> None:
    text = registry.handle(state, "/help") or ""
    for name in ("/add", "/move", "/start", "/report", "/export", "/import"):
        assert name in text


def test_add_move_and_board(state: AppState) -> None:
    out = registry.handle(state, '/add "Write docs" "user guide" high')
    assert out.startswith("Task added: T1: Write docs")

    task = state.tasks.get_task("T1")
    assert task.description == "user guide"
    assert task.priority == "high"

    assert registry.handle(state, "/move T1 in progress") == "Task T1 moved to In-Progress."
    board = registry.handle(state, "/board")
    assert "== IN-PROGRESS (1) ==" in board
    assert "== TO-DO (0) ==" in board


def test_errors_are_reported_not_raised(state: AppState) -> None:
    assert registry.handle(state, '/add "  "') == "Error: Task title is required"
    assert registry.handle(state, "/move T42 Done") == "Error: Task T42 not found"
    assert registry.handle(state, "/add Card").startswith("Task added")
    assert "Invalid status" in registry.handle(state, "/move T1 blocked")
    assert registry.handle(state, "/show T42") == "Error: Task T42 not found"
    assert registry.handle(state, "/move").startswith("Usage:")


def test_edit_fields(state: AppState) -> None:
    registry.handle(state, "/add Old")
    assert registry.handle(state, '/edit T1 title="New title" priority=low') == "Task T1 updated."
    task = state.tasks.get_task("T1")
    assert task.title == "New title"
    assert task.priority == "low"

    assert "Unknown field" in registry.handle(state, "/edit T1 status=Done")
    assert "Malformed field" in registry.handle(state, "/edit T1 title")


def test_timer_tag_assign_commands(state: AppState, clock: FakeClock) -> None:
    registry.handle(state, "/add Timed")
    assert registry.handle(state, "/start T1") == "Timer started for T1."
    clock.advance(minutes=30)
    assert registry.handle(state, "/stop T1") == "Timer stopped for T1. Total: 0.50h"

    assert registry.handle(state, "/tag T1 api backend") == "Tags on T1: api, backend"
    assert registry.handle(state, "/untag T1 api") == "Tags on T1: backend"
    assert registry.handle(state, "/assign T1 erin") == "Task T1 assigned to erin."
    assert "T1" in registry.handle(state, "/filter user erin")
    assert "T1" in registry.handle(state, "/filter tag backend")
    assert registry.handle(state, "/filter priority high") == "No tasks found."
    assert registry.handle(state, "/assign T1") == "Task T1 unassigned."

    details = registry.handle(state, "/show T1")
    assert "Time spent:  0.50h" in details
    assert "Tags:        backend" in details


def test_search_list_delete(state: AppState) -> None:
    registry.handle(state, '/add "Fix login" "oauth"')
    registry.handle(state, "/add Other")
    assert "T1" in registry.handle(state, "/search LOGIN")
    assert registry.handle(state, "/list done") == "No tasks found."
    assert len(registry.handle(state, "/list").splitlines()) == 2
    assert registry.handle(state, "/delete T1") == "Task T1 deleted."
    assert registry.handle(state, "/search login") == "No tasks found."


def test_report_and_transfer_commands(state: AppState, tmp_path) -> None:
    assert "Invalid date" in registry.handle(state, "/report daily yesterday")
    assert "OVERALL SUMMARY REPORT" in registry.handle(state, "/report")
    assert "DAILY TIME SUMMARY REPORT" in registry.handle(state, "/report daily 2024-05-01")

    assert registry.handle(state, "/export").startswith("Error:")
    registry.handle(state, "/add Portable")
    target = tmp_path / "out.json"
    assert registry.handle(state, f"/export {target}") == f"Exported 1 tasks to {target}"

    out = registry.handle(state, f"/import {target}")
    assert "Imported: 0 tasks" in out
    assert "Skipped: 1 tasks" in out


def test_one_shot_command_exit_codes(state: AppState, capsys) -> None:
    from taskmate.cli.main import _run_once

    assert _run_once(state, ["add", "Quick task"]) == 0
    assert "Task added: T1: Quick task" in capsys.readouterr().out
    assert _run_once(state, ["/show T1"]) == 0
    assert _run_once(state, ["/show", "T2"]) == 1
    assert _run_once(state, ["/frobnicate"]) == 1
