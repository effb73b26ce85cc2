# tests/test_reports.py

from __future__ import annotations

from datetime import date

from taskmate.core.state import AppState
from taskmate.tasks.reports import render_daily, render_overall, render_weekly
from taskmate.tasks.task_models import TaskStatus

from .fakes import FakeClock


def _work(state: AppState, clock: FakeClock, task_id: str, minutes: int) -> None:
    state.tasks.start_timer(task_id)
    clock.advance(minutes=minutes)
    state.tasks.stop_timer(task_id)


def test_daily_report_groups_by_last_update(state: AppState, clock: FakeClock) -> None:
    state.tasks.add_task("Monday work")
    _work(state, clock, "T1", 60)

    clock.advance(days=1)
    state.tasks.add_task("Tuesday work")
    _work(state, clock, "T2", 30)
    state.tasks.move_task("T2", "Done")

    today = state.reports.daily_report()
    assert today.day == date(2024, 5, 2)
    assert [t.id for t in today.tasks] == ["T2"]
    assert today.total_hours == 0.5
    assert today.hours_by_status[TaskStatus.DONE] == 0.5

    yesterday = state.reports.daily_report(date(2024, 5, 1))
    assert [t.id for t in yesterday.tasks] == ["T1"]
    assert yesterday.total_hours == 1.0
    assert yesterday.hours_by_status[TaskStatus.IN_PROGRESS] == 1.0

    text = render_daily(today)
    assert "Date: 2024-05-02" in text
    assert "Total Time Spent: 0.50 hours" in text


def test_empty_daily_report(state: AppState) -> None:
    report = state.reports.daily_report(date(2020, 1, 1))
    assert report.tasks == []
    assert "No tasks found for this date." in render_daily(report)


def test_weekly_report(state: AppState, clock: FakeClock) -> None:
    state.tasks.add_task("Early")
    _work(state, clock, "T1", 120)
    clock.advance(days=3)
    state.tasks.add_task("Late")
    _work(state, clock, "T2", 90)
    state.tasks.move_task("T2", "Done")

    report = state.reports.weekly_report(date(2024, 5, 1))
    assert report.end == date(2024, 5, 7)
    assert len(report.hours_by_day) == 7
    assert report.total_hours == 3.5
    assert report.hours_by_day[date(2024, 5, 1)] == 2.0
    assert report.hours_by_day[date(2024, 5, 4)] == 1.5
    assert report.done_count == 1
    assert report.average_per_day == 0.5

    # Default window ends today.
    default = state.reports.weekly_report()
    assert default.end == clock().date()

    text = render_weekly(report)
    assert "Week Starting: 2024-05-01" in text
    assert "Tasks Completed: 1" in text
    assert "No tasks found for this week." in render_weekly(state.reports.weekly_report(date(2020, 1, 1)))


def test_overall_report(state: AppState, clock: FakeClock) -> None:
    state.tasks.add_task("A")
    state.tasks.add_task("B")
    _work(state, clock, "T2", 45)
    state.tasks.move_task("T2", "Done")

    report = state.reports.overall_report()
    assert report.total_tasks == 2
    assert report.total_hours == 0.75
    assert report.count_by_status[TaskStatus.TODO] == 1
    assert report.count_by_status[TaskStatus.DONE] == 1
    assert report.hours_by_status[TaskStatus.DONE] == 0.75
    assert "Total Tasks: 2" in render_overall(report)
