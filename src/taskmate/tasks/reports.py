# src/taskmate/tasks/reports.py

"""
Time summary reports.

A task is attributed to the calendar day of its last update (updated_at);
there is no per-session log, so this is an approximation of "worked on".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta

from .task_models import BOARD_COLUMNS, Task, TaskStatus
from .task_service import TaskService

DATE_FORMAT = "%Y-%m-%d"
RULE = "=" * 60
THIN_RULE = "-" * 60


def _hours_by_status(tasks: list[Task]) -> dict[TaskStatus, float]:
    out = {s: 0.0 for s in BOARD_COLUMNS}
    for t in tasks:
        out[t.status] += t.time_spent
    return out


def _count_by_status(tasks: list[Task]) -> dict[TaskStatus, int]:
    out = {s: 0 for s in BOARD_COLUMNS}
    for t in tasks:
        out[t.status] += 1
    return out


@dataclass(slots=True)
class DailyReport:
    day: date
    tasks: list[Task]
    total_hours: float
    hours_by_status: dict[TaskStatus, float]


@dataclass(slots=True)
class WeeklyReport:
    start: date
    end: date
    tasks: list[Task]
    total_hours: float
    hours_by_day: dict[date, float] = field(default_factory=dict)
    done_count: int = 0

    @property
    def average_per_day(self) -> float:
        return self.total_hours / 7.0


@dataclass(slots=True)
class OverallReport:
    total_tasks: int
    total_hours: float
    count_by_status: dict[TaskStatus, int]
    hours_by_status: dict[TaskStatus, float]


class ReportService:
    def __init__(self, service: TaskService) -> None:
        self._service = service

    def _tasks_between(self, start: date, end: date) -> list[Task]:
        return [
            t for t in self._service.get_all_tasks()
            if start <= t.updated_at.date() <= end
        ]

    def daily_report(self, day: date | None = None) -> DailyReport:
        day = day or self._service.now().date()
        tasks = self._tasks_between(day, day)
        return DailyReport(
            day=day,
            tasks=tasks,
            total_hours=sum(t.time_spent for t in tasks),
            hours_by_status=_hours_by_status(tasks),
        )

    def weekly_report(self, start: date | None = None) -> WeeklyReport:
        """Seven days starting at `start` (default: six days ago, so today is included)."""
        start = start or (self._service.now().date() - timedelta(days=6))
        end = start + timedelta(days=6)
        tasks = self._tasks_between(start, end)

        by_day = {start + timedelta(days=i): 0.0 for i in range(7)}
        for t in tasks:
            by_day[t.updated_at.date()] += t.time_spent

        return WeeklyReport(
            start=start,
            end=end,
            tasks=tasks,
            total_hours=sum(t.time_spent for t in tasks),
            hours_by_day=by_day,
            done_count=sum(1 for t in tasks if t.status == TaskStatus.DONE),
        )

    def overall_report(self) -> OverallReport:
        tasks = self._service.get_all_tasks()
        return OverallReport(
            total_tasks=len(tasks),
            total_hours=sum(t.time_spent for t in tasks),
            count_by_status=_count_by_status(tasks),
            hours_by_status=_hours_by_status(tasks),
        )


# ---- rendering ----


def render_daily(report: DailyReport) -> str:
    lines = [RULE, "DAILY TIME SUMMARY REPORT", f"Date: {report.day.strftime(DATE_FORMAT)}", RULE]
    if not report.tasks:
        lines.append("No tasks found for this date.")
        return "\n".join(lines)

    lines.append(f"Total Time Spent: {report.total_hours:.2f} hours")
    lines.append("Tasks Breakdown:")
    lines.append(THIN_RULE)
    for t in report.tasks:
        lines.append(f"  * {t.title} [{t.status}] - {t.time_spent:.2f}h")
    lines.append("Time by Status:")
    for status, hours in report.hours_by_status.items():
        lines.append(f"  {status}: {hours:.2f}h")
    lines.append(RULE)
    return "\n".join(lines)


def render_weekly(report: WeeklyReport) -> str:
    lines = [RULE, "WEEKLY TIME SUMMARY REPORT", f"Week Starting: {report.start.strftime(DATE_FORMAT)}", RULE]
    if not report.tasks:
        lines.append("No tasks found for this week.")
        return "\n".join(lines)

    lines.append(f"Total Time Spent: {report.total_hours:.2f} hours")
    lines.append(f"Average per Day: {report.average_per_day:.2f} hours")
    lines.append("Daily Breakdown:")
    lines.append(THIN_RULE)
    for day, hours in report.hours_by_day.items():
        lines.append(f"  {day.strftime(DATE_FORMAT)}: {hours:.2f}h")
    lines.append(f"Tasks Completed: {report.done_count}")
    lines.append(RULE)
    return "\n".join(lines)


def render_overall(report: OverallReport) -> str:
    lines = [RULE, "OVERALL SUMMARY REPORT", RULE]
    lines.append(f"Total Tasks: {report.total_tasks}")
    lines.append(f"Total Time Spent: {report.total_hours:.2f} hours")
    lines.append("Tasks by Status:")
    for status, n in report.count_by_status.items():
        lines.append(f"  {status}: {n}")
    lines.append("Time by Status:")
    for status, hours in report.hours_by_status.items():
        lines.append(f"  {status}: {hours:.2f}h")
    lines.append(RULE)
    return "\n".join(lines)
