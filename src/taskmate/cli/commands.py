# src/taskmate/cli/commands.py

from __future__ import annotations

import logging
import shlex
from collections.abc import Callable
from datetime import date, datetime

from ..core.errors import OpResult
from ..core.state import AppState
from ..tasks.reports import render_daily, render_overall, render_weekly
from ..tasks.task_models import BOARD_COLUMNS, TIMESTAMP_FORMAT, Task, format_ts

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like '/command arg "quoted arg"'.
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError as e:
            return f"Could not parse command: {e}"
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting helpers ----


def _reply(res: OpResult, ok_text: str) -> str:
    if res.ok:
        return ok_text
    return f"Error: {res.message}"


def _task_lines(tasks: list[Task], empty: str = "No tasks found.") -> str:
    if not tasks:
        return empty
    return "\n".join(t.summary() for t in tasks)


def _task_details(task: Task) -> str:
    tags = ", ".join(task.sorted_tags()) or "-"
    return "\n".join(
        [
            f"Task {task.id}",
            f"  Title:       {task.title}",
            f"  Description: {task.description or '-'}",
            f"  Status:      {task.status}",
            f"  Priority:    {task.priority}",
            f"  Time spent:  {task.formatted_time_spent}",
            f"  Timer:       {'running since ' + format_ts(task.timer_start) if task.is_timer_running else 'stopped'}",
            f"  Last stop:   {format_ts(task.timer_end) or '-'}",
            f"  Tags:        {tags}",
            f"  Assigned to: {task.assigned_to or 'Unassigned'}",
            f"  Created:     {format_ts(task.created_at)}",
            f"  Updated:     {format_ts(task.updated_at)}",
        ]
    )


def _parse_day(raw: str) -> date | None:
    try:
        return datetime.strptime(raw, TIMESTAMP_FORMAT.split(" ")[0]).date()
    except ValueError:
        return None


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_board(state: AppState, args: list[str]) -> str:
    columns = state.tasks.board()
    lines: list[str] = []
    for status in BOARD_COLUMNS:
        tasks = columns[status]
        lines.append(f"== {status.value.upper()} ({len(tasks)}) ==")
        lines.extend(f"  {t.summary()}" for t in tasks)
        if not tasks:
            lines.append("  (empty)")
    return "\n".join(lines)


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list           -> all tasks
    /list <status>  -> one column
    """
    if not args:
        return _task_lines(state.tasks.get_all_tasks())
    return _task_lines(state.tasks.get_tasks_by_status(" ".join(args)))


def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /show <id>"
    task = state.tasks.get_task(args[0])
    if task is None:
        return f"Error: Task {args[0]} not found"
    return _task_details(task)


def cmd_add(state: AppState, args: list[str]) -> str:
    """/add "<title>" ["<description>"] [low|medium|high]"""
    if not args:
        return 'Usage: /add "<title>" ["<description>"] [priority]'
    title = args[0]
    description = args[1] if len(args) > 1 else ""
    priority = args[2] if len(args) > 2 else None
    res = state.tasks.add_task(title, description, priority)
    return _reply(res, f"Task added: {res.task.summary()}" if res.task else "")


def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit <id> title="..." description="..." priority=high"""
    if len(args) < 2:
        return 'Usage: /edit <id> title="..." description="..." priority=<low|medium|high>'
    fields: dict[str, str] = {}
    for part in args[1:]:
        if "=" not in part:
            return f"Malformed field {part!r}; expected key=value"
        key, value = part.split("=", 1)
        key = key.strip().lower()
        if key not in ("title", "description", "priority"):
            return f"Unknown field {key!r}; editable: title, description, priority"
        fields[key] = value
    res = state.tasks.update_task(
        args[0],
        title=fields.get("title"),
        description=fields.get("description"),
        priority=fields.get("priority"),
    )
    return _reply(res, f"Task {args[0]} updated.")


def cmd_move(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /move <id> <To-Do|In-Progress|Done>"
    res = state.tasks.move_task(args[0], " ".join(args[1:]))
    return _reply(res, f"Task {args[0]} moved to {res.task.status}." if res.task else "")


def cmd_start(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /start <id>"
    res = state.tasks.start_timer(args[0])
    return _reply(res, f"Timer started for {args[0]}.")


def cmd_stop(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /stop <id>"
    res = state.tasks.stop_timer(args[0])
    return _reply(res, f"Timer stopped for {args[0]}. Total: {res.task.formatted_time_spent}" if res.task else "")


def cmd_pause(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /pause <id>"
    res = state.tasks.pause_timer(args[0])
    return _reply(res, f"Timer paused for {args[0]}. Total: {res.task.formatted_time_spent}" if res.task else "")


def cmd_tag(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /tag <id> <tag> [<tag> ...]"
    for tag in args[1:]:
        res = state.tasks.add_tag(args[0], tag)
        if not res.ok:
            return _reply(res, "")
    return f"Tags on {args[0]}: {', '.join(res.task.sorted_tags()) if res.task else ''}"


def cmd_untag(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /untag <id> <tag> [<tag> ...]"
    for tag in args[1:]:
        res = state.tasks.remove_tag(args[0], tag)
        if not res.ok:
            return _reply(res, "")
    return f"Tags on {args[0]}: {', '.join(res.task.sorted_tags()) if res.task else ''}"


def cmd_assign(state: AppState, args: list[str]) -> str:
    """
    /assign <id> <user>  -> assign
    /assign <id>         -> unassign
    """
    if not args:
        return "Usage: /assign <id> [user]"
    user = " ".join(args[1:]) or None
    res = state.tasks.assign_task(args[0], user)
    return _reply(res, f"Task {args[0]} assigned to {user}." if user else f"Task {args[0]} unassigned.")


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete <id>"
    res = state.tasks.delete_task(args[0])
    return _reply(res, f"Task {args[0]} deleted.")


def cmd_search(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /search <text>"
    return _task_lines(state.tasks.search_tasks(" ".join(args)))


def cmd_filter(state: AppState, args: list[str]) -> str:
    """
    /filter priority <low|medium|high>
    /filter tag <tag>
    /filter user <name>
    """
    if len(args) < 2:
        return "Usage: /filter priority|tag|user <value>"
    kind, value = args[0].lower(), " ".join(args[1:])
    if kind == "priority":
        return _task_lines(state.tasks.filter_by_priority(value))
    if kind == "tag":
        return _task_lines(state.tasks.filter_by_tag(value))
    if kind in ("user", "assigned"):
        return _task_lines(state.tasks.filter_by_assigned_user(value))
    return f"Unknown filter {kind!r}. Use: priority, tag, user."


def cmd_report(state: AppState, args: list[str]) -> str:
    """
    /report daily [YYYY-MM-DD]
    /report weekly [YYYY-MM-DD]   (week start)
    /report overall
    """
    kind = args[0].lower() if args else "overall"
    day: date | None = None
    if len(args) > 1:
        day = _parse_day(args[1])
        if day is None:
            return f"Invalid date {args[1]!r}; expected YYYY-MM-DD."

    if kind == "daily":
        return render_daily(state.reports.daily_report(day))
    if kind == "weekly":
        return render_weekly(state.reports.weekly_report(day))
    if kind == "overall":
        return render_overall(state.reports.overall_report())
    return "Usage: /report daily|weekly|overall [YYYY-MM-DD]"


def cmd_export(state: AppState, args: list[str]) -> str:
    res = state.transfer.export_to_json(args[0] if args else None)
    if not res.ok:
        return f"Error: {res.error}"
    return f"Exported {res.count} tasks to {res.path}"


def cmd_import(state: AppState, args: list[str]) -> str:
    report = state.transfer.import_from_json(args[0] if args else None)
    if not report.ok:
        return f"Error: {report.error}"
    lines = ["Import completed.", f"  Imported: {report.imported} tasks", f"  Skipped: {report.skipped} tasks"]
    lines.extend(f"  - {m}" for m in report.messages)
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("board", cmd_board, help_text="Show the three board columns.")
registry.register("list", cmd_list, help_text="List tasks: /list [status].", aliases=["ls"])
registry.register("show", cmd_show, help_text="Task details: /show <id>.")
registry.register("add", cmd_add, help_text='Add a task: /add "<title>" ["<description>"] [priority].')
registry.register("edit", cmd_edit, help_text='Edit fields: /edit <id> title="..." priority=high.')
registry.register("move", cmd_move, help_text="Move a task: /move <id> <To-Do|In-Progress|Done>.")
registry.register("start", cmd_start, help_text="Start the timer (pauses any other running timer).")
registry.register("stop", cmd_stop, help_text="Stop the timer: /stop <id>.")
registry.register("pause", cmd_pause, help_text="Pause the timer: /pause <id>.")
registry.register("tag", cmd_tag, help_text="Add tags: /tag <id> <tag> ...")
registry.register("untag", cmd_untag, help_text="Remove tags: /untag <id> <tag> ...")
registry.register("assign", cmd_assign, help_text="Assign a task: /assign <id> [user].")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register("search", cmd_search, help_text="Search title/description: /search <text>.")
registry.register("filter", cmd_filter, help_text="Filter: /filter priority|tag|user <value>.")
registry.register("report", cmd_report, help_text="Time report: /report daily|weekly|overall [date].")
registry.register("export", cmd_export, help_text="Export all tasks to JSON: /export [path].")
registry.register("import", cmd_import, help_text="Import tasks from JSON: /import [path].")
