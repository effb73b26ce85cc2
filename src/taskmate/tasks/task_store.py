# src/taskmate/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from .task_models import (
    Task,
    TaskPriority,
    TaskStatus,
    clean_tag,
    clean_tags,
    format_ts,
    now_ts,
    parse_ts,
)

logger = logging.getLogger(__name__)

# group_concat separator; a control char so tags may contain commas.
_TAG_SEP = "\x1f"

_SELECT_TASKS = f"""
    SELECT t.*, group_concat(tt.tag, char({ord(_TAG_SEP)})) AS tag_list
    FROM tasks t
    LEFT JOIN task_tags tt ON tt.task_id = t.id
"""

_GROUP_ORDER = " GROUP BY t.id ORDER BY t.created_at DESC, t.rowid DESC"


def _py_casefold(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).casefold()


class TaskStore:
    """
    SQLite task repository: one header row in `tasks` plus one row per tag in
    `task_tags`.

    Write contract:
    - insert/update write the header and replace the whole tag set inside ONE
      transaction; any failure rolls everything back.
    - delete removes tags then header inside one transaction.

    Failure policy:
    - sqlite errors never leave this class; they are logged and reported as
      False / None / [] to the caller.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("TaskStore ready db=%s total=%s", self._db_path, self.count_tasks())

    @property
    def db_path(self) -> Path:
        return self._db_path

    # ---- connection provider ----

    def _get_conn(self) -> sqlite3.Connection:
        # isolation_level=None: transactions are opened explicitly in transaction().
        conn = sqlite3.connect(str(self._db_path), timeout=30.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA foreign_keys=ON")
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        conn.create_function("py_casefold", 1, _py_casefold, deterministic=True)

    @contextlib.contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Scoped read handle; always closed."""
        conn = self._get_conn()
        try:
            yield conn
        finally:
            conn.close()

    @contextlib.contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Scoped write handle.

        BEGIN IMMEDIATE takes the write lock up front so another process cannot
        interleave between our header write and tag rewrite. Commit on normal
        exit, rollback on any exception (which is re-raised), close always.
        """
        conn = self._get_conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.rollback()
                raise
            conn.commit()
        finally:
            conn.close()

    # ---- schema ----

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id          TEXT PRIMARY KEY,
                    title       TEXT NOT NULL,
                    description TEXT,
                    status      TEXT NOT NULL DEFAULT 'To-Do',
                    priority    TEXT NOT NULL DEFAULT 'medium',
                    time_spent  REAL NOT NULL DEFAULT 0,
                    start_time  TEXT,
                    end_time    TEXT,
                    assigned_to TEXT,
                    created_at  TEXT NOT NULL,
                    updated_at  TEXT NOT NULL
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("description", "TEXT")
            add_col("time_spent", "REAL NOT NULL DEFAULT 0")
            add_col("start_time", "TEXT")
            add_col("end_time", "TEXT")
            add_col("assigned_to", "TEXT")

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS task_tags (
                    task_id TEXT NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
                    tag     TEXT NOT NULL,
                    PRIMARY KEY (task_id, tag)
                )
                """
            )

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_priority ON tasks(priority)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_assigned_to ON tasks(assigned_to)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_task_tags_tag ON task_tags(tag)")

    # ---- row mapping ----

    @staticmethod
    def _str_to_tags(s: str | None) -> set[str]:
        if not s:
            return set()
        return clean_tags(s.split(_TAG_SEP))

    @staticmethod
    def _safe_ts(task_id: str, column: str, raw: str | None):
        try:
            return parse_ts(raw)
        except ValueError:
            logger.warning("TaskStore: bad timestamp task=%s %s=%r", task_id, column, raw)
            return None

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        task_id = str(row["id"])
        created_at = self._safe_ts(task_id, "created_at", row["created_at"]) or now_ts()
        updated_at = self._safe_ts(task_id, "updated_at", row["updated_at"]) or created_at
        return Task(
            id=task_id,
            title=str(row["title"] or ""),
            description=row["description"],
            status=TaskStatus.from_db(row["status"]),
            priority=TaskPriority.from_db(row["priority"]),
            time_spent=float(row["time_spent"] or 0.0),
            timer_start=self._safe_ts(task_id, "start_time", row["start_time"]),
            timer_end=self._safe_ts(task_id, "end_time", row["end_time"]),
            tags=self._str_to_tags(row["tag_list"]),
            assigned_to=row["assigned_to"],
            created_at=created_at,
            updated_at=updated_at,
        )

    # ---- write-path building blocks (run inside a transaction) ----

    @staticmethod
    def _header_params(task: Task) -> dict[str, Any]:
        return {
            "id": task.id,
            "title": task.title,
            "description": task.description,
            "status": task.status.value,
            "priority": task.priority.value,
            "time_spent": float(max(0.0, task.time_spent)),
            "start_time": format_ts(task.timer_start),
            "end_time": format_ts(task.timer_end),
            "assigned_to": task.assigned_to,
            "created_at": format_ts(task.created_at),
            "updated_at": format_ts(task.updated_at),
        }

    def _insert_header(self, conn: sqlite3.Connection, task: Task) -> None:
        conn.execute(
            """
            INSERT INTO tasks(
                id, title, description, status, priority, time_spent,
                start_time, end_time, assigned_to, created_at, updated_at
            )
            VALUES (
                :id, :title, :description, :status, :priority, :time_spent,
                :start_time, :end_time, :assigned_to, :created_at, :updated_at
            )
            """,
            self._header_params(task),
        )

    def _update_header(self, conn: sqlite3.Connection, task: Task) -> int:
        cur = conn.execute(
            """
            UPDATE tasks
            SET title = :title,
                description = :description,
                status = :status,
                priority = :priority,
                time_spent = :time_spent,
                start_time = :start_time,
                end_time = :end_time,
                assigned_to = :assigned_to,
                updated_at = :updated_at
            WHERE id = :id
            """,
            self._header_params(task),
        )
        return cur.rowcount

    @staticmethod
    def _delete_tags(conn: sqlite3.Connection, task_id: str) -> None:
        conn.execute("DELETE FROM task_tags WHERE task_id = ?", (task_id,))

    @staticmethod
    def _insert_tags(conn: sqlite3.Connection, task_id: str, tags: Iterable[str]) -> None:
        rows = [(task_id, t) for t in sorted(clean_tags(tags))]
        if rows:
            conn.executemany("INSERT INTO task_tags(task_id, tag) VALUES (?, ?)", rows)

    def _replace_tags(self, conn: sqlite3.Connection, task_id: str, tags: Iterable[str]) -> None:
        self._delete_tags(conn, task_id)
        self._insert_tags(conn, task_id, tags)

    # ---- reads ----

    def _query(self, where: str = "", params: Iterable[Any] = (), *, what: str) -> list[Task]:
        sql = _SELECT_TASKS + where + _GROUP_ORDER
        try:
            with self.connection() as conn:
                rows = conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error:
            logger.exception("TaskStore %s failed", what)
            return []

        tasks: list[Task] = []
        for r in rows:
            try:
                tasks.append(self._row_to_task(r))
            except (ValueError, TypeError):
                # A corrupt row must not hide the rest of the board.
                logger.warning("TaskStore %s: skipping unreadable row id=%r", what, r["id"], exc_info=True)
        return tasks

    def count_tasks(self) -> int | None:
        try:
            with self.connection() as conn:
                (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
                return int(n)
        except sqlite3.Error:
            logger.exception("TaskStore count_tasks failed")
            return None

    def exists(self, task_id: str) -> bool:
        if not task_id:
            return False
        try:
            with self.connection() as conn:
                row = conn.execute("SELECT 1 FROM tasks WHERE id = ?", (task_id,)).fetchone()
                return row is not None
        except sqlite3.Error:
            logger.exception("TaskStore exists failed id=%s", task_id)
            return False

    def get_all(self) -> list[Task]:
        return self._query(what="get_all")

    def get_by_id(self, task_id: str) -> Task | None:
        if not task_id:
            return None
        tasks = self._query(" WHERE t.id = ?", (task_id,), what=f"get_by_id({task_id})")
        return tasks[0] if tasks else None

    def get_by_status(self, status: TaskStatus) -> list[Task]:
        return self._query(" WHERE t.status = ?", (status.value,), what="get_by_status")

    def search(self, term: str) -> list[Task]:
        """Case-insensitive substring match over title OR description."""
        needle = (term or "").casefold()
        return self._query(
            " WHERE instr(py_casefold(t.title), ?) > 0"
            " OR instr(py_casefold(COALESCE(t.description, '')), ?) > 0",
            (needle, needle),
            what="search",
        )

    def filter_by_priority(self, priority: TaskPriority) -> list[Task]:
        return self._query(" WHERE t.priority = ?", (priority.value,), what="filter_by_priority")

    def filter_by_tag(self, tag: str) -> list[Task]:
        t = clean_tag(tag)
        if not t:
            return []
        # Subquery keeps the full tag aggregate (an inner join on the tag would not).
        return self._query(
            " WHERE t.id IN (SELECT task_id FROM task_tags WHERE tag = ?)",
            (t,),
            what="filter_by_tag",
        )

    def filter_by_assigned_user(self, user: str) -> list[Task]:
        return self._query(" WHERE t.assigned_to = ?", (user,), what="filter_by_assigned_user")

    # ---- writes ----

    def insert(self, task: Task) -> bool:
        try:
            with self.transaction() as conn:
                self._insert_header(conn, task)
                self._replace_tags(conn, task.id, task.tags)
        except sqlite3.Error:
            logger.exception("TaskStore insert failed id=%s (rolled back)", task.id)
            return False
        logger.debug("Task inserted id=%s status=%s tags=%d", task.id, task.status, len(task.tags))
        return True

    def update(self, task: Task) -> bool:
        try:
            with self.transaction() as conn:
                if self._update_header(conn, task) == 0:
                    logger.debug("TaskStore update: no row id=%s", task.id)
                    return False
                self._replace_tags(conn, task.id, task.tags)
        except sqlite3.Error:
            logger.exception("TaskStore update failed id=%s (rolled back)", task.id)
            return False
        logger.debug("Task updated id=%s status=%s tags=%d", task.id, task.status, len(task.tags))
        return True

    def delete(self, task_id: str) -> bool:
        if not task_id:
            return False
        try:
            with self.transaction() as conn:
                self._delete_tags(conn, task_id)
                removed = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,)).rowcount
        except sqlite3.Error:
            logger.exception("TaskStore delete failed id=%s (rolled back)", task_id)
            return False
        logger.debug("Task delete id=%s removed=%s", task_id, removed)
        return removed > 0
