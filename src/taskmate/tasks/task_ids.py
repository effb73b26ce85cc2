# src/taskmate/tasks/task_ids.py

"""
Sequential task ids: T1, T2, T3, ...

The next id is 1 + the largest numeric suffix among ids shaped like
"T<digits>". Read-max-then-insert is NOT atomic: two processes allocating at
the same time can both get the same id (the second insert then fails on the
primary key). This is accepted for a single-writer board; a multi-writer
deployment needs an atomic counter or an insert-retry loop instead.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from ..core.ports import ConnectionProvider

logger = logging.getLogger(__name__)

ID_PREFIX = "T"

_MAX_SEQ_SQL = """
    SELECT MAX(CAST(SUBSTR(id, 2) AS INTEGER))
    FROM tasks
    WHERE id GLOB 'T[0-9]*'
      AND SUBSTR(id, 2) NOT GLOB '*[^0-9]*'
"""


def format_task_id(n: int) -> str:
    return f"{ID_PREFIX}{int(n)}"


class SequentialIdAllocator:
    def __init__(
        self,
        store: ConnectionProvider,
        *,
        clock_ms: Callable[[], int] | None = None,
    ) -> None:
        self._store = store
        self._clock_ms = clock_ms or (lambda: int(time.time() * 1000))

    def max_sequence(self) -> int:
        """Largest allocated number (0 for an empty board). Raises on storage failure."""
        with self._store.connection() as conn:
            row = conn.execute(_MAX_SEQ_SQL).fetchone()
        value = row[0] if row is not None else None
        return int(value) if value is not None else 0

    def next_id(self) -> str:
        try:
            return format_task_id(self.max_sequence() + 1)
        except Exception:
            # Creation must never block on id generation.
            fallback = format_task_id(self._clock_ms())
            logger.warning("Could not compute sequential id; using time-based id %s", fallback, exc_info=True)
            return fallback
