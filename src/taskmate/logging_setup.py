# src/taskmate/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "taskmate.log"
APP_LOGGER = "taskmate"
STORE_LOGGER = "taskmate.tasks.task_store"


class _ReplFilter(logging.Filter):
    """
    Console side of the split.

    The REPL already prints "Error: Could not save task ..." for a failed
    write, so repository rollbacks (records carrying a traceback) are kept
    for the log file. Anything outside the app is shown only at ERROR+.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith(STORE_LOGGER) and record.exc_info:
            return False
        if record.name == APP_LOGGER or record.name.startswith(APP_LOGGER + "."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskmate",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Install one stderr handler and one file handler on the root logger.

    Console lines are short (the REPL stamps its own output); the file keeps
    timestamps and full tracebacks. Returns the log file path.
    """
    log_file = Path(log_dir) / LOG_FILE_NAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for h in list(root.handlers):
        root.removeHandler(h)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    console.addFilter(_ReplFilter())
    root.addHandler(console)

    file = logging.FileHandler(log_file, encoding="utf-8")
    file.setLevel(file_level)
    file.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(file)

    logging.captureWarnings(True)
    return log_file
