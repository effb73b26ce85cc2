# src/taskmate/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then either:
- runs a single slash command given on the command line (`taskmate /board`), or
- starts the console REPL in the main thread.
"""

from __future__ import annotations

import logging
import shlex
import signal
import sys

from ..cli.bootstrap import create_initial_state
from ..cli.commands import registry as command_registry
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Report what is left behind; timers keep running across restarts."""
    running = state.tasks.running_task()
    if running is not None:
        logger.info("Timer still running for %s (%s).", running.id, running.title)


def _run_once(state, argv: list[str]) -> int:
    line = argv[0] if len(argv) == 1 else shlex.join(argv)
    if not line.startswith("/"):
        line = "/" + line
    response = command_registry.handle(state, line)
    print(response)
    return 1 if response is None or response.startswith(("Error:", "Unknown command")) else 0


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    if argv is None:
        argv = sys.argv[1:]

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/taskmate")
    log_file = setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s (log file %s)...", getattr(settings, "app_name", "TaskMate"), log_file)

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        raise KeyboardInterrupt

    signal.signal(signal.SIGTERM, _handle_signal)

    exit_code = 0
    try:
        if argv:
            exit_code = _run_once(state, argv)
        elif settings.console_enabled:
            run_console_loop(state)
        else:
            logger.info("Console disabled and no command given; nothing to do.")
    finally:
        _shutdown(state)
        logger.info("Bye.")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
