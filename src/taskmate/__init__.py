# src/taskmate/__init__.py

"""TaskMate: a kanban task board with a built-in stopwatch, stored in SQLite."""

__version__ = "0.1.0"
