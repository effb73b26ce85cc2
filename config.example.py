# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file,
see src/taskmate/config.py). Every variable is optional.

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TASKMATE_APP_NAME": "App display name (default: TaskMate).",
    "TASKMATE_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Front-end
    "TASKMATE_CONSOLE_ENABLED": "Start the interactive console when no command is given (true/false).",
    # Paths (gitignored)
    "TASKMATE_DATA_DIR": "Local data directory, also holds taskmate.log (default: .local/taskmate).",
    "TASKMATE_DB_PATH": "Board SQLite path (default: <data_dir>/tasks.sqlite3).",
    "TASKMATE_EXPORT_DIR": "Where /export writes taskmate_export_<timestamp>.json (default: <data_dir>/exports).",
    "TASKMATE_IMPORT_PATH": "File read by /import without a path (default: <data_dir>/taskmate_data.json).",
}
