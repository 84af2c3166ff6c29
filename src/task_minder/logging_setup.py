# src/task_minder/logging_setup.py

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

APP_LOGGER_PREFIX = "task_minder."

# Background components: only WARNING+ reaches the console prompt.
BACKGROUND_LOGGERS = ("task_minder.tasks.reminders", "task_minder.tasks.task_sync")

LOG_FILE_NAME = "task_minder.log"
LOG_FILE_MAX_BYTES = 2 * 1024 * 1024
LOG_FILE_BACKUPS = 3


class _PromptFriendlyFilter(logging.Filter):
    """
    Console lines share the terminal with the REPL prompt, so keep them few:
    app logs pass (background loops only at WARNING+), captured Python
    warnings and third-party loggers (httpx, asyncio, ...) only at ERROR+.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not name.startswith(APP_LOGGER_PREFIX):
            return record.levelno >= logging.ERROR
        if name.startswith(BACKGROUND_LOGGERS):
            return record.levelno >= logging.WARNING
        return True


def _formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)-7s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def setup_logging(
    *,
    log_dir: str | Path = ".local/task_minder",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route every logger to two handlers:
    - stderr, filtered for the interactive prompt
    - a size-rotated file under `log_dir` with everything at `file_level`

    Call once at startup; existing root handlers are replaced.
    Returns the log file path.
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = log_path / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_formatter())
    console.addFilter(_PromptFriendlyFilter())
    root.addHandler(console)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(_formatter())
    root.addHandler(file_handler)

    # warnings.warn(...) ends up as 'py.warnings' records.
    logging.captureWarnings(True)
    return log_file
