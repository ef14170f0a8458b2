# src/quadrant_tasks/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

APP_LOGGER_PREFIX = "quadrant_tasks"
LOG_FILE_NAME = "quadrant_tasks.log"


class _ConsoleNoiseFilter(logging.Filter):
    """Pass every quadrant_tasks record; other loggers reach stderr only at ERROR and above."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == APP_LOGGER_PREFIX or record.name.startswith(APP_LOGGER_PREFIX + "."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/quadrant_tasks",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route all records to stderr (filtered) and to `<log_dir>/quadrant_tasks.log`.

    Existing root handlers are replaced, so calling it again reconfigures
    rather than duplicating output. Returns the log file path.
    """
    log_file = Path(log_dir) / LOG_FILE_NAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for h in list(root.handlers):
        root.removeHandler(h)
        if isinstance(h, logging.FileHandler):
            h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    # warnings.warn(...) arrives as 'py.warnings' records
    logging.captureWarnings(True)
    return log_file
