# src/quadrant_tasks/reports/export.py

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from ..errors import TaskStorageError

logger = logging.getLogger(__name__)

REPORTS_SUBDIR = "reports"


def report_filename(start: date, end: date) -> str:
    return f"work_report_{start:%Y%m%d}-{end:%Y%m%d}.txt"


def save_report(text: str, directory: str | Path, start: date, end: date) -> Path:
    """
    Write report text to `<directory>/reports/work_report_<start>-<end>.txt`.

    An existing file for the same range is overwritten.
    """
    path = Path(directory) / REPORTS_SUBDIR / report_filename(start, end)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise TaskStorageError(f"cannot write report {path}: {e}") from e
    logger.info("Report saved path=%s chars=%d", path, len(text))
    return path
