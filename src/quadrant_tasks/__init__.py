"""Eisenhower-quadrant personal task manager (SQLite storage, AI reports, GitLab import)."""

__version__ = "0.1.0"
