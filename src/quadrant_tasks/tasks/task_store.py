# src/quadrant_tasks/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import threading
from collections.abc import Callable, Iterator
from pathlib import Path

from ..errors import TaskConflictError, TaskDecodeError, TaskStorageError
from .task_models import Task, TaskStatus

logger = logging.getLogger(__name__)


def _tags_to_str(tags: list[str] | None) -> str:
    """Encode tags as a JSON array. None and [] both become ""."""
    if not tags:
        return ""
    return json.dumps([str(t) for t in tags], ensure_ascii=False)


def _str_to_tags(s: str | None, *, task_id: str = "?") -> list[str] | None:
    if not s:
        return None
    try:
        val = json.loads(s)
    except ValueError as e:
        raise TaskDecodeError(f"tags of task {task_id} are not valid JSON") from e
    if not isinstance(val, list) or not all(isinstance(t, str) for t in val):
        raise TaskDecodeError(f"tags of task {task_id} are not a list of strings")
    return val or None


class TaskStore:
    """
    SQLite task store.

    One `tasks` table keyed by the task id; no migrations.

    Thread-safety:
    - a single connection is opened for the store's lifetime
    - every operation holds one re-entrant lock, so operations never interleave
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._lock = threading.RLock()
        self._conn: sqlite3.Connection | None = None

        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise TaskStorageError(f"cannot create data directory {self._db_path.parent}: {e}") from e

        try:
            self._conn = sqlite3.connect(str(self._db_path), timeout=30.0, check_same_thread=False)
        except sqlite3.Error as e:
            raise TaskStorageError(f"cannot open task database {self._db_path}: {e}") from e
        self._conn.row_factory = sqlite3.Row

        try:
            self._ensure_schema()
        except TaskStorageError:
            self.close()
            raise
        logger.info("TaskStore ready db=%s total=%s", self._db_path, self.count_tasks())

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.debug("TaskStore closed db=%s", self._db_path)

    # ---- low-level helpers ----

    @contextlib.contextmanager
    def _locked(self, op: str) -> Iterator[sqlite3.Connection]:
        """Hold the store lock and turn sqlite failures into TaskStorageError."""
        with self._lock:
            if self._conn is None:
                raise TaskStorageError(f"{op}: task store is closed")
            conn = self._conn
            try:
                yield conn
            except sqlite3.Error as e:
                with contextlib.suppress(sqlite3.Error):
                    conn.rollback()
                logger.error("TaskStore %s failed: %s", op, e)
                raise TaskStorageError(f"{op} failed: {e}") from e

    def _ensure_schema(self) -> None:
        with self._locked("ensure_schema") as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT,
                    quadrant INTEGER NOT NULL,
                    created_at TEXT NOT NULL,
                    completed_at TEXT,
                    status TEXT NOT NULL,
                    tags TEXT
                )
                """
            )
            conn.commit()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        task_id = str(row["id"])
        try:
            quadrant = int(row["quadrant"])
        except (TypeError, ValueError) as e:
            raise TaskDecodeError(f"quadrant of task {task_id} is not an integer") from e

        return Task(
            id=task_id,
            title=str(row["title"] or ""),
            description=str(row["description"] or ""),
            quadrant=quadrant,
            created_at=str(row["created_at"] or ""),
            completed_at=row["completed_at"],
            status=TaskStatus.from_db(row["status"]),
            tags=_str_to_tags(row["tags"], task_id=task_id),
        )

    @staticmethod
    def _write_row(conn: sqlite3.Connection, task: Task) -> int:
        cur = conn.execute(
            """
            UPDATE tasks
            SET title = ?,
                description = ?,
                quadrant = ?,
                completed_at = ?,
                status = ?,
                tags = ?
            WHERE id = ?
            """,
            (
                task.title,
                task.description,
                int(task.quadrant),
                task.completed_at,
                TaskStatus(task.status).value,
                _tags_to_str(task.tags),
                task.id,
            ),
        )
        return cur.rowcount

    # ---- public API ----

    def count_tasks(self) -> int:
        with self._locked("count_tasks") as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def insert_task(self, task: Task) -> None:
        with self._locked("insert_task") as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO tasks(
                        id, title, description, quadrant,
                        created_at, completed_at, status, tags
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        task.id,
                        task.title,
                        task.description,
                        int(task.quadrant),
                        task.created_at,
                        task.completed_at,
                        TaskStatus(task.status).value,
                        _tags_to_str(task.tags),
                    ),
                )
            except sqlite3.IntegrityError as e:
                conn.rollback()
                raise TaskConflictError(task.id) from e
            conn.commit()
        logger.debug(
            "Task inserted id=%s quadrant=%s status=%s",
            task.id,
            task.quadrant,
            TaskStatus(task.status).value,
        )

    def list_tasks(self) -> list[Task]:
        """Every stored task, in storage order (no ORDER BY)."""
        with self._locked("list_tasks") as conn:
            rows = conn.execute("SELECT * FROM tasks").fetchall()
            return [self._row_to_task(r) for r in rows]

    def get_task(self, task_id: str) -> Task | None:
        with self._locked("get_task") as conn:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
            return self._row_to_task(row) if row else None

    def update_task(self, task: Task) -> bool:
        """
        Overwrite the mutable columns of the row with task.id.

        A missing id is a no-op: nothing is inserted and no error is raised.
        Returns True if a row was updated.
        """
        with self._locked("update_task") as conn:
            n = self._write_row(conn, task)
            conn.commit()
        if n == 0:
            logger.debug("update_task: no row for id=%s", task.id)
        return n == 1

    def modify_task(self, task_id: str, mutate: Callable[[Task], None]) -> Task | None:
        """
        Read, mutate in memory and write back one task as a single transaction.

        Returns the updated task, or None if the id does not exist.
        Exceptions from `mutate` roll back and propagate.
        """
        with self._locked("modify_task") as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
                if row is None:
                    conn.rollback()
                    return None
                task = self._row_to_task(row)
                mutate(task)
                # id is immutable; the row is addressed by the original one
                task.id = str(row["id"])
                self._write_row(conn, task)
            except Exception:
                conn.rollback()
                raise
            conn.commit()
        logger.debug("Task modified id=%s status=%s", task.id, TaskStatus(task.status).value)
        return task

    def delete_task(self, task_id: str) -> bool:
        """Delete by id. A missing id is a no-op. Returns True if a row was removed."""
        with self._locked("delete_task") as conn:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            conn.commit()
            deleted = cur.rowcount == 1
        logger.debug("delete_task id=%s deleted=%s", task_id, deleted)
        return deleted
