# src/task_minder/tasks/task_store.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
import uuid
from collections.abc import AsyncIterator, Callable
from dataclasses import replace
from pathlib import Path
from typing import Any, TypeVar

from ..core.streams import StateStream
from ..errors import StorageError
from .task_models import Task

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskStore:
    """
    SQLite task store implementing the TaskRepo port.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Concurrency:
    - each method opens its own SQLite connection
    - blocking work runs in a worker thread (asyncio.to_thread)
    - the revision stream is bumped on the loop thread after every write,
      which is what drives live queries
    """

    def __init__(
        self,
        db_path: str | Path = "tasks.sqlite3",
        *,
        current_user_id: Callable[[], str] = lambda: "",
    ) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._current_user_id = current_user_id
        self._revision: StateStream[int] = StateStream(0)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except Exception:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    seq INTEGER NOT NULL DEFAULT 0,
                    title TEXT NOT NULL DEFAULT '',
                    priority TEXT NOT NULL DEFAULT '',
                    due_date TEXT NOT NULL DEFAULT '',
                    due_time TEXT NOT NULL DEFAULT '',
                    description TEXT NOT NULL DEFAULT '',
                    completed INTEGER NOT NULL DEFAULT 0,
                    alert INTEGER NOT NULL DEFAULT 0,
                    user_id TEXT NOT NULL DEFAULT '',
                    notification_id INTEGER
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("seq", "INTEGER NOT NULL DEFAULT 0")
            add_col("priority", "TEXT NOT NULL DEFAULT ''")
            add_col("due_time", "TEXT NOT NULL DEFAULT ''")
            add_col("completed", "INTEGER NOT NULL DEFAULT 0")
            add_col("alert", "INTEGER NOT NULL DEFAULT 0")
            add_col("notification_id", "INTEGER")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_user_date ON tasks(user_id, due_date)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=str(row["id"]),
            title=str(row["title"] or ""),
            priority=str(row["priority"] or ""),
            due_date=str(row["due_date"] or ""),
            due_time=str(row["due_time"] or ""),
            description=str(row["description"] or ""),
            completed=bool(row["completed"]),
            alert=bool(row["alert"]),
            user_id=str(row["user_id"] or ""),
            notification_id=int(row["notification_id"]) if row["notification_id"] is not None else None,
        )

    async def _call(self, op: str, fn: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(fn, *args)
        except sqlite3.Error as e:
            raise StorageError(f"Task storage failed ({op}): {e}", cause=e) from e

    def _bump(self) -> None:
        self._revision.set(self._revision.value + 1)

    # ---- sync primitives (worker thread) ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def _select_for_day(self, user_id: str, date_key: str) -> list[Task]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            # Insertion order, the backend's natural order.
            cur.execute(
                "SELECT * FROM tasks WHERE user_id = ? AND due_date = ? ORDER BY seq ASC",
                (user_id, date_key),
            )
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def _select_one(self, task_id: str) -> Task | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tasks WHERE id = ?", (task_id,))
            row = cur.fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def _insert(self, task: Task) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO tasks(
                    id, seq, title, priority, due_date, due_time, description,
                    completed, alert, user_id, notification_id
                )
                VALUES (?, (SELECT COALESCE(MAX(seq), 0) + 1 FROM tasks), ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task.id,
                    task.title,
                    task.priority,
                    task.due_date,
                    task.due_time,
                    task.description,
                    int(task.completed),
                    int(task.alert),
                    task.user_id,
                    task.notification_id,
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def _overwrite(self, task: Task) -> None:
        """Full document overwrite; creates the row if it vanished."""
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE tasks
                SET title = ?, priority = ?, due_date = ?, due_time = ?, description = ?,
                    completed = ?, alert = ?, user_id = ?, notification_id = ?
                WHERE id = ?
                """,
                (
                    task.title,
                    task.priority,
                    task.due_date,
                    task.due_time,
                    task.description,
                    int(task.completed),
                    int(task.alert),
                    task.user_id,
                    task.notification_id,
                    task.id,
                ),
            )
            conn.commit()
            updated = cur.rowcount == 1
        finally:
            conn.close()
        if not updated:
            self._insert(task)

    def _remove(self, task_id: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            conn.commit()
        finally:
            conn.close()

    def _select_alerts(self, user_id: str) -> list[Task]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "SELECT * FROM tasks WHERE user_id = ? AND alert = 1 AND completed = 0 ORDER BY seq ASC",
                (user_id,),
            )
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    # ---- public API (TaskRepo) ----

    async def query_by_user_and_date(self, user_id: str, date_key: str) -> AsyncIterator[list[Task]]:
        """
        Live query: emit the matching tasks now and again after every write.

        Runs until the consumer closes the generator (or cancels the task
        iterating it); that releases the revision subscription.
        """
        logger.debug("Subscribing to tasks user=%s date=%s", user_id, date_key)
        try:
            async with contextlib.aclosing(self._revision.subscribe()) as revisions:
                async for _rev in revisions:
                    yield await self._call("query", self._select_for_day, user_id, date_key)
        finally:
            logger.debug("Unsubscribed from tasks user=%s date=%s", user_id, date_key)

    async def get_by_id(self, task_id: str) -> Task | None:
        if not task_id or not task_id.strip():
            return None
        return await self._call("get", self._select_one, task_id)

    async def create(self, task: Task) -> str:
        task_id = uuid.uuid4().hex
        stored = replace(task, id=task_id, user_id=self._current_user_id())
        await self._call("create", self._insert, stored)
        self._bump()
        logger.debug("Task created id=%s user=%s due=%s", task_id, stored.user_id, stored.due_date)
        return task_id

    async def update(self, task: Task) -> None:
        if task.is_new:
            raise StorageError("Cannot update a task without id")
        await self._call("update", self._overwrite, task)
        self._bump()
        logger.debug("Task updated id=%s completed=%s", task.id, task.completed)

    async def delete(self, task_id: str) -> None:
        await self._call("delete", self._remove, task_id)
        self._bump()
        logger.debug("Task deleted id=%s", task_id)

    async def list_alert_tasks(self, user_id: str) -> list[Task]:
        """Open tasks with alert=True, used to re-arm reminders at startup."""
        if not user_id:
            return []
        return await self._call("list_alerts", self._select_alerts, user_id)
