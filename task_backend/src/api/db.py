from __future__ import annotations

import logging
import os
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Generator, List, Optional

from .errors import ConflictError
from .models import TaskEntity, UserEntity
from .repositories import TaskQuery, TaskRepository, UserRepository
from .schemas import ProfileUpdate, TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _UserCols:
    table: str = "users"
    id: str = "id"
    name: str = "name"
    email: str = "email"
    password_hash: str = "password_hash"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


@dataclass(frozen=True)
class _TaskCols:
    table: str = "tasks"
    id: str = "id"
    user_id: str = "user_id"
    title: str = "title"
    description: str = "description"
    status: str = "status"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_U = _UserCols()
_T = _TaskCols()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _parse_dt(s: str) -> datetime:
    return datetime.fromisoformat(s)


class SQLiteDatabase:
    """
    A SQLite database file holding the users and tasks tables.

    The schema is created once, when the object is built; each operation then
    opens a short-lived connection and commits on success.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()
        logger.info("SQLite database ready at %s", db_path)

    @contextmanager
    def connect(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self.connect() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_U.table} (
                    {_U.id} TEXT PRIMARY KEY,
                    {_U.name} TEXT NOT NULL,
                    {_U.email} TEXT NOT NULL UNIQUE,
                    {_U.password_hash} TEXT NOT NULL,
                    {_U.created_at} TEXT NOT NULL,
                    {_U.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_T.table} (
                    {_T.id} TEXT PRIMARY KEY,
                    {_T.user_id} TEXT NOT NULL,
                    {_T.title} TEXT NOT NULL,
                    {_T.description} TEXT NULL,
                    {_T.status} TEXT NOT NULL DEFAULT 'todo',
                    {_T.created_at} TEXT NOT NULL,
                    {_T.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_T.table}_user_created "
                f"ON {_T.table}({_T.user_id}, {_T.created_at})"
            )


class SQLiteUserRepository(UserRepository):
    """
    Credential store backed by SQLite. Email uniqueness is a table constraint.
    """

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def _row_to_entity(self, row: sqlite3.Row) -> UserEntity:
        return {
            "id": str(row[_U.id]),
            "name": str(row[_U.name]),
            "email": str(row[_U.email]),
            "password_hash": str(row[_U.password_hash]),
            "created_at": _parse_dt(row[_U.created_at]),
            "updated_at": _parse_dt(row[_U.updated_at]),
        }

    def create(self, name: str, email: str, password_hash: str) -> UserEntity:
        now = _now_iso()
        user_id = uuid.uuid4().hex
        try:
            with self._db.connect() as conn:
                conn.execute(
                    f"""
                    INSERT INTO {_U.table} ({_U.id}, {_U.name}, {_U.email}, {_U.password_hash},
                        {_U.created_at}, {_U.updated_at})
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (user_id, name, email.lower(), password_hash, now, now),
                )
                row = conn.execute(f"SELECT * FROM {_U.table} WHERE {_U.id} = ?", (user_id,)).fetchone()
        except sqlite3.IntegrityError as exc:
            raise ConflictError("Email already in use") from exc
        assert row is not None
        return self._row_to_entity(row)

    def get(self, user_id: str) -> Optional[UserEntity]:
        with self._db.connect() as conn:
            row = conn.execute(f"SELECT * FROM {_U.table} WHERE {_U.id} = ?", (user_id,)).fetchone()
            return self._row_to_entity(row) if row else None

    def get_by_email(self, email: str) -> Optional[UserEntity]:
        with self._db.connect() as conn:
            row = conn.execute(
                f"SELECT * FROM {_U.table} WHERE {_U.email} = ?", (email.lower(),)
            ).fetchone()
            return self._row_to_entity(row) if row else None

    def update(self, user_id: str, data: ProfileUpdate) -> Optional[UserEntity]:
        with self._db.connect() as conn:
            if data.name is not None:
                conn.execute(
                    f"UPDATE {_U.table} SET {_U.name} = ?, {_U.updated_at} = ? WHERE {_U.id} = ?",
                    (data.name, _now_iso(), user_id),
                )
            row = conn.execute(f"SELECT * FROM {_U.table} WHERE {_U.id} = ?", (user_id,)).fetchone()
            return self._row_to_entity(row) if row else None


class SQLiteTaskRepository(TaskRepository):
    """
    Task store backed by SQLite. Every statement except INSERT filters on the owner.
    """

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def _row_to_entity(self, row: sqlite3.Row) -> TaskEntity:
        return {
            "id": str(row[_T.id]),
            "user_id": str(row[_T.user_id]),
            "title": str(row[_T.title]),
            "description": row[_T.description] if row[_T.description] is not None else None,
            "status": str(row[_T.status]),
            "created_at": _parse_dt(row[_T.created_at]),
            "updated_at": _parse_dt(row[_T.updated_at]),
        }

    def _select_owned(self, conn: sqlite3.Connection, task_id: str, owner_id: str) -> Optional[sqlite3.Row]:
        return conn.execute(
            f"SELECT * FROM {_T.table} WHERE {_T.id} = ? AND {_T.user_id} = ?",
            (task_id, owner_id),
        ).fetchone()

    def create(self, owner_id: str, data: TaskCreate) -> TaskEntity:
        now = _now_iso()
        task_id = uuid.uuid4().hex
        with self._db.connect() as conn:
            conn.execute(
                f"""
                INSERT INTO {_T.table} ({_T.id}, {_T.user_id}, {_T.title}, {_T.description},
                    {_T.status}, {_T.created_at}, {_T.updated_at})
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (task_id, owner_id, data.title, data.description, data.status.value, now, now),
            )
            row = self._select_owned(conn, task_id, owner_id)
            assert row is not None
            return self._row_to_entity(row)

    def get(self, task_id: str, owner_id: str) -> Optional[TaskEntity]:
        with self._db.connect() as conn:
            row = self._select_owned(conn, task_id, owner_id)
            return self._row_to_entity(row) if row else None

    def update(self, task_id: str, owner_id: str, data: TaskUpdate) -> Optional[TaskEntity]:
        changes = data.changes()
        with self._db.connect() as conn:
            if changes:
                # Column names come from the TaskUpdate schema, never from request keys.
                assignments = ", ".join(f"{getattr(_T, field)} = ?" for field in changes)
                conn.execute(
                    f"""
                    UPDATE {_T.table}
                    SET {assignments}, {_T.updated_at} = ?
                    WHERE {_T.id} = ? AND {_T.user_id} = ?
                    """,
                    [*changes.values(), _now_iso(), task_id, owner_id],
                )
            row = self._select_owned(conn, task_id, owner_id)
            return self._row_to_entity(row) if row else None

    def delete(self, task_id: str, owner_id: str) -> bool:
        with self._db.connect() as conn:
            cur = conn.execute(
                f"DELETE FROM {_T.table} WHERE {_T.id} = ? AND {_T.user_id} = ?",
                (task_id, owner_id),
            )
            return cur.rowcount > 0

    def list(self, owner_id: str, query: Optional[TaskQuery] = None) -> List[TaskEntity]:
        q = query or TaskQuery()
        clauses = [f"{_T.user_id} = ?"]
        params: list = [owner_id]

        if q.status is not None:
            clauses.append(f"{_T.status} = ?")
            params.append(q.status)

        if q.title_contains:
            # instr() keeps % and _ in the search text literal, unlike LIKE.
            clauses.append(f"instr(lower({_T.title}), lower(?)) > 0")
            params.append(q.title_contains)

        where_sql = " AND ".join(clauses)
        with self._db.connect() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM {_T.table}
                WHERE {where_sql}
                ORDER BY {_T.created_at} DESC, rowid DESC
                LIMIT ?
                """,
                [*params, q.effective_limit],
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]
