from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock, RLock
from typing import Dict, List, Optional

from fastapi import Depends

from .errors import ConflictError
from .models import TaskEntity, UserEntity
from .schemas import ProfileUpdate, TaskCreate, TaskUpdate
from .settings import get_settings

logger = logging.getLogger(__name__)

# Hard ceiling on rows returned by a task listing. There is no cursor beyond it.
MAX_TASKS = 200


@dataclass(frozen=True)
class TaskQuery:
    """
    Filters for listing a user's tasks.
    """
    title_contains: Optional[str] = None  # case-insensitive substring of the title
    status: Optional[str] = None
    limit: int = MAX_TASKS

    @property
    def effective_limit(self) -> int:
        return min(max(self.limit, 0), MAX_TASKS)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


# PUBLIC_INTERFACE
class UserRepository(ABC):
    """Abstract credential store contract."""

    @abstractmethod
    def create(self, name: str, email: str, password_hash: str) -> UserEntity:
        """Create and return a new user. Raises ConflictError if the email is taken."""

    @abstractmethod
    def get(self, user_id: str) -> Optional[UserEntity]:
        """Return a user by id, or None if not found."""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[UserEntity]:
        """Return a user by (case-insensitive) email, or None if not found."""

    @abstractmethod
    def update(self, user_id: str, data: ProfileUpdate) -> Optional[UserEntity]:
        """Apply a profile update. Return the updated user or None if not found."""


# PUBLIC_INTERFACE
class TaskRepository(ABC):
    """
    Abstract task store contract.

    Every read, update and delete takes the owning user id and matches on both
    the task id and the owner, so a task belonging to someone else is
    indistinguishable from a missing one.
    """

    @abstractmethod
    def create(self, owner_id: str, data: TaskCreate) -> TaskEntity:
        """Create and return a new task owned by owner_id."""

    @abstractmethod
    def get(self, task_id: str, owner_id: str) -> Optional[TaskEntity]:
        """Return the task if it exists and belongs to owner_id, else None."""

    @abstractmethod
    def update(self, task_id: str, owner_id: str, data: TaskUpdate) -> Optional[TaskEntity]:
        """Apply the provided fields. Return the updated task or None if not found for owner_id."""

    @abstractmethod
    def delete(self, task_id: str, owner_id: str) -> bool:
        """Delete the task. Return True if deleted, False if not found for owner_id."""

    @abstractmethod
    def list(self, owner_id: str, query: Optional[TaskQuery] = None) -> List[TaskEntity]:
        """
        Return owner_id's tasks matching the query, newest first, at most MAX_TASKS.
        """


class InMemoryUserRepository(UserRepository):
    """
    Thread-safe in-memory credential store.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, UserEntity] = {}
        self._by_email: Dict[str, str] = {}

    def create(self, name: str, email: str, password_hash: str) -> UserEntity:
        key = email.lower()
        now = _now()
        with self._lock:
            if key in self._by_email:
                raise ConflictError("Email already in use")
            entity: UserEntity = {
                "id": _new_id(),
                "name": name,
                "email": key,
                "password_hash": password_hash,
                "created_at": now,
                "updated_at": now,
            }
            self._items[entity["id"]] = entity
            self._by_email[key] = entity["id"]
            return entity.copy()

    def get(self, user_id: str) -> Optional[UserEntity]:
        with self._lock:
            item = self._items.get(user_id)
            return None if item is None else item.copy()

    def get_by_email(self, email: str) -> Optional[UserEntity]:
        with self._lock:
            user_id = self._by_email.get(email.lower())
            return None if user_id is None else self._items[user_id].copy()

    def update(self, user_id: str, data: ProfileUpdate) -> Optional[UserEntity]:
        with self._lock:
            existing = self._items.get(user_id)
            if existing is None:
                return None
            if data.name is None:
                return existing.copy()
            updated = existing.copy()
            updated["name"] = data.name
            updated["updated_at"] = _now()
            self._items[user_id] = updated
            return updated.copy()


class InMemoryTaskRepository(TaskRepository):
    """
    Thread-safe in-memory task store suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, TaskEntity] = {}
        # Insertion sequence; breaks created_at ties when ordering.
        self._seq: Dict[str, int] = {}
        self._next_seq = 1

    def _owned(self, task_id: str, owner_id: str) -> Optional[TaskEntity]:
        item = self._items.get(task_id)
        if item is None or item["user_id"] != owner_id:
            return None
        return item

    def create(self, owner_id: str, data: TaskCreate) -> TaskEntity:
        now = _now()
        entity: TaskEntity = {
            "id": _new_id(),
            "user_id": owner_id,
            "title": data.title,
            "description": data.description,
            "status": data.status.value,
            "created_at": now,
            "updated_at": now,
        }
        with self._lock:
            self._items[entity["id"]] = entity
            self._seq[entity["id"]] = self._next_seq
            self._next_seq += 1
            return entity.copy()

    def get(self, task_id: str, owner_id: str) -> Optional[TaskEntity]:
        with self._lock:
            item = self._owned(task_id, owner_id)
            return None if item is None else item.copy()

    def update(self, task_id: str, owner_id: str, data: TaskUpdate) -> Optional[TaskEntity]:
        with self._lock:
            existing = self._owned(task_id, owner_id)
            if existing is None:
                return None

            changes = data.changes()
            if not changes:
                return existing.copy()
            updated = existing.copy()
            for field, value in changes.items():
                updated[field] = value  # type: ignore[literal-required]
            updated["updated_at"] = _now()

            self._items[task_id] = updated
            return updated.copy()

    def delete(self, task_id: str, owner_id: str) -> bool:
        with self._lock:
            if self._owned(task_id, owner_id) is None:
                return False
            del self._items[task_id]
            self._seq.pop(task_id, None)
            return True

    def list(self, owner_id: str, query: Optional[TaskQuery] = None) -> List[TaskEntity]:
        q = query or TaskQuery()
        with self._lock:
            items = [t for t in self._items.values() if t["user_id"] == owner_id]

            if q.status is not None:
                items = [t for t in items if t["status"] == q.status]

            if q.title_contains:
                s = q.title_contains.lower()
                items = [t for t in items if s in t["title"].lower()]

            items.sort(key=lambda t: (t["created_at"], self._seq[t["id"]]), reverse=True)
            return [t.copy() for t in items[: q.effective_limit]]


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Store:
    """The credential store and the task store behind one connection string."""

    users: UserRepository
    tasks: TaskRepository


# PUBLIC_INTERFACE
def open_store(database_url: str) -> Store:
    """
    Build a store for the given connection string.
    - memory://: in-memory repositories
    - sqlite:///<path>: SQLite repositories sharing one database file
    """
    if database_url.startswith("memory://"):
        return Store(users=InMemoryUserRepository(), tasks=InMemoryTaskRepository())
    if database_url.startswith("sqlite:///"):
        from .db import SQLiteDatabase, SQLiteTaskRepository, SQLiteUserRepository

        database = SQLiteDatabase(database_url[len("sqlite:///"):])
        return Store(users=SQLiteUserRepository(database), tasks=SQLiteTaskRepository(database))
    raise ValueError(f"Unsupported database url: {database_url}")


_store: Optional[Store] = None
_store_lock = Lock()


# PUBLIC_INTERFACE
def get_store() -> Store:
    """
    Return the process-wide store, opening it on first use.

    Concurrent first callers wait on the same lock, so the store is opened at
    most once per process; afterwards it is only read.
    """
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                settings = get_settings()
                logger.info("Opening %s store", settings.backend)
                _store = open_store(settings.database_url)
    return _store


def get_user_repository(store: Store = Depends(get_store)) -> UserRepository:
    return store.users


def get_task_repository(store: Store = Depends(get_store)) -> TaskRepository:
    return store.tasks
