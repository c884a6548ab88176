from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TaskStatus(str, Enum):
    """Workflow state of a task."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


# PUBLIC_INTERFACE
class UserEntity(TypedDict):
    """
    A registered user as held by the credential store.

    Fields:
    - id: Store-assigned opaque identifier
    - name: Display name (2..60 chars)
    - email: Lower-cased, unique email address
    - password_hash: bcrypt hash; the raw password is never stored
    - created_at / updated_at: UTC timestamps
    """

    id: str
    name: str
    email: str
    password_hash: str
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A task owned by exactly one user.

    Fields:
    - id: Store-assigned opaque identifier
    - user_id: Owning user id, fixed at creation
    - title: 2..120 chars, trimmed
    - description: Optional, up to 500 chars
    - status: One of TaskStatus values
    - created_at / updated_at: UTC timestamps
    """

    id: str
    user_id: str
    title: str
    description: Optional[str]
    status: str
    created_at: datetime
    updated_at: datetime
