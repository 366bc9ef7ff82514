"""
Database models for the task-manager application.

Defines the SQLAlchemy ORM models: :class:`User` (identity, credentials,
avatar), :class:`UserToken` (one row per issued session token) and
:class:`Task` (a to-do item owned by exactly one user).

Key Concepts Demonstrated:
- SQLAlchemy declarative models with opaque string identifiers
- Werkzeug password hashing (salted, deliberately slow)
- Safe serialisation that excludes sensitive fields
- Timezone-aware datetime handling for SQLite compatibility
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from werkzeug.security import check_password_hash, generate_password_hash

from . import db


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_utc_iso(value: datetime | None) -> str | None:
    """
    Convert a datetime to an ISO-8601 UTC string.

    SQLite does not store timezone information, so values read back from
    the database may be naive even though they were created in UTC.  Naive
    values are assumed UTC; aware values are converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.isoformat()


class User(db.Model):
    """
    A registered account.

    Passwords are never stored in plain text.  ``set_password`` only records
    the candidate; :class:`~todo_app.credentials.CredentialStore` validates
    and hashes it when the user is saved, so an existing hash is never
    hashed twice.

    Attributes:
        id: Opaque identifier (uuid4 hex).
        name: Trimmed display name.
        email: Unique, lower-cased email address.
        age: Non-negative age, defaults to 0.
        password_hash: Werkzeug-generated hash.
        avatar: Optional normalised PNG bytes.
        tokens: Currently valid session tokens, oldest first.
        created_at: Account creation time (UTC).
        updated_at: Last modification time (UTC).
    """

    __tablename__ = "users"

    id: str = db.Column(db.String(32), primary_key=True, default=_new_id)
    name: str = db.Column(db.String(200), nullable=False)
    # Indexed because login looks users up by email
    email: str = db.Column(db.String(254), unique=True, nullable=False, index=True)
    age: int = db.Column(db.Integer, nullable=False, default=0)
    password_hash: str = db.Column(db.String(256), nullable=False)
    avatar: bytes | None = db.Column(db.LargeBinary, nullable=True)
    created_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    tokens = db.relationship(
        "UserToken",
        back_populates="user",
        order_by="UserToken.id",
        cascade="all, delete-orphan",
    )

    _pending_password = None

    def set_password(self, password: str) -> None:
        """Record a new plain-text password to be validated and hashed on save."""
        self._pending_password = password

    @property
    def pending_password(self) -> str | None:
        return self._pending_password

    def discard_pending_password(self) -> None:
        self._pending_password = None

    def apply_pending_password(self) -> None:
        """Replace the pending plain-text password with its hash."""
        if self._pending_password is None:
            return
        self.password_hash = generate_password_hash(self._pending_password)
        self._pending_password = None

    def check_password(self, password: str) -> bool:
        """Verify a plain-text password against the stored hash."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict[str, Any]:
        """
        Return a user-safe dictionary representation.

        The password hash, session tokens and avatar bytes are never part
        of the output.
        """
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "age": self.age,
            "createdAt": _to_utc_iso(self.created_at),
            "updatedAt": _to_utc_iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email}>"


class UserToken(db.Model):
    """A session token issued to a user and still accepted by the API."""

    __tablename__ = "user_tokens"

    id: int = db.Column(db.Integer, primary_key=True)
    user_id: str = db.Column(
        db.String(32), db.ForeignKey("users.id"), nullable=False, index=True
    )
    token: str = db.Column(db.String(512), nullable=False, index=True)
    created_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow
    )

    user = db.relationship("User", back_populates="tokens")

    def __repr__(self) -> str:
        return f"<UserToken {self.id} for {self.user_id}>"


class Task(db.Model):
    """
    Task owned by a single user.

    Attributes:
        id: Opaque identifier (uuid4 hex).
        owner: Id of the owning user.  Every query in the task store filters
            on it, so users can never reach each other's tasks.
        description: Trimmed, non-empty text.
        completed: Completion flag, defaults to False.
        created_at: Creation time (UTC).
        updated_at: Last modification time (UTC, auto-updated).
    """

    __tablename__ = "tasks"

    id: str = db.Column(db.String(32), primary_key=True, default=_new_id)
    owner: str = db.Column(
        db.String(32), db.ForeignKey("users.id"), nullable=False, index=True
    )
    description: str = db.Column(db.Text, nullable=False)
    completed: bool = db.Column(db.Boolean, nullable=False, default=False)
    created_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialise the task to a JSON-safe dictionary."""
        return {
            "id": self.id,
            "description": self.description,
            "completed": self.completed,
            "owner": self.owner,
            "createdAt": _to_utc_iso(self.created_at),
            "updatedAt": _to_utc_iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Task {self.id}: {self.description}>"
