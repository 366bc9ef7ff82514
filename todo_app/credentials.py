"""
Credential store: persistence of users, their session tokens and avatars.

All writes go through :meth:`CredentialStore.save`, which runs the field
validators and the password-hashing step before committing, and
:meth:`CredentialStore.delete`, which removes the user's tasks together with
the user.

Key Concepts Demonstrated:
- Explicit save/delete steps instead of implicit ORM event hooks
- Translating database unique-constraint failures into API errors
- Generic lookup failures that do not reveal which emails are registered
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from . import db
from .errors import AuthenticationError, DuplicateKeyError, NotFoundError, ValidationError
from .models import Task, User, UserToken
from .validation import (
    USER_UPDATE_FIELDS,
    check_update_fields,
    validate_age,
    validate_email,
    validate_name,
    validate_password,
)

logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = "Unable to login"


class CredentialStore:
    """Ownership-free CRUD over :class:`~todo_app.models.User` rows."""

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    # -----------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------

    def get(self, user_id: str) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def find_by_email(self, email: str) -> User | None:
        return self.session.scalar(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )

    def find_by_credentials(self, email: Any, password: Any) -> User:
        """
        Return the user matching *email* and *password*.

        Unknown email and wrong password raise the same error so the
        response never tells which emails are registered.
        """
        if not isinstance(email, str) or not isinstance(password, str):
            raise AuthenticationError(LOGIN_FAILED_MESSAGE, status_code=400)

        user = self.find_by_email(email)
        if user is None or not user.check_password(password.strip()):
            raise AuthenticationError(LOGIN_FAILED_MESSAGE, status_code=400)
        return user

    def find_by_token(self, user_id: str, token: str) -> User | None:
        """Return the user with *user_id* only if *token* is in their list."""
        return self.session.scalar(
            select(User)
            .join(UserToken, UserToken.user_id == User.id)
            .where(User.id == user_id, UserToken.token == token)
        )

    # -----------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------

    def create(self, data: dict[str, Any]) -> User:
        """Validate and persist a new user from a signup payload."""
        user = User(
            name=validate_name(data.get("name")),
            email=validate_email(data.get("email")),
            age=validate_age(data.get("age", 0)),
        )
        user.set_password(validate_password(data.get("password")))
        return self.save(user)

    def update(self, user: User, changes: dict[str, Any]) -> User:
        """Apply a partial profile update; only known fields are accepted."""
        check_update_fields(changes, USER_UPDATE_FIELDS)

        # All values are validated before any attribute is set.
        validators = {
            "name": validate_name,
            "email": validate_email,
            "age": validate_age,
            "password": validate_password,
        }
        values = {field: validators[field](value) for field, value in changes.items()}

        password = values.pop("password", None)
        for field, value in values.items():
            setattr(user, field, value)
        if password is not None:
            user.set_password(password)
        return self.save(user)

    def save(self, user: User) -> User:
        """
        Validate, hash a pending password and commit *user*.

        The password is hashed only when a new plain-text value was set,
        so an existing hash is never hashed again.
        """
        # Reading an expired user reloads it; nothing may flush before the
        # duplicate check.
        with self.session.no_autoflush:
            try:
                user.name = validate_name(user.name)
                user.email = validate_email(user.email)
                user.age = validate_age(user.age if user.age is not None else 0)
                if user.pending_password is not None:
                    user.set_password(validate_password(user.pending_password))
            except ValidationError:
                self._discard(user)
                raise

            existing = self.find_by_email(user.email)

        if existing is not None and existing is not user:
            self._discard(user)
            raise DuplicateKeyError("Email already exists")

        user.apply_pending_password()

        try:
            self.session.add(user)
            self.session.flush()
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            user.discard_pending_password()
            raise DuplicateKeyError("Email already exists") from exc
        return user

    def delete(self, user: User) -> dict[str, Any]:
        """
        Delete *user* together with every task they own.

        Both deletes are committed as one unit of work, so a failure leaves
        neither orphaned tasks nor a half-deleted account.

        Returns:
            The serialised user as it was before deletion.
        """
        snapshot = user.to_dict()
        result = self.session.execute(delete(Task).where(Task.owner == user.id))
        self.session.delete(user)
        self.session.commit()
        logger.info(
            "Deleted user %s and %s owned task(s)", snapshot["id"], result.rowcount
        )
        return snapshot

    def set_avatar(self, user: User, image: bytes | None) -> User:
        user.avatar = image
        self.session.commit()
        return user

    # -----------------------------------------------------------------
    # Session tokens
    # -----------------------------------------------------------------

    def add_token(self, user: User, token: str) -> None:
        user.tokens.append(UserToken(token=token))
        self.session.commit()

    def remove_token(self, user: User, token: str) -> None:
        user.tokens = [entry for entry in user.tokens if entry.token != token]
        self.session.commit()

    def clear_tokens(self, user: User) -> None:
        user.tokens = []
        self.session.commit()

    def _discard(self, user: User) -> None:
        """Drop unsaved changes on *user* after a failed validation."""
        if user in self.session:
            self.session.rollback()
        user.discard_pending_password()
