"""
Authentication service and the ``require_auth`` decorator.

:class:`AuthService` implements signup, login, logout and token
resolution on top of the :class:`~todo_app.credentials.CredentialStore`.
A session token is accepted only while it verifies against the signing
secret *and* is still present in its user's token list, so logging out
revokes it immediately.

Key Concepts Demonstrated:
- Decorator pattern for endpoint authentication (``require_auth``)
- Using ``flask.g`` to store the request-scoped user and raw token
- Generic credential errors that do not leak which emails exist
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import wraps
from typing import Any

import jwt as pyjwt
from flask import current_app, g, request

from .credentials import CredentialStore
from .errors import AuthenticationError
from .jwt import create_token, decode_token
from .models import User
from .notifications import Notifier

logger = logging.getLogger(__name__)

AUTH_REQUIRED_MESSAGE = "Please authenticate."


@dataclass(frozen=True)
class AuthSettings:
    """Token-signing settings for :class:`AuthService`."""

    secret_key: str
    algorithm: str = "HS256"

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> AuthSettings:
        return cls(
            secret_key=config["JWT_SECRET_KEY"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
        )


class AuthService:
    """Signup, login, logout and bearer-token resolution."""

    def __init__(
        self,
        settings: AuthSettings,
        notifier: Notifier,
        store: CredentialStore | None = None,
    ):
        self.settings = settings
        self.notifier = notifier
        self.store = store or CredentialStore()

    def issue_token(self, user: User) -> str:
        """Sign a new token for *user* and append it to their token list."""
        token = create_token(user.id, self.settings.secret_key, self.settings.algorithm)
        self.store.add_token(user, token)
        return token

    def signup(self, data: dict[str, Any]) -> tuple[User, str]:
        user = self.store.create(data)
        token = self.issue_token(user)
        logger.info("User %s signed up", user.id)
        self.notifier.send_welcome_email(user.email, user.name)
        return user, token

    def login(self, email: Any, password: Any) -> tuple[User, str]:
        user = self.store.find_by_credentials(email, password)
        token = self.issue_token(user)
        logger.info("User %s logged in", user.id)
        return user, token

    def logout(self, user: User, token: str) -> None:
        self.store.remove_token(user, token)

    def logout_all(self, user: User) -> None:
        self.store.clear_tokens(user)

    def delete_account(self, user: User) -> dict[str, Any]:
        """Delete *user* and their tasks, then send the goodbye email."""
        email, name = user.email, user.name
        snapshot = self.store.delete(user)
        self.notifier.send_cancel_email(email, name)
        return snapshot

    def authenticate(self, token: str) -> User:
        """
        Resolve a bearer token to its user.

        Raises:
            AuthenticationError: If the token is malformed, not signed with
                our secret, or no longer in the user's token list.
        """
        try:
            payload = decode_token(token, self.settings.secret_key, self.settings.algorithm)
        except pyjwt.InvalidTokenError as exc:
            raise AuthenticationError(AUTH_REQUIRED_MESSAGE) from exc

        user = self.store.find_by_token(payload["user_id"], token)
        if user is None:
            raise AuthenticationError(AUTH_REQUIRED_MESSAGE)
        return user


def get_auth_service() -> AuthService:
    return current_app.extensions["auth"]


def _extract_bearer_token() -> str | None:
    """Return the token from ``Authorization: Bearer <token>``, if any."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header[7:].strip()
    return token or None


def require_auth(view_func: Callable[..., Any]):
    """
    Decorator that enforces bearer-token authentication.

    On success the resolved user and the raw token are stored on
    ``flask.g`` as ``g.user`` and ``g.token``; otherwise the request is
    rejected with a 401 before the view runs.
    """

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        token = _extract_bearer_token()
        if token is None:
            raise AuthenticationError(AUTH_REQUIRED_MESSAGE)

        g.user = get_auth_service().authenticate(token)
        g.token = token
        return view_func(*args, **kwargs)

    return wrapper
