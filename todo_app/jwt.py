"""
Session token signing and verification.

Session tokens are HS256-signed JSON Web Tokens.  The server keeps every
issued token in the owner's token list, so a token is only accepted while
it is both correctly signed and still listed (see
:class:`~todo_app.auth.AuthService`).

Token structure (claims):
    - ``user_id`` -- opaque id of the user the token was issued to.
    - ``iat``     -- issued-at timestamp (UTC epoch seconds).
    - ``jti``     -- random token id, so two tokens issued to the same user
      in the same second are still distinct.

No ``exp`` claim is issued; revocation happens by removing the token from
the user's list (logout / logoutAll / account deletion).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

import jwt

REQUIRED_TOKEN_CLAIMS = ["user_id", "iat", "jti"]


def create_token(user_id: str, secret: str, algorithm: str = "HS256") -> str:
    """
    Create a signed session token for *user_id*.

    Raises:
        ValueError: If *user_id* is blank.
    """
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValueError("user_id must be a non-empty string")

    payload: dict[str, Any] = {
        "user_id": user_id,
        "iat": int(datetime.now(timezone.utc).timestamp()),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> dict[str, Any]:
    """
    Verify the signature of *token* and return its claims.

    Raises:
        jwt.InvalidTokenError: If the token is malformed, signed with another
            secret or algorithm, or lacks a required claim.
    """
    payload = jwt.decode(
        token,
        secret,
        # Never trust the alg header
        algorithms=[algorithm],
        options={"require": REQUIRED_TOKEN_CLAIMS},
    )
    if not isinstance(payload.get("user_id"), str) or not payload["user_id"].strip():
        raise jwt.InvalidTokenError("Invalid user_id claim")
    return payload
