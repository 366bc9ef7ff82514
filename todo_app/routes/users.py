"""
User account endpoints.

Endpoints:
    POST   /users                 - Sign up and receive a session token
    POST   /users/login           - Log in and receive a new session token
    POST   /users/logout          - Revoke the token used for this request
    POST   /users/logoutAll       - Revoke every token of the current user
    GET    /users/me              - Current user's profile
    PATCH  /users/me              - Update name, email, age or password
    DELETE /users/me              - Delete the account and all its tasks
    POST   /users/me/avatar       - Upload a profile picture
    DELETE /users/me/avatar       - Remove the profile picture
    GET    /users/<id>/avatar     - Public profile picture as PNG

Key Concepts Demonstrated:
- Thin handlers delegating to the auth service and credential store
- Request-scoped identity via ``flask.g`` (set by ``require_auth``)
- Binary responses alongside JSON ones
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, current_app, g, jsonify, request

from ..auth import get_auth_service, require_auth
from ..avatar import AVATAR_MIMETYPE, process_avatar
from ..credentials import CredentialStore
from ..errors import NotFoundError
from ..validation import require_json_object

logger = logging.getLogger(__name__)

users_bp = Blueprint("users", __name__)


@users_bp.route("/users", methods=["POST"])
def signup() -> tuple[Response, int]:
    data = require_json_object(request.get_json(silent=True))
    user, token = get_auth_service().signup(data)
    return jsonify({"user": user.to_dict(), "token": token}), 201


@users_bp.route("/users/login", methods=["POST"])
def login() -> tuple[Response, int]:
    """
    Authenticate with email and password.

    Unknown emails and wrong passwords both answer 400 ``Unable to login``.
    """
    data = require_json_object(request.get_json(silent=True))
    user, token = get_auth_service().login(data.get("email"), data.get("password"))
    return jsonify({"user": user.to_dict(), "token": token}), 200


@users_bp.route("/users/logout", methods=["POST"])
@require_auth
def logout() -> tuple[Response, int]:
    get_auth_service().logout(g.user, g.token)
    return jsonify({"message": "Logged out"}), 200


@users_bp.route("/users/logoutAll", methods=["POST"])
@require_auth
def logout_all() -> tuple[Response, int]:
    get_auth_service().logout_all(g.user)
    return jsonify({"message": "Logged out of all sessions"}), 200


@users_bp.route("/users/me", methods=["GET"])
@require_auth
def get_profile() -> tuple[Response, int]:
    return jsonify(g.user.to_dict()), 200


@users_bp.route("/users/me", methods=["PATCH"])
@require_auth
def update_profile() -> tuple[Response, int]:
    data = require_json_object(request.get_json(silent=True))
    user = CredentialStore().update(g.user, data)
    return jsonify(user.to_dict()), 200


@users_bp.route("/users/me", methods=["DELETE"])
@require_auth
def delete_account() -> tuple[Response, int]:
    """Delete the current user, their tasks, and send the goodbye email."""
    snapshot = get_auth_service().delete_account(g.user)
    return jsonify(snapshot), 200


@users_bp.route("/users/me/avatar", methods=["POST"])
@require_auth
def upload_avatar() -> tuple[Response, int]:
    image = process_avatar(
        request.files.get("avatar"),
        max_bytes=current_app.config["AVATAR_MAX_BYTES"],
        size=current_app.config["AVATAR_SIZE"],
    )
    CredentialStore().set_avatar(g.user, image)
    logger.info("Stored avatar for user %s (%d bytes)", g.user.id, len(image))
    return jsonify({"message": "Avatar uploaded"}), 200


@users_bp.route("/users/me/avatar", methods=["DELETE"])
@require_auth
def delete_avatar() -> tuple[Response, int]:
    CredentialStore().set_avatar(g.user, None)
    return jsonify({"message": "Avatar deleted"}), 200


@users_bp.route("/users/<user_id>/avatar", methods=["GET"])
def get_avatar(user_id: str) -> Response:
    user = CredentialStore().get(user_id)
    if not user.avatar:
        raise NotFoundError("Avatar not found")
    return Response(user.avatar, mimetype=AVATAR_MIMETYPE)
