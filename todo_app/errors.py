"""
Error taxonomy and JSON error handlers.

Every failure a handler can report is an ``ApiError`` subclass carrying the
HTTP status it maps to.  A single app-level handler renders them with the
``{"error": "..."}`` envelope used across the API, and the stock 404, 405
and 500 responses are replaced with the same JSON shape.
"""

from __future__ import annotations

import logging

from flask import Flask, Response, jsonify

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ApiError):
    """A field is missing, malformed or not allowed."""

    status_code = 400


class AuthenticationError(ApiError):
    """Missing or invalid session token, or a failed login."""

    status_code = 401


class NotFoundError(ApiError):
    """The resource does not exist or is not owned by the caller."""

    status_code = 404


class DuplicateKeyError(ApiError):
    """A unique constraint (the user email) would be violated."""

    status_code = 400


class UpstreamNotificationError(Exception):
    """
    The email provider could not be reached or rejected the message.

    Raised inside the notifier only; never rendered as a response.
    """


def _json_error(message: str, status_code: int) -> tuple[Response, int]:
    return jsonify({"error": message}), status_code


def register_error_handlers(app: Flask) -> None:
    """Attach the JSON error handlers to *app*."""

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError) -> tuple[Response, int]:
        return _json_error(error.message, error.status_code)

    @app.errorhandler(404)
    def not_found(_: Exception) -> tuple[Response, int]:
        return _json_error("Resource not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(_: Exception) -> tuple[Response, int]:
        return _json_error("Method not allowed", 405)

    @app.errorhandler(500)
    def internal_error(error: Exception) -> tuple[Response, int]:
        """Log the exception and return a JSON 500 Internal Server Error."""
        logger.error("Internal server error: %s", error)
        return _json_error("Internal server error", 500)
