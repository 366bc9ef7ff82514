"""
Application configuration module.

Defines configuration classes for the development, testing and production
environments.  Values are loaded from environment variables with defaults
suitable for local development; ``get_config`` resolves the class to use
from ``FLASK_ENV`` or an explicit name.

Key Concepts Demonstrated:
- Inheritance-based configuration hierarchy
- Environment variable overrides with sensible defaults
- Separate database for testing to protect development data
- Token-signing secret loaded from a raw value or a file path
"""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


def _env_flag(name: str, default: str) -> bool:
    """Interpret an environment variable as a boolean flag."""
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _load_secret(raw_env_var: str, path_env_var: str) -> str:
    """
    Load a signing secret from a raw environment variable or a file path.

    The raw variable takes precedence over the path variable so
    orchestrators can inject secrets directly without mounting files.
    """
    raw_secret = os.environ.get(raw_env_var, "").strip()
    if raw_secret:
        return raw_secret

    secret_path = os.environ.get(path_env_var, "").strip()
    if secret_path:
        try:
            return Path(secret_path).read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise RuntimeError(
                f"Unable to read JWT secret file at '{secret_path}' from {path_env_var}."
            ) from exc

    raise RuntimeError(
        f"Missing JWT secret configuration: set {raw_env_var} or {path_env_var}."
    )


def _has_secret_source(raw_env_var: str, path_env_var: str) -> bool:
    """Return True when at least one secret source variable is configured."""
    return bool(
        os.environ.get(raw_env_var, "").strip()
        or os.environ.get(path_env_var, "").strip()
    )


def load_jwt_secret(*, testing: bool) -> str:
    """
    Resolve the session-token signing secret for the selected environment.

    In testing mode, TEST_* vars are used when configured; otherwise it falls
    back to the standard JWT_* variables.
    """
    if testing and _has_secret_source("TEST_JWT_SECRET_KEY", "TEST_JWT_SECRET_KEY_PATH"):
        return _load_secret("TEST_JWT_SECRET_KEY", "TEST_JWT_SECRET_KEY_PATH")
    return _load_secret("JWT_SECRET_KEY", "JWT_SECRET_KEY_PATH")


class Config:
    """Base configuration with default settings."""

    SECRET_KEY: str = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-production")
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False

    # Default database location
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'tasks.db'}",
    )

    JWT_ALGORITHM: str = "HS256"

    # Transactional email (SendGrid v3 API).  An empty key disables delivery.
    MAIL_API_KEY: str = os.environ.get("MAIL_API_KEY", "")
    MAIL_FROM: str = os.environ.get("MAIL_FROM", "noreply@example.com")
    MAIL_API_URL: str = os.environ.get(
        "MAIL_API_URL", "https://api.sendgrid.com/v3/mail/send"
    )
    MAIL_TIMEOUT_SECONDS: float = float(os.environ.get("MAIL_TIMEOUT_SECONDS", "5"))
    MAIL_ASYNC: bool = _env_flag("MAIL_ASYNC", "true")

    # Upload limit for profile pictures, checked before decoding
    AVATAR_MAX_BYTES: int = int(os.environ.get("AVATAR_MAX_BYTES", "1000000"))
    AVATAR_SIZE: int = int(os.environ.get("AVATAR_SIZE", "250"))


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG: bool = True
    TESTING: bool = False


class TestingConfig(Config):
    """
    Testing environment configuration.

    Uses an in-memory SQLite database and delivers email inline so that
    tests can assert on the outbound request deterministically.
    """

    DEBUG: bool = True
    TESTING: bool = True

    SQLALCHEMY_DATABASE_URI: str = os.environ.get("TEST_DATABASE_URL", "sqlite://")

    MAIL_API_KEY: str = os.environ.get("TEST_MAIL_API_KEY", "test-mail-api-key")
    MAIL_ASYNC: bool = False


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG: bool = False
    TESTING: bool = False


# Configuration mapping for easy access
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Get the configuration class for the specified environment.

    Args:
        env: Environment name (development, testing, production).
             If None, uses FLASK_ENV environment variable.

    Returns:
        Configuration class for the specified environment.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
