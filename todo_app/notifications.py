"""
Transactional email for account lifecycle events.

The :class:`Notifier` sends a welcome message after signup and a goodbye
message after account deletion through the SendGrid v3 HTTP API.  Sending
is fire-and-forget: delivery runs on a small thread pool (or inline when
``MAIL_ASYNC`` is off), failures are logged and never reach the request
that triggered them, and nothing is retried.

Key Concepts Demonstrated:
- Settings object passed at construction instead of module globals
- Outbound HTTP with ``requests`` and an explicit timeout
- Translating transport failures into a domain error, then containing it
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

import requests

from .errors import UpstreamNotificationError

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Thanks for joining in!"
CANCEL_SUBJECT = "Goodbye!"


@dataclass(frozen=True)
class MailSettings:
    """Connection settings for the email provider."""

    api_key: str
    sender: str
    api_url: str
    timeout_seconds: float = 5.0
    asynchronous: bool = True

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> MailSettings:
        return cls(
            api_key=config.get("MAIL_API_KEY", ""),
            sender=config["MAIL_FROM"],
            api_url=config["MAIL_API_URL"],
            timeout_seconds=float(config.get("MAIL_TIMEOUT_SECONDS", 5)),
            asynchronous=bool(config.get("MAIL_ASYNC", True)),
        )


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    text: str


class Notifier:
    """Best-effort sender for welcome and cancellation emails."""

    def __init__(self, settings: MailSettings, max_workers: int = 2):
        self.settings = settings
        self._executor: ThreadPoolExecutor | None = None
        self._max_workers = max_workers

    def send_welcome_email(self, email: str, name: str) -> None:
        self.dispatch(
            EmailMessage(
                to=email,
                subject=WELCOME_SUBJECT,
                text=(
                    f"Welcome to the app, {name}. "
                    "Let me know how you get along with the app."
                ),
            )
        )

    def send_cancel_email(self, email: str, name: str) -> None:
        self.dispatch(
            EmailMessage(
                to=email,
                subject=CANCEL_SUBJECT,
                text=(
                    f"Sorry to see you go {name}! Your account has been cancelled. "
                    "Feel free to come back at any time!"
                ),
            )
        )

    def dispatch(self, message: EmailMessage) -> None:
        """Hand *message* off for delivery without waiting for the outcome."""
        if not self.settings.enabled:
            logger.info("Mail delivery disabled; skipping '%s'", message.subject)
            return

        if self.settings.asynchronous:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="mail"
                )
            self._executor.submit(self._deliver_quietly, message)
        else:
            self._deliver_quietly(message)

    def deliver(self, message: EmailMessage) -> None:
        """
        Send *message* to the provider.

        Raises:
            UpstreamNotificationError: On transport failure or a non-2xx
                response.
        """
        payload = {
            "personalizations": [{"to": [{"email": message.to}]}],
            "from": {"email": self.settings.sender},
            "subject": message.subject,
            "content": [{"type": "text/plain", "value": message.text}],
        }
        try:
            response = requests.post(
                self.settings.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.settings.api_key}"},
                timeout=self.settings.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise UpstreamNotificationError(f"Mail provider unreachable: {exc}") from exc

        if response.status_code >= 400:
            raise UpstreamNotificationError(
                f"Mail provider rejected message with status {response.status_code}"
            )

    def _deliver_quietly(self, message: EmailMessage) -> None:
        try:
            self.deliver(message)
        except UpstreamNotificationError as exc:
            logger.warning("Email '%s' not delivered: %s", message.subject, exc)
        else:
            logger.info("Email '%s' sent", message.subject)

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
