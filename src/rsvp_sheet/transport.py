"""rsvp_sheet.transport

Email transports used to deliver organizer notifications.

  SmtpTransport      — smtplib delivery; credentials read from env vars
  RecordingTransport — keeps messages in memory (dry runs, tests)
"""

from __future__ import annotations

import logging
import os
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr
from typing import Protocol

log = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised when a message cannot be handed to the mail server."""


class EmailTransport(Protocol):
    def send(self, to: str, subject: str, body: str, sender_name: str) -> None: ...


# ---------------------------------------------------------------------------
# SMTP
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SmtpSettings:
    host: str = "smtp.gmail.com"
    port: int = 587
    username_env: str = "RSVP_SMTP_USERNAME"
    password_env: str = "RSVP_SMTP_PASSWORD"
    from_address: str | None = None
    use_tls: bool = True
    timeout_seconds: float = 30.0


class SmtpTransport:
    def __init__(self, settings: SmtpSettings) -> None:
        self.settings = settings

    def _credentials(self) -> tuple[str | None, str | None]:
        return (
            os.environ.get(self.settings.username_env) or None,
            os.environ.get(self.settings.password_env) or None,
        )

    def build_message(self, to: str, subject: str, body: str, sender_name: str) -> EmailMessage:
        username, _ = self._credentials()
        from_address = self.settings.from_address or username
        if not from_address:
            raise TransportError(
                f"no sender address: set smtp.from_address or ${self.settings.username_env}"
            )
        msg = EmailMessage()
        msg["From"] = formataddr((sender_name, from_address))
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    def send(self, to: str, subject: str, body: str, sender_name: str) -> None:
        msg = self.build_message(to, subject, body, sender_name)
        username, password = self._credentials()
        try:
            with smtplib.SMTP(
                self.settings.host, self.settings.port, timeout=self.settings.timeout_seconds
            ) as server:
                if self.settings.use_tls:
                    server.starttls()
                if username and password:
                    server.login(username, password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise TransportError(f"sending to {to} failed: {exc}") from exc
        log.debug("Sent %r to %s via %s", subject, to, self.settings.host)


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SentMessage:
    to: str
    subject: str
    body: str
    sender_name: str


@dataclass
class RecordingTransport:
    """Collects messages instead of sending them.

    Addresses listed in fail_for raise TransportError, which lets callers
    exercise partial delivery failures.
    """

    sent: list[SentMessage] = field(default_factory=list)
    fail_for: set[str] = field(default_factory=set)

    def send(self, to: str, subject: str, body: str, sender_name: str) -> None:
        if to in self.fail_for:
            raise TransportError(f"sending to {to} failed: simulated failure")
        self.sent.append(SentMessage(to, subject, body, sender_name))
