"""Unit tests for rsvp_sheet.transport."""

from __future__ import annotations

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from rsvp_sheet.transport import (
    RecordingTransport,
    SmtpSettings,
    SmtpTransport,
    TransportError,
)

SETTINGS = SmtpSettings(
    host="smtp.example.com",
    port=2525,
    username_env="TEST_SMTP_USER",
    password_env="TEST_SMTP_PASS",
    from_address="rsvp@example.com",
)


@pytest.fixture
def creds(monkeypatch):
    monkeypatch.setenv("TEST_SMTP_USER", "user@example.com")
    monkeypatch.setenv("TEST_SMTP_PASS", "secret")


class TestSmtpTransport:
    def test_build_message_headers(self, creds):
        msg = SmtpTransport(SETTINGS).build_message(
            "guest@example.com", "Hello", "Body text", "Wedding RSVP System"
        )
        assert msg["From"] == "Wedding RSVP System <rsvp@example.com>"
        assert msg["To"] == "guest@example.com"
        assert msg["Subject"] == "Hello"
        assert msg.get_content().strip() == "Body text"

    def test_from_address_falls_back_to_username(self, creds):
        settings = SmtpSettings(username_env="TEST_SMTP_USER", password_env="TEST_SMTP_PASS")
        msg = SmtpTransport(settings).build_message("a@example.com", "s", "b", "Sender")
        assert msg["From"] == "Sender <user@example.com>"

    def test_no_sender_address(self, monkeypatch):
        monkeypatch.delenv("NOBODY_USER", raising=False)
        settings = SmtpSettings(username_env="NOBODY_USER")
        with pytest.raises(TransportError, match="no sender address"):
            SmtpTransport(settings).build_message("a@example.com", "s", "b", "Sender")

    def test_send_logs_in_and_sends(self, creds):
        server = MagicMock()
        with patch("rsvp_sheet.transport.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value = server
            SmtpTransport(SETTINGS).send("a@example.com", "s", "b", "Sender")
        smtp_cls.assert_called_once_with("smtp.example.com", 2525, timeout=30.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("user@example.com", "secret")
        server.send_message.assert_called_once()

    def test_send_failure_wrapped(self, creds):
        server = MagicMock()
        server.send_message.side_effect = smtplib.SMTPRecipientsRefused({})
        with patch("rsvp_sheet.transport.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value = server
            with pytest.raises(TransportError, match="a@example.com"):
                SmtpTransport(SETTINGS).send("a@example.com", "s", "b", "Sender")

    def test_connection_refused_wrapped(self, creds):
        with patch("rsvp_sheet.transport.smtplib.SMTP", side_effect=ConnectionRefusedError("refused")):
            with pytest.raises(TransportError, match="refused"):
                SmtpTransport(SETTINGS).send("a@example.com", "s", "b", "Sender")


class TestRecordingTransport:
    def test_records(self):
        transport = RecordingTransport()
        transport.send("a@example.com", "s", "b", "Sender")
        assert transport.sent[0].to == "a@example.com"

    def test_simulated_failure(self):
        transport = RecordingTransport(fail_for={"a@example.com"})
        with pytest.raises(TransportError):
            transport.send("a@example.com", "s", "b", "Sender")
        assert transport.sent == []
