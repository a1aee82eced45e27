"""rsvp_sheet.notify

Organizer notifications for new and updated RSVPs.

Delivery is best-effort: a failure for one recipient is recorded in the
DispatchResult and logged, and never propagates to the caller. By the
time a notification is sent the RSVP row is already written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Callable

from rsvp_sheet.normalize import display_timestamp, utc_now
from rsvp_sheet.submission import Submission
from rsvp_sheet.transport import EmailTransport
from rsvp_sheet.upsert import UpsertOutcome

log = logging.getLogger(__name__)

NEW_SUBJECT = "New Wedding RSVP Submission: {name}"
UPDATE_SUBJECT = "Updated Wedding RSVP: {name}"
NEW_INTRO = "A new RSVP has been submitted:"
UPDATE_INTRO = "An RSVP has been updated (submission #{count}):"


@dataclass(frozen=True)
class NotificationConfig:
    recipients: tuple[str, ...]
    sender_name: str = "Wedding RSVP System"
    sheet_url: str | None = None
    include_game_completed: bool = False
    timezone: tzinfo | None = None


@dataclass(frozen=True)
class Notification:
    subject: str
    body: str


@dataclass
class DispatchResult:
    delivered: list[str] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


class NotificationComposer:
    def __init__(
        self,
        config: NotificationConfig,
        transport: EmailTransport,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config
        self.transport = transport
        self._clock = clock

    def compose(self, submission: Submission, outcome: UpsertOutcome) -> Notification:
        if outcome.is_update:
            subject = UPDATE_SUBJECT.format(name=submission.name)
            lines = [UPDATE_INTRO.format(count=outcome.submission_count), ""]
        else:
            subject = NEW_SUBJECT.format(name=submission.name)
            lines = [NEW_INTRO, ""]

        lines.append(f"Name: {submission.name}")
        lines.append(f"Attending: {submission.attending}")
        if submission.is_attending:
            lines.append(f"Location: {submission.location}")
            lines.append(f"Guest Count: {submission.guest_count}")
            lines.append(f"Bringing Kids: {submission.bringing_kids}")
            if submission.is_bringing_kids:
                lines.append(f"Kids Count: {submission.kids_count}")
        lines.append(f"Message: {submission.message}")
        if self.config.include_game_completed:
            lines.append(f"Game Completed: {submission.game_completed}")
        lines.append(f"User ID: {submission.user_id}")

        label = "Updated At" if outcome.is_update else "Submitted At"
        lines.append(f"{label}: {display_timestamp(self._clock(), self.config.timezone)}")

        body = "\n".join(lines) + "\n"
        if self.config.sheet_url:
            body += f"\nView all responses: {self.config.sheet_url}"
        return Notification(subject=subject, body=body)

    def dispatch(self, notification: Notification) -> DispatchResult:
        result = DispatchResult()
        for address in self.config.recipients:
            try:
                self.transport.send(
                    address, notification.subject, notification.body, self.config.sender_name
                )
            except Exception as exc:
                result.failures[address] = str(exc)
            else:
                result.delivered.append(address)
        return result

    def notify(self, submission: Submission, outcome: UpsertOutcome) -> DispatchResult:
        """Compose and send; failures are logged, not raised."""
        try:
            notification = self.compose(submission, outcome)
        except Exception as exc:
            log.exception("Could not compose RSVP notification for user %r", submission.user_id)
            return DispatchResult(failures={"*": str(exc)})

        result = self.dispatch(notification)
        for address, reason in result.failures.items():
            log.warning("Error sending RSVP email to %s: %s", address, reason)
        if result.delivered:
            log.info(
                "Sent %r to %d recipient(s)", notification.subject, len(result.delivered)
            )
        return result
