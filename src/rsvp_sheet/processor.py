"""rsvp_sheet.processor

Request boundary: one raw form submission in, one JSON-ready dict out.

    {"result": "success", "message": ..., "isUpdate": bool}
    {"result": "error", "message": str(exc)}

Nothing raised below this point reaches the caller. A persistence failure
aborts the request before any notification is composed; a notification
failure is logged and leaves the success response untouched.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from rsvp_sheet.config import AppConfig
from rsvp_sheet.notify import NotificationComposer
from rsvp_sheet.store import CsvStore, MemoryStore, PostgresStore, TabularStore
from rsvp_sheet.submission import Submission
from rsvp_sheet.upsert import UpsertEngine

log = logging.getLogger(__name__)

MSG_SUBMITTED = "RSVP submitted successfully"
MSG_UPDATED = "RSVP updated successfully"
HEALTH_MESSAGE = (
    "The RSVP system is working. Please submit the form from the wedding website."
)


def process_form(
    form: Mapping[str, str],
    store: TabularStore,
    engine: UpsertEngine,
    composer: NotificationComposer,
) -> dict[str, Any]:
    try:
        submission = Submission.from_form(form)
        outcome = engine.upsert(store, submission)
    except Exception as exc:
        log.exception("RSVP submission failed")
        return {"result": "error", "message": str(exc)}

    try:
        composer.notify(submission, outcome)
    except Exception:
        log.exception("RSVP notification failed for user %r", submission.user_id)

    return {
        "result": "success",
        "message": MSG_UPDATED if outcome.is_update else MSG_SUBMITTED,
        "isUpdate": outcome.is_update,
    }


def open_store(config: AppConfig) -> TabularStore:
    """Instantiate the configured store backend."""
    backend = config.store.backend
    if backend == "memory":
        return MemoryStore(config.sheet_name)
    if backend == "csv":
        return CsvStore(config.store.path, config.sheet_name)
    if backend == "postgres":
        return PostgresStore.connect(config.store.dsn(), config.sheet_name)
    raise ValueError(f"unknown store backend {backend!r}")
