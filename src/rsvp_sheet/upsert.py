"""rsvp_sheet.upsert

Insert-or-update of one RSVP row keyed by the submitter's userId.

Processing order per submission:
  1.  Ensure the sheet exists and row 1 is the schema header
  2.  Scan data rows for the userId (exact, case-sensitive, first wins)
  3.  Build the full row from the submission, with count 1 and a fresh
      ISO-8601 Last Update
  4a. Match    → take Submission Count from the rows read in step 2, add 1,
                 overwrite the whole row
  4b. No match → append the row

An empty userId never matches, so anonymous submissions always append.
The sheet is read once and exactly one row write is issued per upsert.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from rsvp_sheet.normalize import iso_timestamp, parse_count, utc_now
from rsvp_sheet.schema import SheetSchema
from rsvp_sheet.store import PersistenceError, TabularStore
from rsvp_sheet.submission import Submission

log = logging.getLogger(__name__)

HEADER_ROW = 1


@dataclass(frozen=True)
class UpsertOutcome:
    is_update: bool
    submission_count: int
    row_number: int


# ---------------------------------------------------------------------------
# Row helpers
# ---------------------------------------------------------------------------

def ensure_header(store: TabularStore, schema: SheetSchema) -> bool:
    """Create the sheet and write its header if needed.

    Returns True when the header was written by this call. Raises
    PersistenceError if row 1 exists but does not match the schema.
    """
    _, created = _load_rows(store, schema)
    return created


def _load_rows(store: TabularStore, schema: SheetSchema) -> tuple[list[list[str]], bool]:
    """Header-checked sheet contents from a single read, plus ensure_header's flag."""
    if not store.exists():
        log.info("Creating sheet %r", store.sheet_name)
        store.create()
    values = store.get_values()
    if not values:
        store.append_row(schema.header)
        return [list(schema.header)], True
    header = [c.strip() for c in values[0][: schema.width]]
    if header != schema.header:
        raise PersistenceError(
            f"sheet {store.sheet_name!r} has an unexpected header: "
            f"{values[0]!r} (expected {schema.header!r})"
        )
    return values, False


def find_user_row(rows: list[list[str]], user_id: str, schema: SheetSchema) -> int | None:
    """Return the 1-indexed row number holding user_id, or None.

    rows is the full sheet including the header, which is never matched.
    """
    if not user_id:
        return None
    idx = schema.index("user_id")
    for i in range(HEADER_ROW, len(rows)):
        row = rows[i]
        if idx < len(row) and row[idx] == user_id:
            return i + 1
    return None


def build_row(
    submission: Submission,
    schema: SheetSchema,
    submission_count: int,
    timestamp: str,
) -> list[str]:
    row = []
    for key in schema.keys:
        if key == "submission_count":
            row.append(str(submission_count))
        elif key == "last_update":
            row.append(timestamp)
        else:
            row.append(submission.value_for(key))
    return row


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class UpsertEngine:
    """Owns the read-modify-write against a store for one submission.

    Calls on the same engine are serialized with a lock. Two processes (or
    two engines) writing the same sheet can still both miss an existing
    userId and append duplicate rows.
    """

    def __init__(
        self,
        schema: SheetSchema,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.schema = schema
        self._clock = clock
        self._lock = threading.Lock()

    def upsert(self, store: TabularStore, submission: Submission) -> UpsertOutcome:
        with self._lock:
            return self._upsert(store, submission)

    def _upsert(self, store: TabularStore, submission: Submission) -> UpsertOutcome:
        rows, _ = _load_rows(store, self.schema)
        existing_row = find_user_row(rows, submission.user_id, self.schema)
        timestamp = iso_timestamp(self._clock())

        if existing_row is not None:
            row = rows[existing_row - 1]
            idx = self.schema.index("submission_count")
            count = parse_count(row[idx] if idx < len(row) else None) + 1
            store.update_row(existing_row, build_row(submission, self.schema, count, timestamp))
            log.info(
                "Updated RSVP row %d for user %r (submission #%d)",
                existing_row, submission.user_id, count,
            )
            return UpsertOutcome(is_update=True, submission_count=count, row_number=existing_row)

        row_number = store.append_row(build_row(submission, self.schema, 1, timestamp))
        log.info("Inserted RSVP row %d for user %r", row_number, submission.user_id)
        return UpsertOutcome(is_update=False, submission_count=1, row_number=row_number)
