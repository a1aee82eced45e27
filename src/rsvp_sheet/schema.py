"""rsvp_sheet.schema

Column layout of the RSVP sheet.

A SheetSchema is an ordered tuple of Column(key, label). The two layouts
found in deployed sheets are available as presets:

  classic — Name … Message, User ID, Submission Count, Last Update
  game    — classic with Game Completed inserted before User ID

Row numbers are 1-indexed with the header in row 1; column numbers are
1-indexed as well so they line up with spreadsheet coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class SchemaError(ValueError):
    """Raised when a column layout is missing a required column or repeats one."""


# ---------------------------------------------------------------------------
# Columns
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Column:
    key: str
    label: str


COLUMNS: dict[str, Column] = {
    c.key: c
    for c in (
        Column("name", "Name"),
        Column("attending", "Attending"),
        Column("location", "Location"),
        Column("guest_count", "Guest Count"),
        Column("bringing_kids", "Bringing Kids"),
        Column("kids_count", "Kids Count"),
        Column("message", "Message"),
        Column("game_completed", "Game Completed"),
        Column("user_id", "User ID"),
        Column("submission_count", "Submission Count"),
        Column("last_update", "Last Update"),
    )
}

REQUIRED_KEYS = frozenset({"user_id", "submission_count", "last_update"})

_CLASSIC_KEYS = (
    "name", "attending", "location", "guest_count", "bringing_kids",
    "kids_count", "message", "user_id", "submission_count", "last_update",
)
_GAME_KEYS = (
    "name", "attending", "location", "guest_count", "bringing_kids",
    "kids_count", "message", "game_completed", "user_id", "submission_count",
    "last_update",
)


# ---------------------------------------------------------------------------
# SheetSchema
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SheetSchema:
    columns: tuple[Column, ...]

    def __post_init__(self) -> None:
        keys = [c.key for c in self.columns]
        if len(set(keys)) != len(keys):
            raise SchemaError(f"duplicate column keys: {keys}")
        missing = REQUIRED_KEYS - set(keys)
        if missing:
            raise SchemaError(f"schema is missing required columns: {sorted(missing)}")

    @classmethod
    def from_keys(cls, keys: Sequence[str]) -> SheetSchema:
        unknown = [k for k in keys if k not in COLUMNS]
        if unknown:
            raise SchemaError(f"unknown column keys: {unknown}")
        return cls(tuple(COLUMNS[k] for k in keys))

    @property
    def header(self) -> list[str]:
        return [c.label for c in self.columns]

    @property
    def keys(self) -> list[str]:
        return [c.key for c in self.columns]

    @property
    def width(self) -> int:
        return len(self.columns)

    def has(self, key: str) -> bool:
        return any(c.key == key for c in self.columns)

    def index(self, key: str) -> int:
        """0-based position of key within a row."""
        for i, c in enumerate(self.columns):
            if c.key == key:
                return i
        raise KeyError(key)

    def column_number(self, key: str) -> int:
        """1-based column number of key, as a spreadsheet would address it."""
        return self.index(key) + 1


CLASSIC = SheetSchema.from_keys(_CLASSIC_KEYS)
GAME = SheetSchema.from_keys(_GAME_KEYS)

PRESETS: dict[str, SheetSchema] = {"classic": CLASSIC, "game": GAME}


def resolve_schema(layout: str | Sequence[str]) -> SheetSchema:
    """Return a preset by name, or build a schema from an explicit key list."""
    if isinstance(layout, str):
        try:
            return PRESETS[layout]
        except KeyError:
            raise SchemaError(
                f"unknown schema {layout!r}; expected one of {sorted(PRESETS)} or a column list"
            ) from None
    if not isinstance(layout, (list, tuple)):
        raise SchemaError(f"schema must be a preset name or a list of column keys, got {layout!r}")
    return SheetSchema.from_keys(list(layout))
