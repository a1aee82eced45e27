"""rsvp_sheet.submission

Typed RSVP submission built from a raw form mapping.

Defaults are applied once, here, so the rest of the pipeline never sees a
missing field. A value counts as missing when the key is absent or the
value is the empty string; anything else is kept verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from rsvp_sheet.normalize import or_default

# form key -> (attribute, default)
FORM_FIELDS: dict[str, tuple[str, str]] = {
    "name": ("name", ""),
    "attending": ("attending", "No"),
    "location": ("location", ""),
    "guestCount": ("guest_count", "0"),
    "bringingKids": ("bringing_kids", "No"),
    "kidsCount": ("kids_count", "0"),
    "message": ("message", ""),
    "gameCompleted": ("game_completed", "No"),
    "userId": ("user_id", ""),
}


@dataclass(frozen=True)
class Submission:
    name: str = ""
    attending: str = "No"
    location: str = ""
    guest_count: str = "0"
    bringing_kids: str = "No"
    kids_count: str = "0"
    message: str = ""
    game_completed: str = "No"
    user_id: str = ""

    @classmethod
    def from_form(cls, form: Mapping[str, str | None]) -> Submission:
        """Build a Submission from URL-encoded form fields.

        Unrecognized keys are ignored.
        """
        kwargs = {
            attr: or_default(form.get(form_key), default)
            for form_key, (attr, default) in FORM_FIELDS.items()
        }
        return cls(**kwargs)

    @property
    def is_attending(self) -> bool:
        return self.attending == "Yes"

    @property
    def is_bringing_kids(self) -> bool:
        return self.bringing_kids == "Yes"

    def value_for(self, key: str) -> str:
        """Cell value for a submission-backed schema column."""
        return getattr(self, key)
