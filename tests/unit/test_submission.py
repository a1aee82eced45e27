"""Unit tests for rsvp_sheet.submission."""

from __future__ import annotations

from rsvp_sheet.submission import Submission


class TestFromForm:
    def test_only_user_id_gets_defaults(self):
        sub = Submission.from_form({"userId": "u1"})
        assert sub == Submission(
            name="",
            attending="No",
            location="",
            guest_count="0",
            bringing_kids="No",
            kids_count="0",
            message="",
            game_completed="No",
            user_id="u1",
        )

    def test_empty_strings_use_defaults(self):
        sub = Submission.from_form({"attending": "", "guestCount": "", "userId": ""})
        assert sub.attending == "No"
        assert sub.guest_count == "0"
        assert sub.user_id == ""

    def test_full_form(self):
        sub = Submission.from_form({
            "name": "Ana",
            "attending": "Yes",
            "location": "Hall",
            "guestCount": "2",
            "bringingKids": "Yes",
            "kidsCount": "1",
            "message": "See you!",
            "gameCompleted": "Yes",
            "userId": "u42",
        })
        assert sub.name == "Ana"
        assert sub.is_attending
        assert sub.is_bringing_kids
        assert sub.kids_count == "1"
        assert sub.game_completed == "Yes"

    def test_unknown_keys_ignored(self):
        sub = Submission.from_form({"userId": "u1", "favoriteColor": "blue"})
        assert not hasattr(sub, "favoriteColor")

    def test_values_not_trimmed_or_folded(self):
        sub = Submission.from_form({"userId": " U1 ", "attending": "yes"})
        assert sub.user_id == " U1 "
        assert sub.attending == "yes"
        assert not sub.is_attending
