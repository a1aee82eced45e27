"""Unit tests for rsvp_sheet.schema."""

from __future__ import annotations

import pytest

from rsvp_sheet.schema import CLASSIC, GAME, SchemaError, SheetSchema, resolve_schema


class TestPresets:
    def test_classic_header(self):
        assert CLASSIC.header == [
            "Name", "Attending", "Location", "Guest Count", "Bringing Kids",
            "Kids Count", "Message", "User ID", "Submission Count", "Last Update",
        ]

    def test_game_inserts_game_completed_before_user_id(self):
        assert GAME.width == CLASSIC.width + 1
        assert GAME.index("game_completed") == 7
        assert GAME.index("user_id") == 8

    def test_column_numbers_are_one_based(self):
        assert CLASSIC.column_number("name") == 1
        assert CLASSIC.column_number("user_id") == 8
        assert CLASSIC.column_number("submission_count") == 9
        assert GAME.column_number("submission_count") == 10

    def test_has(self):
        assert GAME.has("game_completed")
        assert not CLASSIC.has("game_completed")

    def test_index_unknown_key(self):
        with pytest.raises(KeyError):
            CLASSIC.index("game_completed")


class TestResolveSchema:
    def test_by_name(self):
        assert resolve_schema("classic") is CLASSIC
        assert resolve_schema("game") is GAME

    def test_unknown_name(self):
        with pytest.raises(SchemaError, match="unknown schema"):
            resolve_schema("variant-c")

    def test_explicit_column_list(self):
        schema = resolve_schema(["user_id", "name", "submission_count", "last_update"])
        assert schema.header == ["User ID", "Name", "Submission Count", "Last Update"]

    def test_explicit_list_missing_required(self):
        with pytest.raises(SchemaError, match="missing required columns"):
            resolve_schema(["name", "user_id"])

    def test_explicit_list_unknown_key(self):
        with pytest.raises(SchemaError, match="unknown column keys"):
            resolve_schema(["user_id", "submission_count", "last_update", "shoe_size"])

    def test_duplicate_keys(self):
        with pytest.raises(SchemaError, match="duplicate"):
            SheetSchema.from_keys(["user_id", "user_id", "submission_count", "last_update"])
