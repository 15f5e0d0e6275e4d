# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Tests for session-to-document helpers."""

import pytest

from hybrid_recall.ingestion.documents import document_from_session, parse_day_number


class TestParseDayNumber:
    """Tests for day number extraction."""

    @pytest.mark.parametrize(
        "description,expected",
        [
            ("Week 1, Day 3 - project setup", 3),
            ("Week 6, Day 42 - release prep", 42),
            ("day 7: retro", 7),
            ("DAY 15", 15),
        ],
    )
    def test_extracts_day(self, description: str, expected: int) -> None:
        """The first "Day N" marker wins, case-insensitively."""
        assert parse_day_number(description) == expected

    def test_defaults_to_day_one(self) -> None:
        """Descriptions without a marker default to day 1."""
        assert parse_day_number("Kickoff meeting") == 1


class TestDocumentFromSession:
    """Tests for building documents from session notes."""

    def test_builds_document(self) -> None:
        """Session id, parsed day and stripped notes end up on the document."""
        doc = document_from_session(
            "s-12", "Week 2, Day 12 - schema migration", "  Added users table.\n"
        )
        assert doc.id == "s-12"
        assert doc.day_number == 12
        assert doc.text == "Added users table."
