# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Helpers for turning session notes into Documents."""

import re

from hybrid_recall.schemas import Document

# Matches "Day 12" in descriptions like "Week 2, Day 12 - schema migration"
DAY_PATTERN = re.compile(r"Day (\d+)", re.IGNORECASE)

DEFAULT_DAY_NUMBER = 1


def parse_day_number(description: str) -> int:
    """Extract the day number from a session description.

    Args:
        description: Free-form description, e.g. "Week 1, Day 3 - setup".

    Returns:
        The first "Day N" number found, or 1 if there is none.
    """
    match = DAY_PATTERN.search(description)
    return int(match.group(1)) if match else DEFAULT_DAY_NUMBER


def document_from_session(session_id: str, description: str, text: str) -> Document:
    """Build a Document from a session's extracted notes.

    Args:
        session_id: Session identifier, used as the document ID.
        description: Session description carrying the "Day N" marker.
        text: Extracted notes for the session.

    Returns:
        Document dated by the parsed day number.
    """
    return Document(id=session_id, day_number=parse_day_number(description), text=text.strip())
