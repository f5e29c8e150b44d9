"""Shared fixtures for comment tests."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from agora.comments.schemas import Comment

CREATED = datetime(2026, 2, 6, 8, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_database():
    """Mock Database with async fetch methods."""
    db = AsyncMock()
    db.fetchrow = AsyncMock()
    db.fetch = AsyncMock(return_value=[])
    return db


@pytest.fixture
def sample_comment():
    return Comment(
        id=555,
        feedback_id=123,
        author_id=1002,
        text="nice",
        upvotes=3,
        created_at=CREATED,
        updated_at=CREATED,
    )


@pytest.fixture
def sample_row(sample_comment):
    return {
        "id": 555,
        "feedback_id": 123,
        "author_id": 1002,
        "text": "nice",
        "is_developer_response": False,
        "upvotes": 3,
        "created_at": CREATED,
        "updated_at": CREATED,
    }
