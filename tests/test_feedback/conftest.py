"""Shared fixtures for feedback tests."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from agora.feedback.schemas import Feedback, FeedbackStatus

CREATED = datetime(2026, 2, 5, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_database():
    """Mock Database with async fetch methods."""
    db = AsyncMock()
    db.fetchrow = AsyncMock()
    db.fetch = AsyncMock(return_value=[])
    db.fetchval = AsyncMock()
    db.execute = AsyncMock(return_value="DELETE 1")
    return db


@pytest.fixture
def sample_feedback():
    """A sample Feedback with all fields populated."""
    return Feedback(
        id=123456789,
        title="Dark mode",
        description="Users want dark mode support for the app UI",
        status=FeedbackStatus.ACKNOWLEDGED,
        category_id=2001,
        author_id=1001,
        sentiment="positive",
        tags="ui,theme",
        upvotes=4,
        downvotes=1,
        comments=2,
        archived=False,
        created_at=CREATED,
        updated_at=CREATED,
    )


@pytest.fixture
def sample_row(sample_feedback):
    """The feedback table row for ``sample_feedback``."""
    return {
        "id": sample_feedback.id,
        "title": sample_feedback.title,
        "description": sample_feedback.description,
        "status": "ACKNOWLEDGED",
        "category_id": 2001,
        "author_id": 1001,
        "sentiment": "positive",
        "tags": "ui,theme",
        "upvotes": 4,
        "downvotes": 1,
        "comments": 2,
        "archived": False,
        "created_at": CREATED,
        "updated_at": CREATED,
    }
