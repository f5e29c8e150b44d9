"""Shared fixtures for API tests."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from agora.api.app import create_app
from agora.api.auth import get_caller_id
from agora.api.dependencies import (
    get_database,
    get_feedback_config,
    get_feedback_service,
    get_leaderboard_service,
)
from agora.config.settings import get_settings
from agora.feedback.commands import (
    CategoryView,
    CommentAuthorView,
    CommentView,
    FeedbackView,
)
from agora.feedback.config import FeedbackConfig
from agora.feedback.schemas import FeedbackStatus
from agora.feedback.service import FeedbackService
from agora.identifiers import encode
from agora.users.schemas import LeaderboardEntry
from agora.users.service import LeaderboardService

CALLER_ID = encode(1001)
FEEDBACK_ID = encode(4242)
COMMENT_ID = encode(5151)
CATEGORY_ID = encode(2001)
CREATED = datetime(2026, 2, 5, 8, 30, 0, tzinfo=timezone.utc)


def _make_feedback_view(**overrides) -> FeedbackView:
    """Helper to create a FeedbackView with sensible defaults."""
    values = dict(
        id=FEEDBACK_ID,
        title="Dark mode",
        description="Please add a dark theme to the dashboard",
        status=FeedbackStatus.PENDING,
        category_id=CATEGORY_ID,
        category_name="User Interface",
        author_id=CALLER_ID,
        author_name="Alice Doe",
        sentiment=None,
        tags="ui,theme",
        upvotes=0,
        downvotes=0,
        comments=0,
        archived=False,
        created_at=CREATED,
        updated_at=CREATED,
    )
    values.update(overrides)
    return FeedbackView(**values)


def _make_comment_view(**overrides) -> CommentView:
    values = dict(
        id=COMMENT_ID,
        feedback_id=FEEDBACK_ID,
        author=CommentAuthorView(id=CALLER_ID, username="Alice Doe"),
        text="nice",
        is_developer_response=False,
        upvotes=0,
        created_at=CREATED,
        updated_at=CREATED,
    )
    values.update(overrides)
    return CommentView(**values)


def _make_leaderboard_entry(user_id: int = 1002, score: int = 75) -> LeaderboardEntry:
    return LeaderboardEntry(
        user_id=encode(user_id),
        username=f"user{user_id}",
        display_name=f"User {user_id}",
        reputation_score=score,
        avatar_url=None,
    )


@pytest.fixture
def mock_feedback_service():
    """Mock FeedbackService."""
    service = AsyncMock(spec=FeedbackService)
    service.get_feedback = AsyncMock(return_value=_make_feedback_view())
    service.create_feedback = AsyncMock(return_value=_make_feedback_view())
    service.list_categories = AsyncMock(
        return_value=[CategoryView(id=CATEGORY_ID, name="User Interface")]
    )
    service.list_comments = AsyncMock(return_value=[])
    return service


@pytest.fixture
def mock_leaderboard_service():
    """Mock LeaderboardService."""
    return AsyncMock(spec=LeaderboardService)


@pytest.fixture
def mock_db():
    db = AsyncMock()
    db.health_check = AsyncMock(return_value=True)
    return db


def _override(app, feedback_service, leaderboard_service, db) -> None:
    app.dependency_overrides[get_feedback_service] = lambda: feedback_service
    app.dependency_overrides[get_leaderboard_service] = lambda: leaderboard_service
    app.dependency_overrides[get_feedback_config] = lambda: FeedbackConfig()
    app.dependency_overrides[get_database] = lambda: db


@pytest.fixture
def client(mock_feedback_service, mock_leaderboard_service, mock_db):
    """FastAPI TestClient authenticated as CALLER_ID."""
    app = create_app()
    _override(app, mock_feedback_service, mock_leaderboard_service, mock_db)
    app.dependency_overrides[get_caller_id] = lambda: CALLER_ID

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def session_secret(monkeypatch):
    """Configure session tokens for the duration of a test."""
    monkeypatch.setenv("SESSION_SECRET", "api-test-secret")
    get_settings.cache_clear()
    yield "api-test-secret"
    get_settings.cache_clear()


@pytest.fixture
def no_session_secret(monkeypatch):
    monkeypatch.delenv("SESSION_SECRET", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def anonymous_client(mock_feedback_service, mock_leaderboard_service, mock_db):
    """TestClient that goes through real bearer-token verification."""
    app = create_app()
    _override(app, mock_feedback_service, mock_leaderboard_service, mock_db)

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def make_feedback_view():
    """Factory for FeedbackView rows returned by the mocked service."""
    return _make_feedback_view


@pytest.fixture
def make_comment_view():
    return _make_comment_view


@pytest.fixture
def make_leaderboard_entry():
    return _make_leaderboard_entry
