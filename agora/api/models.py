"""
Request and response models for the feedback board API.

All ids are the 13-character public form. Timestamps are ISO 8601 strings.
"""

from pydantic import BaseModel, Field

from agora.feedback.schemas import FeedbackStatus


class FieldErrorItem(BaseModel):
    field: str = Field(..., description="Offending field")
    message: str = Field(..., description="What is wrong with it")


class ErrorResponse(BaseModel):
    """Response model for errors."""

    detail: str = Field(
        ...,
        description="Error message",
    )
    error_type: str = Field(
        default="error",
        description="Error type",
    )
    errors: list[FieldErrorItem] | None = Field(
        default=None,
        description="Field-level violations, for validation errors only",
    )


# -- health -----------------------------------------------------------------


class ComponentHealth(BaseModel):
    """Health of a single dependency."""

    status: str = Field(..., description="healthy or unhealthy")
    latency_ms: float | None = Field(default=None, description="Check latency in milliseconds")


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Overall service status: healthy or unhealthy")
    version: str = Field(..., description="Service version")
    components: dict[str, ComponentHealth] = Field(
        default_factory=dict,
        description="Per-dependency health",
    )


# -- feedback ---------------------------------------------------------------


class FeedbackCreateRequest(BaseModel):
    """Request model for submitting feedback. The author is always the caller."""

    title: str = Field(..., description="Short summary (3-255 characters)")
    description: str = Field(..., description="Details (10-5000 characters)")
    category_id: str | None = Field(default=None, description="Category id")
    sentiment: str | None = Field(default=None, description="Free-form sentiment (max 50)")
    tags: str | None = Field(default=None, description="Comma-separated tags (max 500)")


class FeedbackUpdateRequest(BaseModel):
    """Request model for replacing every editable field of an item."""

    title: str = Field(..., description="Short summary (3-255 characters)")
    description: str = Field(..., description="Details (10-5000 characters)")
    status: FeedbackStatus | None = Field(default=None, description="Workflow status (required)")
    category_id: str | None = Field(default=None, description="Category id; null clears it")
    author_id: str | None = Field(default=None, description="Author id; null clears it")
    sentiment: str | None = Field(default=None, description="Free-form sentiment (max 50)")
    tags: str | None = Field(default=None, description="Comma-separated tags (max 500)")


class VoteRequest(BaseModel):
    direction: str | None = Field(default=None, description="up, down or none (case-insensitive)")


class FeedbackItem(BaseModel):
    """Single feedback item."""

    id: str = Field(..., description="Feedback id")
    title: str
    description: str
    status: FeedbackStatus
    category_id: str | None = None
    category_name: str | None = None
    author_id: str | None = None
    author_name: str | None = None
    sentiment: str | None = None
    tags: str | None = None
    upvotes: int = Field(..., ge=0)
    downvotes: int = Field(..., ge=0)
    comments: int = Field(..., ge=0)
    archived: bool
    created_at: str = Field(..., description="Creation timestamp (ISO format)")
    updated_at: str = Field(..., description="Last mutation timestamp (ISO format)")


class FeedbackPageResponse(BaseModel):
    """One page of feedback items."""

    data: list[FeedbackItem]
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total_items: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)


class CategoryItem(BaseModel):
    id: str
    name: str


# -- comments ---------------------------------------------------------------


class CommentCreateRequest(BaseModel):
    content: str = Field(..., description="Comment text (1-5000 characters)")


class CommentAuthor(BaseModel):
    id: str = Field(..., description="Author user id")
    username: str | None = Field(default=None, description="Author display name")


class CommentItem(BaseModel):
    """Single comment."""

    id: str
    author: CommentAuthor
    content: str
    is_developer_response: bool
    upvotes: int = Field(..., ge=0)
    created_at: str
    updated_at: str


# -- users ------------------------------------------------------------------


class LeaderboardItem(BaseModel):
    user_id: str
    username: str
    display_name: str
    reputation_score: int
    avatar_url: str | None = None


class LeaderboardPageResponse(BaseModel):
    """One page of the reputation leaderboard."""

    data: list[LeaderboardItem]
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total_items: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)
