"""Inputs and outputs of the feedback service.

Commands carry what a caller asks for; views carry what the service hands
back. Every id in either is the public 13-character string form.
"""

from dataclasses import dataclass, field
from datetime import datetime

from agora.feedback.schemas import FeedbackStatus


@dataclass
class CreateFeedbackCommand:
    title: str
    description: str
    category_id: str | None = None
    author_id: str | None = None
    sentiment: str | None = None
    tags: str | None = None


@dataclass
class UpdateFeedbackCommand:
    """Full replacement of the editable fields of one item."""

    title: str
    description: str
    status: FeedbackStatus | None
    category_id: str | None = None
    author_id: str | None = None
    sentiment: str | None = None
    tags: str | None = None


@dataclass
class FeedbackView:
    id: str
    title: str
    description: str
    status: FeedbackStatus
    category_id: str | None
    category_name: str | None
    author_id: str | None
    author_name: str | None
    sentiment: str | None
    tags: str | None
    upvotes: int
    downvotes: int
    comments: int
    archived: bool
    created_at: datetime
    updated_at: datetime


@dataclass
class CommentAuthorView:
    """Author projection on a comment; ``username`` holds the display name."""

    id: str
    username: str | None


@dataclass
class CommentView:
    id: str
    feedback_id: str
    author: CommentAuthorView
    text: str
    is_developer_response: bool
    upvotes: int
    created_at: datetime
    updated_at: datetime


@dataclass
class CategoryView:
    id: str
    name: str


@dataclass
class FieldNames:
    """Display names resolved in batch for a set of items."""

    categories: dict[int, str] = field(default_factory=dict)
    users: dict[int, str] = field(default_factory=dict)
