"""Schema definitions for comments.

Maps 1:1 to the ``comments`` table. Comments carry only an up-vote
counter; a down vote removes one up vote.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Comment:
    """A persisted comment on a feedback item.

    Attributes:
        id: Time-sortable 64-bit identifier.
        feedback_id: Parent feedback item; never changes after creation.
        author_id: Commenting user.
        text: Comment body, 1-5000 characters.
        is_developer_response: Marks an official reply. Not settable from
            the public API.
        upvotes: Aggregate up-vote counter.
    """

    id: int
    feedback_id: int
    author_id: int
    text: str
    is_developer_response: bool = False
    upvotes: int = 0
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.upvotes < 0:
            raise ValueError("upvotes must be non-negative")
