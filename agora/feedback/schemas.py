"""Schema definitions for feedback items and categories.

``Feedback`` maps 1:1 to the ``feedback`` table and ``Category`` to the
``categories`` table. Ids are the raw 64-bit integers; the string form only
appears in views returned by the service.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from agora.errors import InvalidVoteDirectionError

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 255
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 5000
SENTIMENT_MAX_LENGTH = 50
TAGS_MAX_LENGTH = 500
CATEGORY_NAME_MIN_LENGTH = 2
CATEGORY_NAME_MAX_LENGTH = 100


class FeedbackStatus(str, Enum):
    """Workflow position of a feedback item, independent of ``archived``."""

    PENDING = "PENDING"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class VoteDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    NONE = "none"

    @classmethod
    def parse(cls, value: str | None) -> "VoteDirection":
        """Case-insensitive parse.

        Raises:
            InvalidVoteDirectionError: value is missing, blank, or unknown.
        """
        if value is None or not value.strip():
            raise InvalidVoteDirectionError(value)
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidVoteDirectionError(value) from None


VALID_STATUSES: frozenset[str] = frozenset(s.value for s in FeedbackStatus)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Feedback:
    """A persisted feedback item from the feedback table.

    Attributes:
        id: Time-sortable 64-bit identifier.
        title: Short summary, 3-255 characters.
        description: Body text, 10-5000 characters.
        status: Workflow status; starts at PENDING.
        category_id: Optional category reference.
        author_id: Optional author reference; None means unattributed.
        sentiment: Free-form sentiment label.
        tags: Comma-separated tags, stored unparsed.
        upvotes: Aggregate up-vote counter.
        downvotes: Aggregate down-vote counter.
        comments: Number of comments attached.
        archived: Hidden from the active board, orthogonal to status.
        created_at: Creation time (UTC).
        updated_at: Time of the last mutation (UTC).
    """

    id: int
    title: str
    description: str
    status: FeedbackStatus = FeedbackStatus.PENDING
    category_id: int | None = None
    author_id: int | None = None
    sentiment: str | None = None
    tags: str | None = None
    upvotes: int = 0
    downvotes: int = 0
    comments: int = 0
    archived: bool = False
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if isinstance(self.status, str) and not isinstance(self.status, FeedbackStatus):
            if self.status not in VALID_STATUSES:
                raise ValueError(
                    f"Invalid status {self.status!r}. "
                    f"Must be one of: {sorted(VALID_STATUSES)}"
                )
            self.status = FeedbackStatus(self.status)
        for name in ("upvotes", "downvotes", "comments"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")


@dataclass
class Category:
    """A category from the categories lookup table."""

    id: int
    name: str

    def __post_init__(self) -> None:
        if not (CATEGORY_NAME_MIN_LENGTH <= len(self.name) <= CATEGORY_NAME_MAX_LENGTH):
            raise ValueError(
                f"Invalid category name length {len(self.name)}. Must be between "
                f"{CATEGORY_NAME_MIN_LENGTH} and {CATEGORY_NAME_MAX_LENGTH}."
            )
