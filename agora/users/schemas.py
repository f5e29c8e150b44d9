"""Schema definitions for users.

Users are provisioned by ``UserService.create_or_update`` (driven by
``agora create-user`` or a sign-in flow) and referenced by id for
attribution and authorization.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class Role(str, Enum):
    USER = "USER"
    MODERATOR = "MODERATOR"
    ADMIN = "ADMIN"

    @property
    def is_admin(self) -> bool:
        return self is Role.ADMIN


@dataclass
class User:
    """A persisted user from the users table.

    Attributes:
        id: Time-sortable 64-bit identifier.
        name: Display name shown next to comments and on the leaderboard.
        username: Unique login handle.
        email: Unique contact address.
        reputation_score: Leaderboard ranking score.
        avatar_url: Optional avatar image URL.
        role: Authorization role.
    """

    id: int
    name: str
    username: str
    email: str
    reputation_score: int = 0
    avatar_url: str | None = None
    role: Role = Role.USER
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not isinstance(self.role, Role):
            self.role = Role(self.role)


@dataclass
class LeaderboardEntry:
    """One ranked user as returned by the leaderboard."""

    user_id: str
    username: str
    display_name: str
    reputation_score: int
    avatar_url: str | None = None
