"""Users as seen by the feedback board, plus the reputation leaderboard.

Components:
- User / Role / LeaderboardEntry: Dataclasses mapping to the users table
- UserRepository: Lookups, batch name resolution and reputation ranking
- LeaderboardService: Paginated and top-N rankings
- UserService: Create-or-update provisioning keyed by username
"""

from agora.users.repository import UserRepository
from agora.users.schemas import LeaderboardEntry, Role, User
from agora.users.service import LeaderboardService, UserService

__all__ = [
    "LeaderboardEntry",
    "LeaderboardService",
    "Role",
    "User",
    "UserRepository",
    "UserService",
]
