"""User provisioning and the reputation leaderboard."""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from agora import pagination
from agora.errors import FieldError, ValidationError
from agora.identifiers import IdGenerator, encode
from agora.storage.database import Database, unit_of_work
from agora.users.repository import UserRepository
from agora.users.schemas import LeaderboardEntry, Role, User

logger = logging.getLogger(__name__)

DEFAULT_TOP_LIMIT = 10

NAME_MAX_LENGTH = 255
USERNAME_MAX_LENGTH = 100


def _to_entry(user: User) -> LeaderboardEntry:
    return LeaderboardEntry(
        user_id=encode(user.id),
        username=user.username,
        display_name=user.name,
        reputation_score=user.reputation_score,
        avatar_url=user.avatar_url,
    )


class LeaderboardService:
    """Read-only ranking of users, highest reputation first, id breaking ties."""

    def __init__(
        self,
        database: Database,
        repository: Callable[[Any], UserRepository] = UserRepository,
    ) -> None:
        self._db = database
        self._repository = repository

    async def get_leaderboard(
        self,
        page: int | None = None,
        size: int | None = None,
    ) -> pagination.Page[LeaderboardEntry]:
        page = pagination.normalize_page(page)
        size = pagination.normalize_size(size)

        async with unit_of_work(self._db) as conn:
            users = self._repository(conn)
            total = await users.count()
            ranked = await users.list_by_reputation(
                limit=size, offset=pagination.offset_for(page, size)
            )

        return pagination.Page(
            items=[_to_entry(u) for u in ranked],
            current_page=page,
            page_size=size,
            total_items=total,
        )

    async def get_top_users(self, limit: int | None = DEFAULT_TOP_LIMIT) -> list[LeaderboardEntry]:
        """The first ``limit`` users, limit clamped to ``[1, 100]``."""
        limit = pagination.normalize_size(limit if limit is not None else DEFAULT_TOP_LIMIT)
        async with unit_of_work(self._db) as conn:
            ranked = await self._repository(conn).list_by_reputation(limit=limit)
        return [_to_entry(u) for u in ranked]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_role(role: Role | str | None, errors: list[FieldError]) -> Role | None:
    if role is None or isinstance(role, Role):
        return role
    try:
        return Role(role.strip().upper())
    except ValueError:
        errors.append(FieldError("role", f"Invalid role: {role}"))
        return None


def _check_profile(name: str, username: str, email: str) -> list[FieldError]:
    errors = []
    if not name or not name.strip():
        errors.append(FieldError("name", "Name cannot be blank"))
    elif len(name) > NAME_MAX_LENGTH:
        errors.append(FieldError("name", f"Name must not exceed {NAME_MAX_LENGTH} characters"))
    if not username or not username.strip():
        errors.append(FieldError("username", "Username cannot be blank"))
    elif len(username) > USERNAME_MAX_LENGTH:
        errors.append(
            FieldError("username", f"Username must not exceed {USERNAME_MAX_LENGTH} characters")
        )
    if not email or "@" not in email.strip("@"):
        errors.append(FieldError("email", "Email must be a valid address"))
    return errors


class UserService:
    """
    Provisions users, keyed by username.

    A sign-in flow (or ``agora create-user``) calls ``create_or_update``
    each time it sees a user. New users start with zero reputation and the
    USER role unless one is given; returning users get their profile
    refreshed while reputation is kept.
    """

    def __init__(
        self,
        database: Database,
        id_generator: IdGenerator,
        repository: Callable[[Any], UserRepository] = UserRepository,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._db = database
        self._ids = id_generator
        self._repository = repository
        self._clock = clock

    async def create_or_update(
        self,
        name: str,
        username: str,
        email: str,
        *,
        role: Role | str | None = None,
        avatar_url: str | None = None,
    ) -> tuple[User, bool]:
        """
        Insert the user or refresh the one with ``username``.

        Args:
            name: Display name
            username: Unique login handle; the lookup key
            email: Contact address
            role: Role to assign; None keeps an existing user's role
            avatar_url: Avatar to store; None keeps an existing one

        Returns:
            The stored user and whether it was newly created

        Raises:
            ValidationError: a field is blank, too long or malformed
        """
        errors = _check_profile(name, username, email)
        parsed_role = _parse_role(role, errors)
        if errors:
            raise ValidationError(errors)

        async with unit_of_work(self._db) as conn:
            users = self._repository(conn)
            existing = await users.get_by_username(username, for_update=True)
            now = self._clock()

            if existing is None:
                user = await users.create(
                    User(
                        id=self._ids.generate(),
                        name=name,
                        username=username,
                        email=email,
                        avatar_url=avatar_url,
                        role=parsed_role or Role.USER,
                        created_at=now,
                        updated_at=now,
                    )
                )
                logger.info("Created user %s (%s)", encode(user.id), username)
                return user, True

            existing.name = name
            existing.email = email
            if avatar_url is not None:
                existing.avatar_url = avatar_url
            if parsed_role is not None:
                existing.role = parsed_role
            existing.updated_at = now
            user = await users.update_profile(existing)

        logger.info("Updated user %s (%s)", encode(user.id), username)
        return user, False
