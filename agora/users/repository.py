"""Database repository for the users table.

Users are written only by provisioning (``UserService``, ``agora
create-user``); the feedback board itself only reads them.
"""

import logging
from typing import Any

from agora.storage.database import Executor
from agora.users.schemas import Role, User

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id                BIGINT PRIMARY KEY,
    name              VARCHAR(255) NOT NULL,
    username          VARCHAR(100) NOT NULL UNIQUE,
    email             TEXT NOT NULL UNIQUE,
    reputation_score  INTEGER NOT NULL DEFAULT 0,
    avatar_url        TEXT,
    role              TEXT NOT NULL DEFAULT 'USER'
                      CHECK (role IN ('USER', 'MODERATOR', 'ADMIN')),
    created_at        TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at        TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_users_reputation
    ON users(reputation_score DESC, id);
"""


def _record_to_user(record: Any) -> User:
    return User(
        id=record["id"],
        name=record["name"],
        username=record["username"],
        email=record["email"],
        reputation_score=record["reputation_score"],
        avatar_url=record.get("avatar_url"),
        role=Role(record["role"]),
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


class UserRepository:
    """Lookups, provisioning writes and ranking for the users table."""

    def __init__(self, database: Executor) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the users table and ranking index (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Users table ensured")

    async def get_by_id(self, user_id: int) -> User | None:
        row = await self._db.fetchrow("SELECT * FROM users WHERE id = $1", user_id)
        return _record_to_user(row) if row else None

    async def get_by_username(self, username: str, *, for_update: bool = False) -> User | None:
        sql = "SELECT * FROM users WHERE username = $1"
        if for_update:
            sql += " FOR UPDATE"
        row = await self._db.fetchrow(sql, username)
        return _record_to_user(row) if row else None

    async def get_display_names(self, user_ids: list[int]) -> dict[int, str]:
        """Map user id to display name for every id that exists."""
        if not user_ids:
            return {}
        rows = await self._db.fetch(
            "SELECT id, name FROM users WHERE id = ANY($1::bigint[])",
            list(set(user_ids)),
        )
        return {row["id"]: row["name"] for row in rows}

    async def create(self, user: User) -> User:
        row = await self._db.fetchrow(
            """
            INSERT INTO users (
                id, name, username, email, reputation_score,
                avatar_url, role, created_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            RETURNING *
            """,
            user.id,
            user.name,
            user.username,
            user.email,
            user.reputation_score,
            user.avatar_url,
            user.role.value,
            user.created_at,
            user.updated_at,
        )
        return _record_to_user(row)

    async def update_profile(self, user: User) -> User:
        """Persist profile fields; reputation is left untouched."""
        row = await self._db.fetchrow(
            """
            UPDATE users
            SET name = $2, email = $3, avatar_url = $4, role = $5, updated_at = $6
            WHERE id = $1
            RETURNING *
            """,
            user.id,
            user.name,
            user.email,
            user.avatar_url,
            user.role.value,
            user.updated_at,
        )
        return _record_to_user(row)

    async def count(self) -> int:
        return await self._db.fetchval("SELECT COUNT(*) FROM users")

    async def list_by_reputation(self, *, limit: int, offset: int = 0) -> list[User]:
        """Users ranked by reputation, highest first; id breaks ties."""
        rows = await self._db.fetch(
            """
            SELECT * FROM users
            ORDER BY reputation_score DESC, id ASC
            LIMIT $1 OFFSET $2
            """,
            limit,
            offset,
        )
        return [_record_to_user(row) for row in rows]
