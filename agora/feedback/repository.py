"""Repositories for feedback items and categories.

Both accept either the pooled ``Database`` or a connection yielded by
``Database.transaction()``; the service binds them to the latter so every
read and write of one operation shares a transaction.
"""

import logging
from typing import Any

from agora.feedback.schemas import Category, Feedback, FeedbackStatus
from agora.storage.database import Executor

logger = logging.getLogger(__name__)

_CREATE_CATEGORIES_SQL = """
CREATE TABLE IF NOT EXISTS categories (
    id          BIGINT PRIMARY KEY,
    name        VARCHAR(100) NOT NULL UNIQUE
                CHECK (char_length(name) BETWEEN 2 AND 100),
    created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

_CREATE_FEEDBACK_SQL = """
CREATE TABLE IF NOT EXISTS feedback (
    id           BIGINT PRIMARY KEY,
    title        VARCHAR(255) NOT NULL,
    description  TEXT NOT NULL,
    status       TEXT NOT NULL DEFAULT 'PENDING'
                 CHECK (status IN ('PENDING', 'ACKNOWLEDGED', 'IN_PROGRESS', 'COMPLETED')),
    category_id  BIGINT REFERENCES categories(id) ON DELETE SET NULL,
    author_id    BIGINT REFERENCES users(id) ON DELETE SET NULL,
    sentiment    VARCHAR(50),
    tags         VARCHAR(500),
    upvotes      INTEGER NOT NULL DEFAULT 0 CHECK (upvotes >= 0),
    downvotes    INTEGER NOT NULL DEFAULT 0 CHECK (downvotes >= 0),
    comments     INTEGER NOT NULL DEFAULT 0 CHECK (comments >= 0),
    archived     BOOLEAN NOT NULL DEFAULT FALSE,
    created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_feedback_created_at
    ON feedback(created_at);
CREATE INDEX IF NOT EXISTS idx_feedback_author
    ON feedback(author_id);
"""

_INSERT_FEEDBACK_SQL = """
INSERT INTO feedback (
    id, title, description, status, category_id, author_id,
    sentiment, tags, upvotes, downvotes, comments, archived,
    created_at, updated_at
) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14)
RETURNING *
"""

_UPDATE_FEEDBACK_SQL = """
UPDATE feedback SET
    title = $2,
    description = $3,
    status = $4,
    category_id = $5,
    author_id = $6,
    sentiment = $7,
    tags = $8,
    upvotes = $9,
    downvotes = $10,
    comments = $11,
    archived = $12,
    updated_at = $13
WHERE id = $1
RETURNING *
"""


def _row_to_feedback(row: Any) -> Feedback:
    """Convert an asyncpg Record to a Feedback."""
    return Feedback(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        status=FeedbackStatus(row["status"]),
        category_id=row.get("category_id"),
        author_id=row.get("author_id"),
        sentiment=row.get("sentiment"),
        tags=row.get("tags"),
        upvotes=row["upvotes"],
        downvotes=row["downvotes"],
        comments=row["comments"],
        archived=row["archived"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_category(row: Any) -> Category:
    return Category(id=row["id"], name=row["name"])


class FeedbackRepository:
    """Persistence for the ``feedback`` table."""

    def __init__(self, database: Executor) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the feedback table and indexes (idempotent)."""
        await self._db.execute(_CREATE_FEEDBACK_SQL)
        logger.info("Feedback table ensured")

    async def get_by_id(self, feedback_id: int, *, for_update: bool = False) -> Feedback | None:
        """Fetch one item, optionally locking the row for the current transaction."""
        sql = "SELECT * FROM feedback WHERE id = $1"
        if for_update:
            sql += " FOR UPDATE"
        row = await self._db.fetchrow(sql, feedback_id)
        return _row_to_feedback(row) if row else None

    async def create(self, feedback: Feedback) -> Feedback:
        """Insert a new item.

        Args:
            feedback: Item to persist, id already assigned.

        Returns:
            The stored item as read back from the table.
        """
        row = await self._db.fetchrow(
            _INSERT_FEEDBACK_SQL,
            feedback.id,
            feedback.title,
            feedback.description,
            feedback.status.value,
            feedback.category_id,
            feedback.author_id,
            feedback.sentiment,
            feedback.tags,
            feedback.upvotes,
            feedback.downvotes,
            feedback.comments,
            feedback.archived,
            feedback.created_at,
            feedback.updated_at,
        )
        return _row_to_feedback(row)

    async def update(self, feedback: Feedback) -> Feedback:
        """Write every mutable column of an existing item."""
        row = await self._db.fetchrow(
            _UPDATE_FEEDBACK_SQL,
            feedback.id,
            feedback.title,
            feedback.description,
            feedback.status.value,
            feedback.category_id,
            feedback.author_id,
            feedback.sentiment,
            feedback.tags,
            feedback.upvotes,
            feedback.downvotes,
            feedback.comments,
            feedback.archived,
            feedback.updated_at,
        )
        return _row_to_feedback(row)

    async def delete(self, feedback_id: int) -> bool:
        """Hard delete. Comments go with it via ON DELETE CASCADE.

        Returns:
            True if a row was removed.
        """
        result = await self._db.execute("DELETE FROM feedback WHERE id = $1", feedback_id)
        return result.endswith(" 1")

    async def count(self) -> int:
        return await self._db.fetchval("SELECT COUNT(*) FROM feedback")

    async def list_page(
        self,
        *,
        limit: int,
        offset: int,
        ascending: bool = False,
    ) -> list[Feedback]:
        """One page ordered by creation time, id breaking ties."""
        direction = "ASC" if ascending else "DESC"
        sql = f"""
            SELECT * FROM feedback
            ORDER BY created_at {direction}, id {direction}
            LIMIT $1 OFFSET $2
        """
        rows = await self._db.fetch(sql, limit, offset)
        return [_row_to_feedback(row) for row in rows]


class CategoryRepository:
    """Access to the ``categories`` lookup table. Rows are added by operators, never by the API."""

    def __init__(self, database: Executor) -> None:
        self._db = database

    async def create_table(self) -> None:
        await self._db.execute(_CREATE_CATEGORIES_SQL)
        logger.info("Categories table ensured")

    async def get_by_id(self, category_id: int) -> Category | None:
        row = await self._db.fetchrow(
            "SELECT id, name FROM categories WHERE id = $1", category_id
        )
        return _row_to_category(row) if row else None

    async def get_names(self, category_ids: list[int]) -> dict[int, str]:
        """Resolve many ids in one query. Unknown ids are absent from the result."""
        if not category_ids:
            return {}
        rows = await self._db.fetch(
            "SELECT id, name FROM categories WHERE id = ANY($1::bigint[])",
            list(set(category_ids)),
        )
        return {row["id"]: row["name"] for row in rows}

    async def list_all(self) -> list[Category]:
        rows = await self._db.fetch("SELECT id, name FROM categories ORDER BY name")
        return [_row_to_category(row) for row in rows]

    async def create(self, category: Category) -> Category:
        row = await self._db.fetchrow(
            "INSERT INTO categories (id, name) VALUES ($1, $2) RETURNING id, name",
            category.id,
            category.name,
        )
        return _row_to_category(row)
