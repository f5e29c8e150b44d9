"""Database repository for the comments table."""

import logging
from typing import Any

from agora.comments.schemas import Comment
from agora.storage.database import Executor

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS comments (
    id                     BIGINT PRIMARY KEY,
    feedback_id            BIGINT NOT NULL REFERENCES feedback(id) ON DELETE CASCADE,
    author_id              BIGINT NOT NULL REFERENCES users(id),
    text                   TEXT NOT NULL,
    is_developer_response  BOOLEAN NOT NULL DEFAULT FALSE,
    upvotes                INTEGER NOT NULL DEFAULT 0 CHECK (upvotes >= 0),
    created_at             TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at             TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_comments_feedback
    ON comments(feedback_id, created_at);
"""

_INSERT_SQL = """
INSERT INTO comments (
    id, feedback_id, author_id, text, is_developer_response,
    upvotes, created_at, updated_at
) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
RETURNING *
"""


def _record_to_comment(record: Any) -> Comment:
    """Convert an asyncpg Record to a Comment dataclass."""
    return Comment(
        id=record["id"],
        feedback_id=record["feedback_id"],
        author_id=record["author_id"],
        text=record["text"],
        is_developer_response=record["is_developer_response"],
        upvotes=record["upvotes"],
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


class CommentRepository:
    """CRUD operations for the comments table."""

    def __init__(self, database: Executor) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the comments table and index (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Comments table ensured")

    async def get_by_id(self, comment_id: int, *, for_update: bool = False) -> Comment | None:
        sql = "SELECT * FROM comments WHERE id = $1"
        if for_update:
            sql += " FOR UPDATE"
        row = await self._db.fetchrow(sql, comment_id)
        return _record_to_comment(row) if row else None

    async def create(self, comment: Comment) -> Comment:
        row = await self._db.fetchrow(
            _INSERT_SQL,
            comment.id,
            comment.feedback_id,
            comment.author_id,
            comment.text,
            comment.is_developer_response,
            comment.upvotes,
            comment.created_at,
            comment.updated_at,
        )
        return _record_to_comment(row)

    async def update_upvotes(self, comment: Comment) -> Comment:
        """Persist the vote counter; the rest of a comment is immutable."""
        row = await self._db.fetchrow(
            """
            UPDATE comments SET upvotes = $2, updated_at = $3
            WHERE id = $1
            RETURNING *
            """,
            comment.id,
            comment.upvotes,
            comment.updated_at,
        )
        return _record_to_comment(row)

    async def list_by_feedback(self, feedback_id: int) -> list[Comment]:
        """All comments on one item, oldest first."""
        rows = await self._db.fetch(
            """
            SELECT * FROM comments
            WHERE feedback_id = $1
            ORDER BY created_at ASC, id ASC
            """,
            feedback_id,
        )
        return [_record_to_comment(row) for row in rows]
