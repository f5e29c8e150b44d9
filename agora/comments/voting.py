"""Comment creation and vote arithmetic."""

from datetime import datetime

from agora.comments.schemas import Comment
from agora.feedback.schemas import VoteDirection


def new_comment(
    comment_id: int,
    feedback_id: int,
    author_id: int,
    text: str,
    now: datetime,
) -> Comment:
    return Comment(
        id=comment_id,
        feedback_id=feedback_id,
        author_id=author_id,
        text=text,
        is_developer_response=False,
        upvotes=0,
        created_at=now,
        updated_at=now,
    )


def apply_comment_vote(comment: Comment, direction: VoteDirection, now: datetime) -> Comment:
    """``up`` adds one up vote; ``down`` and ``none`` remove one, floored at 0."""
    if direction is VoteDirection.UP:
        comment.upvotes += 1
    else:
        comment.upvotes = max(0, comment.upvotes - 1)
    comment.updated_at = now
    return comment
