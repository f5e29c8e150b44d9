"""Comments on feedback items.

Components:
- Comment: Dataclass mapping to the comments table
- CommentRepository: CRUD operations for comment persistence
- new_comment / apply_comment_vote: Creation and up-vote arithmetic
"""

from agora.comments.repository import CommentRepository
from agora.comments.schemas import Comment
from agora.comments.voting import apply_comment_vote, new_comment

__all__ = [
    "Comment",
    "CommentRepository",
    "apply_comment_vote",
    "new_comment",
]
