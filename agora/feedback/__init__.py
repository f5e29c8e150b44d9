"""Feedback items: lifecycle, voting, authorization and persistence.

Components:
- Feedback / Category: Dataclasses mapping to the feedback and categories tables
- FeedbackStatus / VoteDirection: Enums for workflow status and vote input
- FeedbackConfig: Pydantic settings for listing limits
- FeedbackRepository / CategoryRepository: asyncpg persistence
- can_update: Edit permission policy

The service facade lives in ``agora.feedback.service``.
"""

from agora.feedback.authorization import can_update
from agora.feedback.config import FeedbackConfig
from agora.feedback.repository import CategoryRepository, FeedbackRepository
from agora.feedback.schemas import Category, Feedback, FeedbackStatus, VoteDirection

__all__ = [
    "Category",
    "CategoryRepository",
    "Feedback",
    "FeedbackConfig",
    "FeedbackRepository",
    "FeedbackStatus",
    "VoteDirection",
    "can_update",
]
