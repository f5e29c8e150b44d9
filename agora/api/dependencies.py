"""
Dependency injection for FastAPI endpoints.

Process-wide singletons are created on first use and released by
``cleanup_dependencies`` at shutdown.
"""

import asyncio

from agora.feedback.config import FeedbackConfig
from agora.feedback.service import FeedbackService
from agora.identifiers import IdentifierConfig, IdGenerator
from agora.storage.database import Database
from agora.users.service import LeaderboardService

# Global instances (initialized on first request)
_database: Database | None = None
_id_generator: IdGenerator | None = None
_feedback_service: FeedbackService | None = None
_leaderboard_service: LeaderboardService | None = None

_database_lock = asyncio.Lock()


async def get_database() -> Database:
    """Get the connected database pool, opening it once per process."""
    global _database

    if _database is not None:
        return _database

    async with _database_lock:
        # Published only once connected; concurrent first requests wait here
        if _database is None:
            database = Database()
            await database.connect()
            _database = database

    return _database


def get_id_generator() -> IdGenerator:
    """Get the process identifier generator, configured from ``ID_*`` settings."""
    global _id_generator

    if _id_generator is None:
        _id_generator = IdGenerator(IdentifierConfig())

    return _id_generator


def get_feedback_config() -> FeedbackConfig:
    return FeedbackConfig()


async def get_feedback_service() -> FeedbackService:
    """Get the feedback service singleton."""
    global _feedback_service

    if _feedback_service is None:
        _feedback_service = FeedbackService(
            database=await get_database(),
            id_generator=get_id_generator(),
            config=get_feedback_config(),
        )

    return _feedback_service


async def get_leaderboard_service() -> LeaderboardService:
    """Get the leaderboard service singleton."""
    global _leaderboard_service

    if _leaderboard_service is None:
        _leaderboard_service = LeaderboardService(await get_database())

    return _leaderboard_service


async def cleanup_dependencies() -> None:
    """Clean up global dependencies on shutdown."""
    global _database, _feedback_service, _leaderboard_service

    _feedback_service = None
    _leaderboard_service = None

    if _database is not None:
        await _database.close()
        _database = None
