"""Reputation leaderboard endpoints (public, no session required)."""

import structlog
from fastapi import APIRouter, Depends, Query

from agora.api.dependencies import get_leaderboard_service
from agora.api.models import LeaderboardItem, LeaderboardPageResponse
from agora.users.schemas import LeaderboardEntry
from agora.users.service import DEFAULT_TOP_LIMIT, LeaderboardService

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/v1/users")


def _to_item(entry: LeaderboardEntry) -> LeaderboardItem:
    return LeaderboardItem(
        user_id=entry.user_id,
        username=entry.username,
        display_name=entry.display_name,
        reputation_score=entry.reputation_score,
        avatar_url=entry.avatar_url,
    )


@router.get(
    "/leaderboard",
    response_model=LeaderboardPageResponse,
    summary="Reputation leaderboard",
)
async def get_leaderboard(
    page: int = Query(default=1, description="One-based page number"),
    page_size: int = Query(default=10, alias="pageSize", description="Entries per page (max 100)"),
    service: LeaderboardService = Depends(get_leaderboard_service),
) -> LeaderboardPageResponse:
    result = await service.get_leaderboard(page, page_size)
    return LeaderboardPageResponse(
        data=[_to_item(e) for e in result.items],
        page=result.current_page,
        page_size=result.page_size,
        total_items=result.total_items,
        total_pages=result.total_pages,
    )


@router.get(
    "/leaderboard/top",
    response_model=list[LeaderboardItem],
    summary="Top users by reputation",
)
async def get_top_users(
    limit: int = Query(default=DEFAULT_TOP_LIMIT, description="Number of users (1-100)"),
    service: LeaderboardService = Depends(get_leaderboard_service),
) -> list[LeaderboardItem]:
    return [_to_item(e) for e in await service.get_top_users(limit)]
