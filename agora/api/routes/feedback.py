"""Feedback board endpoints: items, votes, comments and categories.

Every route requires a bearer session token. Domain errors raised by the
service propagate to the handlers in ``agora.api.errors``.
"""

import time

import structlog
from fastapi import APIRouter, Depends, Query, Response, status

from agora.api.auth import get_caller_id
from agora.api.dependencies import get_feedback_config, get_feedback_service
from agora.api.models import (
    CategoryItem,
    CommentAuthor,
    CommentCreateRequest,
    CommentItem,
    ErrorResponse,
    FeedbackCreateRequest,
    FeedbackItem,
    FeedbackPageResponse,
    FeedbackUpdateRequest,
    VoteRequest,
)
from agora.feedback.commands import (
    CommentView,
    CreateFeedbackCommand,
    FeedbackView,
    UpdateFeedbackCommand,
)
from agora.feedback.config import FeedbackConfig
from agora.feedback.service import FeedbackService

logger = structlog.get_logger(__name__)
router = APIRouter(
    prefix="/api/v1/feedback",
    dependencies=[Depends(get_caller_id)],
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid session token"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
)

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Feedback not found"}}
_BAD_REQUEST = {400: {"model": ErrorResponse, "description": "Invalid request"}}


def _to_item(view: FeedbackView) -> FeedbackItem:
    return FeedbackItem(
        id=view.id,
        title=view.title,
        description=view.description,
        status=view.status,
        category_id=view.category_id,
        category_name=view.category_name,
        author_id=view.author_id,
        author_name=view.author_name,
        sentiment=view.sentiment,
        tags=view.tags,
        upvotes=view.upvotes,
        downvotes=view.downvotes,
        comments=view.comments,
        archived=view.archived,
        created_at=view.created_at.isoformat(),
        updated_at=view.updated_at.isoformat(),
    )


def _to_comment(view: CommentView) -> CommentItem:
    return CommentItem(
        id=view.id,
        author=CommentAuthor(id=view.author.id, username=view.author.username),
        content=view.text,
        is_developer_response=view.is_developer_response,
        upvotes=view.upvotes,
        created_at=view.created_at.isoformat(),
        updated_at=view.updated_at.isoformat(),
    )


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)


@router.get(
    "",
    response_model=FeedbackPageResponse,
    summary="List feedback",
    description=(
        "Paginated feedback ordered by creation time. Newest first unless "
        "sortBy=oldest. pageSize is capped at FEEDBACK_API_MAX_PAGE_SIZE."
    ),
)
async def list_feedback(
    page: int = Query(default=1, description="One-based page number"),
    page_size: int | None = Query(default=None, alias="pageSize", description="Items per page"),
    sort_by: str | None = Query(default=None, alias="sortBy", description="newest (default) or oldest"),
    service: FeedbackService = Depends(get_feedback_service),
    config: FeedbackConfig = Depends(get_feedback_config),
) -> FeedbackPageResponse:
    start_time = time.perf_counter()

    size = config.api_default_page_size if page_size is None else page_size
    size = min(size, config.api_max_page_size)

    result = await service.list_feedback(page, size, sort_by)

    logger.info(
        "Feedback listed",
        page=result.current_page,
        page_size=result.page_size,
        total_items=result.total_items,
        latency_ms=_elapsed_ms(start_time),
    )
    return FeedbackPageResponse(
        data=[_to_item(v) for v in result.items],
        page=result.current_page,
        page_size=result.page_size,
        total_items=result.total_items,
        total_pages=result.total_pages,
    )


@router.get(
    "/categories",
    response_model=list[CategoryItem],
    summary="List categories",
)
async def list_categories(
    service: FeedbackService = Depends(get_feedback_service),
) -> list[CategoryItem]:
    categories = await service.list_categories()
    return [CategoryItem(id=c.id, name=c.name) for c in categories]


@router.get(
    "/{feedback_id}",
    response_model=FeedbackItem,
    responses={**_NOT_FOUND, **_BAD_REQUEST},
    summary="Get feedback",
)
async def get_feedback(
    feedback_id: str,
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackItem:
    return _to_item(await service.get_feedback(feedback_id))


@router.post(
    "",
    response_model=FeedbackItem,
    status_code=status.HTTP_201_CREATED,
    responses={**_BAD_REQUEST, 404: {"model": ErrorResponse, "description": "Category or user not found"}},
    summary="Submit feedback",
    description="Create a feedback item attributed to the authenticated caller.",
)
async def create_feedback(
    request: FeedbackCreateRequest,
    caller_id: str = Depends(get_caller_id),
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackItem:
    start_time = time.perf_counter()

    view = await service.create_feedback(
        CreateFeedbackCommand(
            title=request.title,
            description=request.description,
            category_id=request.category_id,
            author_id=caller_id,
            sentiment=request.sentiment,
            tags=request.tags,
        )
    )

    logger.info(
        "Feedback submitted",
        feedback_id=view.id,
        author_id=caller_id,
        latency_ms=_elapsed_ms(start_time),
    )
    return _to_item(view)


@router.patch(
    "/{feedback_id}",
    response_model=FeedbackItem,
    responses={
        **_BAD_REQUEST,
        **_NOT_FOUND,
        403: {"model": ErrorResponse, "description": "Caller may not edit this item"},
    },
    summary="Update feedback",
    description="Replace every editable field. Only the author or an admin may update.",
)
async def update_feedback(
    feedback_id: str,
    request: FeedbackUpdateRequest,
    caller_id: str = Depends(get_caller_id),
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackItem:
    view = await service.update_feedback(
        feedback_id,
        UpdateFeedbackCommand(
            title=request.title,
            description=request.description,
            status=request.status,
            category_id=request.category_id,
            author_id=request.author_id,
            sentiment=request.sentiment,
            tags=request.tags,
        ),
        caller_id,
    )
    return _to_item(view)


@router.delete(
    "/{feedback_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_NOT_FOUND,
    summary="Delete feedback",
)
async def delete_feedback(
    feedback_id: str,
    service: FeedbackService = Depends(get_feedback_service),
) -> Response:
    await service.delete_feedback(feedback_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{feedback_id}/archive",
    response_model=FeedbackItem,
    responses=_NOT_FOUND,
    summary="Archive feedback",
)
async def archive_feedback(
    feedback_id: str,
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackItem:
    return _to_item(await service.archive_feedback(feedback_id))


@router.post(
    "/{feedback_id}/reopen",
    response_model=FeedbackItem,
    responses=_NOT_FOUND,
    summary="Reopen feedback",
    description="Unarchive the item; a COMPLETED item returns to PENDING.",
)
async def reopen_feedback(
    feedback_id: str,
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackItem:
    return _to_item(await service.reopen_feedback(feedback_id))


@router.post(
    "/{feedback_id}/upvote",
    response_model=FeedbackItem,
    responses={**_BAD_REQUEST, **_NOT_FOUND},
    summary="Vote on feedback",
)
async def vote_feedback(
    feedback_id: str,
    request: VoteRequest,
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackItem:
    view = await service.vote_feedback(feedback_id, request.direction)
    logger.info("Feedback voted", feedback_id=view.id, direction=request.direction)
    return _to_item(view)


@router.get(
    "/{feedback_id}/comments",
    response_model=list[CommentItem],
    responses=_NOT_FOUND,
    summary="List comments",
)
async def list_comments(
    feedback_id: str,
    service: FeedbackService = Depends(get_feedback_service),
) -> list[CommentItem]:
    return [_to_comment(c) for c in await service.list_comments(feedback_id)]


@router.put(
    "/{feedback_id}/comments",
    response_model=CommentItem,
    status_code=status.HTTP_201_CREATED,
    responses={**_BAD_REQUEST, **_NOT_FOUND},
    summary="Add comment",
    description="Attach a comment authored by the authenticated caller.",
)
async def add_comment(
    feedback_id: str,
    request: CommentCreateRequest,
    caller_id: str = Depends(get_caller_id),
    service: FeedbackService = Depends(get_feedback_service),
) -> CommentItem:
    view = await service.add_comment(feedback_id, request.content, caller_id)
    logger.info("Comment added", feedback_id=feedback_id, comment_id=view.id)
    return _to_comment(view)


@router.post(
    "/{feedback_id}/comments/{comment_id}/upvote",
    response_model=CommentItem,
    responses={**_BAD_REQUEST, **_NOT_FOUND},
    summary="Vote on comment",
    description="up adds an up vote; down and none remove one.",
)
async def vote_comment(
    feedback_id: str,
    comment_id: str,
    request: VoteRequest,
    service: FeedbackService = Depends(get_feedback_service),
) -> CommentItem:
    view = await service.vote_comment(feedback_id, comment_id, request.direction)
    return _to_comment(view)
