"""Feedback service: the single entry point for every board operation.

Each public method validates its input, opens one transaction, loads what
it needs through repositories bound to that transaction, delegates the
state change to ``lifecycle`` / ``comments.voting`` / ``authorization``,
persists, and returns views carrying string ids. Nothing is cached between
calls, so one instance is shared across concurrent requests.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from agora import pagination
from agora.comments.repository import CommentRepository
from agora.comments.schemas import Comment
from agora.comments.voting import apply_comment_vote, new_comment
from agora.errors import (
    CategoryNotFoundError,
    CommentFeedbackMismatchError,
    CommentNotFoundError,
    FeedbackNotFoundError,
    FieldError,
    UnauthenticatedError,
    UnauthorizedError,
    UserNotFoundError,
    ValidationError,
)
from agora.feedback import lifecycle
from agora.feedback.authorization import can_update
from agora.feedback.commands import (
    CategoryView,
    CommentAuthorView,
    CommentView,
    CreateFeedbackCommand,
    FeedbackView,
    FieldNames,
    UpdateFeedbackCommand,
)
from agora.feedback.config import FeedbackConfig
from agora.feedback.repository import CategoryRepository, FeedbackRepository
from agora.feedback.schemas import Feedback, VoteDirection
from agora.feedback.validation import check_comment_text, check_feedback_fields
from agora.identifiers import IdGenerator, decode, encode
from agora.storage.database import Database, Executor, unit_of_work
from agora.users.repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass
class Repositories:
    """The repositories one operation needs, bound to the same executor."""

    feedback: FeedbackRepository
    categories: CategoryRepository
    comments: CommentRepository
    users: UserRepository

    @classmethod
    def bind(cls, executor: Executor) -> "Repositories":
        return cls(
            feedback=FeedbackRepository(executor),
            categories=CategoryRepository(executor),
            comments=CommentRepository(executor),
            users=UserRepository(executor),
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _encode_optional(value: int | None) -> str | None:
    return encode(value) if value is not None else None


def _decode_optional(value: str | None) -> int | None:
    return decode(value) if value is not None else None


class FeedbackService:
    """Orchestrates feedback, comment and category operations.

    Args:
        database: Pool used to open one transaction per operation.
        id_generator: Source of new feedback and comment ids.
        config: Listing limits. Defaults to ``FeedbackConfig()``.
        repositories: Factory binding repositories to a transaction
            connection. Tests replace it with mocks.
        clock: Returns the current UTC time.
    """

    def __init__(
        self,
        database: Database,
        id_generator: IdGenerator,
        config: FeedbackConfig | None = None,
        repositories: Callable[[Any], Repositories] = Repositories.bind,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._db = database
        self._ids = id_generator
        self._config = config or FeedbackConfig()
        self._repositories = repositories
        self._clock = clock

    # -- feedback ---------------------------------------------------------

    async def create_feedback(self, command: CreateFeedbackCommand) -> FeedbackView:
        """Submit a new item in PENDING state with zeroed counters.

        Raises:
            ValidationError: a field is blank or out of range.
            CategoryNotFoundError: ``category_id`` does not resolve.
            UserNotFoundError: ``author_id`` does not resolve.
        """
        errors = check_feedback_fields(
            command.title, command.description, command.sentiment, command.tags
        )
        if errors:
            raise ValidationError(errors)
        category_id = _decode_optional(command.category_id)
        author_id = _decode_optional(command.author_id)

        async with unit_of_work(self._db) as conn:
            repos = self._repositories(conn)
            await self._require_category(repos, category_id)
            await self._require_user(repos, author_id)

            feedback = lifecycle.new_feedback(
                self._ids.generate(),
                command.title,
                command.description,
                self._clock(),
                category_id=category_id,
                author_id=author_id,
                sentiment=command.sentiment,
                tags=command.tags,
            )
            feedback = await repos.feedback.create(feedback)
            view = await self._to_view(repos, feedback)

        logger.info("Created feedback %s", view.id)
        return view

    async def get_feedback(self, feedback_id: str) -> FeedbackView:
        fid = decode(feedback_id)
        async with unit_of_work(self._db) as conn:
            repos = self._repositories(conn)
            feedback = await self._load(repos, fid)
            return await self._to_view(repos, feedback)

    async def list_feedback(
        self,
        page: int | None = None,
        size: int | None = None,
        sort_order: str | None = None,
    ) -> pagination.Page[FeedbackView]:
        """One page of items ordered by creation time, newest first unless ``"oldest"``."""
        page = pagination.normalize_page(page)
        size = pagination.normalize_size(size, self._config.max_page_size)
        ascending = pagination.is_ascending(sort_order)

        async with unit_of_work(self._db) as conn:
            repos = self._repositories(conn)
            total = await repos.feedback.count()
            items = await repos.feedback.list_page(
                limit=size,
                offset=pagination.offset_for(page, size),
                ascending=ascending,
            )
            names = await self._resolve_names(repos, items)

        return pagination.Page(
            items=[self._build_view(item, names) for item in items],
            current_page=page,
            page_size=size,
            total_items=total,
        )

    async def update_feedback(
        self,
        feedback_id: str,
        command: UpdateFeedbackCommand,
        caller_id: str | None,
    ) -> FeedbackView:
        """Replace every editable field, provided the caller may edit the item.

        Checks run in order: caller present, input valid, caller exists,
        item exists, caller authorized. Nothing is changed unless all pass.

        Raises:
            UnauthenticatedError: no caller id.
            ValidationError: a field is blank, out of range, or status missing.
            UserNotFoundError: the caller or the new author does not exist.
            FeedbackNotFoundError: no item with ``feedback_id``.
            UnauthorizedError: caller is neither the author nor an admin.
            CategoryNotFoundError: ``category_id`` does not resolve.
        """
        if not caller_id:
            raise UnauthenticatedError("Authentication required to update feedback")

        errors = check_feedback_fields(
            command.title, command.description, command.sentiment, command.tags
        )
        if command.status is None:
            errors.append(FieldError("status", "Status is required"))
        if errors:
            raise ValidationError(errors)

        fid = decode(feedback_id)
        uid = decode(caller_id)
        category_id = _decode_optional(command.category_id)
        author_id = _decode_optional(command.author_id)

        async with unit_of_work(self._db) as conn:
            repos = self._repositories(conn)
            caller = await repos.users.get_by_id(uid)
            if caller is None:
                raise UserNotFoundError(caller_id)
            feedback = await self._load(repos, fid, for_update=True)
            if not can_update(feedback, caller):
                raise UnauthorizedError(
                    f"Only the author or an admin can update feedback {feedback_id}"
                )
            await self._require_category(repos, category_id)
            await self._require_user(repos, author_id)

            lifecycle.apply_update(
                feedback,
                self._clock(),
                title=command.title,
                description=command.description,
                status=command.status,
                category_id=category_id,
                author_id=author_id,
                sentiment=command.sentiment,
                tags=command.tags,
            )
            feedback = await repos.feedback.update(feedback)
            view = await self._to_view(repos, feedback)

        logger.info("Updated feedback %s by user %s", feedback_id, caller_id)
        return view

    async def delete_feedback(self, feedback_id: str) -> None:
        fid = decode(feedback_id)
        async with unit_of_work(self._db) as conn:
            repos = self._repositories(conn)
            if not await repos.feedback.delete(fid):
                raise FeedbackNotFoundError(feedback_id)
        logger.info("Deleted feedback %s", feedback_id)

    async def archive_feedback(self, feedback_id: str) -> FeedbackView:
        return await self._mutate(feedback_id, lifecycle.archive)

    async def reopen_feedback(self, feedback_id: str) -> FeedbackView:
        return await self._mutate(feedback_id, lifecycle.reopen)

    async def vote_feedback(self, feedback_id: str, direction: str | None) -> FeedbackView:
        """Adjust the item's vote counters.

        The item is loaded before the direction is parsed, so a missing item
        reports not-found even when the direction is also bad.
        """
        fid = decode(feedback_id)
        async with unit_of_work(self._db) as conn:
            repos = self._repositories(conn)
            feedback = await self._load(repos, fid, for_update=True)
            vote = VoteDirection.parse(direction)
            lifecycle.apply_vote(feedback, vote, self._clock())
            feedback = await repos.feedback.update(feedback)
            return await self._to_view(repos, feedback)

    # -- comments ---------------------------------------------------------

    async def add_comment(self, feedback_id: str, text: str, author_id: str) -> CommentView:
        """Attach a comment and bump the item's comment counter in one transaction."""
        errors = check_comment_text(text)
        if errors:
            raise ValidationError(errors)
        fid = decode(feedback_id)
        uid = decode(author_id)

        async with unit_of_work(self._db) as conn:
            repos = self._repositories(conn)
            feedback = await self._load(repos, fid, for_update=True)
            author = await repos.users.get_by_id(uid)
            if author is None:
                raise UserNotFoundError(author_id)

            now = self._clock()
            comment = await repos.comments.create(
                new_comment(self._ids.generate(), fid, uid, text, now)
            )
            lifecycle.record_comment(feedback, now)
            await repos.feedback.update(feedback)

        logger.info("Added comment %s to feedback %s", encode(comment.id), feedback_id)
        return self._comment_view(comment, author.name)

    async def list_comments(self, feedback_id: str) -> list[CommentView]:
        fid = decode(feedback_id)
        async with unit_of_work(self._db) as conn:
            repos = self._repositories(conn)
            await self._load(repos, fid)
            comments = await repos.comments.list_by_feedback(fid)
            names = await repos.users.get_display_names([c.author_id for c in comments])
        return [self._comment_view(c, names.get(c.author_id)) for c in comments]

    async def vote_comment(
        self,
        feedback_id: str,
        comment_id: str,
        direction: str | None,
    ) -> CommentView:
        """``up`` adds an up vote to the comment; ``down`` and ``none`` remove one.

        Raises:
            FeedbackNotFoundError: no item with ``feedback_id``.
            CommentNotFoundError: no comment with ``comment_id``.
            CommentFeedbackMismatchError: the comment belongs to another item.
            InvalidVoteDirectionError: direction is not up, down or none.
        """
        fid = decode(feedback_id)
        cid = decode(comment_id)

        async with unit_of_work(self._db) as conn:
            repos = self._repositories(conn)
            await self._load(repos, fid)
            comment = await repos.comments.get_by_id(cid, for_update=True)
            if comment is None:
                raise CommentNotFoundError(comment_id)
            if comment.feedback_id != fid:
                raise CommentFeedbackMismatchError(comment_id, feedback_id)

            vote = VoteDirection.parse(direction)
            apply_comment_vote(comment, vote, self._clock())
            comment = await repos.comments.update_upvotes(comment)
            names = await repos.users.get_display_names([comment.author_id])

        return self._comment_view(comment, names.get(comment.author_id))

    # -- categories -------------------------------------------------------

    async def list_categories(self) -> list[CategoryView]:
        async with unit_of_work(self._db) as conn:
            repos = self._repositories(conn)
            categories = await repos.categories.list_all()
        return [CategoryView(id=encode(c.id), name=c.name) for c in categories]

    # -- helpers ----------------------------------------------------------

    async def _mutate(
        self,
        feedback_id: str,
        transition: Callable[[Feedback, datetime], Feedback],
    ) -> FeedbackView:
        fid = decode(feedback_id)
        async with unit_of_work(self._db) as conn:
            repos = self._repositories(conn)
            feedback = await self._load(repos, fid, for_update=True)
            transition(feedback, self._clock())
            feedback = await repos.feedback.update(feedback)
            return await self._to_view(repos, feedback)

    async def _load(self, repos: Repositories, feedback_id: int, *, for_update: bool = False) -> Feedback:
        feedback = await repos.feedback.get_by_id(feedback_id, for_update=for_update)
        if feedback is None:
            raise FeedbackNotFoundError(encode(feedback_id))
        return feedback

    async def _require_category(self, repos: Repositories, category_id: int | None) -> None:
        if category_id is not None and await repos.categories.get_by_id(category_id) is None:
            raise CategoryNotFoundError(encode(category_id))

    async def _require_user(self, repos: Repositories, user_id: int | None) -> None:
        if user_id is not None and await repos.users.get_by_id(user_id) is None:
            raise UserNotFoundError(encode(user_id))

    async def _resolve_names(self, repos: Repositories, items: list[Feedback]) -> FieldNames:
        category_ids = [f.category_id for f in items if f.category_id is not None]
        author_ids = [f.author_id for f in items if f.author_id is not None]
        return FieldNames(
            categories=await repos.categories.get_names(category_ids),
            users=await repos.users.get_display_names(author_ids),
        )

    async def _to_view(self, repos: Repositories, feedback: Feedback) -> FeedbackView:
        return self._build_view(feedback, await self._resolve_names(repos, [feedback]))

    @staticmethod
    def _build_view(feedback: Feedback, names: FieldNames) -> FeedbackView:
        return FeedbackView(
            id=encode(feedback.id),
            title=feedback.title,
            description=feedback.description,
            status=feedback.status,
            category_id=_encode_optional(feedback.category_id),
            category_name=names.categories.get(feedback.category_id),
            author_id=_encode_optional(feedback.author_id),
            author_name=names.users.get(feedback.author_id),
            sentiment=feedback.sentiment,
            tags=feedback.tags,
            upvotes=feedback.upvotes,
            downvotes=feedback.downvotes,
            comments=feedback.comments,
            archived=feedback.archived,
            created_at=feedback.created_at,
            updated_at=feedback.updated_at,
        )

    @staticmethod
    def _comment_view(comment: Comment, author_name: str | None) -> CommentView:
        return CommentView(
            id=encode(comment.id),
            feedback_id=encode(comment.feedback_id),
            author=CommentAuthorView(id=encode(comment.author_id), username=author_name),
            text=comment.text,
            is_developer_response=comment.is_developer_response,
            upvotes=comment.upvotes,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )
