"""Tests for FeedbackService over the in-memory store."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest

from agora.errors import (
    CategoryNotFoundError,
    CommentFeedbackMismatchError,
    CommentNotFoundError,
    FeedbackNotFoundError,
    InvalidArgumentError,
    InvalidIdentifierError,
    InvalidVoteDirectionError,
    NotFoundError,
    StoreError,
    UnauthenticatedError,
    UnauthorizedError,
    UserNotFoundError,
    ValidationError,
)
from agora.feedback.commands import CreateFeedbackCommand, UpdateFeedbackCommand
from agora.feedback.schemas import FeedbackStatus
from agora.feedback.service import FeedbackService, Repositories
from agora.identifiers import decode

TITLE = "Dark mode"
DESCRIPTION = "Users want dark mode support for the app UI"


async def _create(service, author_id=None, **overrides):
    command = CreateFeedbackCommand(
        title=overrides.pop("title", TITLE),
        description=overrides.pop("description", DESCRIPTION),
        author_id=author_id,
        **overrides,
    )
    return await service.create_feedback(command)


def _update_command(**overrides):
    fields = {
        "title": "Dark theme everywhere",
        "description": "Dark mode across web and mobile apps",
        "status": FeedbackStatus.IN_PROGRESS,
    }
    fields.update(overrides)
    return UpdateFeedbackCommand(**fields)


class TestCreate:
    @pytest.mark.asyncio
    async def test_new_feedback_starts_pending(self, feedback_service, ids):
        view = await _create(feedback_service, author_id=ids.alice, category_id=ids.ui_category)

        assert len(view.id) == 13
        assert view.status is FeedbackStatus.PENDING
        assert view.archived is False
        assert (view.upvotes, view.downvotes, view.comments) == (0, 0, 0)
        assert view.author_id == ids.alice
        assert view.author_name == "Alice Doe"
        assert view.category_name == "User Interface"

    @pytest.mark.asyncio
    async def test_unattributed(self, feedback_service):
        view = await _create(feedback_service)
        assert view.author_id is None
        assert view.author_name is None

    @pytest.mark.asyncio
    async def test_validation_happens_before_store_access(self, feedback_service, fake_database):
        with pytest.raises(ValidationError) as exc_info:
            await _create(feedback_service, title="ab", description="short")

        assert [e.field for e in exc_info.value.errors] == ["title", "description"]
        assert fake_database.transactions == 0

    @pytest.mark.asyncio
    async def test_unknown_category(self, feedback_service, store, ids):
        with pytest.raises(CategoryNotFoundError, match=ids.unknown):
            await _create(feedback_service, category_id=ids.unknown)
        assert store.feedback == {}

    @pytest.mark.asyncio
    async def test_unknown_author(self, feedback_service, ids):
        with pytest.raises(UserNotFoundError):
            await _create(feedback_service, author_id=ids.unknown)

    @pytest.mark.asyncio
    async def test_malformed_category_id(self, feedback_service):
        with pytest.raises(InvalidIdentifierError):
            await _create(feedback_service, category_id="12")


class TestGet:
    @pytest.mark.asyncio
    async def test_round_trip(self, feedback_service):
        created = await _create(feedback_service)
        fetched = await feedback_service.get_feedback(created.id)
        assert fetched == created

    @pytest.mark.asyncio
    async def test_lower_case_id_accepted(self, feedback_service):
        created = await _create(feedback_service)
        fetched = await feedback_service.get_feedback(created.id.lower())
        assert fetched.id == created.id

    @pytest.mark.asyncio
    async def test_missing(self, feedback_service, ids):
        with pytest.raises(FeedbackNotFoundError, match=f"Feedback with id {ids.unknown} not found"):
            await feedback_service.get_feedback(ids.unknown)


class TestList:
    @pytest.mark.asyncio
    async def test_pages_through_items(self, feedback_service):
        for i in range(25):
            await _create(feedback_service, title=f"Idea {i:02d}")

        page = await feedback_service.list_feedback(3, 10)

        assert page.current_page == 3
        assert page.page_size == 10
        assert page.total_items == 25
        assert page.total_pages == 3
        assert len(page.items) == 5

    @pytest.mark.asyncio
    async def test_newest_first_unless_oldest(self, feedback_service):
        for i in range(3):
            await _create(feedback_service, title=f"Idea {i}")

        newest = await feedback_service.list_feedback(1, 10)
        oldest = await feedback_service.list_feedback(1, 10, "OLDEST")
        other = await feedback_service.list_feedback(1, 10, "createdAt")

        assert [v.title for v in newest.items] == ["Idea 2", "Idea 1", "Idea 0"]
        assert [v.title for v in oldest.items] == ["Idea 0", "Idea 1", "Idea 2"]
        assert [v.title for v in other.items] == [v.title for v in newest.items]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "page,size,expected_page,expected_size",
        [(0, 10, 1, 10), (-4, 0, 1, 1), (1, 500, 1, 100), (2, -1, 2, 1)],
    )
    async def test_normalizes_arguments(self, feedback_service, page, size, expected_page, expected_size):
        result = await feedback_service.list_feedback(page, size)
        assert result.current_page == expected_page
        assert result.page_size == expected_size

    @pytest.mark.asyncio
    async def test_far_page_offset_fits_bigint(self, fake_database, id_generator, store, clock):
        repos = store.bind()
        repos.feedback.list_page = AsyncMock(return_value=[])
        service = FeedbackService(
            database=fake_database,
            id_generator=id_generator,
            repositories=lambda conn: repos,
            clock=clock,
        )

        result = await service.list_feedback(10**20, 100)

        assert result.items == []
        assert result.current_page == 10**20
        assert repos.feedback.list_page.await_args.kwargs["offset"] == 2**63 - 1

    @pytest.mark.asyncio
    async def test_empty_board(self, feedback_service):
        result = await feedback_service.list_feedback(1, 10)
        assert result.items == []
        assert result.total_items == 0
        assert result.total_pages == 0

    @pytest.mark.asyncio
    async def test_names_resolved_in_batch(self, feedback_service, ids):
        await _create(feedback_service, author_id=ids.alice)
        await _create(feedback_service, author_id=ids.bob, category_id=ids.ui_category)

        result = await feedback_service.list_feedback(1, 10)

        assert {v.author_name for v in result.items} == {"Alice Doe", "Bob Roe"}
        assert {v.category_name for v in result.items} == {None, "User Interface"}


class TestUpdate:
    @pytest.mark.asyncio
    async def test_author_can_update(self, feedback_service, ids):
        created = await _create(feedback_service, author_id=ids.alice, category_id=ids.ui_category)

        view = await feedback_service.update_feedback(
            created.id, _update_command(author_id=ids.alice), ids.alice
        )

        assert view.title == "Dark theme everywhere"
        assert view.status is FeedbackStatus.IN_PROGRESS
        assert view.category_id is None
        assert view.author_id == ids.alice

    @pytest.mark.asyncio
    async def test_admin_can_update_anyones(self, feedback_service, ids):
        created = await _create(feedback_service, author_id=ids.alice)
        view = await feedback_service.update_feedback(created.id, _update_command(), ids.admin)
        assert view.status is FeedbackStatus.IN_PROGRESS
        assert view.author_id is None

    @pytest.mark.asyncio
    async def test_other_user_rejected_without_changes(self, feedback_service, store, ids):
        created = await _create(feedback_service, author_id=ids.alice)

        with pytest.raises(UnauthorizedError, match=created.id):
            await feedback_service.update_feedback(created.id, _update_command(), ids.bob)

        stored = store.feedback[decode(created.id)]
        assert stored.title == TITLE
        assert stored.status is FeedbackStatus.PENDING

    @pytest.mark.asyncio
    async def test_unattributed_rejected_for_non_admin(self, feedback_service, ids):
        created = await _create(feedback_service)
        with pytest.raises(UnauthorizedError):
            await feedback_service.update_feedback(created.id, _update_command(), ids.alice)

    @pytest.mark.asyncio
    async def test_missing_caller(self, feedback_service, fake_database, ids):
        with pytest.raises(UnauthenticatedError):
            await feedback_service.update_feedback(ids.unknown, _update_command(), None)
        assert fake_database.transactions == 0

    @pytest.mark.asyncio
    async def test_unknown_caller_checked_before_feedback(self, feedback_service, ids):
        with pytest.raises(UserNotFoundError):
            await feedback_service.update_feedback(ids.unknown, _update_command(), ids.unknown)

    @pytest.mark.asyncio
    async def test_missing_feedback(self, feedback_service, ids):
        with pytest.raises(FeedbackNotFoundError):
            await feedback_service.update_feedback(ids.unknown, _update_command(), ids.alice)

    @pytest.mark.asyncio
    async def test_status_required(self, feedback_service, ids):
        created = await _create(feedback_service, author_id=ids.alice)
        with pytest.raises(ValidationError) as exc_info:
            await feedback_service.update_feedback(created.id, _update_command(status=None), ids.alice)
        assert [e.field for e in exc_info.value.errors] == ["status"]

    @pytest.mark.asyncio
    async def test_unknown_new_author(self, feedback_service, ids):
        created = await _create(feedback_service, author_id=ids.alice)
        with pytest.raises(UserNotFoundError):
            await feedback_service.update_feedback(
                created.id, _update_command(author_id=ids.unknown), ids.alice
            )


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_removes_item_and_comments(self, feedback_service, store, ids):
        created = await _create(feedback_service)
        await feedback_service.add_comment(created.id, "nice", ids.bob)

        await feedback_service.delete_feedback(created.id)

        assert store.feedback == {}
        assert store.comments == {}
        with pytest.raises(FeedbackNotFoundError):
            await feedback_service.get_feedback(created.id)

    @pytest.mark.asyncio
    async def test_missing(self, feedback_service, ids):
        with pytest.raises(FeedbackNotFoundError):
            await feedback_service.delete_feedback(ids.unknown)


class TestArchiveReopen:
    @pytest.mark.asyncio
    async def test_archive_then_reopen(self, feedback_service):
        created = await _create(feedback_service)

        archived = await feedback_service.archive_feedback(created.id)
        again = await feedback_service.archive_feedback(created.id)
        reopened = await feedback_service.reopen_feedback(created.id)

        assert archived.archived is True
        assert again.archived is True
        assert reopened.archived is False
        assert reopened.status is FeedbackStatus.PENDING

    @pytest.mark.asyncio
    async def test_reopen_completed_goes_back_to_pending(self, feedback_service, ids):
        created = await _create(feedback_service, author_id=ids.alice)
        await feedback_service.update_feedback(
            created.id,
            _update_command(status=FeedbackStatus.COMPLETED, author_id=ids.alice),
            ids.alice,
        )
        await feedback_service.archive_feedback(created.id)

        reopened = await feedback_service.reopen_feedback(created.id)

        assert reopened.status is FeedbackStatus.PENDING

    @pytest.mark.asyncio
    async def test_missing(self, feedback_service, ids):
        with pytest.raises(FeedbackNotFoundError):
            await feedback_service.archive_feedback(ids.unknown)
        with pytest.raises(FeedbackNotFoundError):
            await feedback_service.reopen_feedback(ids.unknown)


class TestVote:
    @pytest.mark.asyncio
    async def test_dark_mode_scenario(self, feedback_service):
        created = await _create(feedback_service)
        assert created.status is FeedbackStatus.PENDING
        assert created.upvotes == 0

        for _ in range(3):
            view = await feedback_service.vote_feedback(created.id, "up")
        assert view.upvotes == 3

        view = await feedback_service.vote_feedback(created.id, "none")
        assert view.upvotes == 0

        assert (await feedback_service.archive_feedback(created.id)).archived is True
        assert (await feedback_service.reopen_feedback(created.id)).archived is False

    @pytest.mark.asyncio
    async def test_down_and_case_insensitivity(self, feedback_service):
        created = await _create(feedback_service)
        await feedback_service.vote_feedback(created.id, "DOWN")
        view = await feedback_service.vote_feedback(created.id, "Up")
        assert (view.upvotes, view.downvotes) == (1, 1)

    @pytest.mark.asyncio
    async def test_none_never_negative(self, feedback_service):
        created = await _create(feedback_service)
        for _ in range(4):
            view = await feedback_service.vote_feedback(created.id, "none")
        assert (view.upvotes, view.downvotes) == (0, 0)

    @pytest.mark.asyncio
    async def test_invalid_direction(self, feedback_service):
        created = await _create(feedback_service)
        with pytest.raises(InvalidVoteDirectionError):
            await feedback_service.vote_feedback(created.id, "sideways")

    @pytest.mark.asyncio
    async def test_missing_feedback_reported_before_direction(self, feedback_service, ids):
        with pytest.raises(FeedbackNotFoundError):
            await feedback_service.vote_feedback(ids.unknown, "sideways")


class TestComments:
    @pytest.mark.asyncio
    async def test_add_comment_bumps_counter(self, feedback_service, ids):
        created = await _create(feedback_service)

        comment = await feedback_service.add_comment(created.id, "nice", ids.bob)

        assert comment.upvotes == 0
        assert comment.is_developer_response is False
        assert comment.author.id == ids.bob
        assert comment.author.username == "Bob Roe"
        assert comment.feedback_id == created.id
        assert (await feedback_service.get_feedback(created.id)).comments == 1

    @pytest.mark.asyncio
    async def test_unknown_author_leaves_counter(self, feedback_service, store, ids):
        created = await _create(feedback_service)
        with pytest.raises(UserNotFoundError):
            await feedback_service.add_comment(created.id, "nice", ids.unknown)
        assert store.comments == {}
        assert (await feedback_service.get_feedback(created.id)).comments == 0

    @pytest.mark.asyncio
    async def test_missing_feedback(self, feedback_service, ids):
        with pytest.raises(FeedbackNotFoundError):
            await feedback_service.add_comment(ids.unknown, "nice", ids.bob)

    @pytest.mark.asyncio
    async def test_blank_text(self, feedback_service, fake_database, ids):
        with pytest.raises(ValidationError):
            await feedback_service.add_comment(ids.unknown, "   ", ids.bob)
        assert fake_database.transactions == 0

    @pytest.mark.asyncio
    async def test_list_comments_oldest_first(self, feedback_service, ids):
        created = await _create(feedback_service)
        await feedback_service.add_comment(created.id, "first", ids.alice)
        await feedback_service.add_comment(created.id, "second", ids.bob)

        comments = await feedback_service.list_comments(created.id)

        assert [c.text for c in comments] == ["first", "second"]
        assert [c.author.username for c in comments] == ["Alice Doe", "Bob Roe"]

    @pytest.mark.asyncio
    async def test_list_comments_missing_feedback(self, feedback_service, ids):
        with pytest.raises(FeedbackNotFoundError):
            await feedback_service.list_comments(ids.unknown)


class TestCommentVotes:
    @pytest.mark.asyncio
    async def test_nice_comment_scenario(self, feedback_service, ids):
        created = await _create(feedback_service)
        comment = await feedback_service.add_comment(created.id, "nice", ids.bob)

        await feedback_service.vote_comment(created.id, comment.id, "up")
        view = await feedback_service.vote_comment(created.id, comment.id, "up")
        assert view.upvotes == 2

        view = await feedback_service.vote_comment(created.id, comment.id, "down")
        assert view.upvotes == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("direction", ["down", "none", "NONE"])
    async def test_removal_floors_at_zero(self, feedback_service, ids, direction):
        created = await _create(feedback_service)
        comment = await feedback_service.add_comment(created.id, "nice", ids.bob)

        view = await feedback_service.vote_comment(created.id, comment.id, direction)

        assert view.upvotes == 0

    @pytest.mark.asyncio
    async def test_comment_from_other_feedback(self, feedback_service, ids):
        first = await _create(feedback_service, title="First idea")
        second = await _create(feedback_service, title="Second idea")
        comment = await feedback_service.add_comment(first.id, "nice", ids.bob)

        with pytest.raises(CommentFeedbackMismatchError) as exc_info:
            await feedback_service.vote_comment(second.id, comment.id, "up")

        assert isinstance(exc_info.value, InvalidArgumentError)
        assert not isinstance(exc_info.value, NotFoundError)

    @pytest.mark.asyncio
    async def test_missing_comment(self, feedback_service, ids):
        created = await _create(feedback_service)
        with pytest.raises(CommentNotFoundError, match=f"Comment not found: {ids.unknown}"):
            await feedback_service.vote_comment(created.id, ids.unknown, "up")

    @pytest.mark.asyncio
    async def test_missing_feedback(self, feedback_service, ids):
        with pytest.raises(FeedbackNotFoundError):
            await feedback_service.vote_comment(ids.unknown, ids.unknown, "up")

    @pytest.mark.asyncio
    async def test_invalid_direction(self, feedback_service, ids):
        created = await _create(feedback_service)
        comment = await feedback_service.add_comment(created.id, "nice", ids.bob)
        with pytest.raises(InvalidVoteDirectionError):
            await feedback_service.vote_comment(created.id, comment.id, "sideways")


class TestCategories:
    @pytest.mark.asyncio
    async def test_list_categories(self, feedback_service, ids):
        categories = await feedback_service.list_categories()
        assert [(c.id, c.name) for c in categories] == [(ids.ui_category, "User Interface")]


class TestStoreFailures:
    @pytest.fixture
    def failing_service(self, id_generator):
        class BrokenDatabase:
            @asynccontextmanager
            async def transaction(self):
                yield object()

        repos = Repositories(
            feedback=AsyncMock(),
            categories=AsyncMock(),
            comments=AsyncMock(),
            users=AsyncMock(),
        )
        repos.feedback.get_by_id.side_effect = ConnectionResetError("connection reset by peer")
        return FeedbackService(BrokenDatabase(), id_generator, repositories=lambda conn: repos)

    @pytest.mark.asyncio
    async def test_driver_error_wrapped_once(self, failing_service, ids):
        with pytest.raises(StoreError) as exc_info:
            await failing_service.get_feedback(ids.unknown)
        assert isinstance(exc_info.value.__cause__, ConnectionResetError)

    @pytest.mark.asyncio
    async def test_domain_errors_are_not_wrapped(self, failing_service, ids):
        repos = failing_service._repositories(None)
        repos.feedback.get_by_id.side_effect = None
        repos.feedback.get_by_id.return_value = None

        with pytest.raises(FeedbackNotFoundError):
            await failing_service.vote_feedback(ids.unknown, "up")
