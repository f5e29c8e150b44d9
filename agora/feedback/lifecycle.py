"""State transitions for feedback items.

Pure functions over ``Feedback``: no I/O, no clock reads of their own. The
service passes ``now`` in so a whole operation shares one timestamp.
Counters are clamped here so that no transition can leave them negative.
"""

from datetime import datetime

from agora.feedback.schemas import Feedback, FeedbackStatus, VoteDirection


def new_feedback(
    feedback_id: int,
    title: str,
    description: str,
    now: datetime,
    *,
    category_id: int | None = None,
    author_id: int | None = None,
    sentiment: str | None = None,
    tags: str | None = None,
) -> Feedback:
    """Build a freshly submitted item: PENDING, not archived, zero counters."""
    return Feedback(
        id=feedback_id,
        title=title,
        description=description,
        status=FeedbackStatus.PENDING,
        category_id=category_id,
        author_id=author_id,
        sentiment=sentiment,
        tags=tags,
        upvotes=0,
        downvotes=0,
        comments=0,
        archived=False,
        created_at=now,
        updated_at=now,
    )


def apply_update(
    feedback: Feedback,
    now: datetime,
    *,
    title: str,
    description: str,
    status: FeedbackStatus,
    category_id: int | None,
    author_id: int | None,
    sentiment: str | None,
    tags: str | None,
) -> Feedback:
    """Overwrite every editable field; ``None`` clears a relation."""
    feedback.title = title
    feedback.description = description
    feedback.status = status
    feedback.category_id = category_id
    feedback.author_id = author_id
    feedback.sentiment = sentiment
    feedback.tags = tags
    feedback.updated_at = now
    return feedback


def archive(feedback: Feedback, now: datetime) -> Feedback:
    feedback.archived = True
    feedback.updated_at = now
    return feedback


def reopen(feedback: Feedback, now: datetime) -> Feedback:
    """Unarchive; a COMPLETED item goes back to PENDING, other statuses stay."""
    feedback.archived = False
    if feedback.status == FeedbackStatus.COMPLETED:
        feedback.status = FeedbackStatus.PENDING
    feedback.updated_at = now
    return feedback


def apply_vote(feedback: Feedback, direction: VoteDirection, now: datetime) -> Feedback:
    """Adjust the aggregate counters.

    ``none`` withdraws the accumulated votes, returning both counters to
    their floor of 0.
    """
    if direction is VoteDirection.UP:
        feedback.upvotes += 1
    elif direction is VoteDirection.DOWN:
        feedback.downvotes += 1
    else:
        feedback.upvotes = 0
        feedback.downvotes = 0
    feedback.updated_at = now
    return feedback


def record_comment(feedback: Feedback, now: datetime) -> Feedback:
    feedback.comments += 1
    feedback.updated_at = now
    return feedback
