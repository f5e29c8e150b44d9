"""Field checks run before any store access.

Each helper returns the list of violations instead of raising, so one
request reports every bad field at once.
"""

from agora.errors import FieldError
from agora.feedback.schemas import (
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    SENTIMENT_MAX_LENGTH,
    TAGS_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
)

COMMENT_MAX_LENGTH = 5000


def _check_text(
    field: str,
    label: str,
    value: str | None,
    min_length: int,
    max_length: int,
) -> list[FieldError]:
    if value is None or not value.strip():
        return [FieldError(field, f"{label} cannot be blank")]
    if not (min_length <= len(value) <= max_length):
        return [
            FieldError(
                field,
                f"{label} must be between {min_length} and {max_length} characters",
            )
        ]
    return []


def _check_optional(field: str, label: str, value: str | None, max_length: int) -> list[FieldError]:
    if value is not None and len(value) > max_length:
        return [FieldError(field, f"{label} must not exceed {max_length} characters")]
    return []


def check_feedback_fields(
    title: str | None,
    description: str | None,
    sentiment: str | None,
    tags: str | None,
) -> list[FieldError]:
    errors: list[FieldError] = []
    errors += _check_text("title", "Title", title, TITLE_MIN_LENGTH, TITLE_MAX_LENGTH)
    errors += _check_text(
        "description", "Description", description,
        DESCRIPTION_MIN_LENGTH, DESCRIPTION_MAX_LENGTH,
    )
    errors += _check_optional("sentiment", "Sentiment", sentiment, SENTIMENT_MAX_LENGTH)
    errors += _check_optional("tags", "Tags", tags, TAGS_MAX_LENGTH)
    return errors


def check_comment_text(text: str | None) -> list[FieldError]:
    return _check_text("content", "Comment", text, 1, COMMENT_MAX_LENGTH)
