"""Domain exceptions for the feedback board.

Every failure the application service can raise derives from ``AgoraError``.
The HTTP layer maps each family to a status code in
``agora.api.errors``; nothing here knows about HTTP.

Identifiers in messages are always the public string encoding, never the
raw integer.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation failure."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class AgoraError(Exception):
    """Base class for all feedback board errors."""

    error_type = "error"


class ValidationError(AgoraError):
    """One or more input fields are malformed or out of range."""

    error_type = "validation"

    def __init__(self, errors: list[FieldError], message: str = "Validation failed") -> None:
        super().__init__(message)
        self.errors = list(errors)


class NotFoundError(AgoraError):
    """A referenced entity does not exist."""

    error_type = "not_found"
    entity = "Entity"

    def __init__(self, identifier: str) -> None:
        super().__init__(f"{self.entity} with id {identifier} not found")
        self.identifier = identifier


class FeedbackNotFoundError(NotFoundError):
    entity = "Feedback"


class CategoryNotFoundError(NotFoundError):
    entity = "Category"


class UserNotFoundError(NotFoundError):
    entity = "User"


class UnauthenticatedError(AgoraError):
    """No verified caller identity accompanies the request."""

    error_type = "unauthenticated"


class UnauthorizedError(AgoraError):
    """The caller is authenticated but may not perform this mutation."""

    error_type = "forbidden"


class InvalidArgumentError(AgoraError):
    """A request argument is malformed or inconsistent with stored state."""

    error_type = "invalid_argument"


class InvalidVoteDirectionError(InvalidArgumentError):
    def __init__(self, direction: str | None) -> None:
        if not direction:
            super().__init__("Vote direction cannot be null or empty")
        else:
            super().__init__(f"Invalid vote direction: {direction}")
        self.direction = direction


class InvalidIdentifierError(InvalidArgumentError):
    def __init__(self, value: str, reason: str) -> None:
        super().__init__(f"Invalid identifier {value!r}: {reason}")
        self.value = value


class CommentNotFoundError(InvalidArgumentError):
    def __init__(self, identifier: str) -> None:
        super().__init__(f"Comment not found: {identifier}")
        self.identifier = identifier


class CommentFeedbackMismatchError(InvalidArgumentError):
    def __init__(self, comment_id: str, feedback_id: str) -> None:
        super().__init__(
            f"Comment {comment_id} does not belong to feedback {feedback_id}"
        )
        self.comment_id = comment_id
        self.feedback_id = feedback_id


class StoreError(AgoraError):
    """The backing store failed; not retried here."""

    error_type = "store"
