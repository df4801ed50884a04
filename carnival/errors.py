"""Domain error codes for the planner."""

from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    INVITATION_NOT_FOUND = "INVITATION_NOT_FOUND"
    SUBMISSION_NOT_FOUND = "SUBMISSION_NOT_FOUND"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    DUPLICATE_IDENTIFIER = "DUPLICATE_IDENTIFIER"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotFoundError(DomainError):
    status_code = 404


class EventNotFoundError(NotFoundError):
    """Raised when an event is not found."""

    code = ErrorCode.EVENT_NOT_FOUND

    def __init__(self, event_id: int) -> None:
        super().__init__("Event not found")
        self.event_id = event_id


class InvitationNotFoundError(NotFoundError):
    """Raised when no invitation matches an invite code."""

    code = ErrorCode.INVITATION_NOT_FOUND

    def __init__(self, invite_code: str) -> None:
        super().__init__("Invitation not found")
        self.invite_code = invite_code


class SubmissionNotFoundError(NotFoundError):
    code = ErrorCode.SUBMISSION_NOT_FOUND

    def __init__(self, submission_id: int) -> None:
        super().__init__("Submission not found")
        self.submission_id = submission_id


class InvalidPayloadError(DomainError):
    """Raised when submitted data fails validation."""

    code = ErrorCode.INVALID_PAYLOAD


class DuplicateIdentifierError(DomainError):
    """Raised when a freshly generated invite code already exists."""

    code = ErrorCode.DUPLICATE_IDENTIFIER
    status_code = 409

    def __init__(self, invite_code: str) -> None:
        super().__init__("Could not allocate a unique invite code")
        self.invite_code = invite_code


class StoreUnavailableError(DomainError):
    """Raised when the database cannot be reached or is locked."""

    code = ErrorCode.STORE_UNAVAILABLE
    status_code = 503

    def __init__(self, message: str = "The data store is temporarily unavailable") -> None:
        super().__init__(message)
