"""Error taxonomy and user-facing error classification."""

from enum import Enum

from pydantic import BaseModel


class StudyLockError(Exception):
    """Base class for all studylock errors."""


class ConfigurationError(StudyLockError):
    """A required upstream credential or setting is missing."""


class RateLimitedError(StudyLockError):
    """The upstream model gateway reported throttling (HTTP 429)."""


class ServiceUnavailableError(StudyLockError):
    """The upstream model gateway refused on quota or payment grounds (HTTP 402)."""


class UpstreamError(StudyLockError):
    """Any other failure from the upstream model gateway."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProofParseError(StudyLockError):
    """The model returned output that does not match the verification contract.

    Never surfaced to callers: it is recovered into a safe rejection.
    """


class DuplicateProofError(StudyLockError):
    """The uploaded proof was already submitted by another user."""


class ProofTooLargeError(StudyLockError):
    """The uploaded proof exceeds the size limit."""


class InvalidTransitionError(StudyLockError, ValueError):
    """A task status change is not allowed from its current status."""


class MissingProofError(StudyLockError, ValueError):
    """A submission carried neither text nor an artifact."""


class ErrorCategory(Enum):
    """Categories of errors surfaced to end users."""

    CONFIGURATION = "configuration"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    SERVICE_QUOTA_EXCEEDED = "service_quota_exceeded"
    UPSTREAM_FAILURE = "upstream_failure"
    DUPLICATE_PROOF = "duplicate_proof"
    PROOF_TOO_LARGE = "proof_too_large"
    MISSING_PROOF = "missing_proof"
    INVALID_STATE_TRANSITION = "invalid_state_transition"
    PERMISSION_DENIED = "permission_denied"
    TASK_NOT_FOUND = "task_not_found"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    category: ErrorCategory
    message: str
    suggestion: str
    retryable: bool


def classify_error_with_response(exception: Exception) -> ErrorResponse:  # noqa: PLR0911
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised while submitting or verifying proof

    Returns:
        ErrorResponse with category, message, suggestion, and retryable flag
    """
    if isinstance(exception, RateLimitedError):
        return ErrorResponse(
            category=ErrorCategory.RATE_LIMIT_EXCEEDED,
            message="Too many verification requests right now.",
            suggestion="Please wait a moment and try again.",
            retryable=True,
        )

    if isinstance(exception, ServiceUnavailableError):
        return ErrorResponse(
            category=ErrorCategory.SERVICE_QUOTA_EXCEEDED,
            message="AI verification is temporarily unavailable.",
            suggestion="Please try again later.",
            retryable=True,
        )

    if isinstance(exception, DuplicateProofError):
        return ErrorResponse(
            category=ErrorCategory.DUPLICATE_PROOF,
            message="This proof has already been submitted by another user.",
            suggestion="Submit evidence of your own original work.",
            retryable=False,
        )

    if isinstance(exception, ProofTooLargeError):
        return ErrorResponse(
            category=ErrorCategory.PROOF_TOO_LARGE,
            message="File size must be less than 10MB.",
            suggestion="Upload a smaller file or a screenshot of your work.",
            retryable=False,
        )

    if isinstance(exception, MissingProofError):
        return ErrorResponse(
            category=ErrorCategory.MISSING_PROOF,
            message="Please provide proof of completion.",
            suggestion="Describe what you did or upload a photo or file of your work.",
            retryable=False,
        )

    if isinstance(exception, InvalidTransitionError):
        return ErrorResponse(
            category=ErrorCategory.INVALID_STATE_TRANSITION,
            message="Proof cannot be submitted for this task right now.",
            suggestion="Refresh your task list and try again.",
            retryable=False,
        )

    if isinstance(exception, PermissionError):
        return ErrorResponse(
            category=ErrorCategory.PERMISSION_DENIED,
            message="You can only submit proof for your own tasks.",
            suggestion="Ask the task owner to submit the proof.",
            retryable=False,
        )

    if isinstance(exception, KeyError):
        return ErrorResponse(
            category=ErrorCategory.TASK_NOT_FOUND,
            message="That task no longer exists.",
            suggestion="Refresh your task list.",
            retryable=False,
        )

    if isinstance(exception, ConfigurationError):
        return ErrorResponse(
            category=ErrorCategory.CONFIGURATION,
            message="Verification is not configured on the server.",
            suggestion="Please contact support.",
            retryable=False,
        )

    if isinstance(exception, UpstreamError):
        return ErrorResponse(
            category=ErrorCategory.UPSTREAM_FAILURE,
            message="Verification failed.",
            suggestion="Please try again.",
            retryable=True,
        )

    if isinstance(exception, ConnectionError | TimeoutError):
        return ErrorResponse(
            category=ErrorCategory.NETWORK_ERROR,
            message="Network error occurred.",
            suggestion="Please check your connection and try again.",
            retryable=True,
        )

    return ErrorResponse(
        category=ErrorCategory.UNKNOWN,
        message="Failed to submit proof.",
        suggestion="Please try again. If the problem persists, contact support.",
        retryable=True,
    )
