"""Tests for user-facing error classification."""

import pytest

from studylock.core.db_client import RecordNotFoundError
from studylock.core.errors import (
    ConfigurationError,
    ErrorCategory,
    InvalidTransitionError,
    ServiceUnavailableError,
    UpstreamError,
    classify_error_with_response,
)


@pytest.mark.unit
class TestClassifyErrorWithResponse:
    def test_quota(self):
        response = classify_error_with_response(ServiceUnavailableError("quota"))

        assert response.category == ErrorCategory.SERVICE_QUOTA_EXCEEDED
        assert response.retryable is True

    def test_invalid_transition(self):
        response = classify_error_with_response(InvalidTransitionError("approved"))

        assert response.category == ErrorCategory.INVALID_STATE_TRANSITION
        assert response.retryable is False

    def test_missing_record(self):
        response = classify_error_with_response(RecordNotFoundError("tasks: 1"))

        assert response.category == ErrorCategory.TASK_NOT_FOUND

    def test_configuration(self):
        response = classify_error_with_response(ConfigurationError("missing key"))

        assert response.category == ErrorCategory.CONFIGURATION
        assert response.retryable is False

    def test_upstream(self):
        response = classify_error_with_response(UpstreamError("bad gateway", status_code=502))

        assert response.category == ErrorCategory.UPSTREAM_FAILURE
        assert response.message == "Verification failed."

    @pytest.mark.parametrize("exc", [ConnectionError("reset"), TimeoutError("slow")])
    def test_network(self, exc):
        assert classify_error_with_response(exc).category == ErrorCategory.NETWORK_ERROR
