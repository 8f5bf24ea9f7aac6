"""Tests for the network-callable functions."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from studylock.core.errors import ConfigurationError, RateLimitedError, ServiceUnavailableError
from studylock.main import app
from studylock.models.service_models import VerificationResult


@pytest.fixture
def client() -> TestClient:
    # No context manager: the lifespan (database, scheduler) is not started
    return TestClient(app)


@pytest.fixture
def mock_verify(monkeypatch) -> AsyncMock:
    mock = AsyncMock(
        return_value=VerificationResult(
            approved=True,
            confidence=82,
            feedback="Essay matches the task",
            matched_keywords=["essay"],
            concerns=[],
        )
    )
    monkeypatch.setattr("studylock.modules.verification.service.verify_proof", mock)
    return mock


VALID_BODY = {
    "taskTitle": "Finish essay",
    "taskDescription": "Industrial revolution",
    "taskType": "assignment",
    "proofText": "Wrote all five sections and the bibliography",
}


@pytest.mark.unit
class TestVerifyProofEndpoint:
    """Tests for POST /functions/verify-proof."""

    def test_success_returns_camel_case_verdict(self, client, mock_verify):
        response = client.post("/functions/verify-proof", json=VALID_BODY)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "approved": True,
            "confidence": 82,
            "feedback": "Essay matches the task",
            "matchedKeywords": ["essay"],
            "concerns": [],
        }
        request = mock_verify.call_args.args[0]
        assert request.task_title == "Finish essay"
        assert request.proof_text == "Wrote all five sections and the bibliography"

    def test_missing_task_type_defaults_to_personal(self, client, mock_verify):
        body = {k: v for k, v in VALID_BODY.items() if k != "taskType"}

        client.post("/functions/verify-proof", json=body)

        assert mock_verify.call_args.args[0].task_type == "personal"

    def test_rate_limited_returns_429(self, client, monkeypatch):
        monkeypatch.setattr(
            "studylock.modules.verification.service.verify_proof",
            AsyncMock(side_effect=RateLimitedError("Rate limits exceeded, please try again later.")),
        )

        response = client.post("/functions/verify-proof", json=VALID_BODY)

        assert response.status_code == 429
        assert response.json() == {"error": "Rate limits exceeded, please try again later."}

    def test_quota_exhausted_returns_402(self, client, monkeypatch):
        monkeypatch.setattr(
            "studylock.modules.verification.service.verify_proof",
            AsyncMock(side_effect=ServiceUnavailableError("AI verification temporarily unavailable. Please try again.")),
        )

        response = client.post("/functions/verify-proof", json=VALID_BODY)

        assert response.status_code == 402
        assert "temporarily unavailable" in response.json()["error"]

    def test_missing_credential_returns_500(self, client, monkeypatch):
        monkeypatch.setattr(
            "studylock.modules.verification.service.verify_proof",
            AsyncMock(side_effect=ConfigurationError("OpenRouter API key credential not configured.")),
        )

        response = client.post("/functions/verify-proof", json=VALID_BODY)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "OpenRouter API key credential not configured."}

    def test_missing_title_returns_500(self, client, mock_verify):
        response = client.post("/functions/verify-proof", json={"proofText": "Wrote all five sections"})

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert "taskTitle" in body["error"]
        mock_verify.assert_not_called()

    def test_malformed_json_returns_500(self, client, mock_verify):
        response = client.post(
            "/functions/verify-proof",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Invalid JSON payload"}


@pytest.mark.unit
class TestSendDeadlineReminderEndpoint:
    """Tests for POST /functions/send-deadline-reminder."""

    def test_success_reports_count(self, client, monkeypatch):
        monkeypatch.setattr(
            "studylock.services.reminder_service.send_deadline_reminders",
            AsyncMock(return_value=3),
        )

        response = client.post("/functions/send-deadline-reminder")

        assert response.status_code == 200
        assert response.json() == {"success": True, "reminders": 3}

    def test_failure_returns_500(self, client, monkeypatch):
        monkeypatch.setattr(
            "studylock.services.reminder_service.send_deadline_reminders",
            AsyncMock(side_effect=ConfigurationError("VAPID private key credential not configured.")),
        )

        response = client.post("/functions/send-deadline-reminder")

        assert response.status_code == 500
        assert response.json() == {"error": "VAPID private key credential not configured."}


@pytest.mark.unit
class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_scheduler_health_when_stopped(self, client):
        response = client.get("/health/scheduler")

        assert response.status_code == 503
        assert response.json()["status"] == "stopped"
