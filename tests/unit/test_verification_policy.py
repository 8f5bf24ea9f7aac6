"""Tests for the deterministic verification policy."""

import pytest

from studylock.models.service_models import VerificationRequest, VerificationResult
from studylock.modules.verification.policy import (
    LOW_CONFIDENCE_CONCERN,
    PARSE_FAILURE_CONCERN,
    apply_confidence_floor,
    parse_verification_output,
    screen_submission,
)


@pytest.mark.unit
class TestScreenSubmission:
    """Tests for screen_submission()."""

    def test_generic_claim_is_rejected(self):
        request = VerificationRequest(task_title="Finish essay", proof_text="I did it")

        result = screen_submission(request, image_attached=False)

        assert result is not None
        assert result.approved is False
        assert result.confidence == 0

    @pytest.mark.parametrize("claim", ["done", "Done!", "FINISHED.", "completed", "task done"])
    def test_generic_claim_variants(self, claim):
        request = VerificationRequest(task_title="Finish essay", proof_text=claim)

        assert screen_submission(request, image_attached=False) is not None

    def test_short_specific_text_is_left_to_the_model(self):
        request = VerificationRequest(task_title="Calculus homework", proof_text="Solved Q1-Q10 calc")

        assert screen_submission(request, image_attached=False) is None

    def test_whitespace_only_text_is_missing_proof(self):
        result = screen_submission(VerificationRequest(task_title="Finish essay", proof_text="   "), image_attached=False)

        assert result is not None
        assert result.concerns == ["No proof provided"]

    def test_missing_proof_is_rejected(self):
        result = screen_submission(VerificationRequest(task_title="Finish essay"), image_attached=False)

        assert result is not None
        assert result.concerns == ["No proof provided"]

    def test_detailed_text_passes(self):
        request = VerificationRequest(
            task_title="Finish essay",
            proof_text="Wrote all five sections on the industrial revolution and the bibliography",
        )

        assert screen_submission(request, image_attached=False) is None

    def test_attached_image_skips_text_checks(self):
        request = VerificationRequest(task_title="Finish essay", proof_text="done", proof_url="https://x/proofs/a.png")

        assert screen_submission(request, image_attached=True) is None

    def test_unanalysable_url_with_generic_text_is_rejected(self):
        request = VerificationRequest(task_title="Finish essay", proof_text="done", proof_url="https://x/doc.pdf")

        assert screen_submission(request, image_attached=False) is not None


@pytest.mark.unit
class TestParseVerificationOutput:
    """Tests for parse_verification_output()."""

    def test_parses_json_object(self):
        content = (
            '{"approved": true, "confidence": 88, "feedback": "Shows chapter 5 exercises", '
            '"matchedKeywords": ["chapter 5"], "concerns": []}'
        )

        result = parse_verification_output(content)

        assert result.approved is True
        assert result.confidence == 88
        assert result.matched_keywords == ["chapter 5"]

    def test_extracts_json_from_surrounding_text(self):
        content = 'Here is my verdict:\n```json\n{"approved": false, "confidence": 20, "feedback": "Unrelated"}\n```'

        result = parse_verification_output(content)

        assert result.approved is False
        assert result.confidence == 20
        assert result.concerns == []

    @pytest.mark.parametrize("content", ["I think it is fine", "{not json}", "[1, 2]", '{"approved": "maybe"}'])
    def test_unparseable_output_is_safe_rejection(self, content):
        result = parse_verification_output(content)

        assert result.approved is False
        assert result.confidence == 0
        assert result.concerns == [PARSE_FAILURE_CONCERN]

    def test_confidence_is_clamped(self):
        result = parse_verification_output('{"approved": true, "confidence": 140, "feedback": "ok"}')

        assert result.confidence == 100

    @pytest.mark.parametrize("confidence", ["59.6", "59.5", "59.99"])
    def test_fractional_confidence_is_not_rounded_up(self, confidence):
        result = parse_verification_output(f'{{"approved": true, "confidence": {confidence}, "feedback": "ok"}}')

        assert result.confidence == 59


@pytest.mark.unit
class TestConfidenceFloor:
    """Tests for apply_confidence_floor()."""

    def test_low_confidence_approval_becomes_rejection(self):
        result = VerificationResult(approved=True, confidence=59, feedback="Looks right", concerns=["blurry"])

        floored = apply_confidence_floor(result, task_title="Finish essay")

        assert floored.approved is False
        assert floored.concerns == ["blurry", LOW_CONFIDENCE_CONCERN]
        assert floored.feedback == (
            'Confidence too low (59%). Please provide clearer proof that specifically shows completion of "Finish essay".'
        )

    def test_threshold_confidence_stays_approved(self):
        result = VerificationResult(approved=True, confidence=60, feedback="Clear")

        assert apply_confidence_floor(result, task_title="Finish essay") == result

    def test_rejection_is_untouched(self):
        result = VerificationResult(approved=False, confidence=10, feedback="Unrelated")

        assert apply_confidence_floor(result, task_title="Finish essay") == result

    def test_fractional_confidence_just_below_floor_is_rejected(self):
        parsed = parse_verification_output('{"approved": true, "confidence": 59.6, "feedback": "Looks right"}')

        floored = apply_confidence_floor(parsed, task_title="Finish essay")

        assert floored.approved is False
        assert LOW_CONFIDENCE_CONCERN in floored.concerns
