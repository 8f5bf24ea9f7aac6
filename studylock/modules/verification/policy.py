"""Deterministic verification policy applied around the model call."""

import json
import logging
import re

from pydantic import ValidationError

from studylock.core.config import constants
from studylock.core.errors import ProofParseError
from studylock.models.service_models import VerificationRequest, VerificationResult


logger = logging.getLogger(__name__)

PARSE_FAILURE_FEEDBACK = "Could not verify submission. Please provide clearer proof with more details."
PARSE_FAILURE_CONCERN = "Verification system could not analyze submission properly"
LOW_CONFIDENCE_CONCERN = "Confidence score below threshold"

# Bare completion claims that never count as proof on their own
GENERIC_CLAIMS = frozenset(
    {
        "done",
        "did it",
        "i did it",
        "i have done it",
        "i've done it",
        "i finished",
        "i finished it",
        "finished",
        "finished it",
        "complete",
        "completed",
        "completed it",
        "i completed it",
        "task done",
        "task complete",
        "task completed",
        "all done",
        "yes",
        "ok",
    }
)


def _normalize_claim(text: str) -> str:
    return re.sub(r"[^a-z' ]+", "", text.lower()).strip()


def screen_submission(request: VerificationRequest, *, image_attached: bool) -> VerificationResult | None:
    """Reject submissions that cannot possibly prove completion, without calling the model.

    Args:
        request: The verification request
        image_attached: Whether image bytes will accompany the model call

    Returns:
        A rejection when the submission fails the pre-check, otherwise None
    """
    if not request.has_proof:
        return VerificationResult(
            approved=False,
            confidence=0,
            feedback="No proof was provided. Add a description or upload evidence of your work.",
            concerns=["No proof provided"],
        )

    if image_attached:
        return None

    proof_text = (request.proof_text or "").strip()
    if _normalize_claim(proof_text) in GENERIC_CLAIMS:
        return VerificationResult(
            approved=False,
            confidence=0,
            feedback=(
                f'"{proof_text}" is a generic completion claim. Describe specifically what you did for '
                f'"{request.task_title}" or upload evidence of your work.'
            ),
            concerns=["Generic or vague description"],
        )

    return None


def _extract_json_object(content: str) -> dict[str, object]:
    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end <= start:
        msg = "No JSON object found in model output"
        raise ProofParseError(msg)

    try:
        data = json.loads(content[start : end + 1])
    except json.JSONDecodeError as e:
        msg = f"Model output is not valid JSON: {e}"
        raise ProofParseError(msg) from e

    if not isinstance(data, dict):
        msg = "Model output JSON is not an object"
        raise ProofParseError(msg)
    return data


def parse_verification_output(content: str) -> VerificationResult:
    """Parse model output into a verdict, falling back to a safe rejection.

    Args:
        content: Raw text returned by the model

    Returns:
        The parsed verdict, or a rejection with confidence 0 when parsing fails
    """
    try:
        data = _extract_json_object(content)
        return VerificationResult.model_validate(data)
    except (ProofParseError, ValidationError) as e:
        logger.warning("Failed to parse verification output", extra={"error": str(e), "content": content[:500]})
        return VerificationResult(
            approved=False,
            confidence=0,
            feedback=PARSE_FAILURE_FEEDBACK,
            matched_keywords=[],
            concerns=[PARSE_FAILURE_CONCERN],
        )


def apply_confidence_floor(
    result: VerificationResult,
    *,
    task_title: str,
    threshold: int = constants.CONFIDENCE_FLOOR,
) -> VerificationResult:
    """Downgrade low-confidence approvals to rejections."""
    if not result.approved or result.confidence >= threshold:
        return result

    logger.info(
        "Approval below confidence floor",
        extra={"confidence": result.confidence, "threshold": threshold},
    )
    return result.model_copy(
        update={
            "approved": False,
            "feedback": (
                f"Confidence too low ({result.confidence}%). Please provide clearer proof that "
                f'specifically shows completion of "{task_title}".'
            ),
            "concerns": [*result.concerns, LOW_CONFIDENCE_CONCERN],
        }
    )
