"""Prompt construction for proof verification.

The judgment rubric lives in versioned template files next to this module so
it can be tuned without touching code.
"""

from functools import cache
from pathlib import Path

from studylock.models.service_models import VerificationRequest


TEMPLATES_DIR = Path(__file__).parent / "templates"

IMAGE_ATTACHED_INSTRUCTION = (
    'An image has been provided. CAREFULLY analyze the image content and determine if it shows genuine proof '
    'of completing the task "{title}". Look for specific text, diagrams, code, or work that matches the task '
    "requirements. Be VERY skeptical of generic or unrelated images."
)
IMAGE_UNAVAILABLE_INSTRUCTION = (
    "Note: An image URL was provided but could not be analyzed. Base verification only on text description. "
    "If no meaningful text description is provided, REJECT the submission."
)
TEXT_ONLY_INSTRUCTION = (
    "No image was uploaded. Verify based ONLY on the text description. "
    "Be strict - vague descriptions should be rejected."
)


@cache
def load_rubric(version: str) -> str:
    """Load the system prompt rubric for a template version.

    Raises:
        FileNotFoundError: If no template exists for the version
    """
    path = TEMPLATES_DIR / f"{version}.md"
    if not path.is_file():
        msg = f"Verification prompt template not found: {version}"
        raise FileNotFoundError(msg)
    return path.read_text(encoding="utf-8").strip()


def build_user_prompt(request: VerificationRequest, *, image_attached: bool) -> str:
    """Render the per-request message describing the task and the submitted proof.

    Args:
        request: The verification request
        image_attached: Whether the image bytes accompany this message

    Returns:
        Prompt text ending with the instruction matching the available evidence
    """
    proof_text = (request.proof_text or "").strip()
    lines = [
        "TASK TO VERIFY:",
        f"Title: {request.task_title}",
        f"Description: {request.task_description or 'No description provided'}",
        f"Type: {request.task_type}",
        "",
        "STUDENT'S PROOF SUBMISSION:",
        f"Text Description: {proof_text}" if proof_text else "No text description provided",
        "Image URL provided: Yes" if request.proof_url else "No image uploaded",
        "",
    ]

    if image_attached:
        closing = IMAGE_ATTACHED_INSTRUCTION.format(title=request.task_title)
    elif request.proof_url:
        closing = IMAGE_UNAVAILABLE_INSTRUCTION
    else:
        closing = TEXT_ONLY_INSTRUCTION

    lines.append(closing)
    return "\n".join(lines)
