"""Stateless AI proof verification."""

import logging

import httpx
from pydantic_ai import Agent, BinaryContent
from pydantic_ai.exceptions import ModelHTTPError

from studylock.core.config import constants, settings
from studylock.core.errors import RateLimitedError, ServiceUnavailableError, StudyLockError, UpstreamError
from studylock.core.logging import span
from studylock.models.service_models import VerificationRequest, VerificationResult
from studylock.modules.verification import image_fetch, policy
from studylock.modules.verification.prompt import build_user_prompt


logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limits exceeded, please try again later."
QUOTA_MESSAGE = "AI verification temporarily unavailable. Please try again."


def _map_upstream_error(e: Exception) -> StudyLockError:
    """Translate a model call failure into the verification error taxonomy."""
    if isinstance(e, ModelHTTPError):
        if e.status_code == constants.HTTP_TOO_MANY_REQUESTS:
            return RateLimitedError(RATE_LIMIT_MESSAGE)
        if e.status_code == constants.HTTP_PAYMENT_REQUIRED:
            return ServiceUnavailableError(QUOTA_MESSAGE)
        return UpstreamError(f"AI gateway error: {e.status_code}", status_code=e.status_code)
    return UpstreamError(f"AI gateway error: {e}")


async def _run_model(agent: Agent[None, str], prompt: str, image: BinaryContent | None) -> str:
    user_content: list[str | BinaryContent] = [prompt]
    if image is not None:
        user_content.append(image)

    try:
        result = await agent.run(user_content)
    except Exception as e:
        mapped = _map_upstream_error(e)
        logger.error("Verification model call failed", extra={"error": str(e), "mapped": type(mapped).__name__})
        raise mapped from e

    content = result.output
    if not content or not content.strip():
        msg = "No response from AI"
        raise UpstreamError(msg)
    return content


async def verify_proof(
    request: VerificationRequest,
    *,
    agent: Agent[None, str] | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> VerificationResult:
    """Judge whether the submitted proof genuinely shows the task was completed.

    Args:
        request: Task description and submitted proof
        agent: Optional agent override (defaults to the shared OpenRouter agent)
        http_client: Optional client used to download the proof image

    Returns:
        The verdict, never approved below the confidence floor

    Raises:
        ConfigurationError: If the OpenRouter credential is missing
        RateLimitedError: If the gateway throttled the request
        ServiceUnavailableError: If the gateway refused on quota grounds
        UpstreamError: For any other gateway failure or an empty response
    """
    with span("verification_service.verify_proof"):
        settings.require_credential("openrouter_api_key", "OpenRouter API key")

        image: BinaryContent | None = None
        if request.proof_url and image_fetch.is_image_reference(request.proof_url):
            fetched = await image_fetch.fetch_image(request.proof_url, client=http_client)
            if fetched is not None:
                image = BinaryContent(data=fetched.data, media_type=fetched.media_type)

        screened = policy.screen_submission(request, image_attached=image is not None)
        if screened is not None:
            logger.info(
                "Proof rejected by pre-screen",
                extra={"task_title": request.task_title, "concerns": screened.concerns},
            )
            return screened

        if agent is None:
            from studylock.agents.agent_instance import get_agent

            agent = get_agent()

        logger.info(
            "Verifying proof",
            extra={"task_title": request.task_title, "with_image": image is not None},
        )
        prompt = build_user_prompt(request, image_attached=image is not None)
        content = await _run_model(agent, prompt, image)

        result = policy.parse_verification_output(content)
        result = policy.apply_confidence_floor(result, task_title=request.task_title)

        logger.info(
            "Proof verified",
            extra={"approved": result.approved, "confidence": result.confidence},
        )
        return result
