"""Proof verification agent instance.

The agent is created lazily so that importing the verification service never
requires OpenRouter credentials.
"""

import logging

from pydantic_ai import Agent
from pydantic_ai.models.openrouter import OpenRouterModel, OpenRouterModelSettings
from pydantic_ai.providers.openrouter import OpenRouterProvider

from studylock.core.config import settings
from studylock.modules.verification.prompt import load_rubric


logger = logging.getLogger(__name__)


class _AgentState:
    """Singleton state for agent instance."""

    instance: Agent[None, str] | None = None


def _create_agent() -> Agent[None, str]:
    """Create the verification agent (called once during initialization)."""
    api_key = settings.require_credential("openrouter_api_key", "OpenRouter API key")
    provider = OpenRouterProvider(api_key=api_key)

    if settings.model_provider:
        model_settings = OpenRouterModelSettings(
            temperature=settings.verification_temperature,
            openrouter_provider={"only": [settings.model_provider]},
        )
    else:
        model_settings = OpenRouterModelSettings(temperature=settings.verification_temperature)

    model = OpenRouterModel(
        model_name=settings.model_id,
        provider=provider,
        settings=model_settings,
    )

    logger.info(
        "Created verification agent",
        extra={"model_id": settings.model_id, "prompt_version": settings.verification_prompt_version},
    )

    # The rubric demands a bare JSON object; parsing happens in the verification policy
    return Agent(
        model=model,
        output_type=str,
        system_prompt=load_rubric(settings.verification_prompt_version),
        retries=0,
    )


def get_agent() -> Agent[None, str]:
    """Get or create the verification agent instance."""
    if _AgentState.instance is None:
        _AgentState.instance = _create_agent()
    return _AgentState.instance


def reset_agent() -> None:
    """Drop the cached agent so the next call picks up changed settings."""
    _AgentState.instance = None
