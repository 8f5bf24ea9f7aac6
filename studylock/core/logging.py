"""Logging and observability configuration using Pydantic Logfire.

This module provides standardized logging utilities and configuration.
All modules should use Python's standard logging library (logging.getLogger(__name__)),
and Logfire will automatically capture and enrich these logs.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Message", extra={"key": "value"})
"""

import logging

import logfire
from fastapi import FastAPI

from studylock.core.config import settings


def configure_logfire() -> None:
    """Configure Pydantic Logfire with token from environment.

    Routes standard logging records through Logfire so every module's logger is captured.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name="studylock",
        service_version="0.1.0",
        environment="production",
        send_to_logfire="if-token-present",
    )
    logging.basicConfig(handlers=[logfire.LogfireLoggingHandler()], level=logging.INFO)

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def instrument_fastapi(app: FastAPI) -> None:
    """Add Logfire instrumentation to FastAPI application."""
    logfire.instrument_fastapi(app)
    logger = logging.getLogger(__name__)
    logger.info("FastAPI instrumentation configured")


def instrument_pydantic_ai() -> None:
    """Trace proof verification model calls made through Pydantic AI."""
    logfire.instrument_pydantic_ai()
    logger = logging.getLogger(__name__)
    logger.info("Pydantic AI instrumentation configured")


def span(name: str) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("task_service.submit_proof"):
            # Your service logic here
            pass
    """
    return logfire.span(name)
