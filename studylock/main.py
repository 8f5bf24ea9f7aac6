"""studylock - student accountability backend with AI-verified proof of completion."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from studylock.core import db_client
from studylock.core.config import settings
from studylock.core.logging import configure_logfire, instrument_fastapi, instrument_pydantic_ai
from studylock.core.scheduler import scheduler, start_scheduler, stop_scheduler
from studylock.core.schema import register_core_modules
from studylock.interface.functions_router import router as functions_router


logger = logging.getLogger(__name__)


def validate_startup_configuration() -> None:
    """Log which optional integrations are configured.

    Missing credentials are not fatal at startup: each function reports a
    configuration error when it is called without them.
    """
    integrations = {
        "openrouter": bool(settings.openrouter_api_key),
        "web_push": bool(settings.vapid_public_key and settings.vapid_private_key),
        "storage": bool(settings.storage_api_key),
        "logfire": bool(settings.logfire_token),
    }
    for service, configured in integrations.items():
        if configured:
            logger.info("startup_validation", extra={"service": service, "status": "ok"})
        else:
            logger.warning("startup_validation", extra={"service": service, "status": "not_configured"})


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Configure logging first so validation logs are captured
    configure_logfire()
    validate_startup_configuration()

    register_core_modules()
    await db_client.init_db()
    logger.info("Database initialized")

    instrument_pydantic_ai()
    start_scheduler()
    yield
    stop_scheduler()
    await db_client.close_connection()


app = FastAPI(
    title="studylock",
    description="Student accountability backend with AI-verified proof of completion",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

app.include_router(functions_router)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=200)


@app.get("/health/scheduler")
async def scheduler_health_check() -> JSONResponse:
    """Scheduler health check with the next run time of each job."""
    jobs = {
        job.id: job.next_run_time.isoformat() if job.next_run_time else None for job in scheduler.get_jobs()
    }
    healthy = scheduler.running
    return JSONResponse(
        content={"status": "healthy" if healthy else "stopped", "jobs": jobs},
        status_code=200 if healthy else 503,
    )
