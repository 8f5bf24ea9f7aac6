"""Network-callable functions: proof verification and deadline reminders."""

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from studylock.core.config import constants
from studylock.core.errors import RateLimitedError, ServiceUnavailableError
from studylock.models.service_models import VerificationRequest
from studylock.modules.verification import service as verification_service
from studylock.services import reminder_service


router = APIRouter(prefix="/functions", tags=["functions"])
logger = logging.getLogger(__name__)

ERROR_MSG_INVALID_JSON = "Invalid JSON payload"
ERROR_MSG_VERIFICATION_FAILED = "Verification failed"


def _validation_message(e: ValidationError) -> str:
    first = e.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"Invalid request: {location} {first.get('msg', '')}".strip()


@router.post("/verify-proof")
async def verify_proof(request: Request) -> JSONResponse:
    """Judge submitted proof for a task.

    Returns:
        200 with the verdict, 429 when rate limited, 402 when the AI quota is
        exhausted, 500 with ``success: false`` for anything else
    """
    try:
        payload: Any = await request.json()
        verification_request = VerificationRequest.model_validate(payload)
    except ValidationError as e:
        logger.warning("Invalid verification request", extra={"error": str(e)})
        return JSONResponse(
            content={"success": False, "error": _validation_message(e)},
            status_code=constants.HTTP_SERVER_ERROR,
        )
    except ValueError as e:
        logger.warning("Malformed verification request body", extra={"error": str(e)})
        return JSONResponse(
            content={"success": False, "error": ERROR_MSG_INVALID_JSON},
            status_code=constants.HTTP_SERVER_ERROR,
        )

    try:
        result = await verification_service.verify_proof(verification_request)
    except RateLimitedError as e:
        return JSONResponse(content={"error": str(e)}, status_code=constants.HTTP_TOO_MANY_REQUESTS)
    except ServiceUnavailableError as e:
        return JSONResponse(content={"error": str(e)}, status_code=constants.HTTP_PAYMENT_REQUIRED)
    except Exception as e:
        logger.error("Verification error", extra={"error": str(e), "error_type": type(e).__name__})
        return JSONResponse(
            content={"success": False, "error": str(e) or ERROR_MSG_VERIFICATION_FAILED},
            status_code=constants.HTTP_SERVER_ERROR,
        )

    return JSONResponse(content={"success": True, **result.model_dump(by_alias=True)})


@router.post("/send-deadline-reminder")
async def send_deadline_reminder() -> JSONResponse:
    """Push reminders for pending tasks due within the hour."""
    try:
        reminded = await reminder_service.send_deadline_reminders()
    except Exception as e:
        logger.error("Error in send-deadline-reminder", extra={"error": str(e)})
        return JSONResponse(content={"error": str(e)}, status_code=constants.HTTP_SERVER_ERROR)

    return JSONResponse(content={"success": True, "reminders": reminded})
