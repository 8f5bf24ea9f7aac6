"""Proof submission orchestration.

One submission uploads the artifact (if any), asks the verifier for a verdict
and only then touches the task, so a failed verification never changes what
locks the user out.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any, Protocol

import httpx
from pydantic import BaseModel

from studylock.core.config import constants, settings
from studylock.core.errors import (
    ErrorResponse,
    InvalidTransitionError,
    MissingProofError,
    ProofTooLargeError,
    classify_error_with_response,
)
from studylock.core.logging import span
from studylock.domain.task import Task
from studylock.models.service_models import VerificationRequest, VerificationResult
from studylock.modules.tasks import proofs
from studylock.modules.tasks import service as task_service
from studylock.services import profile_service


if TYPE_CHECKING:
    from studylock.modules.lock.monitor import LockMonitor


logger = logging.getLogger(__name__)

Verifier = Callable[[VerificationRequest], Awaitable[VerificationResult]]


class ProofArtifact(BaseModel):
    """A file the user attached as proof."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def extension(self) -> str:
        suffix = PurePosixPath(self.filename).suffix.lstrip(".").lower()
        return suffix or "bin"


class SubmissionOutcome(BaseModel):
    """Task after the verdict plus the verdict itself."""

    task: Task
    result: VerificationResult


class ProofStorage(Protocol):
    """Object storage for proof artifacts."""

    async def upload(self, *, path: str, data: bytes, content_type: str) -> str:
        """Store the bytes and return their public URL."""
        ...


class HttpProofStorage:
    """Upload proofs to an object storage HTTP API."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        bucket: str = constants.PROOF_BUCKET,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.storage_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.storage_api_key
        self.bucket = bucket
        self._client = client

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/object/public/{self.bucket}/{path}"

    async def upload(self, *, path: str, data: bytes, content_type: str) -> str:
        """Upload an artifact and return its public URL.

        Raises:
            httpx.HTTPError: If the upload fails
        """
        url = f"{self.base_url}/object/{self.bucket}/{path}"
        headers = {"Content-Type": content_type}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        if self._client is None:
            async with httpx.AsyncClient(timeout=constants.API_TIMEOUT_SECONDS) as client:
                response = await client.post(url, content=data, headers=headers)
        else:
            response = await self._client.post(url, content=data, headers=headers)
        response.raise_for_status()

        logger.info("Uploaded proof artifact", extra={"path": path, "bytes": len(data)})
        return self.public_url(path)


async def _default_verifier(request: VerificationRequest) -> VerificationResult:
    from studylock.modules.verification.service import verify_proof

    return await verify_proof(request)


def build_artifact_path(*, user_id: str, task_id: str, artifact: ProofArtifact) -> str:
    """Storage path for an artifact: ``<user>/<task>/<epoch-ms>.<ext>``."""
    return f"{user_id}/{task_id}/{int(time.time() * 1000)}.{artifact.extension}"


async def _submit(
    *,
    task_id: str,
    user_id: str,
    proof_text: str | None,
    artifact: ProofArtifact | None,
    storage: ProofStorage | None,
    verifier: Verifier,
) -> SubmissionOutcome:
    task = await task_service.get_task(task_id=task_id)
    if task.user_id != user_id:
        msg = f"User {user_id} cannot submit proof for task {task_id}"
        raise PermissionError(msg)
    if not task.is_open:
        msg = f"Task {task_id} is {task.status} and does not accept proof"
        raise InvalidTransitionError(msg)

    proof_text = (proof_text or "").strip() or None
    if proof_text is None and artifact is None:
        msg = "Please provide proof of completion"
        raise MissingProofError(msg)

    proof_url: str | None = None
    proof_hash: str | None = None
    if artifact is not None:
        if len(artifact.content) > constants.MAX_PROOF_BYTES:
            msg = "File size must be less than 10MB"
            raise ProofTooLargeError(msg)

        proof_hash = proofs.compute_content_hash(artifact.content)
        await proofs.ensure_proof_is_original(proof_hash=proof_hash, user_id=user_id)

        uploader = storage or HttpProofStorage()
        proof_url = await uploader.upload(
            path=build_artifact_path(user_id=user_id, task_id=task_id, artifact=artifact),
            data=artifact.content,
            content_type=artifact.content_type,
        )

    request = VerificationRequest(
        task_title=task.title,
        task_description=task.description,
        task_type=task.task_type,
        proof_text=proof_text,
        proof_url=proof_url,
    )
    result = await verifier(request)

    judged = await task_service.record_submission(
        task_id=task_id,
        result=result,
        proof_text=proof_text,
        proof_url=proof_url,
        proof_hash=proof_hash,
    )

    if result.approved:
        await profile_service.record_completion(user_id=user_id, points=constants.APPROVAL_POINTS)

    return SubmissionOutcome(task=judged, result=result)


async def submit_and_verify(
    *,
    task_id: str,
    user_id: str,
    proof_text: str | None = None,
    artifact: ProofArtifact | None = None,
    storage: ProofStorage | None = None,
    verifier: Verifier | None = None,
    monitor: "LockMonitor | None" = None,
) -> SubmissionOutcome:
    """Submit proof for a task and record the verifier's verdict.

    Args:
        task_id: Task being completed
        user_id: Submitting user, must own the task
        proof_text: Optional description of the work
        artifact: Optional uploaded file
        storage: Object storage for the artifact (defaults to HttpProofStorage)
        verifier: Verification callable (defaults to in-process verify_proof)
        monitor: Lock monitor whose suppression flags bracket the submission

    Returns:
        The judged task and the verdict

    Raises:
        PermissionError: If the user does not own the task
        InvalidTransitionError: If the task is not pending or rejected
        MissingProofError: If neither text nor artifact was given
        ProofTooLargeError: If the artifact exceeds the size limit
        DuplicateProofError: If another user already submitted the same artifact
        RateLimitedError, ServiceUnavailableError, UpstreamError, ConfigurationError:
            From verification; the task is left untouched
    """
    with span("submission.submit_and_verify"):
        kwargs: dict[str, Any] = {
            "task_id": task_id,
            "user_id": user_id,
            "proof_text": proof_text,
            "artifact": artifact,
            "storage": storage,
            "verifier": verifier or _default_verifier,
        }
        if monitor is None:
            outcome = await _submit(**kwargs)
        else:
            async with monitor.submission():
                outcome = await _submit(**kwargs)

        logger.info(
            "Submission judged",
            extra={"task_id": task_id, "user_id": user_id, "approved": outcome.result.approved},
        )
        return outcome


def describe_submission_error(exc: Exception) -> ErrorResponse:
    """User-facing message, suggestion and retry hint for a failed submission."""
    response = classify_error_with_response(exc)
    logger.info(
        "Submission failed",
        extra={"error_type": type(exc).__name__, "category": response.category.value},
    )
    return response
