"""Proof artifact fingerprinting and the cross-user duplicate guard."""

import hashlib
import logging

from studylock.core import db_client
from studylock.core.db_client import sanitize_param
from studylock.core.errors import DuplicateProofError
from studylock.core.logging import span


logger = logging.getLogger(__name__)


def compute_content_hash(data: bytes) -> str:
    """Return the SHA-256 hex digest of an artifact's bytes."""
    return hashlib.sha256(data).hexdigest()


async def ensure_proof_is_original(*, proof_hash: str, user_id: str) -> None:
    """Refuse proof content already submitted by a different user.

    The same user resubmitting identical content is allowed.

    Raises:
        DuplicateProofError: If another user's task carries the same hash
    """
    with span("proofs.ensure_proof_is_original"):
        existing = await db_client.get_first_record(
            collection="tasks",
            filter_query=f'proof_hash = "{sanitize_param(proof_hash)}" && user_id != "{sanitize_param(user_id)}"',
        )
        if existing is not None:
            logger.warning(
                "Duplicate proof rejected",
                extra={"user_id": user_id, "original_task_id": existing["id"]},
            )
            msg = "This proof has already been submitted by another user"
            raise DuplicateProofError(msg)
