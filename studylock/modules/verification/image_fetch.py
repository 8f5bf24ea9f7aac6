"""Download proof images for multimodal verification."""

import logging
import re
from urllib.parse import urlsplit

import httpx

from studylock.core.config import constants
from studylock.models.service_models import FetchedImage


logger = logging.getLogger(__name__)

IMAGE_EXTENSION_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|webp|bmp)$", re.IGNORECASE)


def is_image_reference(url: str | None) -> bool:
    """Guess whether a proof URL points at an image."""
    if not url:
        return False
    path = urlsplit(url).path
    return bool(IMAGE_EXTENSION_PATTERN.search(path)) or "/proofs/" in path or "image" in url


async def fetch_image(url: str, *, client: httpx.AsyncClient | None = None) -> FetchedImage | None:
    """Fetch an image, returning None on any failure so verification can degrade to text only.

    Args:
        url: Image URL
        client: Optional client to reuse (tests pass one with a mock transport)
    """
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=constants.IMAGE_FETCH_TIMEOUT_SECONDS) as owned:
                response = await owned.get(url, follow_redirects=True)
        else:
            response = await client.get(url, follow_redirects=True)
    except httpx.HTTPError as e:
        logger.warning("Image fetch failed", extra={"url": url, "error": str(e)})
        return None

    if not response.is_success:
        logger.warning("Image fetch returned error status", extra={"url": url, "status": response.status_code})
        return None

    media_type = response.headers.get("content-type", "image/jpeg").split(";")[0].strip() or "image/jpeg"
    logger.info("Fetched proof image", extra={"url": url, "bytes": len(response.content), "media_type": media_type})
    return FetchedImage(data=response.content, media_type=media_type)
