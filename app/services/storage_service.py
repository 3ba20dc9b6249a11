"""Photo proof storage in a Supabase Storage bucket."""

from __future__ import annotations

import logging
import time
from urllib.parse import unquote, urlparse

import httpx
from storage3.exceptions import StorageApiError

from app.config import settings
from app.schemas.workout import ImageUpload
from app.services.interfaces import ArtifactStore
from app.utils.errors import UploadFailedError
from supabase import Client

logger = logging.getLogger(__name__)


def storage_path_from_url(url: str, bucket: str) -> str | None:
    """Extract the object path from a public bucket URL, or None if foreign."""
    marker = f"/object/public/{bucket}/"
    path = urlparse(url).path
    if marker not in path:
        return None
    object_path = unquote(path.split(marker, 1)[1])
    return object_path or None


class StorageService:
    """Upload and release workout images."""

    def __init__(self, client: Client, bucket: str | None = None) -> None:
        self.client = client
        self.bucket = bucket or settings.workout_image_bucket

    def upload(self, image: ImageUpload, user_id: str, squad_id: str) -> str:
        """Upload to ``workouts/{squad}/{user}/{user}_{ms}.{ext}`` and return the public URL."""
        timestamp_ms = int(time.time() * 1000)
        path = f"workouts/{squad_id}/{user_id}/{user_id}_{timestamp_ms}.{image.extension}"
        bucket = self.client.storage.from_(self.bucket)
        try:
            bucket.upload(
                path=path,
                file=image.content,
                file_options={"content-type": image.content_type},
            )
        except (StorageApiError, httpx.HTTPError) as exc:
            logger.warning("Upload of %s failed: %s", path, exc)
            raise UploadFailedError() from exc

        logger.info("Uploaded workout image %s (%s bytes)", path, len(image.content))
        return bucket.get_public_url(path)

    def release(self, url: str) -> None:
        """Remove an uploaded image; URLs outside this bucket are ignored."""
        path = storage_path_from_url(url, self.bucket)
        if path is None:
            logger.info("Skipping release of foreign image URL %s", url)
            return
        self.client.storage.from_(self.bucket).remove([path])
        logger.info("Released workout image %s", path)


def release_quietly(artifacts: ArtifactStore, url: str) -> None:
    """Release an image, logging instead of raising on failure."""
    try:
        artifacts.release(url)
    except Exception as exc:
        logger.warning("Failed to release image %s: %s", url, exc)
