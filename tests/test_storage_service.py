"""Photo storage tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest

from app.schemas.workout import ImageUpload
from app.services.storage_service import StorageService, storage_path_from_url
from app.utils.errors import UploadFailedError

BASE = "https://example.supabase.co/storage/v1/object/public/workouts/"
PHOTO = ImageUpload(content=b"img", filename="proof.webp", content_type="image/webp")


def test_storage_path_from_url() -> None:
    assert storage_path_from_url(BASE + "workouts/s1/u1/u1_1.jpg", "workouts") == (
        "workouts/s1/u1/u1_1.jpg"
    )
    assert storage_path_from_url("https://cdn.example.com/a.jpg", "workouts") is None


def test_upload_uses_squad_and_user_path() -> None:
    client = MagicMock()
    bucket = client.storage.from_.return_value
    bucket.get_public_url.return_value = BASE + "x.webp"

    url = StorageService(client, bucket="workouts").upload(PHOTO, "u1", "s1")

    assert url == BASE + "x.webp"
    path = bucket.upload.call_args.kwargs["path"]
    assert path.startswith("workouts/s1/u1/u1_")
    assert path.endswith(".webp")
    assert bucket.upload.call_args.kwargs["file_options"] == {"content-type": "image/webp"}


def test_upload_network_failure_is_upload_failed() -> None:
    client = MagicMock()
    client.storage.from_.return_value.upload.side_effect = httpx.ConnectError("down")

    with pytest.raises(UploadFailedError):
        StorageService(client, bucket="workouts").upload(PHOTO, "u1", "s1")


def test_release_skips_foreign_urls() -> None:
    client = MagicMock()
    service = StorageService(client, bucket="workouts")

    service.release("https://cdn.example.com/a.jpg")
    client.storage.from_.return_value.remove.assert_not_called()

    service.release(BASE + "workouts/s1/u1/u1_1.jpg")
    client.storage.from_.return_value.remove.assert_called_once_with(["workouts/s1/u1/u1_1.jpg"])
