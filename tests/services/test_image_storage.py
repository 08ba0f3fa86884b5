# tests/services/test_image_storage.py

import hashlib
import re
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from home_value_service.core.config import settings
from home_value_service.middleware.error_handler import (
    FileTooLarge,
    StorageError,
    UnsupportedMediaType,
    ValidationError,
)
from home_value_service.services.image_storage import (
    ImageAttachmentPipeline,
    ImageUpload,
    LocalImageStorage,
    S3ImageStorage,
)

PNG = b"\x89PNG\r\n\x1a\nfake-image-bytes"


class FlakyStorage(LocalImageStorage):
    """Local storage that refuses the Nth write."""

    def __init__(self, root_dir, fail_on_call):
        super().__init__(root_dir, "/uploads")
        self.fail_on_call = fail_on_call
        self.calls = 0

    def put(self, key, payload, content_type):
        self.calls += 1
        if self.calls == self.fail_on_call:
            raise StorageError(backend="local")
        return super().put(key, payload, content_type)


def test_store_writes_file_and_returns_public_locator(pipeline, image_storage):
    locator = pipeline.store(PNG, "image/png", "front.PNG")

    assert locator.startswith("/uploads/home-values/")
    assert locator.endswith(".png")
    stored = Path(image_storage.root) / image_storage.key_for(locator)
    assert stored.read_bytes() == PNG


def test_same_content_gets_distinct_locators(pipeline):
    first = pipeline.store(PNG, "image/png", "a.png")
    second = pipeline.store(PNG, "image/png", "a.png")

    assert first != second
    digest = hashlib.sha256(PNG).hexdigest()[:32]
    for locator in (first, second):
        assert re.fullmatch(rf"/uploads/home-values/{digest}-[0-9a-f]{{8}}\.png", locator)


def test_rejects_non_image_content_type(pipeline):
    with pytest.raises(UnsupportedMediaType):
        pipeline.store(b"%PDF-1.4", "application/pdf", "deed.pdf")


def test_rejects_oversized_file(pipeline):
    with pytest.raises(FileTooLarge) as exc_info:
        pipeline.store(b"x" * 1025, "image/jpeg", "big.jpg")
    assert exc_info.value.status_code == 413


def test_rejects_too_many_files(pipeline):
    uploads = [ImageUpload("a.png", "image/png", PNG) for _ in range(4)]
    with pytest.raises(ValidationError):
        pipeline.store_batch(uploads)


def test_batch_validates_everything_before_writing(pipeline, image_storage):
    uploads = [
        ImageUpload("a.png", "image/png", PNG),
        ImageUpload("notes.txt", "text/plain", b"hello"),
    ]
    with pytest.raises(UnsupportedMediaType):
        pipeline.store_batch(uploads)

    assert not Path(image_storage.root).exists()


def test_batch_failure_removes_already_stored_images(tmp_path):
    storage = FlakyStorage(str(tmp_path / "uploads"), fail_on_call=3)
    pipeline = ImageAttachmentPipeline(storage, max_size_bytes=1024, max_files=10)
    uploads = [ImageUpload(f"{i}.png", "image/png", PNG + bytes([i])) for i in range(3)]

    with pytest.raises(StorageError):
        pipeline.store_batch(uploads)

    assert storage.calls == 3
    assert list((tmp_path / "uploads").rglob("*.png")) == []


def test_discard_ignores_foreign_locators(pipeline):
    # Must not raise for URLs this backend never produced.
    pipeline.discard(["https://elsewhere.example.com/photo.png"])


def test_s3_backend_uploads_with_content_type(monkeypatch):
    monkeypatch.setattr(settings, "AWS_S3_BUCKET_NAME", "hv-bucket")
    monkeypatch.setattr(settings, "AWS_S3_REGION", "eu-west-3")
    monkeypatch.setattr(settings, "AWS_S3_ENDPOINT_URL", None)
    client = MagicMock()
    storage = S3ImageStorage(settings, client=client)

    locator = storage.put("home-values/abc.png", PNG, "image/png")

    client.put_object.assert_called_once_with(
        Bucket="hv-bucket", Key="home-values/abc.png", Body=PNG, ContentType="image/png"
    )
    assert locator == "https://hv-bucket.s3.eu-west-3.amazonaws.com/home-values/abc.png"
    assert storage.key_for(locator) == "home-values/abc.png"


def test_s3_backend_wraps_client_errors(monkeypatch):
    monkeypatch.setattr(settings, "AWS_S3_BUCKET_NAME", "hv-bucket")
    client = MagicMock()
    client.put_object.side_effect = ClientError(
        {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
    )
    storage = S3ImageStorage(settings, client=client)

    with pytest.raises(StorageError) as exc_info:
        storage.put("home-values/abc.png", PNG, "image/png")
    assert exc_info.value.status_code == 502
