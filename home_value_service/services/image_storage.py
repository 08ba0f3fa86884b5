# home_value_service/services/image_storage.py
"""
Image attachment pipeline.

Uploaded photos are validated, written to a blob backend (local disk or an
S3-compatible bucket) and replaced by public locators that get stored on the
request or message row. A batch of images is all-or-nothing: if one file
fails, the files already written for that batch are removed again.
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from home_value_service.core.config import Settings
from home_value_service.core.s3 import get_s3_client, public_object_url
from home_value_service.middleware.error_handler import (
    FileTooLarge,
    StorageError,
    UnsupportedMediaType,
    ValidationError,
)
from home_value_service.utils.sanitize import image_extension

logger = logging.getLogger(__name__)

KEY_PREFIX = "home-values"


@dataclass
class ImageUpload:
    filename: Optional[str]
    content_type: Optional[str]
    payload: bytes


class ImageStorage:
    """Blob backend interface. Keys are relative, locators are public."""

    backend_name = "base"

    def put(self, key: str, payload: bytes, content_type: str) -> str:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def key_for(self, locator: str) -> Optional[str]:
        """Map a locator produced by this backend back to its key."""
        raise NotImplementedError


class LocalImageStorage(ImageStorage):
    backend_name = "local"

    def __init__(self, root_dir: str, public_prefix: str):
        self.root = Path(root_dir)
        self.public_prefix = public_prefix.rstrip("/")

    def put(self, key: str, payload: bytes, content_type: str) -> str:
        path = self.root / key
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(payload)
        except OSError as e:
            logger.error(f"Failed to write image {key} to {self.root}: {e}")
            raise StorageError(backend=self.backend_name) from e
        return f"{self.public_prefix}/{key}"

    def delete(self, key: str) -> None:
        try:
            (self.root / key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(backend=self.backend_name) from e

    def key_for(self, locator: str) -> Optional[str]:
        prefix = f"{self.public_prefix}/"
        if locator.startswith(prefix):
            return locator[len(prefix):]
        return None


class S3ImageStorage(ImageStorage):
    backend_name = "s3"

    def __init__(self, settings: Settings, client=None):
        self.settings = settings
        self.bucket = settings.AWS_S3_BUCKET_NAME
        self.client = client or get_s3_client(settings)

    def put(self, key: str, payload: bytes, content_type: str) -> str:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=payload,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload {key} to bucket {self.bucket}: {e}")
            raise StorageError(backend=self.backend_name) from e
        return public_object_url(self.settings, key)

    def delete(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(backend=self.backend_name) from e

    def key_for(self, locator: str) -> Optional[str]:
        prefix = public_object_url(self.settings, "")
        if locator.startswith(prefix):
            return locator[len(prefix):]
        return None


def build_image_storage(settings: Settings) -> ImageStorage:
    if settings.STORAGE_BACKEND == "s3":
        return S3ImageStorage(settings)
    if settings.STORAGE_BACKEND == "local":
        return LocalImageStorage(settings.LOCAL_UPLOAD_DIR, settings.PUBLIC_UPLOAD_URL_PREFIX)
    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")


class ImageAttachmentPipeline:
    def __init__(self, storage: ImageStorage, max_size_bytes: int, max_files: int):
        self.storage = storage
        self.max_size_bytes = max_size_bytes
        self.max_files = max_files

    def validate(self, upload: ImageUpload) -> None:
        content_type = (upload.content_type or "").lower()
        if not content_type.startswith("image/"):
            raise UnsupportedMediaType(upload.content_type)
        if len(upload.payload) > self.max_size_bytes:
            raise FileTooLarge(upload.filename or "image", self.max_size_bytes)
        if not upload.payload:
            raise ValidationError("Empty upload", field="images")

    def object_key(self, upload: ImageUpload) -> str:
        # Content hash plus a random suffix: two requests uploading the same
        # photo must not share (and later delete) one blob.
        digest = hashlib.sha256(upload.payload).hexdigest()[:32]
        ext = image_extension(upload.filename, upload.content_type.lower())
        return f"{KEY_PREFIX}/{digest}-{secrets.token_hex(4)}{ext}"

    def store(self, payload: bytes, content_type: str, filename: Optional[str] = None) -> str:
        upload = ImageUpload(filename=filename, content_type=content_type, payload=payload)
        self.validate(upload)
        return self.storage.put(self.object_key(upload), upload.payload, upload.content_type)

    def store_batch(self, uploads: List[ImageUpload]) -> List[str]:
        """Store every upload or none of them. Returns locators in input order."""
        if len(uploads) > self.max_files:
            raise ValidationError(
                f"At most {self.max_files} images per upload", field="images"
            )
        # Reject bad files before anything reaches the backend.
        for upload in uploads:
            self.validate(upload)

        locators: List[str] = []
        try:
            for upload in uploads:
                key = self.object_key(upload)
                locators.append(
                    self.storage.put(key, upload.payload, upload.content_type)
                )
        except StorageError:
            self.discard(locators)
            raise
        return locators

    def discard(self, locators: Iterable[str]) -> None:
        """Remove stored images. Failures are logged, not raised."""
        for locator in locators:
            key = self.storage.key_for(locator)
            if key is None:
                logger.warning(f"Not removing {locator}: not owned by the {self.storage.backend_name} backend")
                continue
            try:
                self.storage.delete(key)
            except StorageError:
                logger.warning(f"Could not remove orphaned image {key}", exc_info=True)
