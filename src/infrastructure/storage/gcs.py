# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Google Cloud Storage backend.

Uploaded objects are made public and addressed by their
https://storage.googleapis.com URL. The google-cloud-storage client is
synchronous; calls run via asyncio.to_thread().

Requires the ``gcs`` extra (google-cloud-storage).
"""

import asyncio
import logging

from google.api_core import exceptions as gcs_exceptions
from google.cloud import storage

from src.infrastructure.storage.base import (
    FileStorage,
    StorageError,
    StoredFile,
    build_object_name,
    normalize_name,
    validate_upload,
)

logger = logging.getLogger(__name__)

PUBLIC_URL_BASE = "https://storage.googleapis.com"
CACHE_CONTROL = "public, max-age=31536000"


class GCSFileStorage(FileStorage):
    """Store files in a Google Cloud Storage bucket.

    Attributes:
        bucket_name: Target bucket.
    """

    def __init__(self, bucket_name: str, client: storage.Client | None = None) -> None:
        """Initialize the backend.

        Args:
            bucket_name: Target bucket.
            client: Optional preconfigured client. Defaults to a client using
                application default credentials.
        """
        self.bucket_name = bucket_name
        self._client = client or storage.Client()
        self._bucket = self._client.bucket(bucket_name)
        logger.info("Using GCS bucket %s", bucket_name)

    def public_url(self, file_name: str) -> str:
        return f"{PUBLIC_URL_BASE}/{self.bucket_name}/{file_name}"

    async def upload(
        self,
        data: bytes,
        content_type: str,
        original_name: str | None = None,
        folder: str | None = None,
    ) -> StoredFile:
        """Upload an object and make it public."""
        validate_upload(data, content_type)
        file_name = build_object_name(original_name, folder)

        try:
            await asyncio.to_thread(self._upload_sync, file_name, data, content_type)
        except gcs_exceptions.GoogleAPICallError as e:
            logger.error("GCS upload of %s failed: %s", file_name, e)
            raise StorageError(f"Failed to store file: {e.message}") from e

        logger.info("Stored GCS object %s (%d bytes)", file_name, len(data))
        return StoredFile(
            url=self.public_url(file_name),
            file_name=file_name,
            mime_type=content_type,
            size=len(data),
        )

    async def delete(self, file_name: str) -> None:
        """Delete an object, ignoring objects that do not exist."""
        name = normalize_name(file_name)
        try:
            await asyncio.to_thread(self._bucket.blob(name).delete)
        except gcs_exceptions.NotFound:
            logger.info("GCS object %s already absent", name)
            return
        except gcs_exceptions.GoogleAPICallError as e:
            logger.error("GCS delete of %s failed: %s", name, e)
            raise StorageError(f"Failed to delete file: {e.message}") from e
        logger.info("Deleted GCS object %s", name)

    async def exists(self, file_name: str) -> bool:
        """Check whether an object exists."""
        name = normalize_name(file_name)
        return await asyncio.to_thread(self._bucket.blob(name).exists)

    def _upload_sync(self, file_name: str, data: bytes, content_type: str) -> None:
        blob = self._bucket.blob(file_name)
        blob.cache_control = CACHE_CONTROL
        blob.upload_from_string(data, content_type=content_type)
        blob.make_public()
