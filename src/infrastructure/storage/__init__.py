# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""File storage for uploaded student documents.

The backend is selected by FILE_STORAGE_PROVIDER:
- local: files under FILE_STORAGE_LOCAL_DIR, file:// URLs
- gcs: public objects in GOOGLE_CLOUD_BUCKET_NAME

Example:
    from src.infrastructure.storage import create_file_storage

    storage = create_file_storage(settings.file_storage)
    stored = await storage.upload(data, "application/pdf", "birth.pdf", "documents")
"""

from typing import TYPE_CHECKING

from src.infrastructure.storage.base import (
    FileStorage,
    InvalidFileError,
    StorageError,
    StoredFile,
)
from src.infrastructure.storage.local import LocalFileStorage

if TYPE_CHECKING:
    from src.core.config.settings import FileStorageSettings


def create_file_storage(settings: "FileStorageSettings") -> FileStorage:
    """Create the configured storage backend.

    Args:
        settings: File storage settings.

    Returns:
        FileStorage backend.

    Raises:
        StorageError: If gcs is selected without a bucket name.
    """
    if settings.provider == "gcs":
        if not settings.bucket_name:
            raise StorageError("GOOGLE_CLOUD_BUCKET_NAME environment variable is required")
        # google-cloud-storage is an optional extra
        from src.infrastructure.storage.gcs import GCSFileStorage

        return GCSFileStorage(settings.bucket_name)

    return LocalFileStorage(settings.local_dir)


__all__ = [
    "FileStorage",
    "InvalidFileError",
    "LocalFileStorage",
    "StorageError",
    "StoredFile",
    "create_file_storage",
]
