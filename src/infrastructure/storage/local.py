# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Local filesystem storage backend.

Files are written under a base directory and addressed with file:// URLs.
Blocking filesystem calls run via asyncio.to_thread().
"""

import asyncio
import logging
from pathlib import Path

from src.infrastructure.storage.base import (
    FileStorage,
    StorageError,
    StoredFile,
    build_object_name,
    normalize_name,
    validate_upload,
)

logger = logging.getLogger(__name__)


class LocalFileStorage(FileStorage):
    """Store files on the local filesystem.

    Attributes:
        base_dir: Resolved directory all files live under.
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir).resolve()
        logger.info("Using local file storage at %s", self.base_dir)

    def _path_for(self, file_name: str) -> Path:
        return self.base_dir / normalize_name(file_name)

    async def upload(
        self,
        data: bytes,
        content_type: str,
        original_name: str | None = None,
        folder: str | None = None,
    ) -> StoredFile:
        """Write a file under the base directory."""
        validate_upload(data, content_type)
        file_name = build_object_name(original_name, folder)
        path = self._path_for(file_name)

        try:
            await asyncio.to_thread(_write_file, path, data)
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e)
            raise StorageError(f"Failed to store file: {e}") from e

        logger.info("Stored local file %s (%d bytes)", file_name, len(data))
        return StoredFile(
            url=path.as_uri(),
            file_name=file_name,
            mime_type=content_type,
            size=len(data),
        )

    async def delete(self, file_name: str) -> None:
        """Delete a file, ignoring files that do not exist."""
        path = self._path_for(file_name)
        await asyncio.to_thread(path.unlink, missing_ok=True)
        logger.info("Deleted local file %s", file_name)

    async def exists(self, file_name: str) -> bool:
        """Check whether a file exists."""
        path = self._path_for(file_name)
        return await asyncio.to_thread(path.is_file)


def _write_file(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
