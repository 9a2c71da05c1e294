# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""File storage interface for uploaded student documents."""

import posixpath
from abc import ABC, abstractmethod
from dataclasses import dataclass
from uuid import uuid4


class StorageError(Exception):
    """Raised when a storage operation fails."""

    pass


class InvalidFileError(StorageError):
    """Raised when an upload is empty, untyped or addressed outside storage."""

    pass


@dataclass(frozen=True)
class StoredFile:
    """Location and metadata of a stored file.

    Attributes:
        url: URL the file can be fetched from.
        file_name: Storage-relative name, used for delete and exists.
        mime_type: Content type.
        size: Size in bytes.
    """

    url: str
    file_name: str
    mime_type: str
    size: int


class FileStorage(ABC):
    """Abstract file storage backend."""

    @abstractmethod
    async def upload(
        self,
        data: bytes,
        content_type: str,
        original_name: str | None = None,
        folder: str | None = None,
    ) -> StoredFile:
        """Store a file under a generated unique name.

        Args:
            data: File contents.
            content_type: MIME type.
            original_name: Client file name, only its extension is kept.
            folder: Optional folder prefix.

        Returns:
            StoredFile describing the stored object.

        Raises:
            InvalidFileError: If the file is empty or has no content type.
            StorageError: If the backend fails.
        """
        ...

    @abstractmethod
    async def delete(self, file_name: str) -> None:
        """Delete a stored file. Deleting a missing file is not an error."""
        ...

    @abstractmethod
    async def exists(self, file_name: str) -> bool:
        """Check whether a stored file exists."""
        ...


def validate_upload(data: bytes, content_type: str) -> None:
    """Reject uploads that cannot be stored.

    Raises:
        InvalidFileError: If the data is empty or the content type missing.
    """
    if not data:
        raise InvalidFileError("Invalid file: file contents are missing")
    if not content_type:
        raise InvalidFileError("Invalid file: content type is missing")


def build_object_name(original_name: str | None, folder: str | None) -> str:
    """Generate a unique storage-relative name keeping the original extension."""
    ext = posixpath.splitext(original_name or "")[1].lower()
    name = f"{uuid4()}{ext}"
    if folder:
        return f"{normalize_name(folder)}/{name}"
    return name


def normalize_name(name: str) -> str:
    """Normalize a storage-relative name and reject traversal.

    Raises:
        InvalidFileError: If the name is empty, absolute or escapes storage.
    """
    cleaned = posixpath.normpath(name.replace("\\", "/")).lstrip("/")
    if not cleaned or cleaned == "." or cleaned.startswith(".."):
        raise InvalidFileError(f"Invalid file name: {name}")
    return cleaned
