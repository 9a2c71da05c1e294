# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document upload endpoints.

Documents are uploaded first and then referenced by URL in student
create and application requests.

- POST /documents - Upload a file (multipart)
- DELETE /documents/{file_name} - Delete an uploaded file
"""

import logging

from fastapi import APIRouter, File, Form, UploadFile, status

from src.api.dependencies import FileStorageDep, SchoolContextDep
from src.infrastructure.storage import InvalidFileError
from src.infrastructure.storage.base import normalize_name
from src.models.document import StoredFileResponse

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@router.post(
    "",
    response_model=StoredFileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a document",
)
async def upload_document(
    context: SchoolContextDep,
    storage: FileStorageDep,
    file: UploadFile = File(...),
    folder: str = Form(default="documents"),
) -> StoredFileResponse:
    """Upload a document into the school's folder.

    Args:
        context: School and acting user.
        storage: File storage backend.
        file: Uploaded file.
        folder: Folder under the school prefix.

    Returns:
        StoredFileResponse with the URL and storage name.
    """
    data = await file.read(MAX_UPLOAD_BYTES + 1)
    if len(data) > MAX_UPLOAD_BYTES:
        raise InvalidFileError("Invalid file: larger than 10 MB")

    stored = await storage.upload(
        data,
        file.content_type or "",
        original_name=file.filename,
        folder=f"{context.school_id}/{normalize_name(folder)}",
    )
    logger.info("Document uploaded: %s (school=%s)", stored.file_name, context.school_id)
    return StoredFileResponse(
        url=stored.url,
        file_name=stored.file_name,
        original_name=file.filename,
        mime_type=stored.mime_type,
        size=stored.size,
    )


@router.delete(
    "/{file_name:path}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a document",
)
async def delete_document(
    file_name: str,
    context: SchoolContextDep,
    storage: FileStorageDep,
) -> None:
    """Delete an uploaded document owned by the school.

    Raises:
        InvalidFileError: If the file does not belong to the school.
    """
    name = normalize_name(file_name)
    if not name.startswith(f"{context.school_id}/"):
        raise InvalidFileError("Invalid file name: not owned by this school")
    await storage.delete(name)
    logger.info("Document deleted: %s (school=%s)", file_name, context.school_id)
