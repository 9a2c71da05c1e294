# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document upload API schemas."""

from pydantic import BaseModel, Field


class StoredFileResponse(BaseModel):
    """Uploaded file location and metadata."""

    success: bool = True
    url: str = Field(description="Public or file:// URL of the stored file")
    file_name: str = Field(description="Storage name, used to delete the file")
    original_name: str | None = None
    mime_type: str
    size: int
