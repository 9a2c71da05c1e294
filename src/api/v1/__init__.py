# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    students: Student provisioning, applications and reads.
    documents: Document upload and delete.
"""

from fastapi import APIRouter

from src.api.v1 import documents, students

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(students.router, prefix="/students", tags=["Students"])
router.include_router(documents.router, prefix="/documents", tags=["Documents"])

__all__ = ["router"]
