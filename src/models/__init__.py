# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic request and response schemas for the profile API."""

from src.models.document import StoredFileResponse
from src.models.student import (
    AcceptApplicationRequest,
    AddressSchema,
    ContactInfoSchema,
    CreateStudentRequest,
    DocumentInput,
    DocumentResponse,
    EnrollmentResponse,
    ErrorDetail,
    ErrorResponse,
    GuardianResponse,
    IdentityResponse,
    ParentInfoSchema,
    ProvisioningResponse,
    StudentEnvelope,
    StudentListResponse,
    StudentResponse,
    StudentSummaryResponse,
    SubmitApplicationRequest,
)

__all__ = [
    "AcceptApplicationRequest",
    "AddressSchema",
    "ContactInfoSchema",
    "CreateStudentRequest",
    "DocumentInput",
    "DocumentResponse",
    "EnrollmentResponse",
    "ErrorDetail",
    "ErrorResponse",
    "GuardianResponse",
    "IdentityResponse",
    "ParentInfoSchema",
    "ProvisioningResponse",
    "StoredFileResponse",
    "StudentEnvelope",
    "StudentListResponse",
    "StudentResponse",
    "StudentSummaryResponse",
    "SubmitApplicationRequest",
]
