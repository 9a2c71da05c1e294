# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student API endpoints.

This module provides:
- POST /students - Create a student with login and enrollment
- POST /students/applications - Submit a pending application
- POST /students/{student_id}/accept - Accept a pending application
- GET /students/{student_id} - Get a student with relations
- GET /students - List students in the school

Authentication:
    Performed by the upstream gateway. The school and acting user arrive
    as X-School-Id and X-User-Id headers.

Example:
    POST /api/v1/students
    Headers:
        X-School-Id: 9f7d...
        X-User-Id: 1c2b...
    Body:
        {
            "first_name": "Ana",
            "last_name": "Garcia",
            "admission_number": "A-100",
            "contact_info": {"email": "ana@example.com"},
            "parent_info": {"father_name": "Luis Garcia"},
            "class_id": "class-4",
            "section_id": "section-a",
            "academic_year": "2025-2026"
        }
"""

import logging

from fastapi import APIRouter, Query, status

from src.api.dependencies import (
    ProvisioningServiceDep,
    SchoolContextDep,
    StudentServiceDep,
)
from src.domains.provisioning import ProvisioningResult
from src.infrastructure.database.models import StudentStatus
from src.models.student import (
    AcceptApplicationRequest,
    CreateStudentRequest,
    IdentityResponse,
    ProvisioningResponse,
    StudentEnvelope,
    StudentListResponse,
    StudentResponse,
    StudentSummaryResponse,
    SubmitApplicationRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(result: ProvisioningResult) -> ProvisioningResponse:
    return ProvisioningResponse(
        student=StudentResponse.from_model(result.student),
        identity=IdentityResponse(
            id=result.identity.id,
            username=result.identity.username,
            email=result.identity.email,
            role_id=result.identity.role_id,
            school_id=result.identity.school_id,
        ),
        credentials_sent=result.credentials_sent,
    )


@router.post(
    "",
    response_model=ProvisioningResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a student with login and enrollment",
)
async def create_student(
    request: CreateStudentRequest,
    context: SchoolContextDep,
    service: ProvisioningServiceDep,
) -> ProvisioningResponse:
    """Create a student, its login identity and its enrollment.

    The credentials email is sent after the student is stored. A failed
    email does not fail the request; see credentials_sent.

    Args:
        request: Student details.
        context: School and acting user.
        service: Provisioning coordinator.

    Returns:
        ProvisioningResponse with the student and identity.
    """
    result = await service.provision_new_student(request, context)
    return _to_response(result)


@router.post(
    "/applications",
    response_model=StudentEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a pending student application",
)
async def submit_application(
    request: SubmitApplicationRequest,
    context: SchoolContextDep,
    service: StudentServiceDep,
) -> StudentEnvelope:
    """Submit an application that is accepted later."""
    student = await service.submit_application(
        request, context.school_id, created_by=context.user_id
    )
    return StudentEnvelope(student=StudentResponse.from_model(student))


@router.post(
    "/{student_id}/accept",
    response_model=ProvisioningResponse,
    summary="Accept a pending application",
)
async def accept_application(
    student_id: str,
    request: AcceptApplicationRequest,
    context: SchoolContextDep,
    service: ProvisioningServiceDep,
) -> ProvisioningResponse:
    """Accept a pending application, create its login and enroll it.

    Args:
        student_id: Pending student to accept.
        request: Admission and enrollment details.
        context: School and acting user.
        service: Provisioning coordinator.

    Returns:
        ProvisioningResponse with the accepted student and identity.
    """
    result = await service.accept_application(student_id, request, context)
    return _to_response(result)


@router.get(
    "/{student_id}",
    response_model=StudentEnvelope,
    summary="Get a student",
)
async def get_student(
    student_id: str,
    context: SchoolContextDep,
    service: StudentServiceDep,
) -> StudentEnvelope:
    """Get a student with guardians, enrollments and documents."""
    student = await service.get_student(student_id, context.school_id)
    return StudentEnvelope(student=StudentResponse.from_model(student))


@router.get(
    "",
    response_model=StudentListResponse,
    summary="List students",
)
async def list_students(
    context: SchoolContextDep,
    service: StudentServiceDep,
    status_filter: StudentStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> StudentListResponse:
    """List students in the school, optionally filtered by status."""
    students, total = await service.list_students(
        context.school_id, status=status_filter, limit=limit, offset=offset
    )
    return StudentListResponse(
        items=[StudentSummaryResponse.model_validate(s) for s in students],
        total=total,
    )
