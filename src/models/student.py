# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student API schemas.

Request models are frozen: once a request has been validated it is not
mutated by the services that consume it.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.infrastructure.database.models import Student, StudentStatus


class AddressSchema(BaseModel):
    """Postal address."""

    model_config = ConfigDict(frozen=True)

    street: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    country: str | None = None


class ContactInfoSchema(BaseModel):
    """Student contact information."""

    model_config = ConfigDict(frozen=True)

    primary_phone: str | None = Field(default=None, max_length=30)
    email: EmailStr | None = Field(
        default=None,
        description="Credentials are emailed here when a login is created",
    )


class ParentInfoSchema(BaseModel):
    """Parent and guardian details captured with the student."""

    model_config = ConfigDict(frozen=True)

    father_name: str | None = Field(default=None, max_length=200)
    mother_name: str | None = Field(default=None, max_length=200)
    guardian_name: str | None = Field(default=None, max_length=200)
    phone: str | None = Field(default=None, max_length=30)
    email: EmailStr | None = None


class DocumentInput(BaseModel):
    """Reference to a document already uploaded to file storage."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=255)
    document_type: str = Field(default="OTHER", max_length=50)
    url: str = Field(..., min_length=1, max_length=1024)
    file_name: str | None = None
    mime_type: str | None = None
    size: int | None = Field(default=None, ge=0)


class _EnrollmentFields(BaseModel):
    class_id: str = Field(..., min_length=1, description="Class to enroll the student in")
    section_id: str = Field(..., min_length=1, description="Section within the class")
    academic_year: str = Field(..., min_length=1, max_length=20, examples=["2025-2026"])
    roll_number: str | None = Field(default=None, max_length=20)


class SubmitApplicationRequest(BaseModel):
    """Request to submit a pending student application."""

    model_config = ConfigDict(frozen=True)

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, max_length=20)
    address: AddressSchema = Field(default_factory=AddressSchema)
    contact_info: ContactInfoSchema = Field(default_factory=ContactInfoSchema)
    parent_info: ParentInfoSchema = Field(default_factory=ParentInfoSchema)
    documents: list[DocumentInput] = Field(default_factory=list)


class CreateStudentRequest(SubmitApplicationRequest, _EnrollmentFields):
    """Request to create a student with login and enrollment in one step."""

    model_config = ConfigDict(frozen=True)

    admission_number: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Unique within the school",
    )
    admission_date: date | None = None


class AcceptApplicationRequest(_EnrollmentFields):
    """Request to accept a pending application."""

    model_config = ConfigDict(frozen=True)

    admission_number: str = Field(..., min_length=1, max_length=50)
    admission_date: date | None = None


class GuardianResponse(BaseModel):
    """Guardian linked to a student."""

    id: str
    full_name: str
    relation: str
    is_primary: bool
    phone: str | None = None
    email: str | None = None


class EnrollmentResponse(BaseModel):
    """Student enrollment."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    class_id: str
    section_id: str
    academic_year: str
    roll_number: str | None = None
    status: str


class DocumentResponse(BaseModel):
    """Document attached to a student."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    document_type: str
    url: str
    file_name: str | None = None
    mime_type: str | None = None
    size: int | None = None


class StudentResponse(BaseModel):
    """Student with guardians, enrollments and documents."""

    id: str
    school_id: str
    user_id: str | None
    status: StudentStatus
    first_name: str
    last_name: str
    admission_number: str | None
    admission_date: date | None
    date_of_birth: date | None
    gender: str | None
    address: dict[str, Any]
    contact_info: dict[str, Any]
    guardians: list[GuardianResponse] = Field(default_factory=list)
    enrollments: list[EnrollmentResponse] = Field(default_factory=list)
    documents: list[DocumentResponse] = Field(default_factory=list)
    accepted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, student: Student) -> "StudentResponse":
        """Build from a Student with relationships loaded."""
        return cls(
            id=student.id,
            school_id=student.school_id,
            user_id=student.user_id,
            status=StudentStatus(student.status),
            first_name=student.first_name,
            last_name=student.last_name,
            admission_number=student.admission_number,
            admission_date=student.admission_date,
            date_of_birth=student.date_of_birth,
            gender=student.gender,
            address=student.address or {},
            contact_info=student.contact_info or {},
            guardians=[
                GuardianResponse(
                    id=link.guardian.id,
                    full_name=link.guardian.full_name,
                    relation=link.relation,
                    is_primary=link.is_primary,
                    phone=link.guardian.phone,
                    email=link.guardian.email,
                )
                for link in student.guardian_links
            ],
            enrollments=[EnrollmentResponse.model_validate(e) for e in student.enrollments],
            documents=[DocumentResponse.model_validate(d) for d in student.documents],
            accepted_at=student.accepted_at,
            created_at=student.created_at,
            updated_at=student.updated_at,
        )


class StudentSummaryResponse(BaseModel):
    """Student row in a list."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str | None
    status: StudentStatus
    first_name: str
    last_name: str
    admission_number: str | None
    created_at: datetime


class StudentListResponse(BaseModel):
    """List of students in a school."""

    items: list[StudentSummaryResponse]
    total: int


class IdentityResponse(BaseModel):
    """Login identity linked to a student. Never carries the password."""

    id: str
    username: str | None = None
    email: str | None = None
    role_id: str | None = None
    school_id: str | None = None


class ProvisioningResponse(BaseModel):
    """Result of a provisioning request."""

    success: bool = True
    student: StudentResponse
    identity: IdentityResponse
    credentials_sent: bool = Field(
        description="Whether the credentials notification was delivered",
    )


class StudentEnvelope(BaseModel):
    """Single student result."""

    success: bool = True
    student: StudentResponse


class ErrorDetail(BaseModel):
    """Classified error."""

    kind: str
    message: str


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""

    success: bool = False
    error: ErrorDetail
