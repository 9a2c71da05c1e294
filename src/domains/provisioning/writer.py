# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Atomic multi-row writes for student records.

StudentWriter is the only component that mutates a Student and its
children. Each operation runs in a single transaction: the student row,
guardians, guardian links, enrollment and documents are written together
or not at all.

Store failures are translated into store-agnostic exceptions so callers
never inspect database error codes:
- UniqueConstraintViolation: a natural key collided at write time
- ReferencedRowMissing: a foreign key pointed at a missing row
- RecordStateChanged: the record was no longer in the expected state
- StoreError: any other database failure

The writer opens its own session per operation. No connection is held
while the caller talks to the identity service.

Example:
    >>> writer = StudentWriter(database.sessionmaker)
    >>> student = await writer.create_student(record)
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from src.infrastructure.database.models import (
    Document,
    Guardian,
    GuardianRelation,
    Student,
    StudentEnrollment,
    StudentGuardian,
    StudentStatus,
)

logger = logging.getLogger(__name__)

_UNIQUE_VIOLATION_CODE = "23505"
_FOREIGN_KEY_VIOLATION_CODE = "23503"


class StoreError(Exception):
    """Base exception for profile store write failures."""

    pass


class UniqueConstraintViolation(StoreError):
    """Raised when a write collides with a unique constraint.

    Attributes:
        field: Human-readable name of the colliding key, if known.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ReferencedRowMissing(StoreError):
    """Raised when a foreign key references a missing row."""

    pass


class RecordStateChanged(StoreError):
    """Raised when a record is not in the state the write expects."""

    pass


@dataclass(frozen=True)
class GuardianRecord:
    """Guardian to create and link to a student."""

    full_name: str
    relation: GuardianRelation
    phone: str | None = None
    email: str | None = None
    is_primary: bool = False


@dataclass(frozen=True)
class EnrollmentRecord:
    """Enrollment to create for a student."""

    class_id: str
    section_id: str
    academic_year: str
    roll_number: str | None = None


@dataclass(frozen=True)
class DocumentRecord:
    """Already uploaded document to attach to a student."""

    name: str
    document_type: str
    url: str
    file_name: str | None = None
    mime_type: str | None = None
    size: int | None = None


@dataclass(frozen=True)
class NewApplicationRecord:
    """Pending student application, without login or enrollment."""

    school_id: str
    first_name: str
    last_name: str
    date_of_birth: date | None = None
    gender: str | None = None
    address: dict[str, Any] = field(default_factory=dict)
    contact_info: dict[str, Any] = field(default_factory=dict)
    guardians: tuple[GuardianRecord, ...] = ()
    documents: tuple[DocumentRecord, ...] = ()
    created_by: str | None = None


@dataclass(frozen=True)
class NewStudentRecord:
    """Fully provisioned student with login, enrollment and children."""

    school_id: str
    user_id: str
    first_name: str
    last_name: str
    admission_number: str
    enrollment: EnrollmentRecord
    admission_date: date | None = None
    date_of_birth: date | None = None
    gender: str | None = None
    address: dict[str, Any] = field(default_factory=dict)
    contact_info: dict[str, Any] = field(default_factory=dict)
    guardians: tuple[GuardianRecord, ...] = ()
    documents: tuple[DocumentRecord, ...] = ()
    created_by: str | None = None


@dataclass(frozen=True)
class AcceptanceRecord:
    """Fields written when a pending application is accepted."""

    admission_number: str
    enrollment: EnrollmentRecord
    admission_date: date | None = None


class StudentWriter:
    """Transactional writer for students and their children.

    Attributes:
        _sessionmaker: Factory for sessions on the profile database.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the writer.

        Args:
            sessionmaker: Session factory for the profile database.
        """
        self._sessionmaker = sessionmaker

    async def create_student(self, record: NewStudentRecord) -> Student:
        """Create a provisioned student with all children in one transaction.

        Args:
            record: Student, guardians, enrollment and documents to write.

        Returns:
            The committed Student with relationships loaded.

        Raises:
            UniqueConstraintViolation: If the admission number or user id
                is already taken.
            ReferencedRowMissing: If a foreign key is violated.
            StoreError: For any other database failure.
        """
        async with self._sessionmaker() as session:
            try:
                async with session.begin():
                    student = Student(
                        school_id=record.school_id,
                        user_id=record.user_id,
                        status=StudentStatus.PROVISIONED.value,
                        first_name=record.first_name,
                        last_name=record.last_name,
                        admission_number=record.admission_number,
                        admission_date=record.admission_date,
                        date_of_birth=record.date_of_birth,
                        gender=record.gender,
                        address=dict(record.address),
                        contact_info=dict(record.contact_info),
                        created_by=record.created_by,
                    )
                    self._attach_guardians(student, record.school_id, record.guardians)
                    self._attach_documents(
                        student, record.school_id, record.documents, record.created_by
                    )
                    student.enrollments.append(
                        self._build_enrollment(record.school_id, record.enrollment)
                    )
                    session.add(student)
                    await session.flush()

                    student = await self._load(session, student.id)
            except IntegrityError as e:
                raise _translate_integrity_error(e) from e
            except SQLAlchemyError as e:
                logger.error("Failed to create student: %s", e)
                raise StoreError("Failed to create student") from e

        logger.info(
            "Student created: %s (school=%s, user=%s)",
            student.id,
            student.school_id,
            student.user_id,
        )
        return student

    async def submit_application(self, record: NewApplicationRecord) -> Student:
        """Create a pending application with guardians and documents.

        Args:
            record: Applicant, guardians and documents to write.

        Returns:
            The committed Student in PENDING status.

        Raises:
            ReferencedRowMissing: If a foreign key is violated.
            StoreError: For any other database failure.
        """
        async with self._sessionmaker() as session:
            try:
                async with session.begin():
                    student = Student(
                        school_id=record.school_id,
                        status=StudentStatus.PENDING.value,
                        first_name=record.first_name,
                        last_name=record.last_name,
                        date_of_birth=record.date_of_birth,
                        gender=record.gender,
                        address=dict(record.address),
                        contact_info=dict(record.contact_info),
                        created_by=record.created_by,
                    )
                    self._attach_guardians(student, record.school_id, record.guardians)
                    self._attach_documents(
                        student, record.school_id, record.documents, record.created_by
                    )
                    session.add(student)
                    await session.flush()

                    student = await self._load(session, student.id)
            except IntegrityError as e:
                raise _translate_integrity_error(e) from e
            except SQLAlchemyError as e:
                logger.error("Failed to submit application: %s", e)
                raise StoreError("Failed to submit application") from e

        logger.info("Application submitted: %s (school=%s)", student.id, student.school_id)
        return student

    async def accept_application(
        self,
        student_id: str,
        school_id: str,
        acceptance: AcceptanceRecord,
        user_id: str,
        accepted_by: str | None = None,
    ) -> Student:
        """Accept a pending application and enroll the student.

        The status transition is guarded on PENDING inside the transaction,
        so of two concurrent accepts only one succeeds.

        Args:
            student_id: Student to accept.
            school_id: School the student must belong to.
            acceptance: Admission fields and enrollment to write.
            user_id: Identity id to link.
            accepted_by: Acting user id.

        Returns:
            The committed Student in ACCEPTED status.

        Raises:
            RecordStateChanged: If the student is no longer PENDING.
            UniqueConstraintViolation: If the admission number or user id
                is already taken.
            StoreError: For any other database failure.
        """
        async with self._sessionmaker() as session:
            try:
                async with session.begin():
                    now = datetime.now(timezone.utc)
                    result = await session.execute(
                        update(Student)
                        .where(
                            Student.id == student_id,
                            Student.school_id == school_id,
                            Student.status == StudentStatus.PENDING.value,
                        )
                        .values(
                            status=StudentStatus.ACCEPTED.value,
                            user_id=user_id,
                            admission_number=acceptance.admission_number,
                            admission_date=acceptance.admission_date,
                            accepted_by=accepted_by,
                            accepted_at=now,
                            updated_at=now,
                        )
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount != 1:
                        raise RecordStateChanged("Student application is no longer pending")

                    enrollment = self._build_enrollment(school_id, acceptance.enrollment)
                    enrollment.student_id = student_id
                    session.add(enrollment)
                    await session.flush()

                    student = await self._load(session, student_id)
            except IntegrityError as e:
                raise _translate_integrity_error(e) from e
            except SQLAlchemyError as e:
                logger.error("Failed to accept application %s: %s", student_id, e)
                raise StoreError("Failed to accept application") from e

        logger.info("Application accepted: %s (user=%s)", student_id, user_id)
        return student

    @staticmethod
    async def _load(session: AsyncSession, student_id: str) -> Student:
        """Reload a student with every relationship eagerly loaded."""
        result = await session.execute(
            select(Student)
            .where(Student.id == student_id)
            .options(
                selectinload(Student.guardian_links).selectinload(StudentGuardian.guardian),
                selectinload(Student.enrollments),
                selectinload(Student.documents),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    @staticmethod
    def _attach_guardians(
        student: Student,
        school_id: str,
        guardians: tuple[GuardianRecord, ...],
    ) -> None:
        for guardian in guardians:
            student.guardian_links.append(
                StudentGuardian(
                    guardian=Guardian(
                        school_id=school_id,
                        full_name=guardian.full_name,
                        phone=guardian.phone,
                        email=guardian.email,
                    ),
                    relation=guardian.relation.value,
                    is_primary=guardian.is_primary,
                )
            )

    @staticmethod
    def _attach_documents(
        student: Student,
        school_id: str,
        documents: tuple[DocumentRecord, ...],
        uploaded_by: str | None,
    ) -> None:
        for document in documents:
            student.documents.append(
                Document(
                    school_id=school_id,
                    name=document.name,
                    document_type=document.document_type,
                    url=document.url,
                    file_name=document.file_name,
                    mime_type=document.mime_type,
                    size=document.size,
                    uploaded_by=uploaded_by,
                )
            )

    @staticmethod
    def _build_enrollment(school_id: str, enrollment: EnrollmentRecord) -> StudentEnrollment:
        return StudentEnrollment(
            school_id=school_id,
            class_id=enrollment.class_id,
            section_id=enrollment.section_id,
            academic_year=enrollment.academic_year,
            roll_number=enrollment.roll_number,
        )


def _translate_integrity_error(error: IntegrityError) -> StoreError:
    """Translate a driver integrity error into a store-agnostic error."""
    orig = error.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    text = str(orig).lower()

    if code == _UNIQUE_VIOLATION_CODE or "unique constraint" in text:
        if "admission_number" in text:
            field_name = "admission number"
        elif "user_id" in text:
            field_name = "user id"
        else:
            field_name = None
        logger.warning("Unique constraint violated on write: %s", field_name or "unknown")
        return UniqueConstraintViolation(
            f"Unique constraint violated: {field_name or 'unknown key'}",
            field=field_name,
        )

    if code == _FOREIGN_KEY_VIOLATION_CODE or "foreign key constraint" in text:
        logger.warning("Foreign key constraint violated on write")
        return ReferencedRowMissing("Referenced row does not exist")

    logger.error("Unclassified integrity error: %s", orig)
    return StoreError("Integrity error")
