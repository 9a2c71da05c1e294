# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student read queries and application intake.

Reads are always scoped to a school: a student in another school is
reported as not found. Submitting an application goes through
StudentWriter like every other multi-row write.

Example:
    >>> service = StudentService(database.sessionmaker, writer)
    >>> student = await service.get_student(student_id, school_id)
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from src.domains.provisioning.errors import NotFoundError, classify_error
from src.domains.provisioning.writer import NewApplicationRecord, StoreError, StudentWriter
from src.domains.student.mapping import (
    address_dict,
    contact_info_dict,
    document_records,
    guardian_records,
)
from src.infrastructure.database.models import Student, StudentGuardian, StudentStatus
from src.models.student import SubmitApplicationRequest

logger = logging.getLogger(__name__)


class StudentService:
    """Service for reading students and submitting applications.

    Attributes:
        _sessionmaker: Session factory for the profile database.
        _writer: Transactional writer.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        writer: StudentWriter,
    ) -> None:
        """Initialize the student service.

        Args:
            sessionmaker: Session factory for the profile database.
            writer: Transactional writer used for application intake.
        """
        self._sessionmaker = sessionmaker
        self._writer = writer

    async def find_student(self, student_id: str, school_id: str) -> Student | None:
        """Get a student with relationships, or None if absent in the school.

        Args:
            student_id: Student ID.
            school_id: School scope.

        Returns:
            Student or None.
        """
        async with self._sessionmaker() as session:
            result = await session.execute(
                select(Student)
                .where(Student.id == student_id, Student.school_id == school_id)
                .options(
                    selectinload(Student.guardian_links).selectinload(StudentGuardian.guardian),
                    selectinload(Student.enrollments),
                    selectinload(Student.documents),
                )
            )
            return result.scalar_one_or_none()

    async def get_student(self, student_id: str, school_id: str) -> Student:
        """Get a student with relationships.

        Raises:
            NotFoundError: If the student does not exist in the school.
        """
        student = await self.find_student(student_id, school_id)
        if student is None:
            raise NotFoundError("Student not found")
        return student

    async def list_students(
        self,
        school_id: str,
        status: StudentStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Student], int]:
        """List students in a school, newest first.

        Args:
            school_id: School scope.
            status: Optional status filter.
            limit: Maximum number of rows.
            offset: Number of rows to skip.

        Returns:
            Tuple of (students, total count).
        """
        conditions = [Student.school_id == school_id]
        if status is not None:
            conditions.append(Student.status == status.value)

        async with self._sessionmaker() as session:
            total = await session.scalar(
                select(func.count()).select_from(Student).where(*conditions)
            )
            result = await session.execute(
                select(Student)
                .where(*conditions)
                .order_by(Student.created_at.desc())
                .limit(limit)
                .offset(offset)
            )
            students = list(result.scalars().all())

        return students, total or 0

    async def submit_application(
        self,
        request: SubmitApplicationRequest,
        school_id: str,
        created_by: str | None = None,
    ) -> Student:
        """Create a pending application.

        The application has no login and no enrollment until it is
        accepted.

        Args:
            request: Validated application.
            school_id: School receiving the application.
            created_by: Acting user id.

        Returns:
            The PENDING Student.

        Raises:
            ProvisioningError: Classified store failure.
        """
        record = NewApplicationRecord(
            school_id=school_id,
            first_name=request.first_name,
            last_name=request.last_name,
            date_of_birth=request.date_of_birth,
            gender=request.gender,
            address=address_dict(request.address),
            contact_info=contact_info_dict(request.contact_info),
            guardians=guardian_records(request.parent_info),
            documents=document_records(request.documents),
            created_by=created_by,
        )
        try:
            return await self._writer.submit_application(record)
        except StoreError as e:
            raise classify_error(e) from e
