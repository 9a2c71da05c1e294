# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Natural key precondition checks.

The check is an early exit that avoids creating an identity for a request
that is bound to collide. It cannot prevent races; the
(school_id, admission_number) unique constraint remains the source of truth
and StudentWriter reports a collision at write time.
"""

import logging
from enum import Enum

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.domains.provisioning.errors import ConflictError
from src.infrastructure.database.models import Student

logger = logging.getLogger(__name__)


class Availability(str, Enum):
    """Result of a uniqueness check."""

    AVAILABLE = "AVAILABLE"
    CONFLICT = "CONFLICT"


class UniquenessChecker:
    """School-scoped uniqueness checks for student natural keys."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    async def check_admission_number(
        self,
        school_id: str,
        admission_number: str,
        exclude_student_id: str | None = None,
    ) -> Availability:
        """Check whether an admission number is free within a school.

        Args:
            school_id: School scope. A match in another school is not a conflict.
            admission_number: Admission number to check.
            exclude_student_id: Student to ignore, used when a record is
                re-checking its own admission number.

        Returns:
            AVAILABLE or CONFLICT.
        """
        stmt = select(Student.id).where(
            Student.school_id == school_id,
            Student.admission_number == admission_number,
        )
        if exclude_student_id is not None:
            stmt = stmt.where(Student.id != exclude_student_id)

        async with self._sessionmaker() as session:
            result = await session.execute(stmt.limit(1))
            existing = result.scalar_one_or_none()

        if existing is None:
            return Availability.AVAILABLE
        return Availability.CONFLICT

    async def ensure_admission_number_available(
        self,
        school_id: str,
        admission_number: str,
        exclude_student_id: str | None = None,
    ) -> None:
        """Raise if an admission number is already taken within a school.

        Raises:
            ConflictError: If the admission number is taken.
        """
        availability = await self.check_admission_number(
            school_id, admission_number, exclude_student_id
        )
        if availability == Availability.CONFLICT:
            logger.info(
                "Admission number %s already taken in school %s",
                admission_number,
                school_id,
            )
            raise ConflictError("Admission number already exists in this school")
