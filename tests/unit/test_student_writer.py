# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for StudentWriter, UniquenessChecker and StudentService.

Run against a file-backed SQLite database so constraint violations and
transaction rollbacks behave like the real store.
"""

from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from src.domains.provisioning.errors import ConflictError, NotFoundError
from src.domains.provisioning.precondition import Availability, UniquenessChecker
from src.domains.provisioning.writer import (
    AcceptanceRecord,
    DocumentRecord,
    EnrollmentRecord,
    GuardianRecord,
    NewApplicationRecord,
    NewStudentRecord,
    RecordStateChanged,
    StudentWriter,
    UniqueConstraintViolation,
)
from src.domains.student import StudentService
from src.infrastructure.database.models import (
    Document,
    Guardian,
    GuardianRelation,
    Student,
    StudentEnrollment,
    StudentStatus,
)
from src.models.student import SubmitApplicationRequest

SCHOOL_ID = "school-1"
OTHER_SCHOOL_ID = "school-2"


def _student_record(admission_number: str = "A-100", school_id: str = SCHOOL_ID, **overrides):
    values = dict(
        school_id=school_id,
        user_id=str(uuid4()),
        first_name="Ana",
        last_name="Garcia",
        admission_number=admission_number,
        admission_date=date(2025, 6, 1),
        contact_info={"email": "ana@example.com"},
        guardians=(
            GuardianRecord("Luis Garcia", GuardianRelation.FATHER, phone="+1555", is_primary=True),
            GuardianRecord("Marta Garcia", GuardianRelation.MOTHER),
        ),
        documents=(
            DocumentRecord("Birth certificate", "BIRTH_CERTIFICATE", "https://files/birth.pdf"),
        ),
        enrollment=EnrollmentRecord("class-4", "section-a", "2025-2026", roll_number="7"),
        created_by="admin-1",
    )
    values.update(overrides)
    return NewStudentRecord(**values)


def _application_record(school_id: str = SCHOOL_ID) -> NewApplicationRecord:
    return NewApplicationRecord(
        school_id=school_id,
        first_name="Ben",
        last_name="Okafor",
        contact_info={"email": "ben@example.com"},
        guardians=(GuardianRecord("Ada Okafor", GuardianRelation.GUARDIAN, is_primary=True),),
    )


def _acceptance(admission_number: str = "B-200") -> AcceptanceRecord:
    return AcceptanceRecord(
        admission_number=admission_number,
        enrollment=EnrollmentRecord("class-2", "section-b", "2025-2026"),
    )


async def _count(database, model) -> int:
    async with database.session() as session:
        return await session.scalar(select(func.count()).select_from(model))


@pytest.fixture
def writer(database):
    """Create writer bound to the test database."""
    return StudentWriter(database.sessionmaker)


@pytest.fixture
def checker(database):
    """Create uniqueness checker bound to the test database."""
    return UniquenessChecker(database.sessionmaker)


@pytest.fixture
def student_service(database, writer):
    """Create student service bound to the test database."""
    return StudentService(database.sessionmaker, writer)


class TestCreateStudent:
    """Tests for creating provisioned students."""

    @pytest.mark.asyncio
    async def test_create_writes_student_and_children(self, writer):
        student = await writer.create_student(_student_record())

        assert student.status == StudentStatus.PROVISIONED.value
        assert student.admission_number == "A-100"
        links = {link.relation: link for link in student.guardian_links}
        assert set(links) == {"FATHER", "MOTHER"}
        assert links["FATHER"].guardian.full_name == "Luis Garcia"
        assert links["FATHER"].is_primary
        assert not links["MOTHER"].is_primary
        assert len(student.enrollments) == 1
        assert student.enrollments[0].class_id == "class-4"
        assert student.enrollments[0].school_id == SCHOOL_ID
        assert [d.name for d in student.documents] == ["Birth certificate"]

    @pytest.mark.asyncio
    async def test_duplicate_admission_number_rolls_back_everything(self, writer, database):
        await writer.create_student(_student_record())

        with pytest.raises(UniqueConstraintViolation) as exc_info:
            await writer.create_student(_student_record(first_name="Other"))

        assert exc_info.value.field == "admission number"
        assert await _count(database, Student) == 1
        assert await _count(database, Guardian) == 2
        assert await _count(database, StudentEnrollment) == 1
        assert await _count(database, Document) == 1

    @pytest.mark.asyncio
    async def test_same_admission_number_in_other_school_is_allowed(self, writer):
        await writer.create_student(_student_record())

        other = await writer.create_student(_student_record(school_id=OTHER_SCHOOL_ID))

        assert other.school_id == OTHER_SCHOOL_ID

    @pytest.mark.asyncio
    async def test_duplicate_user_id_is_violation(self, writer):
        first = await writer.create_student(_student_record())

        with pytest.raises(UniqueConstraintViolation) as exc_info:
            await writer.create_student(
                _student_record(admission_number="A-101", user_id=first.user_id)
            )

        assert exc_info.value.field == "user id"


class TestApplications:
    """Tests for submitting and accepting applications."""

    @pytest.mark.asyncio
    async def test_submit_creates_pending_without_login(self, writer):
        student = await writer.submit_application(_application_record())

        assert student.status == StudentStatus.PENDING.value
        assert student.user_id is None
        assert student.admission_number is None
        assert student.enrollments == []
        assert student.guardian_links[0].relation == "GUARDIAN"

    @pytest.mark.asyncio
    async def test_accept_sets_status_login_and_enrollment(self, writer):
        pending = await writer.submit_application(_application_record())

        accepted = await writer.accept_application(
            pending.id, SCHOOL_ID, _acceptance(), user_id="user-9", accepted_by="admin-1"
        )

        assert accepted.status == StudentStatus.ACCEPTED.value
        assert accepted.user_id == "user-9"
        assert accepted.admission_number == "B-200"
        assert accepted.accepted_by == "admin-1"
        assert accepted.accepted_at is not None
        assert [e.class_id for e in accepted.enrollments] == ["class-2"]

    @pytest.mark.asyncio
    async def test_second_accept_loses_the_guard(self, writer, database):
        pending = await writer.submit_application(_application_record())
        await writer.accept_application(pending.id, SCHOOL_ID, _acceptance(), user_id="user-9")

        with pytest.raises(RecordStateChanged):
            await writer.accept_application(
                pending.id, SCHOOL_ID, _acceptance("B-201"), user_id="user-10"
            )

        assert await _count(database, StudentEnrollment) == 1

    @pytest.mark.asyncio
    async def test_accept_in_other_school_is_rejected(self, writer):
        pending = await writer.submit_application(_application_record())

        with pytest.raises(RecordStateChanged):
            await writer.accept_application(
                pending.id, OTHER_SCHOOL_ID, _acceptance(), user_id="user-9"
            )

    @pytest.mark.asyncio
    async def test_accept_with_taken_admission_number_rolls_back(self, writer, student_service):
        await writer.create_student(_student_record(admission_number="B-200"))
        pending = await writer.submit_application(_application_record())

        with pytest.raises(UniqueConstraintViolation):
            await writer.accept_application(pending.id, SCHOOL_ID, _acceptance(), user_id="user-9")

        reloaded = await student_service.get_student(pending.id, SCHOOL_ID)
        assert reloaded.status == StudentStatus.PENDING.value
        assert reloaded.user_id is None
        assert reloaded.enrollments == []


class TestUniquenessChecker:
    """Tests for the admission number precondition."""

    @pytest.mark.asyncio
    async def test_free_number_is_available(self, checker):
        assert await checker.check_admission_number(SCHOOL_ID, "A-100") == Availability.AVAILABLE

    @pytest.mark.asyncio
    async def test_taken_number_is_conflict_in_same_school_only(self, checker, writer):
        await writer.create_student(_student_record())

        assert await checker.check_admission_number(SCHOOL_ID, "A-100") == Availability.CONFLICT
        assert (
            await checker.check_admission_number(OTHER_SCHOOL_ID, "A-100")
            == Availability.AVAILABLE
        )

    @pytest.mark.asyncio
    async def test_own_number_is_excluded(self, checker, writer):
        student = await writer.create_student(_student_record())

        availability = await checker.check_admission_number(
            SCHOOL_ID, "A-100", exclude_student_id=student.id
        )

        assert availability == Availability.AVAILABLE

    @pytest.mark.asyncio
    async def test_ensure_raises_conflict(self, checker, writer):
        await writer.create_student(_student_record())

        with pytest.raises(ConflictError, match="Admission number already exists"):
            await checker.ensure_admission_number_available(SCHOOL_ID, "A-100")


class TestStudentService:
    """Tests for school-scoped reads and intake."""

    @pytest.mark.asyncio
    async def test_get_student_in_other_school_is_not_found(self, writer, student_service):
        student = await writer.create_student(_student_record())

        with pytest.raises(NotFoundError):
            await student_service.get_student(student.id, OTHER_SCHOOL_ID)

    @pytest.mark.asyncio
    async def test_list_students_filters_by_school_and_status(self, writer, student_service):
        await writer.create_student(_student_record())
        await writer.submit_application(_application_record())
        await writer.submit_application(_application_record(school_id=OTHER_SCHOOL_ID))

        all_students, total = await student_service.list_students(SCHOOL_ID)
        pending, pending_total = await student_service.list_students(
            SCHOOL_ID, status=StudentStatus.PENDING
        )

        assert total == 2
        assert len(all_students) == 2
        assert pending_total == 1
        assert pending[0].first_name == "Ben"

    @pytest.mark.asyncio
    async def test_submit_application_maps_request(self, student_service):
        request = SubmitApplicationRequest.model_validate(
            {
                "first_name": "Ben",
                "last_name": "Okafor",
                "contact_info": {"email": "ben@example.com"},
                "parent_info": {"mother_name": "Ada Okafor", "phone": "+1555"},
            }
        )

        student = await student_service.submit_application(
            request, SCHOOL_ID, created_by="admin-1"
        )

        assert student.status == StudentStatus.PENDING.value
        assert student.contact_info == {"email": "ben@example.com"}
        assert student.created_by == "admin-1"
        link = student.guardian_links[0]
        assert link.relation == "MOTHER"
        assert link.is_primary
        assert link.guardian.phone == "+1555"
