# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student account provisioning across the profile and identity services.

No transaction spans both services, so provisioning runs as a saga:

1. Precondition: the admission number must be free in the school
2. Create the login identity in the identity service
3. Write the student and its children in one local transaction
4. If step 3 fails, delete the identity created in step 2 (compensation)
5. After commit, send the credentials notification once, best effort

The identity is created before the local commit because deleting a remote
identity is cheap and idempotent while undoing a committed multi-table
write is not attempted at all.

Two flows share the saga:
- provision_new_student: a new student is created directly as PROVISIONED
- accept_application: a PENDING application becomes ACCEPTED; an identity
  already linked to the record is reused, never duplicated

Example:
    >>> service = ProvisioningService(writer, checker, identity, dispatcher, students)
    >>> result = await service.provision_new_student(request, context)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.domains.provisioning.credentials import Credentials, generate_credentials
from src.domains.provisioning.errors import (
    ConflictError,
    ErrorKind,
    NotFoundError,
    ProvisioningError,
    ValidationFailedError,
    classify_error,
)
from src.domains.provisioning.precondition import UniquenessChecker
from src.domains.provisioning.saga import ProvisioningSaga, SagaState
from src.domains.provisioning.writer import AcceptanceRecord, NewStudentRecord, StudentWriter
from src.domains.student.mapping import (
    address_dict,
    contact_info_dict,
    document_records,
    enrollment_record,
    guardian_records,
)
from src.infrastructure.database.models import Student, StudentStatus
from src.infrastructure.identity import Identity, IdentityAttributes, IdentityServiceClient
from src.infrastructure.notifications import (
    ChannelResult,
    CredentialsNotification,
    NotificationDispatcher,
)
from src.models.student import AcceptApplicationRequest, CreateStudentRequest

if TYPE_CHECKING:
    from src.domains.student.service import StudentService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchoolContext:
    """School and acting user of a request.

    Attributes:
        school_id: School (tenant) the request is scoped to.
        user_id: Acting user, if known.
    """

    school_id: str
    user_id: str | None = None


@dataclass
class ProvisioningResult:
    """Successful provisioning outcome.

    Attributes:
        student: Committed student with relationships loaded.
        identity: Identity linked to the student.
        saga_state: Final saga state.
        notification: Outcome of the credentials notification, None when
            no notification was due.
    """

    student: Student
    identity: Identity
    saga_state: SagaState
    notification: ChannelResult | None = None

    @property
    def credentials_sent(self) -> bool:
        return self.notification is not None and self.notification.is_sent


class ProvisioningService:
    """Coordinator for the provisioning saga.

    All collaborators are passed in; the service holds no connection or
    client of its own.

    Attributes:
        _writer: Transactional writer for student records.
        _checker: Admission number precondition checker.
        _identity: Identity service client.
        _dispatcher: Best-effort notification dispatcher.
        _students: Student read service.
        _role_name: Role assigned to new identities.
    """

    def __init__(
        self,
        writer: StudentWriter,
        checker: UniquenessChecker,
        identity_client: IdentityServiceClient,
        dispatcher: NotificationDispatcher,
        students: "StudentService",
        student_role_name: str = "STUDENT",
    ) -> None:
        """Initialize the provisioning service.

        Args:
            writer: Transactional writer for student records.
            checker: Admission number precondition checker.
            identity_client: Identity service client.
            dispatcher: Best-effort notification dispatcher.
            students: Student read service.
            student_role_name: Role assigned to new identities.
        """
        self._writer = writer
        self._checker = checker
        self._identity = identity_client
        self._dispatcher = dispatcher
        self._students = students
        self._role_name = student_role_name

    async def provision_new_student(
        self,
        request: CreateStudentRequest,
        context: SchoolContext,
    ) -> ProvisioningResult:
        """Create a student with a login and an enrollment.

        Args:
            request: Validated student request.
            context: School and acting user.

        Returns:
            ProvisioningResult with the PROVISIONED student.

        Raises:
            ProvisioningError: Classified failure. When the local write fails
                after the identity was created, the identity is deleted
                first and the local-write failure is raised.
        """
        saga = ProvisioningSaga("provision_new_student")
        try:
            self._validate_context(context)

            saga.advance(SagaState.CHECKING_PRECONDITION)
            await self._checker.ensure_admission_number_available(
                context.school_id, request.admission_number
            )

            saga.advance(SagaState.CREATING_IDENTITY)
            credentials = generate_credentials(
                request.first_name, request.last_name, request.admission_number
            )
            identity = await self._identity.create_identity(
                IdentityAttributes(
                    username=credentials.username,
                    password=credentials.password,
                    first_name=request.first_name,
                    last_name=request.last_name,
                    school_id=context.school_id,
                    role_name=self._role_name,
                    email=request.contact_info.email,
                    phone=request.contact_info.primary_phone,
                )
            )
            saga.record_identity(identity.id)

            saga.advance(SagaState.WRITING_LOCAL)
            student = await self._writer.create_student(
                NewStudentRecord(
                    school_id=context.school_id,
                    user_id=identity.id,
                    first_name=request.first_name,
                    last_name=request.last_name,
                    admission_number=request.admission_number,
                    admission_date=request.admission_date,
                    date_of_birth=request.date_of_birth,
                    gender=request.gender,
                    address=address_dict(request.address),
                    contact_info=contact_info_dict(request.contact_info),
                    guardians=guardian_records(request.parent_info),
                    documents=document_records(request.documents),
                    enrollment=enrollment_record(request),
                    created_by=context.user_id,
                )
            )
            saga.advance(SagaState.COMMITTED)
        except asyncio.CancelledError:
            await self._abandon(saga)
            raise
        except Exception as e:
            raise await self._fail(saga, e) from e

        logger.info(
            "Student provisioned: %s (identity=%s, school=%s)",
            student.id,
            identity.id,
            context.school_id,
        )
        notification = await self._notify(saga, student, credentials)
        return ProvisioningResult(student, identity, saga.state, notification)

    async def accept_application(
        self,
        student_id: str,
        request: AcceptApplicationRequest,
        context: SchoolContext,
    ) -> ProvisioningResult:
        """Accept a pending application and give the student a login.

        Args:
            student_id: Pending student to accept.
            request: Admission and enrollment fields.
            context: School and acting user.

        Returns:
            ProvisioningResult with the ACCEPTED student.

        Raises:
            ProvisioningError: NOT_FOUND if the student is absent or in
                another school, CONFLICT if it is not pending or the
                admission number is taken, otherwise the classified
                failure. An identity created by this call is deleted when
                the local write fails.
        """
        saga = ProvisioningSaga("accept_application")
        credentials: Credentials | None = None
        try:
            self._validate_context(context)
            student = await self._students.find_student(student_id, context.school_id)
            if student is None:
                raise NotFoundError("Student application not found")
            if student.status != StudentStatus.PENDING.value:
                raise ConflictError(
                    f"Student application is not pending (status: {student.status})"
                )

            saga.advance(SagaState.CHECKING_PRECONDITION)
            await self._checker.ensure_admission_number_available(
                context.school_id,
                request.admission_number,
                exclude_student_id=student.id,
            )

            saga.advance(SagaState.CREATING_IDENTITY)
            if student.user_id:
                logger.info(
                    "Reusing identity %s for student %s", student.user_id, student.id
                )
                identity = Identity(
                    id=student.user_id,
                    username=None,
                    email=student.email,
                    school_id=context.school_id,
                )
            else:
                credentials = generate_credentials(
                    student.first_name, student.last_name, request.admission_number
                )
                identity = await self._identity.create_identity(
                    IdentityAttributes(
                        username=credentials.username,
                        password=credentials.password,
                        first_name=student.first_name,
                        last_name=student.last_name,
                        school_id=context.school_id,
                        role_name=self._role_name,
                        email=student.email,
                        phone=student.primary_phone,
                    )
                )
                saga.record_identity(identity.id)

            saga.advance(SagaState.WRITING_LOCAL)
            student = await self._writer.accept_application(
                student.id,
                context.school_id,
                AcceptanceRecord(
                    admission_number=request.admission_number,
                    admission_date=request.admission_date,
                    enrollment=enrollment_record(request),
                ),
                user_id=identity.id,
                accepted_by=context.user_id,
            )
            saga.advance(SagaState.COMMITTED)
        except asyncio.CancelledError:
            await self._abandon(saga)
            raise
        except Exception as e:
            raise await self._fail(saga, e) from e

        logger.info(
            "Application accepted: %s (identity=%s, school=%s)",
            student.id,
            identity.id,
            context.school_id,
        )
        notification = None
        if credentials is not None:
            notification = await self._notify(saga, student, credentials)
        return ProvisioningResult(student, identity, saga.state, notification)

    @staticmethod
    def _validate_context(context: SchoolContext) -> None:
        if not context.school_id or not context.school_id.strip():
            raise ValidationFailedError("School context is required")

    async def _fail(self, saga: ProvisioningSaga, exc: Exception) -> ProvisioningError:
        """Compensate if needed, close the saga and classify the failure."""
        error = classify_error(exc)
        failed_in = saga.state
        if saga.needs_compensation:
            await self._compensate(saga)
        saga.fail()

        if error.kind == ErrorKind.INTERNAL:
            logger.error(
                "Saga %s failed in state %s, ended %s",
                saga.operation,
                failed_in.value,
                saga.state.value,
                exc_info=exc,
            )
        else:
            logger.warning(
                "Saga %s failed in state %s, ended %s: %s (%s)",
                saga.operation,
                failed_in.value,
                saga.state.value,
                error.kind.value,
                error.message,
            )
        return error

    async def _abandon(self, saga: ProvisioningSaga) -> None:
        """Close a cancelled saga, deleting any identity it created.

        The delete is shielded so a second cancellation cannot interrupt it.
        """
        logger.warning(
            "Saga %s cancelled in state %s", saga.operation, saga.state.value
        )
        if saga.needs_compensation:
            await asyncio.shield(self._compensate(saga))
        saga.fail()

    async def _compensate(self, saga: ProvisioningSaga) -> None:
        """Delete the identity created by this saga.

        A failed delete leaves an orphaned identity. It is logged and does
        not replace the failure being reported.
        """
        identity_id = saga.created_identity_id
        saga.advance(SagaState.COMPENSATING)
        try:
            await self._identity.delete_identity(identity_id)
        except Exception:
            saga.compensation_succeeded = False
            logger.error(
                "Compensation failed, identity %s is orphaned", identity_id, exc_info=True
            )
            return

        saga.compensation_succeeded = True
        logger.info("Compensated identity %s", identity_id)

    async def _notify(
        self,
        saga: ProvisioningSaga,
        student: Student,
        credentials: Credentials,
    ) -> ChannelResult | None:
        """Send the credentials notification once. Never raises."""
        saga.advance(SagaState.NOTIFYING)
        try:
            return await self._dispatcher.notify_best_effort(
                CredentialsNotification(
                    recipient_email=student.email,
                    student_name=student.full_name,
                    username=credentials.username,
                    password=credentials.password,
                    student_id=student.id,
                    school_id=student.school_id,
                )
            )
        except Exception as e:
            logger.error(
                "Credentials notification for student %s to %s failed: %s",
                student.id,
                student.email,
                type(e).__name__,
            )
            return None
