# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

Long-lived components (database, identity client, notification dispatcher,
file storage) are created in the application lifespan and stored on
app.state. Services are cheap and built per request from those
components. There are no module-level singletons.

The upstream gateway authenticates callers and forwards the school and
acting user as trusted headers.

Example:
    @router.post("/students")
    async def create_student(
        context: SchoolContext = Depends(get_school_context),
        service: ProvisioningService = Depends(get_provisioning_service),
    ):
        ...
"""

from typing import Annotated

from fastapi import Depends, Header, Request

from src.core.config import Settings
from src.domains.provisioning import (
    ProvisioningService,
    SchoolContext,
    StudentWriter,
    UniquenessChecker,
    ValidationFailedError,
)
from src.domains.student import StudentService
from src.infrastructure.database import ProfileDatabase
from src.infrastructure.identity import IdentityServiceClient
from src.infrastructure.notifications import NotificationDispatcher
from src.infrastructure.storage import FileStorage

SCHOOL_HEADER = "X-School-Id"
USER_HEADER = "X-User-Id"


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_database(request: Request) -> ProfileDatabase:
    """Get the profile database from application state."""
    return request.app.state.database


def get_identity_client(request: Request) -> IdentityServiceClient:
    """Get the identity service client from application state."""
    return request.app.state.identity_client


def get_notification_dispatcher(request: Request) -> NotificationDispatcher:
    """Get the notification dispatcher from application state."""
    return request.app.state.notification_dispatcher


def get_file_storage(request: Request) -> FileStorage:
    """Get the file storage backend from application state."""
    return request.app.state.file_storage


def get_school_context(
    x_school_id: Annotated[str | None, Header(alias=SCHOOL_HEADER)] = None,
    x_user_id: Annotated[str | None, Header(alias=USER_HEADER)] = None,
) -> SchoolContext:
    """Resolve the school and acting user forwarded by the gateway.

    Raises:
        ValidationFailedError: If the school header is missing.
    """
    if not x_school_id or not x_school_id.strip():
        raise ValidationFailedError(f"{SCHOOL_HEADER} header is required")
    return SchoolContext(school_id=x_school_id.strip(), user_id=x_user_id or None)


def get_student_writer(
    database: Annotated[ProfileDatabase, Depends(get_database)],
) -> StudentWriter:
    return StudentWriter(database.sessionmaker)


def get_student_service(
    database: Annotated[ProfileDatabase, Depends(get_database)],
    writer: Annotated[StudentWriter, Depends(get_student_writer)],
) -> StudentService:
    return StudentService(database.sessionmaker, writer)


def get_provisioning_service(
    database: Annotated[ProfileDatabase, Depends(get_database)],
    writer: Annotated[StudentWriter, Depends(get_student_writer)],
    students: Annotated[StudentService, Depends(get_student_service)],
    identity_client: Annotated[IdentityServiceClient, Depends(get_identity_client)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_notification_dispatcher)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ProvisioningService:
    """Build the provisioning coordinator for a request."""
    return ProvisioningService(
        writer=writer,
        checker=UniquenessChecker(database.sessionmaker),
        identity_client=identity_client,
        dispatcher=dispatcher,
        students=students,
        student_role_name=settings.identity_service.student_role_name,
    )


SchoolContextDep = Annotated[SchoolContext, Depends(get_school_context)]
StudentServiceDep = Annotated[StudentService, Depends(get_student_service)]
ProvisioningServiceDep = Annotated[ProvisioningService, Depends(get_provisioning_service)]
FileStorageDep = Annotated[FileStorage, Depends(get_file_storage)]
DatabaseDep = Annotated[ProfileDatabase, Depends(get_database)]
