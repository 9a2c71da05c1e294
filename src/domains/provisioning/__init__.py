# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student account provisioning domain.

This package coordinates creating a student's profile records and login
identity as a saga with compensation.

Example:
    from src.domains.provisioning import ProvisioningService, SchoolContext

    result = await service.provision_new_student(request, SchoolContext(school_id))
"""

from src.domains.provisioning.errors import (
    ConflictError,
    ErrorKind,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ProvisioningError,
    RemoteUnavailableError,
    ValidationFailedError,
    classify_error,
)
from src.domains.provisioning.precondition import Availability, UniquenessChecker
from src.domains.provisioning.saga import InvalidSagaTransition, ProvisioningSaga, SagaState
from src.domains.provisioning.service import (
    ProvisioningResult,
    ProvisioningService,
    SchoolContext,
)
from src.domains.provisioning.writer import (
    RecordStateChanged,
    ReferencedRowMissing,
    StoreError,
    StudentWriter,
    UniqueConstraintViolation,
)

__all__ = [
    # Service
    "ProvisioningService",
    "ProvisioningResult",
    "SchoolContext",
    # Saga
    "InvalidSagaTransition",
    "ProvisioningSaga",
    "SagaState",
    # Collaborators
    "Availability",
    "StudentWriter",
    "UniquenessChecker",
    # Errors
    "ConflictError",
    "ErrorKind",
    "ForbiddenError",
    "InternalError",
    "NotFoundError",
    "ProvisioningError",
    "RecordStateChanged",
    "ReferencedRowMissing",
    "RemoteUnavailableError",
    "StoreError",
    "UniqueConstraintViolation",
    "ValidationFailedError",
    "classify_error",
]
