# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Provisioning error taxonomy and classifier.

Every failure that leaves the provisioning domain is a ProvisioningError
carrying one ErrorKind and a message that is safe to show to a caller.
Low-level failures (store errors, identity service errors, schema
validation errors) are translated by classify_error() so the coordinator
and the HTTP boundary never depend on a storage engine's or a transport's
error vocabulary.

Example:
    >>> try:
    ...     await writer.create_student(record)
    ... except Exception as e:
    ...     raise classify_error(e) from e
"""

from enum import Enum

from pydantic import ValidationError

from src.domains.provisioning.writer import (
    RecordStateChanged,
    ReferencedRowMissing,
    StoreError,
    UniqueConstraintViolation,
)
from src.infrastructure.identity import IdentityServiceError


class ErrorKind(str, Enum):
    """Classified failure kind."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    REMOTE_UNAVAILABLE = "REMOTE_UNAVAILABLE"
    INTERNAL = "INTERNAL"


INTERNAL_ERROR_MESSAGE = "An unexpected error occurred"


class ProvisioningError(Exception):
    """Base exception for provisioning errors.

    Attributes:
        kind: Classified failure kind.
        message: Message safe to return to the caller.
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailedError(ProvisioningError):
    """Raised when input is malformed or missing."""

    kind = ErrorKind.VALIDATION_FAILED


class ForbiddenError(ProvisioningError):
    """Raised when the caller is not authorized."""

    kind = ErrorKind.FORBIDDEN


class ConflictError(ProvisioningError):
    """Raised when a natural key is already taken or a record changed state."""

    kind = ErrorKind.CONFLICT


class NotFoundError(ProvisioningError):
    """Raised when a referenced record is absent or outside the school."""

    kind = ErrorKind.NOT_FOUND


class RemoteUnavailableError(ProvisioningError):
    """Raised when the identity service is unreachable or timed out."""

    kind = ErrorKind.REMOTE_UNAVAILABLE


class InternalError(ProvisioningError):
    """Raised for unclassified failures."""

    kind = ErrorKind.INTERNAL

    def __init__(self, message: str = INTERNAL_ERROR_MESSAGE) -> None:
        super().__init__(message)


_ERRORS_BY_KIND: dict[ErrorKind, type[ProvisioningError]] = {
    ErrorKind.VALIDATION_FAILED: ValidationFailedError,
    ErrorKind.FORBIDDEN: ForbiddenError,
    ErrorKind.CONFLICT: ConflictError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.REMOTE_UNAVAILABLE: RemoteUnavailableError,
    ErrorKind.INTERNAL: InternalError,
}


def error_for_kind(kind: ErrorKind, message: str) -> ProvisioningError:
    """Build the ProvisioningError subclass for a kind."""
    return _ERRORS_BY_KIND[kind](message)


def classify_error(exc: BaseException) -> ProvisioningError:
    """Map a low-level failure into the provisioning error taxonomy.

    Args:
        exc: Exception raised by a store, the identity client, schema
            validation or anything else.

    Returns:
        ProvisioningError with a safe message. Unclassified failures get
        the generic internal message and never the original text.
    """
    if isinstance(exc, ProvisioningError):
        return exc

    if isinstance(exc, UniqueConstraintViolation):
        return ConflictError(
            f"A record with this {exc.field or 'value'} already exists"
        )
    if isinstance(exc, RecordStateChanged):
        return ConflictError(str(exc))
    if isinstance(exc, ReferencedRowMissing):
        return NotFoundError("A referenced record does not exist")
    if isinstance(exc, StoreError):
        return InternalError()

    if isinstance(exc, IdentityServiceError):
        kind = ErrorKind(exc.kind.value)
        if kind == ErrorKind.INTERNAL:
            return InternalError()
        return error_for_kind(kind, exc.message)

    if isinstance(exc, ValidationError):
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) for error in exc.errors()
        )
        return ValidationFailedError(f"Invalid input: {fields}" if fields else "Invalid input")

    return InternalError()
