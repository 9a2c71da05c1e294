# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for provisioning error classification."""

import pytest
from pydantic import ValidationError

from src.domains.provisioning.errors import (
    INTERNAL_ERROR_MESSAGE,
    ConflictError,
    ErrorKind,
    InternalError,
    NotFoundError,
    classify_error,
)
from src.domains.provisioning.writer import (
    RecordStateChanged,
    ReferencedRowMissing,
    StoreError,
    UniqueConstraintViolation,
)
from src.infrastructure.identity import IdentityErrorKind, IdentityServiceError
from src.models.student import AcceptApplicationRequest


class TestClassifyStoreErrors:
    """Tests for store error translation."""

    def test_unique_violation_is_conflict_naming_field(self):
        error = classify_error(
            UniqueConstraintViolation("Unique constraint violated", field="admission number")
        )

        assert isinstance(error, ConflictError)
        assert error.kind == ErrorKind.CONFLICT
        assert error.message == "A record with this admission number already exists"

    def test_unique_violation_without_field(self):
        error = classify_error(UniqueConstraintViolation("Unique constraint violated"))

        assert error.message == "A record with this value already exists"

    def test_record_state_changed_is_conflict(self):
        error = classify_error(RecordStateChanged("Student application is no longer pending"))

        assert error.kind == ErrorKind.CONFLICT
        assert "no longer pending" in error.message

    def test_referenced_row_missing_is_not_found(self):
        error = classify_error(ReferencedRowMissing("Referenced row does not exist"))

        assert isinstance(error, NotFoundError)

    def test_other_store_error_is_generic_internal(self):
        error = classify_error(StoreError("connection reset by peer at 10.0.0.3"))

        assert isinstance(error, InternalError)
        assert error.message == INTERNAL_ERROR_MESSAGE


class TestClassifyIdentityErrors:
    """Tests for identity service error translation."""

    @pytest.mark.parametrize(
        "kind,expected",
        [
            (IdentityErrorKind.CONFLICT, ErrorKind.CONFLICT),
            (IdentityErrorKind.VALIDATION_FAILED, ErrorKind.VALIDATION_FAILED),
            (IdentityErrorKind.FORBIDDEN, ErrorKind.FORBIDDEN),
            (IdentityErrorKind.NOT_FOUND, ErrorKind.NOT_FOUND),
            (IdentityErrorKind.REMOTE_UNAVAILABLE, ErrorKind.REMOTE_UNAVAILABLE),
        ],
    )
    def test_kind_is_preserved(self, kind, expected):
        error = classify_error(IdentityServiceError(kind, "Username already exists", 409))

        assert error.kind == expected
        assert error.message == "Username already exists"

    def test_internal_identity_error_hides_message(self):
        error = classify_error(
            IdentityServiceError(IdentityErrorKind.INTERNAL, "stack trace at line 42", 500)
        )

        assert error.kind == ErrorKind.INTERNAL
        assert error.message == INTERNAL_ERROR_MESSAGE


class TestClassifyOther:
    """Tests for validation and unclassified errors."""

    def test_pydantic_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            AcceptApplicationRequest(admission_number="", class_id="c", section_id="s")

        error = classify_error(exc_info.value)

        assert error.kind == ErrorKind.VALIDATION_FAILED
        assert "admission_number" in error.message
        assert "academic_year" in error.message

    def test_provisioning_error_passes_through(self):
        original = ConflictError("Admission number already exists in this school")

        assert classify_error(original) is original

    def test_unknown_exception_never_leaks_message(self):
        error = classify_error(RuntimeError("password=hunter2"))

        assert error.kind == ErrorKind.INTERNAL
        assert "hunter2" not in error.message
