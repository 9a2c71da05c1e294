# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ORM models for the profile database."""

from src.infrastructure.database.models.base import Base
from src.infrastructure.database.models.student import (
    Document,
    Guardian,
    GuardianRelation,
    Student,
    StudentEnrollment,
    StudentGuardian,
    StudentStatus,
)

__all__ = [
    "Base",
    "Document",
    "Guardian",
    "GuardianRelation",
    "Student",
    "StudentEnrollment",
    "StudentGuardian",
    "StudentStatus",
]
