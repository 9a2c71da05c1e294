# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student profile models.

A Student owns its guardian links, enrollments and documents. None of the
child rows are created or mutated independently of their Student; all
multi-row writes go through StudentWriter.

The (school_id, admission_number) unique constraint is the single source of
truth for admission number uniqueness. Application-level checks are only an
early exit.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, IdMixin, TimestampMixin


class StudentStatus(str, Enum):
    """Student lifecycle status."""

    PENDING = "PENDING"
    PROVISIONED = "PROVISIONED"
    ACCEPTED = "ACCEPTED"


class GuardianRelation(str, Enum):
    """Relation of a guardian to a student."""

    FATHER = "FATHER"
    MOTHER = "MOTHER"
    GUARDIAN = "GUARDIAN"


class Student(IdMixin, TimestampMixin, Base):
    """Student profile record.

    Attributes:
        school_id: Owning school (tenant).
        user_id: Identity service user id, set once the login exists.
        status: Lifecycle status.
        admission_number: Natural key, unique within a school.
    """

    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint(
            "school_id",
            "admission_number",
            name="uq_students_school_admission_number",
        ),
        UniqueConstraint("user_id", name="uq_students_user_id"),
    )

    school_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=StudentStatus.PENDING.value,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    admission_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    admission_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    address: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    contact_info: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    accepted_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    guardian_links: Mapped[list["StudentGuardian"]] = relationship(
        back_populates="student",
        cascade="all, delete-orphan",
    )
    enrollments: Mapped[list["StudentEnrollment"]] = relationship(
        back_populates="student",
        cascade="all, delete-orphan",
    )
    documents: Mapped[list["Document"]] = relationship(
        back_populates="student",
        cascade="all, delete-orphan",
    )

    @property
    def email(self) -> str | None:
        """Student email from contact info."""
        return (self.contact_info or {}).get("email")

    @property
    def primary_phone(self) -> str | None:
        """Student primary phone from contact info."""
        return (self.contact_info or {}).get("primary_phone")

    @property
    def full_name(self) -> str:
        """Student display name."""
        return f"{self.first_name} {self.last_name}".strip()


class Guardian(IdMixin, TimestampMixin, Base):
    """Parent or guardian of one or more students."""

    __tablename__ = "guardians"

    school_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    student_links: Mapped[list["StudentGuardian"]] = relationship(
        back_populates="guardian",
    )


class StudentGuardian(IdMixin, Base):
    """Junction between students and guardians."""

    __tablename__ = "student_guardians"
    __table_args__ = (
        UniqueConstraint("student_id", "guardian_id", name="uq_student_guardians_pair"),
    )

    student_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    guardian_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("guardians.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    relation: Mapped[str] = mapped_column(String(20), nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    student: Mapped[Student] = relationship(back_populates="guardian_links")
    guardian: Mapped[Guardian] = relationship(back_populates="student_links")


class StudentEnrollment(IdMixin, TimestampMixin, Base):
    """Enrollment of a student in a class section for an academic year."""

    __tablename__ = "student_enrollments"
    __table_args__ = (
        UniqueConstraint(
            "student_id",
            "academic_year",
            name="uq_student_enrollments_student_year",
        ),
    )

    student_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    school_id: Mapped[str] = mapped_column(String(36), nullable=False)
    class_id: Mapped[str] = mapped_column(String(36), nullable=False)
    section_id: Mapped[str] = mapped_column(String(36), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    roll_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="ACTIVE")

    student: Mapped[Student] = relationship(back_populates="enrollments")


class Document(IdMixin, TimestampMixin, Base):
    """Uploaded document attached to a student profile."""

    __tablename__ = "documents"

    student_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    school_id: Mapped[str] = mapped_column(String(36), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    document_type: Mapped[str] = mapped_column(String(50), nullable=False)
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    uploaded_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    student: Mapped[Student] = relationship(back_populates="documents")
