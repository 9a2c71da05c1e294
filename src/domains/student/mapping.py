# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Conversion of validated API requests into writer records."""

from typing import Any

from src.domains.provisioning.writer import DocumentRecord, EnrollmentRecord, GuardianRecord
from src.infrastructure.database.models import GuardianRelation
from src.models.student import (
    AddressSchema,
    ContactInfoSchema,
    DocumentInput,
    ParentInfoSchema,
)


def guardian_records(parent_info: ParentInfoSchema) -> tuple[GuardianRecord, ...]:
    """Build guardian records from parent info.

    The first named guardian is primary and carries the parent phone and
    email.
    """
    named = [
        (parent_info.father_name, GuardianRelation.FATHER),
        (parent_info.mother_name, GuardianRelation.MOTHER),
        (parent_info.guardian_name, GuardianRelation.GUARDIAN),
    ]
    records: list[GuardianRecord] = []
    for name, relation in named:
        if not name or not name.strip():
            continue
        is_primary = not records
        records.append(
            GuardianRecord(
                full_name=name.strip(),
                relation=relation,
                phone=parent_info.phone if is_primary else None,
                email=str(parent_info.email) if is_primary and parent_info.email else None,
                is_primary=is_primary,
            )
        )
    return tuple(records)


def document_records(documents: list[DocumentInput]) -> tuple[DocumentRecord, ...]:
    """Build document records from uploaded document references."""
    return tuple(
        DocumentRecord(
            name=d.name,
            document_type=d.document_type,
            url=d.url,
            file_name=d.file_name,
            mime_type=d.mime_type,
            size=d.size,
        )
        for d in documents
    )


def enrollment_record(request: Any) -> EnrollmentRecord:
    """Build an enrollment record from a request carrying enrollment fields."""
    return EnrollmentRecord(
        class_id=request.class_id,
        section_id=request.section_id,
        academic_year=request.academic_year,
        roll_number=request.roll_number,
    )


def address_dict(address: AddressSchema) -> dict[str, Any]:
    return address.model_dump(exclude_none=True)


def contact_info_dict(contact_info: ContactInfoSchema) -> dict[str, Any]:
    return contact_info.model_dump(mode="json", exclude_none=True)
