# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for the profile database.

This package provides the SQLAlchemy async connection object, ORM models
and the programmatic migration runner.

Example:
    from src.infrastructure.database import ProfileDatabase

    database = ProfileDatabase.from_settings(settings)
    async with database.session() as session:
        result = await session.execute(select(Student))
"""

from src.infrastructure.database.connection import DatabaseError, ProfileDatabase

__all__ = [
    "DatabaseError",
    "ProfileDatabase",
]
