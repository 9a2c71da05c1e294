# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the profile migration runner."""

import pytest
import pytest_asyncio
from sqlalchemy import inspect

from src.infrastructure.database import ProfileDatabase
from src.infrastructure.database.migrations.runner import (
    PROFILE_MIGRATIONS,
    _get_pending_migrations,
    get_migration_status,
    run_profile_migrations,
)


@pytest_asyncio.fixture
async def empty_database(sqlite_url):
    """Database without any schema."""
    db = ProfileDatabase.from_url(sqlite_url)
    yield db
    await db.close()


class TestPendingMigrations:
    """Tests for pending migration selection."""

    def test_all_pending_on_fresh_database(self):
        assert _get_pending_migrations(None) == PROFILE_MIGRATIONS

    def test_none_pending_at_latest(self):
        assert _get_pending_migrations(PROFILE_MIGRATIONS[-1]) == []

    def test_unknown_version_applies_nothing(self):
        assert _get_pending_migrations("999_unknown") == []


class TestRunMigrations:
    """Tests for applying migrations."""

    @pytest.mark.asyncio
    async def test_fresh_database_gets_schema(self, empty_database):
        applied = await run_profile_migrations(empty_database.engine)

        assert applied == PROFILE_MIGRATIONS
        async with empty_database.engine.connect() as conn:
            tables = await conn.run_sync(lambda c: set(inspect(c).get_table_names()))
        assert {
            "students",
            "guardians",
            "student_guardians",
            "student_enrollments",
            "documents",
            "alembic_version",
        } <= tables

    @pytest.mark.asyncio
    async def test_second_run_is_noop(self, empty_database):
        await run_profile_migrations(empty_database.engine)

        assert await run_profile_migrations(empty_database.engine) == []

        status = await get_migration_status(empty_database.engine)
        assert status["is_up_to_date"]
        assert status["current_version"] == PROFILE_MIGRATIONS[-1]
