# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from src.core.config.settings import FileStorageSettings, Settings
from src.infrastructure.database import ProfileDatabase
from src.infrastructure.database.models import Base


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def test_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Provide settings backed by SQLite and local storage.

    Identity service and notification settings keep their defaults; tests
    replace those components before any request reaches them.
    """
    monkeypatch.setenv("PROFILE_DB_URL", f"sqlite+aiosqlite:///{tmp_path / 'app.db'}")
    return Settings(
        environment="development",
        debug=False,
        log_level="WARNING",
        file_storage=FileStorageSettings(provider="local", local_dir=tmp_path / "uploads"),
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """File-backed SQLite URL, so every connection sees the same data."""
    return f"sqlite+aiosqlite:///{tmp_path / 'profile.db'}"


@pytest_asyncio.fixture
async def database(sqlite_url: str) -> AsyncGenerator[ProfileDatabase, None]:
    """Profile database with the schema created from the ORM models."""
    db = ProfileDatabase.from_url(sqlite_url)
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield db

    await db.close()


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_school_id() -> str:
    """Provide a sample school ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440000"


@pytest.fixture
def sample_user_id() -> str:
    """Provide a sample acting user ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440009"


@pytest.fixture
def sample_student_data() -> dict[str, Any]:
    """Provide a valid create-student request body."""
    return {
        "first_name": "Ana",
        "last_name": "Garcia",
        "admission_number": "A-100",
        "date_of_birth": "2015-04-12",
        "contact_info": {"email": "ana@example.com", "primary_phone": "+15550100"},
        "parent_info": {
            "father_name": "Luis Garcia",
            "mother_name": "Marta Garcia",
            "phone": "+15550101",
            "email": "luis@example.com",
        },
        "documents": [
            {
                "name": "Birth certificate",
                "document_type": "BIRTH_CERTIFICATE",
                "url": "https://storage.googleapis.com/bucket/birth.pdf",
            }
        ],
        "class_id": "class-4",
        "section_id": "section-a",
        "academic_year": "2025-2026",
    }


@pytest.fixture
def sample_application_data() -> dict[str, Any]:
    """Provide a valid application request body."""
    return {
        "first_name": "Ben",
        "last_name": "Okafor",
        "contact_info": {"email": "ben@example.com"},
        "parent_info": {"guardian_name": "Ada Okafor", "phone": "+15550200"},
    }
