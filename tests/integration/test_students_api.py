# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the student and document API.

The application runs its real lifespan against SQLite (schema created by
the migration runner). The identity client and notification dispatcher
are replaced with mocks once startup has finished.
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.core.config import IdentityServiceSettings, ProfileDatabaseSettings
from src.infrastructure.identity import Identity, IdentityErrorKind, IdentityServiceError
from src.infrastructure.notifications import ChannelResult, ChannelType, DeliveryStatus

SCHOOL_ID = "school-1"
OTHER_SCHOOL_ID = "school-2"
HEADERS = {"X-School-Id": SCHOOL_ID, "X-User-Id": "admin-1"}


def _new_identity(attrs):
    return Identity(id=str(uuid4()), username=attrs.username, email=attrs.email)


@pytest.fixture
def identity_client():
    """Create mock identity service client."""
    client = MagicMock()
    client.create_identity = AsyncMock(side_effect=_new_identity)
    client.delete_identity = AsyncMock(return_value=None)
    return client


@pytest.fixture
def dispatcher():
    """Create mock notification dispatcher."""
    dispatcher = MagicMock()
    dispatcher.notify_best_effort = AsyncMock(
        return_value=ChannelResult(channel=ChannelType.IDENTITY_RELAY, status=DeliveryStatus.SENT)
    )
    return dispatcher


@pytest.fixture
def app(test_settings):
    """Create test FastAPI app."""
    return create_app(test_settings)


@pytest.fixture
def client(app, identity_client, dispatcher):
    """Create test client with the lifespan running."""
    with TestClient(app, raise_server_exceptions=False) as client:
        app.state.identity_client = identity_client
        app.state.notification_dispatcher = dispatcher
        yield client


class TestRouting:
    """Tests for route registration."""

    def test_routes_registered(self, app):
        routes = [route.path for route in app.routes]

        assert "/health" in routes
        assert "/health/ready" in routes
        assert "/api/v1/students" in routes
        assert "/api/v1/students/applications" in routes
        assert "/api/v1/students/{student_id}" in routes
        assert "/api/v1/students/{student_id}/accept" in routes
        assert "/api/v1/documents" in routes


class TestHealth:
    """Tests for health endpoints."""

    def test_health_and_readiness(self, client):
        health = client.get("/health")
        ready = client.get("/health/ready")

        assert health.status_code == 200
        assert health.json()["status"] == "healthy"
        assert ready.status_code == 200
        assert ready.json()["ready"] is True
        migrations = ready.json()["checks"]["migrations"]
        assert migrations["status"] == "healthy"
        assert migrations["pending_migrations"] == []

    def test_unmigrated_database_is_not_ready(self, test_settings):
        settings = test_settings.model_copy(
            update={"profile_db": ProfileDatabaseSettings(run_migrations=False)}
        )
        app = create_app(settings)

        with TestClient(app, raise_server_exceptions=False) as client:
            ready = client.get("/health/ready")

        assert ready.status_code == 503
        body = ready.json()
        assert body["ready"] is False
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["checks"]["migrations"]["status"] == "pending"
        assert body["checks"]["migrations"]["pending_migrations"] == ["001_initial_schema"]


class TestCreateStudent:
    """Tests for POST /api/v1/students."""

    def test_create_success(self, client, sample_student_data, identity_client, dispatcher):
        response = client.post("/api/v1/students", json=sample_student_data, headers=HEADERS)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["credentials_sent"] is True
        student = body["student"]
        assert student["status"] == "PROVISIONED"
        assert student["school_id"] == SCHOOL_ID
        assert student["user_id"] == body["identity"]["id"]
        assert body["identity"]["username"] == "ana.garcia.a100"
        assert "password" not in body["identity"]
        assert len(student["guardians"]) == 2
        assert len(student["enrollments"]) == 1
        assert len(student["documents"]) == 1
        assert response.headers["X-Request-ID"]

        identity_client.create_identity.assert_awaited_once()
        dispatcher.notify_best_effort.assert_awaited_once()

    def test_missing_school_header(self, client, sample_student_data, identity_client):
        response = client.post("/api/v1/students", json=sample_student_data)

        assert response.status_code == 400
        assert response.json()["error"]["kind"] == "VALIDATION_FAILED"
        identity_client.create_identity.assert_not_called()

    def test_invalid_body(self, client, sample_student_data, identity_client):
        del sample_student_data["first_name"]
        sample_student_data["contact_info"]["email"] = "not-an-email"

        response = client.post("/api/v1/students", json=sample_student_data, headers=HEADERS)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["kind"] == "VALIDATION_FAILED"
        assert "first_name" in error["message"]
        identity_client.create_identity.assert_not_called()

    def test_duplicate_admission_number_is_conflict(
        self, client, sample_student_data, identity_client
    ):
        first = client.post("/api/v1/students", json=sample_student_data, headers=HEADERS)
        second = client.post("/api/v1/students", json=sample_student_data, headers=HEADERS)

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json() == {
            "success": False,
            "error": {
                "kind": "CONFLICT",
                "message": "Admission number already exists in this school",
            },
        }
        assert identity_client.create_identity.await_count == 1

    def test_same_admission_number_in_other_school(self, client, sample_student_data):
        first = client.post("/api/v1/students", json=sample_student_data, headers=HEADERS)
        second = client.post(
            "/api/v1/students",
            json=sample_student_data,
            headers={"X-School-Id": OTHER_SCHOOL_ID},
        )

        assert first.status_code == 201
        assert second.status_code == 201

    def test_identity_unavailable(self, client, sample_student_data, identity_client):
        identity_client.create_identity.side_effect = IdentityServiceError(
            IdentityErrorKind.REMOTE_UNAVAILABLE, "Identity service timed out"
        )

        response = client.post("/api/v1/students", json=sample_student_data, headers=HEADERS)
        listing = client.get("/api/v1/students", headers=HEADERS)

        assert response.status_code == 503
        assert response.json()["error"]["kind"] == "REMOTE_UNAVAILABLE"
        assert listing.json()["total"] == 0
        identity_client.delete_identity.assert_not_called()

    def test_local_write_failure_deletes_identity(
        self, client, sample_student_data, identity_client, dispatcher
    ):
        """The second write collides on user id and its identity is retracted."""
        reused = Identity(id=str(uuid4()), username="ana.garcia.a100")
        identity_client.create_identity.side_effect = None
        identity_client.create_identity.return_value = reused

        first = client.post("/api/v1/students", json=sample_student_data, headers=HEADERS)
        sample_student_data["admission_number"] = "A-101"
        second = client.post("/api/v1/students", json=sample_student_data, headers=HEADERS)
        listing = client.get("/api/v1/students", headers=HEADERS)

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["error"]["message"] == "A record with this user id already exists"
        identity_client.delete_identity.assert_awaited_once_with(reused.id)
        assert dispatcher.notify_best_effort.await_count == 1
        assert listing.json()["total"] == 1

    def test_notification_failure_keeps_201(self, client, sample_student_data, dispatcher):
        dispatcher.notify_best_effort.return_value = ChannelResult(
            channel=ChannelType.IDENTITY_RELAY,
            status=DeliveryStatus.FAILED,
            error_message="Identity service timed out",
        )

        response = client.post("/api/v1/students", json=sample_student_data, headers=HEADERS)

        assert response.status_code == 201
        assert response.json()["credentials_sent"] is False

    def test_unexpected_failure_is_generic_500(
        self, client, sample_student_data, identity_client
    ):
        identity_client.create_identity.side_effect = RuntimeError("secret internals")

        response = client.post("/api/v1/students", json=sample_student_data, headers=HEADERS)

        assert response.status_code == 500
        assert response.json()["error"] == {
            "kind": "INTERNAL",
            "message": "An unexpected error occurred",
        }


class TestAppSettings:
    """Tests that requests use the settings the app was created with."""

    def test_student_role_comes_from_app_settings(
        self, test_settings, sample_student_data, identity_client, dispatcher
    ):
        settings = test_settings.model_copy(
            update={"identity_service": IdentityServiceSettings(student_role_name="PUPIL")}
        )
        app = create_app(settings)

        with TestClient(app, raise_server_exceptions=False) as client:
            app.state.identity_client = identity_client
            app.state.notification_dispatcher = dispatcher
            response = client.post(
                "/api/v1/students", json=sample_student_data, headers=HEADERS
            )

        assert response.status_code == 201
        attrs = identity_client.create_identity.await_args.args[0]
        assert attrs.role_name == "PUPIL"


class TestApplications:
    """Tests for the application and acceptance flow."""

    @pytest.fixture
    def accept_body(self):
        return {
            "admission_number": "B-200",
            "class_id": "class-2",
            "section_id": "section-b",
            "academic_year": "2025-2026",
        }

    def _submit(self, client, data, headers=HEADERS):
        response = client.post("/api/v1/students/applications", json=data, headers=headers)
        assert response.status_code == 201
        return response.json()["student"]

    def test_submit_then_accept(
        self, client, sample_application_data, accept_body, identity_client, dispatcher
    ):
        pending = self._submit(client, sample_application_data)
        assert pending["status"] == "PENDING"
        assert pending["user_id"] is None
        identity_client.create_identity.assert_not_called()

        response = client.post(
            f"/api/v1/students/{pending['id']}/accept", json=accept_body, headers=HEADERS
        )

        assert response.status_code == 200
        student = response.json()["student"]
        assert student["status"] == "ACCEPTED"
        assert student["admission_number"] == "B-200"
        assert student["user_id"] == response.json()["identity"]["id"]
        assert [e["class_id"] for e in student["enrollments"]] == ["class-2"]
        identity_client.create_identity.assert_awaited_once()
        dispatcher.notify_best_effort.assert_awaited_once()

    def test_second_accept_is_conflict(
        self, client, sample_application_data, accept_body, identity_client
    ):
        pending = self._submit(client, sample_application_data)
        url = f"/api/v1/students/{pending['id']}/accept"

        first = client.post(url, json=accept_body, headers=HEADERS)
        second = client.post(url, json=accept_body, headers=HEADERS)

        assert first.status_code == 200
        assert second.status_code == 409
        assert second.json()["error"]["kind"] == "CONFLICT"
        assert identity_client.create_identity.await_count == 1

    def test_accept_with_taken_admission_number(
        self, client, sample_student_data, sample_application_data, accept_body, identity_client
    ):
        sample_student_data["admission_number"] = "B-200"
        client.post("/api/v1/students", json=sample_student_data, headers=HEADERS)
        pending = self._submit(client, sample_application_data)

        response = client.post(
            f"/api/v1/students/{pending['id']}/accept", json=accept_body, headers=HEADERS
        )

        assert response.status_code == 409
        assert identity_client.create_identity.await_count == 1

    def test_accept_from_other_school_is_not_found(
        self, client, sample_application_data, accept_body
    ):
        pending = self._submit(client, sample_application_data)

        response = client.post(
            f"/api/v1/students/{pending['id']}/accept",
            json=accept_body,
            headers={"X-School-Id": OTHER_SCHOOL_ID},
        )

        assert response.status_code == 404
        assert response.json()["error"]["kind"] == "NOT_FOUND"


class TestReads:
    """Tests for student reads."""

    def test_get_and_list(self, client, sample_student_data, sample_application_data):
        created = client.post("/api/v1/students", json=sample_student_data, headers=HEADERS)
        client.post("/api/v1/students/applications", json=sample_application_data, headers=HEADERS)
        student_id = created.json()["student"]["id"]

        detail = client.get(f"/api/v1/students/{student_id}", headers=HEADERS)
        hidden = client.get(
            f"/api/v1/students/{student_id}", headers={"X-School-Id": OTHER_SCHOOL_ID}
        )
        everyone = client.get("/api/v1/students", headers=HEADERS)
        pending = client.get("/api/v1/students?status=PENDING", headers=HEADERS)

        assert detail.status_code == 200
        assert detail.json()["student"]["admission_number"] == "A-100"
        assert hidden.status_code == 404
        assert everyone.json()["total"] == 2
        assert pending.json()["total"] == 1
        assert pending.json()["items"][0]["status"] == "PENDING"


class TestDocuments:
    """Tests for document upload and delete."""

    def test_upload_and_delete(self, client):
        upload = client.post(
            "/api/v1/documents",
            files={"file": ("birth.pdf", b"%PDF-1.7", "application/pdf")},
            data={"folder": "birth-certificates"},
            headers=HEADERS,
        )

        assert upload.status_code == 201
        body = upload.json()
        assert body["file_name"].startswith(f"{SCHOOL_ID}/birth-certificates/")
        assert body["original_name"] == "birth.pdf"
        assert body["size"] == 8

        deleted = client.delete(f"/api/v1/documents/{body['file_name']}", headers=HEADERS)

        assert deleted.status_code == 204

    def test_delete_other_school_file_is_rejected(self, client):
        response = client.delete(
            f"/api/v1/documents/{OTHER_SCHOOL_ID}/documents/x.pdf", headers=HEADERS
        )

        assert response.status_code == 400
        assert response.json()["error"]["kind"] == "VALIDATION_FAILED"

    def test_empty_upload_is_rejected(self, client):
        response = client.post(
            "/api/v1/documents",
            files={"file": ("empty.pdf", b"", "application/pdf")},
            headers=HEADERS,
        )

        assert response.status_code == 400
