# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP client for the identity service's internal endpoints.

The identity service owns login credentials. This client creates and
deletes student users and relays the credentials email. Every request
carries the internal-request marker header and, when configured, the
shared internal secret; the identity service rejects requests lacking
them with 403.

The client does not own its httpx.AsyncClient lifecycle when one is
passed in. The application creates one AsyncClient at startup and closes
it at shutdown.

Example:
    client = IdentityServiceClient.from_settings(settings.identity_service, http)
    identity = await client.create_identity(attrs)
    await client.delete_identity(identity.id)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from src.core.config.settings import IdentityServiceSettings

logger = logging.getLogger(__name__)

_DUPLICATE_MARKERS = ("already exists", "already taken", "duplicate")


class IdentityErrorKind(str, Enum):
    """Failure kind reported by the identity client."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    REMOTE_UNAVAILABLE = "REMOTE_UNAVAILABLE"
    INTERNAL = "INTERNAL"


class IdentityServiceError(Exception):
    """Raised when an identity service call fails.

    Attributes:
        kind: Classified failure kind.
        message: Error message from the identity service or the transport.
        status_code: HTTP status code, None for transport failures.
    """

    def __init__(
        self,
        kind: IdentityErrorKind,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class IdentityAttributes:
    """Attributes for a new student login."""

    username: str
    password: str
    first_name: str
    last_name: str
    school_id: str
    role_name: str
    email: str | None = None
    phone: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Build the identity service request body."""
        return {
            "username": self.username,
            "email": self.email,
            "phone": self.phone,
            "password": self.password,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "schoolId": self.school_id,
            "roleName": self.role_name,
        }

    def __repr__(self) -> str:
        return (
            f"IdentityAttributes(username={self.username!r}, "
            f"school_id={self.school_id!r}, role_name={self.role_name!r})"
        )


@dataclass(frozen=True)
class Identity:
    """Login identity owned by the identity service."""

    id: str
    username: str | None = None
    email: str | None = None
    role_id: str | None = None
    school_id: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Identity":
        """Build from an identity service user object."""
        return cls(
            id=str(data["id"]),
            username=data.get("username"),
            email=data.get("email"),
            role_id=data.get("roleId"),
            school_id=data.get("schoolId"),
        )


class IdentityServiceClient:
    """Client for the identity service internal API.

    Attributes:
        base_url: Identity service base URL.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        headers: dict[str, str],
        timeout: float,
    ) -> None:
        """Initialize the client.

        Args:
            http: Shared async HTTP client.
            base_url: Identity service base URL.
            headers: Internal request headers sent with every call.
            timeout: Per-request timeout in seconds.
        """
        self._http = http
        self.base_url = base_url.rstrip("/")
        self._headers = headers
        self._timeout = timeout

    @classmethod
    def from_settings(
        cls,
        settings: "IdentityServiceSettings",
        http: httpx.AsyncClient,
    ) -> "IdentityServiceClient":
        """Create a client from identity service settings."""
        return cls(
            http=http,
            base_url=settings.url,
            headers=settings.internal_headers,
            timeout=settings.timeout,
        )

    async def create_identity(self, attrs: IdentityAttributes) -> Identity:
        """Create a student login.

        Args:
            attrs: Attributes of the new login.

        Returns:
            The created Identity.

        Raises:
            IdentityServiceError: If the call fails or times out.
        """
        response = await self._request(
            "POST",
            "/api/v1/internal/users/student",
            "Create identity",
            json=attrs.to_payload(),
        )
        data = self._handle_response(response, "Create identity")
        user = (data.get("data") or {}).get("user")
        if not user or "id" not in user:
            raise IdentityServiceError(
                IdentityErrorKind.INTERNAL,
                "Create identity returned no user",
                response.status_code,
            )

        identity = Identity.from_payload(user)
        logger.info("Identity created: %s (%s)", identity.id, identity.username)
        return identity

    async def delete_identity(self, identity_id: str) -> None:
        """Delete a login.

        Deleting an identity that does not exist is a success, so repeated
        compensation calls are safe.

        Args:
            identity_id: Identity to delete.

        Raises:
            IdentityServiceError: If the call fails or times out.
        """
        response = await self._request(
            "DELETE",
            f"/api/v1/internal/users/{identity_id}",
            "Delete identity",
        )
        if response.status_code == 404:
            logger.info("Identity already absent: %s", identity_id)
            return

        self._handle_response(response, "Delete identity")
        logger.info("Identity deleted: %s", identity_id)

    async def send_student_credentials_email(
        self,
        email: str,
        username: str,
        password: str,
    ) -> None:
        """Ask the identity service to email login credentials.

        Args:
            email: Recipient address.
            username: Login username.
            password: Generated password.

        Raises:
            IdentityServiceError: If the call fails or times out.
        """
        response = await self._request(
            "POST",
            "/api/v1/internal/send-student-credentials-email",
            "Send credentials email",
            json={"email": email, "username": username, "password": password},
        )
        self._handle_response(response, "Send credentials email")

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request, mapping transport failures to REMOTE_UNAVAILABLE."""
        try:
            return await self._http.request(
                method,
                f"{self.base_url}{path}",
                headers=self._headers,
                timeout=self._timeout,
                **kwargs,
            )
        except httpx.TimeoutException as e:
            logger.error("%s timed out after %ss", operation, self._timeout)
            raise IdentityServiceError(
                IdentityErrorKind.REMOTE_UNAVAILABLE,
                "Identity service timed out",
            ) from e
        except httpx.RequestError as e:
            logger.error("Connection error to identity service: %s", e)
            raise IdentityServiceError(
                IdentityErrorKind.REMOTE_UNAVAILABLE,
                "Identity service is unavailable",
            ) from e

    def _handle_response(self, response: httpx.Response, operation: str) -> dict:
        """Handle HTTP response and raise appropriate errors."""
        if response.is_success:
            try:
                return response.json()
            except ValueError:
                return {}

        error_detail = _extract_error_message(response)
        status = response.status_code
        logger.warning("%s failed with %d: %s", operation, status, error_detail)

        if status == 409 or (
            status == 400 and any(m in error_detail.lower() for m in _DUPLICATE_MARKERS)
        ):
            kind = IdentityErrorKind.CONFLICT
        elif status in (400, 422):
            kind = IdentityErrorKind.VALIDATION_FAILED
        elif status in (401, 403):
            kind = IdentityErrorKind.FORBIDDEN
        elif status == 404:
            kind = IdentityErrorKind.NOT_FOUND
        elif status in (502, 503, 504):
            kind = IdentityErrorKind.REMOTE_UNAVAILABLE
        else:
            kind = IdentityErrorKind.INTERNAL

        raise IdentityServiceError(kind, error_detail, status)


def _extract_error_message(response: httpx.Response) -> str:
    """Pull the error message out of an identity service error body."""
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
        if data.get("message"):
            return str(data["message"])
        if data.get("detail"):
            return str(data["detail"])
    return f"HTTP {response.status_code}"
