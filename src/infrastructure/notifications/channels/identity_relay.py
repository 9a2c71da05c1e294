# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credentials channel that relays through the identity service.

The identity service owns the mail templates and SMTP account for
login-related messages. This channel hands it the username and password
for a freshly created login and lets it send the email.
"""

from src.infrastructure.identity import IdentityServiceClient, IdentityServiceError
from src.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    CredentialsNotification,
)


class IdentityRelayChannel(BaseChannel):
    """Send credentials email through the identity service."""

    def __init__(self, client: IdentityServiceClient) -> None:
        super().__init__()
        self._client = client

    @property
    def channel_type(self) -> ChannelType:
        """Return the channel type."""
        return ChannelType.IDENTITY_RELAY

    async def send(self, payload: CredentialsNotification) -> ChannelResult:
        """Ask the identity service to send the credentials email."""
        if not payload.recipient_email:
            return self.create_skipped_result("No recipient email address")

        try:
            await self._client.send_student_credentials_email(
                payload.recipient_email,
                payload.username,
                payload.password,
            )
        except IdentityServiceError as e:
            self.logger.error(
                "Identity service failed to send credentials email to %s: %s",
                payload.recipient_email,
                e.message,
            )
            return self.create_failure_result(
                e.message,
                metadata={"recipient": payload.recipient_email, "kind": e.kind.value},
            )

        self.logger.info("Credentials email relayed for %s", payload.recipient_email)
        return self.create_success_result(metadata={"recipient": payload.recipient_email})
