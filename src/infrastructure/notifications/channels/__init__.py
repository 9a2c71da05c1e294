# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification channels for delivering credentials notifications.

This package provides channel implementations:

- SMTPEmailChannel: Sends the credentials email via SMTP
- IdentityRelayChannel: Asks the identity service to send it

Usage:
    from src.infrastructure.notifications.channels import (
        CredentialsNotification,
        SMTPEmailChannel,
    )

    email = SMTPEmailChannel(settings.smtp)
    result = await email.send(
        CredentialsNotification(
            recipient_email="ana@example.com",
            student_name="Ana Garcia",
            username="ana.garcia.a100",
            password=password,
        )
    )
"""

from src.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    CredentialsNotification,
    DeliveryStatus,
)
from src.infrastructure.notifications.channels.email import (
    CREDENTIALS_SUBJECT,
    SMTPEmailChannel,
)
from src.infrastructure.notifications.channels.identity_relay import IdentityRelayChannel

__all__ = [
    # Base types
    "BaseChannel",
    "ChannelResult",
    "ChannelType",
    "CredentialsNotification",
    "DeliveryStatus",
    # Channels
    "CREDENTIALS_SUBJECT",
    "IdentityRelayChannel",
    "SMTPEmailChannel",
]
