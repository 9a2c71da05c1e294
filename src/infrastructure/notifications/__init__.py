# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credentials notification delivery.

Key Components:
- NotificationDispatcher: Best-effort, single-attempt delivery
- Channels: SMTPEmailChannel, IdentityRelayChannel
- CredentialsNotification: Data structure for notification content

Usage:
    from src.infrastructure.notifications import create_notification_dispatcher

    dispatcher = create_notification_dispatcher(settings, identity_client)
    result = await dispatcher.notify_best_effort(payload)

Configuration (environment variables):
- NOTIFICATION_CHANNEL: identity_service (default) or smtp
- NOTIFICATION_TIMEOUT: Upper bound in seconds for one attempt
- SMTP_*: SMTP settings for the smtp channel
"""

from src.infrastructure.notifications.channels import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    CredentialsNotification,
    DeliveryStatus,
    IdentityRelayChannel,
    SMTPEmailChannel,
)
from src.infrastructure.notifications.service import (
    NotificationDispatcher,
    create_notification_dispatcher,
)

__all__ = [
    # Dispatcher
    "NotificationDispatcher",
    "create_notification_dispatcher",
    # Channel types
    "BaseChannel",
    "ChannelResult",
    "ChannelType",
    "CredentialsNotification",
    "DeliveryStatus",
    # Channels
    "IdentityRelayChannel",
    "SMTPEmailChannel",
]
