# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Best-effort dispatcher for credentials notifications.

The dispatcher is called after a provisioning transaction has committed.
It makes exactly one delivery attempt through the configured channel,
bounded by a timeout, and never raises: a failed or timed out delivery is
logged with the recipient and the reason and reported as a ChannelResult.
The password is never written to the log.
"""

import asyncio
import logging
from typing import TYPE_CHECKING

from src.infrastructure.notifications.channels import (
    BaseChannel,
    ChannelResult,
    CredentialsNotification,
    DeliveryStatus,
    IdentityRelayChannel,
    SMTPEmailChannel,
)

if TYPE_CHECKING:
    from src.core.config.settings import Settings
    from src.infrastructure.identity import IdentityServiceClient

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Send credentials notifications without ever failing the caller.

    Attributes:
        channel: Channel used for delivery.
        timeout: Upper bound in seconds for one delivery attempt.
    """

    def __init__(self, channel: BaseChannel, timeout: float) -> None:
        """Initialize the dispatcher.

        Args:
            channel: Delivery channel.
            timeout: Upper bound in seconds for one delivery attempt.
        """
        self.channel = channel
        self.timeout = timeout

    async def notify_best_effort(self, payload: CredentialsNotification) -> ChannelResult:
        """Attempt delivery once and absorb any failure.

        Args:
            payload: Credentials notification to deliver.

        Returns:
            ChannelResult describing the outcome. Never raises for delivery
            failures, timeouts or channel bugs.
        """
        try:
            result = await asyncio.wait_for(self.channel.send(payload), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Credentials notification to %s timed out after %ss",
                payload.recipient_email,
                self.timeout,
            )
            return self.channel.create_failure_result(
                f"Timed out after {self.timeout}s",
                metadata={"recipient": payload.recipient_email},
            )
        except Exception as e:
            logger.error(
                "Credentials notification to %s failed: %s",
                payload.recipient_email,
                type(e).__name__,
                exc_info=True,
            )
            return self.channel.create_failure_result(
                f"{type(e).__name__}",
                metadata={"recipient": payload.recipient_email},
            )

        if result.status == DeliveryStatus.FAILED:
            logger.warning(
                "Credentials notification to %s not delivered: %s",
                payload.recipient_email,
                result.error_message,
            )
        elif result.status == DeliveryStatus.SKIPPED:
            logger.info(
                "Credentials notification for student %s skipped: %s",
                payload.student_id,
                result.error_message,
            )
        return result


def create_notification_dispatcher(
    settings: "Settings",
    identity_client: "IdentityServiceClient",
) -> NotificationDispatcher:
    """Build the dispatcher for the configured channel.

    Args:
        settings: Application settings.
        identity_client: Identity client used by the relay channel.

    Returns:
        NotificationDispatcher bound to one channel.
    """
    channel: BaseChannel
    if settings.notification.channel == "smtp":
        channel = SMTPEmailChannel(settings.smtp)
    else:
        channel = IdentityRelayChannel(identity_client)

    logger.info(
        "Notification dispatcher using %s channel",
        channel.channel_type.value,
    )
    return NotificationDispatcher(channel, settings.notification.timeout)
