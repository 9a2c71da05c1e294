# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Email notification channel using async SMTP.

This channel sends the student credentials email directly using
aiosmtplib. It generates both plain text and HTML versions.

Configuration (via environment variables):
- SMTP_HOST: SMTP server hostname
- SMTP_PORT: SMTP server port (default: 587)
- SMTP_USERNAME: SMTP authentication username
- SMTP_PASSWORD: SMTP authentication password
- SMTP_USE_TLS: Use STARTTLS (default: true)
- SMTP_FROM_EMAIL: Sender email address
- SMTP_FROM_NAME: Sender display name
"""

import html
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid

import aiosmtplib

from src.core.config.settings import SMTPSettings
from src.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    CredentialsNotification,
)

CREDENTIALS_SUBJECT = "Your Student Account Credentials"


class SMTPEmailChannel(BaseChannel):
    """Credentials email channel using async SMTP."""

    def __init__(self, settings: SMTPSettings) -> None:
        """Initialize the email channel.

        Args:
            settings: SMTP settings.
        """
        super().__init__()
        self._settings = settings

    @property
    def channel_type(self) -> ChannelType:
        """Return the channel type."""
        return ChannelType.EMAIL

    async def send(self, payload: CredentialsNotification) -> ChannelResult:
        """Send the credentials email via SMTP.

        Args:
            payload: The notification payload.

        Returns:
            ChannelResult with delivery status.
        """
        if not self._settings.is_configured:
            return self.create_skipped_result("SMTP configuration incomplete")

        if not payload.recipient_email:
            return self.create_skipped_result("No recipient email address")

        message = self.build_message(
            payload.recipient_email,
            CREDENTIALS_SUBJECT,
            render_credentials_html(payload),
            render_credentials_text(payload),
        )
        try:
            await self.send_message(message)
        except (aiosmtplib.SMTPException, OSError) as e:
            self.logger.error(
                "Failed to send credentials email to %s: %s",
                payload.recipient_email,
                e,
            )
            return self.create_failure_result(
                f"SMTP error: {e}",
                metadata={"recipient": payload.recipient_email},
            )

        self.logger.info("Credentials email sent to %s", payload.recipient_email)
        return self.create_success_result(
            message_id=message["Message-ID"],
            metadata={"recipient": payload.recipient_email},
        )

    def build_message(
        self,
        recipient: str,
        subject: str,
        html_body: str,
        text_body: str | None = None,
    ) -> MIMEMultipart:
        """Build a MIME email message.

        Args:
            recipient: Recipient address.
            subject: Subject line.
            html_body: HTML body.
            text_body: Optional plain text alternative.

        Returns:
            MIMEMultipart message ready to send.
        """
        message = MIMEMultipart("alternative")
        message["From"] = f"{self._settings.from_name} <{self._settings.from_email}>"
        message["To"] = recipient
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()

        if text_body:
            message.attach(MIMEText(text_body, "plain", "utf-8"))
        message.attach(MIMEText(html_body, "html", "utf-8"))
        return message

    async def send_message(self, message: MIMEMultipart) -> None:
        """Deliver a message through the configured SMTP server."""
        password = self._settings.password
        await aiosmtplib.send(
            message,
            hostname=self._settings.host,
            port=self._settings.port,
            username=self._settings.username,
            password=password.get_secret_value() if password else None,
            start_tls=self._settings.use_tls,
        )


def render_credentials_text(payload: CredentialsNotification) -> str:
    """Build the plain text credentials email body."""
    return "\n".join(
        [
            CREDENTIALS_SUBJECT,
            "=" * len(CREDENTIALS_SUBJECT),
            "",
            f"Hello {payload.student_name},",
            "",
            "Your student account has been created.",
            f"Username: {payload.username}",
            f"Password: {payload.password}",
            "",
            "Please change your password after your first login.",
        ]
    )


def render_credentials_html(payload: CredentialsNotification) -> str:
    """Build the HTML credentials email body."""
    name = html.escape(payload.student_name)
    username = html.escape(payload.username)
    password = html.escape(payload.password)

    body = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto,
             'Helvetica Neue', Arial, sans-serif; line-height: 1.6;
             color: #1F2937; margin: 0; padding: 0; background-color: #F3F4F6;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
        <div style="background-color: white; border-radius: 8px;
                    padding: 32px; box-shadow: 0 1px 3px rgba(0,0,0,0.1);">
            <h1 style="color: #4F46E5; font-size: 24px; margin: 0 0 24px 0;">
                {CREDENTIALS_SUBJECT}
            </h1>
            <p style="margin: 0 0 16px 0;">Hello {name},</p>
            <p style="margin: 0 0 16px 0;">Your student account has been created.</p>
            <table style="border-collapse: collapse; margin: 16px 0;">
                <tr>
                    <td style="padding: 4px 16px 4px 0;"><strong>Username:</strong></td>
                    <td style="padding: 4px 0;">{username}</td>
                </tr>
                <tr>
                    <td style="padding: 4px 16px 4px 0;"><strong>Password:</strong></td>
                    <td style="padding: 4px 0;">{password}</td>
                </tr>
            </table>
            <p style="font-size: 12px; color: #9CA3AF; margin: 24px 0 0 0;">
                Please change your password after your first login.
            </p>
        </div>
    </div>
</body>
</html>
    """
    return body.strip()
