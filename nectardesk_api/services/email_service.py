"""
Outgoing email for password resets and invitations
"""
import logging
from typing import Optional
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

import aiosmtplib

from ..core.config import settings, Settings

logger = logging.getLogger(__name__)


class EmailService:
    """Send transactional emails; failures are logged, never raised"""

    def __init__(self, config: Optional[Settings] = None):
        config = config or settings
        self.smtp_host = config.smtp_host
        self.smtp_port = config.smtp_port
        self.smtp_user = config.smtp_user
        self.smtp_password = config.smtp_password
        self.use_tls = config.smtp_use_tls
        self.from_email = config.email_from
        self.frontend_url = config.frontend_url.rstrip("/")
        self.app_name = config.app_name

    @property
    def configured(self) -> bool:
        return bool(self.smtp_host)

    async def send_email(
        self,
        recipient: str,
        subject: str,
        text_content: str,
        html_content: Optional[str] = None
    ) -> bool:
        """
        Send one email.

        Returns:
            True if the SMTP server accepted the message
        """
        if not self.configured:
            logger.warning(f"SMTP not configured, skipping email '{subject}' to {recipient}")
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = self.from_email
            msg["To"] = recipient

            msg.attach(MIMEText(text_content, "plain"))
            if html_content:
                msg.attach(MIMEText(html_content, "html"))

            await aiosmtplib.send(
                msg,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user or None,
                password=self.smtp_password or None,
                start_tls=self.use_tls
            )

            logger.info(f"Email sent: {subject} to {recipient}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email '{subject}' to {recipient}: {e}")
            return False

    async def send_password_reset_email(self, recipient: str, token: str) -> bool:
        reset_url = f"{self.frontend_url}/reset-password?token={token}"
        text = (
            "A password reset was requested for your account.\n\n"
            f"Open this link within the next hour to choose a new password:\n{reset_url}\n\n"
            "If you did not request this, you can ignore this email."
        )
        return await self.send_email(recipient, f"{self.app_name} password reset", text)

    async def send_invitation_email(
        self,
        recipient: str,
        organization_name: str,
        temporary_password: Optional[str] = None
    ) -> bool:
        lines = [
            f"You have been added to {organization_name} on {self.app_name}.",
            "",
            f"Sign in at {self.frontend_url}/login with this email address.",
        ]
        if temporary_password:
            lines.append(f"Temporary password: {temporary_password}")
            lines.append("Please change it after your first login.")
        return await self.send_email(recipient, f"Welcome to {self.app_name}", "\n".join(lines))
