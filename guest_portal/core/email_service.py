"""Email delivery of guest credentials.

Delivery is best effort: every failure is caught, logged and reported back as
a :class:`NotificationResult`. Nothing here raises into the caller and nothing
is retried.
"""

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from email.utils import formataddr
from functools import partial

from guest_portal.config import Settings, get_settings
from guest_portal.core.credentials import format_display_time

logger = logging.getLogger(__name__)

CREDENTIALS_SUBJECT = "Your Guest Wi-Fi Credentials"


@dataclass(frozen=True)
class NotificationResult:
    """Outcome of one delivery attempt."""

    delivered: bool
    error: str | None = None


@dataclass(frozen=True)
class CredentialMessage:
    """Rendered credential notice for one guest."""

    recipient: str
    name: str
    username: str
    password: str
    valid_from: datetime
    valid_until: datetime

    @property
    def subject(self) -> str:
        return CREDENTIALS_SUBJECT

    def render_text(self) -> str:
        return (
            f"Welcome {self.name},\n\n"
            "Your credentials for the Guest Wi-Fi are:\n\n"
            f"Username: {self.username}\n"
            f"Password: {self.password}\n\n"
            f"Your access is valid from {format_display_time(self.valid_from)} "
            f"until {format_display_time(self.valid_until)}.\n\n"
            "Regards,\n"
            "Your IT Department"
        )


class EmailService:
    """Service for sending credential emails via SMTP."""

    def __init__(self, settings: Settings | None = None):
        """Initialize email service."""
        self.settings = settings or get_settings()

    def _connect(self) -> smtplib.SMTP:
        settings = self.settings
        context = ssl.create_default_context()
        if not settings.smtp_tls_verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE

        if settings.smtp_implicit_tls:
            # SSL connection (port 465)
            server = smtplib.SMTP_SSL(
                settings.smtp_host,
                settings.smtp_port,
                timeout=settings.smtp_timeout,
                context=context,
            )
        else:
            # Plain or STARTTLS connection (port 587 or 25)
            server = smtplib.SMTP(
                settings.smtp_host,
                settings.smtp_port,
                timeout=settings.smtp_timeout,
            )
            if settings.smtp_use_tls:
                server.starttls(context=context)

        if settings.smtp_username and settings.smtp_password:
            server.login(settings.smtp_username, settings.smtp_password)
        return server

    def _deliver(self, msg: EmailMessage, to: str) -> None:
        """Connect, send and quit. Blocks for up to ``smtp_timeout`` per step."""
        server = self._connect()
        try:
            server.send_message(msg, from_addr=self.settings.smtp_sender, to_addrs=[to])
        finally:
            server.quit()

    async def send_email(self, to: str, subject: str, body_text: str) -> NotificationResult:
        """Send a plain-text email via SMTP.

        Args:
            to: Recipient email address
            subject: Email subject
            body_text: Plain text email body

        Returns:
            NotificationResult describing the outcome
        """
        if not self.settings.smtp_enabled:
            logger.warning("SMTP is disabled, email not sent")
            return NotificationResult(delivered=False, error="SMTP is disabled")

        if not self.settings.smtp_host:
            logger.error("SMTP host not configured")
            return NotificationResult(delivered=False, error="SMTP host not configured")

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = formataddr((self.settings.smtp_from_name, self.settings.smtp_sender))
        msg["To"] = to
        msg.set_content(body_text)

        # smtplib is synchronous, keep it off the event loop
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, partial(self._deliver, msg, to))
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed: {e}")
            return NotificationResult(delivered=False, error=f"SMTP authentication failed: {e}")
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error sending to {to}: {e}")
            return NotificationResult(delivered=False, error=str(e) or e.__class__.__name__)

        logger.info(f"Email sent successfully to {to}")
        return NotificationResult(delivered=True)

    async def send_guest_credentials(self, message: CredentialMessage) -> NotificationResult:
        """Deliver a guest's Wi-Fi username and password.

        Args:
            message: Rendered credential notice

        Returns:
            NotificationResult describing the outcome
        """
        return await self.send_email(message.recipient, message.subject, message.render_text())
