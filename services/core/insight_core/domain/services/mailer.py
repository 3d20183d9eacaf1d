"""Outgoing email over SMTP.

Used for password reset links, OTP codes and the contact form. Port 465
uses implicit TLS; any other port upgrades with STARTTLS.

Usage:
    mailer = Mailer.from_settings(get_settings())
    await mailer.send_async(
        to="user@example.com",
        subject="Your code",
        text="123456",
    )
"""

import asyncio
import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional

from insight_core.config import Settings

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 15


class MailerError(Exception):
    """Raised when an email cannot be sent."""

    pass


class MailerNotConfiguredError(MailerError):
    """Raised when SMTP settings are missing."""

    pass


class Mailer:
    """SMTP email sender."""

    def __init__(
        self,
        host: Optional[str],
        port: int,
        username: Optional[str],
        password: Optional[str],
        from_address: Optional[str] = None,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address or username

    @classmethod
    def from_settings(cls, settings: Settings) -> "Mailer":
        return cls(
            host=settings.email_host,
            port=settings.email_port,
            username=settings.email_user,
            password=settings.email_pass,
            from_address=settings.email_from,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.host and self.username and self.password)

    def build_message(
        self,
        to: str,
        subject: str,
        text: str,
        html: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.from_address
        message["To"] = to
        message["Subject"] = subject
        if reply_to:
            message["Reply-To"] = reply_to
        message.set_content(text)
        if html:
            message.add_alternative(html, subtype="html")
        return message

    def send(
        self,
        to: str,
        subject: str,
        text: str,
        html: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> None:
        """Send one email, blocking until the SMTP exchange completes.

        Raises:
            MailerNotConfiguredError: If host or credentials are missing.
            MailerError: If the SMTP server rejects the message.
        """
        if not self.enabled:
            raise MailerNotConfiguredError("Email service is not configured")

        message = self.build_message(to, subject, text, html=html, reply_to=reply_to)
        context = ssl.create_default_context()

        try:
            if self.port == 465:
                with smtplib.SMTP_SSL(
                    self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS, context=context
                ) as smtp:
                    smtp.login(self.username, self.password)
                    smtp.send_message(message)
            else:
                with smtplib.SMTP(
                    self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS
                ) as smtp:
                    smtp.starttls(context=context)
                    smtp.login(self.username, self.password)
                    smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email '{subject}' to {to}: {e}")
            raise MailerError(f"Failed to send email: {e}")

        logger.info(f"Email sent: {subject} to {to}")

    async def send_async(
        self,
        to: str,
        subject: str,
        text: str,
        html: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> None:
        await asyncio.to_thread(
            self.send, to, subject, text, html=html, reply_to=reply_to
        )
