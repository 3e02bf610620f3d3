"""Outbound mail over SMTP"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from ..core.config import Settings, get_settings
from ..errors import MailDeliveryError

logger = logging.getLogger(__name__)


class Mailer:
    """Sends plain-text messages through the configured SMTP relay"""

    def __init__(self, settings: Optional[Settings] = None, timeout: float = 30.0):
        self._settings = settings
        self.timeout = timeout

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def _build_message(self, recipient: str, subject: str, body: str) -> EmailMessage:
        settings = self.settings
        sender = settings.mail_from_address or settings.smtp_user or "no-reply@localhost"
        message = EmailMessage()
        message["From"] = f"{settings.mail_from_name} <{sender}>"
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(body)
        return message

    def send(self, recipient: str, subject: str, body: str) -> None:
        """
        Send a message.

        Raises:
            MailDeliveryError: if no relay is configured or delivery fails
        """
        settings = self.settings
        if not settings.mail_configured:
            raise MailDeliveryError("Mail transport is not configured")

        message = self._build_message(recipient, subject, body)
        logger.info(f"Sending '{subject}' to {recipient}")

        try:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=self.timeout) as smtp:
                if settings.smtp_use_tls:
                    smtp.starttls()
                if settings.smtp_user and settings.smtp_password:
                    smtp.login(settings.smtp_user, settings.smtp_password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email sending error: {e}")
            raise MailDeliveryError("Email could not be sent. Please try again later.") from e


# Singleton instance
mailer = Mailer()
