"""SMTP email gateway for notification emails."""

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from config import settings
from core.errors import DeliveryError

logger = logging.getLogger(__name__)


class SmtpEmailGateway:
    """
    Sends HTML emails over SMTP.

    smtplib is blocking, so each send runs in a worker thread. Port 465 uses
    implicit TLS, anything else upgrades with STARTTLS when use_tls is set.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        from_email: str = "",
        use_tls: bool = True,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = int(port)
        self.username = username
        self.password = password
        self.from_email = from_email
        self.use_tls = use_tls
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> Optional["SmtpEmailGateway"]:
        """Build a gateway from application settings, or None if SMTP is not configured."""
        if not settings.email_enabled:
            return None
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            from_email=settings.notification_email_from,
            use_tls=settings.smtp_use_tls,
            max_retries=settings.email_max_retries,
            retry_delay=settings.email_retry_delay,
        )

    def build_message(self, to_email: str, subject: str, html: str, text: str = "") -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content(text or subject)
        msg.add_alternative(html, subtype="html")
        return msg

    def _send_sync(self, msg: EmailMessage) -> None:
        if self.port == 465 and self.use_tls:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)

        with server:
            if self.use_tls and self.port != 465:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(msg)

    async def send(self, to_email: str, subject: str, html: str, text: str = "") -> None:
        """
        Send one email, retrying with exponential backoff.

        Raises:
            DeliveryError: when every attempt failed
        """
        msg = self.build_message(to_email, subject, html, text)
        delay = self.retry_delay

        for attempt in range(self.max_retries):
            try:
                await asyncio.to_thread(self._send_sync, msg)
                logger.info(f"[EMAIL_NOTIFICATION] Sent '{subject}' to {to_email}")
                return
            except (smtplib.SMTPException, OSError) as e:
                if attempt < self.max_retries - 1:
                    logger.warning(
                        f"[EMAIL_NOTIFICATION] Send to {to_email} failed: {e}, "
                        f"retrying in {delay}s (attempt {attempt + 1}/{self.max_retries})"
                    )
                    await asyncio.sleep(delay)
                    delay *= 2  # Exponential backoff
                else:
                    raise DeliveryError(
                        f"Email to {to_email} failed after {self.max_retries} attempts: {e}"
                    ) from e
