"""Outgoing email notifications."""

import asyncio
import smtplib
from email.message import EmailMessage
from typing import Optional

from vidvault.config import settings
from vidvault.logging_config import logger


class EmailSender:
    """SMTP sender for transactional email.

    ``send`` runs the blocking SMTP exchange in a worker thread. Failures are
    logged and re-raised so the request that triggered them fails.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        sender: str,
        use_tls: bool = True,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.use_tls = use_tls

    @classmethod
    def from_settings(cls) -> "EmailSender":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            sender=settings.smtp_from,
            use_tls=settings.smtp_tls,
        )

    def _build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to
        msg.set_content(body)
        return msg

    def _deliver(self, msg: EmailMessage):
        with smtplib.SMTP(self.host, self.port, timeout=30) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username and self.password:
                smtp.login(self.username, self.password)
            smtp.send_message(msg)

    async def send(self, to: str, subject: str, body: str):
        msg = self._build_message(to, subject, body)
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email", to=to, subject=subject, error=str(e))
            raise
        logger.info("Email sent", to=to, subject=subject)


_sender: Optional[EmailSender] = None


def get_email_sender() -> EmailSender:
    """Get or create the SMTP sender (dependency injection)."""
    global _sender
    if _sender is None:
        _sender = EmailSender.from_settings()
    return _sender
