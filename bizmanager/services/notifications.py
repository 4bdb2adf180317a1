"""Out-of-band mail delivery for password-reset links and notices."""

from __future__ import annotations

import asyncio
import functools
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional, Protocol
from urllib.parse import urlencode

from bizmanager.core.config import Settings, settings

logger = logging.getLogger(__name__)

SIGNATURE = "Regards,\nBusiness Management System Team"


class MailDeliveryError(Exception):
    """Raised when a message could not be handed to the mail transport."""


@dataclass(frozen=True)
class MailMessage:
    to: str
    subject: str
    body: str


class Mailer(Protocol):
    async def send(self, message: MailMessage) -> None:
        ...


class LoggingMailer:
    """Development transport: writes messages to the log instead of sending them."""

    async def send(self, message: MailMessage) -> None:
        logger.info("mail.queued", extra={"to": message.to, "subject": message.subject})
        logger.debug("mail.body\n%s", message.body)


class SMTPMailer:
    def __init__(
        self,
        host: str,
        port: int = 587,
        *,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender: str = settings.EMAIL_FROM,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.timeout = timeout

    async def send(self, message: MailMessage) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, functools.partial(self._deliver, message))
        except (OSError, smtplib.SMTPException) as exc:
            raise MailDeliveryError(f"Could not deliver mail to {message.to}") from exc
        logger.info("mail.sent", extra={"to": message.to, "subject": message.subject})

    def _deliver(self, message: MailMessage) -> None:
        email = EmailMessage()
        email["From"] = f"Business Management System <{self.sender}>"
        email["To"] = message.to
        email["Subject"] = message.subject
        email.set_content(message.body)

        if self.port == 465:
            client: smtplib.SMTP = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        else:
            client = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        with client:
            if self.port != 465:
                client.starttls()
            if self.username and self.password:
                client.login(self.username, self.password)
            client.send_message(email)


def build_mailer(config: Settings = settings) -> Mailer:
    if config.SMTP_HOST:
        return SMTPMailer(
            config.SMTP_HOST,
            config.SMTP_PORT,
            username=config.SMTP_USER,
            password=config.SMTP_PASSWORD,
            sender=config.EMAIL_FROM,
        )
    return LoggingMailer()


def password_reset_message(to: str, token: str, *, name: Optional[str] = None, expires_minutes: int = 60) -> MailMessage:
    link = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?{urlencode({'token': token})}"
    body = (
        f"{_greeting(name)}\n\n"
        "You requested a password reset. Open the link below to choose a new password:\n\n"
        f"{link}\n\n"
        f"This link will expire in {_duration(expires_minutes)}.\n\n"
        "If you didn't request this, please ignore this email.\n\n"
        f"{SIGNATURE}"
    )
    return MailMessage(to=to, subject="Reset Your Password", body=body)


def password_changed_message(to: str, *, name: Optional[str] = None) -> MailMessage:
    body = (
        f"{_greeting(name)}\n\n"
        "Your password has been successfully changed.\n\n"
        "If you didn't make this change, please contact our support team immediately.\n\n"
        f"{SIGNATURE}"
    )
    return MailMessage(to=to, subject="Your Password Has Been Changed", body=body)


def _greeting(name: Optional[str]) -> str:
    return f"Hello {name}," if name else "Hello,"


def _duration(minutes: int) -> str:
    if minutes % 60 == 0:
        hours = minutes // 60
        return "1 hour" if hours == 1 else f"{hours} hours"
    return f"{minutes} minutes"
