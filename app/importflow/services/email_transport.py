"""Outbound email.

SMTP is used when ``SMTP_HOST`` is configured; otherwise emails are only
logged, which keeps development and test runs free of network access.
"""

from __future__ import annotations

import logging
import smtplib
import uuid
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import make_msgid

from app.importflow.core.config import Settings, settings as default_settings
from app.importflow.core.logging import log_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SendResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


class EmailTransport:
    def send(self, to_address: str, subject: str, html: str, text: str | None = None) -> SendResult:
        raise NotImplementedError


class LoggingEmailTransport(EmailTransport):
    def send(self, to_address: str, subject: str, html: str, text: str | None = None) -> SendResult:
        message_id = f"dev-{uuid.uuid4().hex[:12]}"
        log_json(
            logger,
            {
                "event": "email_logged",
                "to": to_address,
                "subject": subject,
                "message_id": message_id,
                "html_length": len(html),
            },
        )
        return SendResult(success=True, message_id=message_id)


class SmtpEmailTransport(EmailTransport):
    def __init__(
        self,
        host: str,
        port: int,
        *,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        sender: str,
        timeout: int = 10,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.timeout = timeout

    def _build_message(self, to_address: str, subject: str, html: str, text: str | None) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to_address
        message["Subject"] = subject
        message["Message-ID"] = make_msgid(domain=self.sender.rpartition("@")[2] or None)
        message.set_content(text or "This message requires an HTML capable email client.")
        message.add_alternative(html, subtype="html")
        return message

    def send(self, to_address: str, subject: str, html: str, text: str | None = None) -> SendResult:
        message = self._build_message(to_address, subject, html, text)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as client:
                if self.use_tls:
                    client.starttls()
                if self.username:
                    client.login(self.username, self.password)
                client.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning(
                "Email send failed",
                extra={"to": to_address, "error_class": exc.__class__.__name__},
            )
            return SendResult(success=False, error=str(exc) or exc.__class__.__name__)
        return SendResult(success=True, message_id=message["Message-ID"])


def build_email_transport(config: Settings | None = None) -> EmailTransport:
    config = config or default_settings
    if not config.SMTP_HOST:
        return LoggingEmailTransport()
    return SmtpEmailTransport(
        config.SMTP_HOST,
        config.SMTP_PORT,
        username=config.SMTP_USERNAME,
        password=config.SMTP_PASSWORD,
        use_tls=config.SMTP_USE_TLS,
        sender=config.EMAIL_FROM,
        timeout=config.EMAIL_TIMEOUT_SEC,
    )
