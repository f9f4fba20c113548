import smtplib

from app.importflow.core.config import Settings
from app.importflow.services.email_transport import (
    LoggingEmailTransport,
    SmtpEmailTransport,
    build_email_transport,
)


class _FailingSMTP:
    def __init__(self, *args, **kwargs):
        raise smtplib.SMTPConnectError(421, "service not available")


def test_logging_transport_without_smtp_host():
    transport = build_email_transport(Settings(SMTP_HOST=""))

    result = transport.send("ops@example.com", "Hi", "<p>Hi</p>")

    assert isinstance(transport, LoggingEmailTransport)
    assert result.success is True
    assert result.message_id.startswith("dev-")


def test_smtp_failure_becomes_failed_result(monkeypatch):
    monkeypatch.setattr(smtplib, "SMTP", _FailingSMTP)
    transport = build_email_transport(Settings(SMTP_HOST="smtp.example.com"))

    result = transport.send("ops@example.com", "Hi", "<p>Hi</p>", "Hi")

    assert isinstance(transport, SmtpEmailTransport)
    assert result.success is False
    assert "service not available" in result.error
