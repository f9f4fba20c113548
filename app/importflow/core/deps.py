from fastapi import Request

from app.importflow.core.config import settings
from app.importflow.core.telemetry import NullTelemetrySink, TelemetrySink
from app.importflow.services.email_transport import EmailTransport, build_email_transport


def get_email_transport(request: Request) -> EmailTransport:
    transport = getattr(request.app.state, "email_transport", None)
    if transport is None:
        transport = build_email_transport(settings)
        request.app.state.email_transport = transport
    return transport


def get_telemetry(request: Request) -> TelemetrySink:
    return getattr(request.app.state, "telemetry", None) or NullTelemetrySink()


__all__ = ["get_email_transport", "get_telemetry"]
