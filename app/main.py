from fastapi import FastAPI

from app.importflow.api import api_router
from app.importflow.core.config import settings
from app.importflow.core.errors import setup_exception_handlers
from app.importflow.core.logging import configure_logging
from app.importflow.core.telemetry import BufferedTelemetrySink
from app.importflow.middleware.observability import ObservabilityMiddleware
from app.importflow.middleware.trace import TraceIdMiddleware
from app.importflow.services.email_transport import build_email_transport


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="IMPORTFLOW")
    app.state.telemetry = BufferedTelemetrySink(settings.TELEMETRY_BUFFER_SIZE)
    app.state.email_transport = build_email_transport(settings)
    app.add_middleware(TraceIdMiddleware)
    app.add_middleware(ObservabilityMiddleware)
    setup_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
