from fastapi import APIRouter

from app.importflow.core.config import settings
from app.importflow.routers.alerts import router as alerts_router
from app.importflow.routers.archives import router as archives_router
from app.importflow.routers.health import router as health_router
from app.importflow.routers.metrics import router as metrics_router
from app.importflow.routers.notifications import router as notifications_router
from app.importflow.routers.scheduler import router as scheduler_router
from app.importflow.routers.shipments import router as shipments_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(shipments_router, tags=["shipments"])
api_router.include_router(alerts_router, tags=["alerts"])
api_router.include_router(archives_router, tags=["archives"])
api_router.include_router(notifications_router, tags=["notifications"])
api_router.include_router(scheduler_router, tags=["scheduler"])
if settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, tags=["ops"])
