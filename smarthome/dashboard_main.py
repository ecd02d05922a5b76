"""Dashboard service: subscribes to the telemetry topics and serves live state.

Run: uvicorn smarthome.dashboard_main:app --port 8000
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .core.config import settings
from .core.log import configure_logging

from .api.dashboard_routes import router as api_router
import smarthome.api.dashboard_routes as routes_module

from .domain.alerts import Thresholds
from .domain.reducer import TelemetryReducer
from .services.alert_inbox import AlertInbox
from .services.dashboard import DashboardService
from .services.mqtt_transport import MqttTransport


logger = logging.getLogger(__name__)


# --- Singletons ---
transport = MqttTransport(
    settings.broker_url,
    client_id=f"{settings.mqtt_client_id}-dashboard",
    keepalive=settings.mqtt_keepalive,
    reconnect_min_s=settings.mqtt_reconnect_min_seconds,
    reconnect_max_s=settings.mqtt_reconnect_max_seconds,
)
reducer = TelemetryReducer(
    transport=transport,
    capacity=settings.event_log_capacity,
    thresholds=Thresholds.from_settings(settings),
    base_topic=settings.base_topic,
)
inbox = AlertInbox(dismiss_after_s=settings.alert_dismiss_seconds)
service = DashboardService(transport, reducer, inbox, base_topic=settings.base_topic)


def get_reducer() -> TelemetryReducer:
    return reducer


def get_inbox() -> AlertInbox:
    return inbox


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Starting %s dashboard (broker=%s)", settings.app_name, settings.broker_url)

    await service.start()
    try:
        yield
    finally:
        await service.stop()
        logger.info("Shutdown complete")


app = FastAPI(title=f"{settings.app_name} dashboard", lifespan=lifespan)

app.dependency_overrides[routes_module.get_reducer] = get_reducer
app.dependency_overrides[routes_module.get_inbox] = get_inbox

app.include_router(api_router, prefix="/api")
