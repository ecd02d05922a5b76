"""Simulator + history server.

Run: uvicorn smarthome.main:app --port 3000
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .core.config import settings
from .core.log import configure_logging

from .api.history_routes import router as history_router
import smarthome.api.history_routes as routes_module

from .services.mqtt_transport import MqttTransport
from .services.signals import ROOM_DEVICES, DeviceProfile
from .services.simulator import SimulatorService
from .storage.history_log import NdjsonHistoryLog
from .storage.sqlite_store import SQLiteStateStore


logger = logging.getLogger(__name__)


def _configured_rooms() -> dict[str, list[DeviceProfile]]:
    rooms = {}
    for room in settings.rooms:
        if room not in ROOM_DEVICES:
            logger.warning("Room %s has no device profiles; publishing sensors only", room)
        rooms[room] = ROOM_DEVICES.get(room, [])
    return rooms


# --- Singletons ---
history = NdjsonHistoryLog(settings.history_dir)
store = SQLiteStateStore(settings.sqlite_path)
simulator: SimulatorService | None = None


def get_history() -> NdjsonHistoryLog:
    return history


def get_simulator() -> SimulatorService | None:
    return simulator


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Starting %s (broker=%s)", settings.service_name, settings.broker_url)

    await store.init()

    global simulator
    simulator = SimulatorService(
        transport=MqttTransport(
            settings.broker_url,
            client_id=f"{settings.mqtt_client_id}-publisher",
            keepalive=settings.mqtt_keepalive,
            reconnect_min_s=settings.mqtt_reconnect_min_seconds,
            reconnect_max_s=settings.mqtt_reconnect_max_seconds,
        ),
        store=store,
        history=history,
        rooms=_configured_rooms(),
        interval_s=settings.publish_interval_seconds,
        base_topic=settings.base_topic,
        leak_probability=settings.leak_probability,
        leak_probability_away=settings.leak_probability_away,
    )
    await simulator.start()

    try:
        yield
    finally:
        if simulator:
            await simulator.stop()
        logger.info("Shutdown complete")


app = FastAPI(title=f"{settings.app_name} publisher", lifespan=lifespan)

app.dependency_overrides[routes_module.get_history] = get_history
app.dependency_overrides[routes_module.get_simulator] = get_simulator

app.include_router(history_router)
