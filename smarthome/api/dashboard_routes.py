from __future__ import annotations

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..core.config import settings
from ..core.timeutil import now_local
from ..domain.alerts import Alert
from ..domain.commands import OutboundMessage
from ..domain.events import DevicePowerEvent, SensorEvent, is_number
from ..domain.projection import filter_devices
from ..domain.reducer import TelemetryReducer
from ..services.alert_inbox import AlertInbox
from .schemas import AlertOut, DeviceOut, DismissRequest, LeakOut, SwitchRequest

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependency getters, overridden in dashboard_main ---
def get_reducer() -> TelemetryReducer:
    raise RuntimeError("Reducer dependency not configured")


def get_inbox() -> AlertInbox:
    raise RuntimeError("Alert inbox dependency not configured")


def _reading(ev: Optional[SensorEvent]) -> Optional[dict]:
    if ev is None:
        return None
    return {"value": ev.value, "unit": ev.unit, "timestamp": ev.timestamp, "device_id": ev.device_id}


def _device(ev: DevicePowerEvent) -> DeviceOut:
    return DeviceOut(
        device=ev.device,
        room=ev.location,
        value=ev.value if is_number(ev.value) else None,
        expected=ev.expected,
        active=ev.active,
        timestamp=ev.timestamp,
    )


def _alert(a: Alert, visible: bool = True) -> AlertOut:
    return AlertOut(level=a.level.value, message=a.message, key=a.key, visible=visible)


def _publish(fn, *args) -> OutboundMessage:
    try:
        return fn(*args)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/rooms")
async def rooms():
    return {"rooms": settings.rooms}


@router.get("/live")
async def get_live(
    room: Optional[str] = None,
    devices: Literal["active", "inactive", "all"] = "all",
    reducer: TelemetryReducer = Depends(get_reducer),
    inbox: AlertInbox = Depends(get_inbox),
):
    latest = reducer.latest(room)
    leak = reducer.leak_status()
    return {
        "app": settings.app_name,
        "room": room,
        "now_local": now_local().isoformat(),
        "latest": {
            "temperature": _reading(latest.temperature),
            "humidity": _reading(latest.humidity),
            "power": _reading(latest.power),
            "co2": _reading(latest.co2),
        },
        "devices": [_device(d) for d in filter_devices(reducer.devices(room), devices)],
        "away": reducer.away_mode(),
        "leak": LeakOut(active=leak.active, rooms=leak.rooms),
        "alerts": [_alert(a) for a in inbox.observe(reducer.alerts(room), room or "*")],
        "log": {"size": len(reducer.log), "capacity": reducer.log.capacity, "raw": reducer.raw_count},
    }


@router.get("/alerts")
async def get_alerts(
    room: Optional[str] = None,
    reducer: TelemetryReducer = Depends(get_reducer),
    inbox: AlertInbox = Depends(get_inbox),
):
    current = reducer.alerts(room)
    inbox.observe(current, room or "*")
    return {"room": room, "alerts": [_alert(a, inbox.is_visible(a)) for a in current]}


@router.post("/alerts/dismiss")
async def dismiss_alert(req: DismissRequest, inbox: AlertInbox = Depends(get_inbox)):
    inbox.dismiss(req.key)
    return {"ok": True, "key": req.key}


@router.get("/series")
async def get_series(
    type: str,
    room: Optional[str] = None,
    reducer: TelemetryReducer = Depends(get_reducer),
):
    points = reducer.series(room, type)
    return {"room": room, "type": type, "points": [{"timestamp": ts, "value": v} for ts, v in points]}


@router.get("/leaks")
async def get_leaks(reducer: TelemetryReducer = Depends(get_reducer)):
    leak = reducer.leak_status()
    return LeakOut(active=leak.active, rooms=leak.rooms)


@router.post("/away")
async def set_away(req: SwitchRequest, reducer: TelemetryReducer = Depends(get_reducer)):
    value = req.value if req.value is not None else not bool(reducer.away_mode())
    msg = _publish(reducer.set_away, value)
    return {"ok": True, "topic": msg.topic, "body": msg.body}


@router.post("/devices/{room}/{device}")
async def set_device(
    room: str,
    device: str,
    req: SwitchRequest,
    reducer: TelemetryReducer = Depends(get_reducer),
):
    value = req.value
    if value is None:
        current = next((d for d in reducer.devices(room) if d.device == device), None)
        if current is None:
            raise HTTPException(status_code=404, detail=f"No data for device {room}/{device}")
        value = not current.active
    msg = _publish(reducer.set_device, room, device, value)
    return {"ok": True, "topic": msg.topic, "body": msg.body}
