"""Turns raw MQTT (topic, payload) pairs into typed events.

Nothing here raises: a payload that cannot be interpreted becomes a
``RawEvent`` carrying the topic and text, so one bad publisher cannot
break ingestion.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional, Union

from .events import (
    AwayStateEvent,
    DevicePowerEvent,
    DeviceStateEvent,
    Event,
    RawEvent,
    RoomSnapshotEvent,
    SensorEvent,
    is_number,
)

logger = logging.getLogger(__name__)

_TRUE_WORDS = frozenset({"on", "true", "1", "yes"})
_FALSE_WORDS = frozenset({"off", "false", "0", "no"})


def coerce_switch(value: Any) -> Optional[bool]:
    """Interpret a command/state value (bool, number, "on"/"off"...) as on/off."""
    if isinstance(value, bool):
        return value
    if is_number(value):
        return value != 0
    if isinstance(value, str):
        word = value.strip().strip('"').lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    return None


def is_truthy(value: Any) -> bool:
    """Leak readings arrive as 1/0, true/false or occasionally as text."""
    switch = coerce_switch(value)
    return bool(switch)


def _as_text(payload: Union[bytes, bytearray, str]) -> tuple[str, Optional[str]]:
    if isinstance(payload, str):
        return payload, None
    try:
        return bytes(payload).decode("utf-8"), None
    except UnicodeDecodeError as e:
        return bytes(payload).decode("utf-8", errors="replace"), f"invalid utf-8: {e}"


def _opt_float(value: Any) -> Optional[float]:
    return float(value) if is_number(value) else None


def decode(topic: str, payload: Union[bytes, bytearray, str], base_topic: str = "home") -> Event:
    text, err = _as_text(payload)
    if err:
        return RawEvent(topic=topic, text=text, reason=err)

    parts = topic.split("/")
    is_set = len(parts) >= 2 and parts[0] == base_topic and parts[-1] == "set"

    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        # Command topics also accept bare words such as `on` or `false`
        if is_set:
            event = _decode_command(parts, coerce_switch(text), None)
            if event is not None:
                return event
        logger.debug("Undecodable payload on %s: %s", topic, e)
        return RawEvent(topic=topic, text=text, reason=f"invalid json: {e}")

    try:
        event = _classify(parts, data, base_topic)
    except (TypeError, ValueError, AttributeError) as e:
        logger.debug("Unclassifiable payload on %s: %s", topic, e)
        event = None
    if event is None:
        return RawEvent(topic=topic, text=text, reason="unrecognised message shape")
    return event


def _classify(parts: list[str], data: Any, base_topic: str) -> Optional[Event]:
    if not parts or parts[0] != base_topic:
        return _classify_by_type(None, data)

    # home/system/away/state|set
    if parts[1:3] == ["system", "away"] and len(parts) == 4:
        if parts[3] == "set":
            value = data.get("value") if isinstance(data, dict) else data
            ts = data.get("timestamp") if isinstance(data, dict) else None
            return _decode_command(parts, coerce_switch(value), ts)
        if parts[3] == "state" and isinstance(data, dict):
            value = coerce_switch(data.get("value"))
            if value is None:
                return None
            return AwayStateEvent(value=value, timestamp=data.get("timestamp"))
        return None

    room = parts[1] if len(parts) > 1 else None

    # home/<room>/device/<id>/power|state|set
    if len(parts) == 5 and parts[2] == "device":
        device, leaf = parts[3], parts[4]
        if leaf == "set":
            value = data.get("value") if isinstance(data, dict) else data
            ts = data.get("timestamp") if isinstance(data, dict) else None
            return _decode_command(parts, coerce_switch(value), ts)
        if not isinstance(data, dict):
            return None
        if leaf == "state":
            active = coerce_switch(data.get("active"))
            if active is None:
                return None
            return DeviceStateEvent(
                device=str(data.get("device") or device),
                room=str(data.get("room") or room),
                active=active,
                timestamp=data.get("timestamp"),
            )
        if leaf == "power":
            return _device_power(data, room=room, device=device)
        return None

    if not isinstance(data, dict):
        return None

    # home/<room>/sensors (consolidated snapshot)
    if len(parts) == 3 and parts[2] == "sensors":
        return RoomSnapshotEvent(
            location=str(data.get("location") or room),
            temperature=data.get("temperature"),
            humidity=data.get("humidity"),
            co2=data.get("co2"),
            power=data.get("power"),
            timestamp=data.get("timestamp"),
        )

    # home/<room>/sensor/<kind>
    if len(parts) == 4 and parts[2] == "sensor":
        return _sensor(data, room=room, kind=parts[3])

    return _classify_by_type(room, data)


def _classify_by_type(room: Optional[str], data: Any) -> Optional[Event]:
    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        return None
    kind = data["type"]
    if kind == "device_power":
        return _device_power(data, room=room, device=None)
    if kind == "away_state":
        value = coerce_switch(data.get("value"))
        return None if value is None else AwayStateEvent(value=value, timestamp=data.get("timestamp"))
    if "value" in data:
        return _sensor(data, room=room, kind=kind)
    return None


def _sensor(data: dict, room: Optional[str], kind: str) -> SensorEvent:
    type_ = data.get("type")
    return SensorEvent(
        device_id=data.get("deviceId"),
        type=type_ if isinstance(type_, str) else kind,
        value=data.get("value"),
        unit=data.get("unit"),
        timestamp=data.get("timestamp"),
        location=data.get("location") or room,
    )


def _device_power(data: dict, room: Optional[str], device: Optional[str]) -> Optional[DevicePowerEvent]:
    name = data.get("device") or device
    if not name:
        return None
    return DevicePowerEvent(
        device_id=data.get("deviceId"),
        device=str(name),
        value=data.get("value"),
        expected=_opt_float(data.get("expected")),
        active=bool(coerce_switch(data.get("active"))),
        timestamp=data.get("timestamp"),
        location=data.get("location") or room,
        unit=data.get("unit") or "W",
    )


def _decode_command(parts: list[str], value: Optional[bool], ts: Optional[str]) -> Optional[Event]:
    if value is None:
        return None
    if parts[1:3] == ["system", "away"]:
        return AwayStateEvent(value=value, timestamp=ts, command=True)
    if len(parts) == 5 and parts[2] == "device":
        return DeviceStateEvent(device=parts[3], room=parts[1], active=value, timestamp=ts, command=True)
    return None
