"""Derived views over an event-log snapshot.

Every function here is a pure function of the snapshot. "Latest" always
means latest in arrival order (log position); the payload timestamps are
never compared, since publisher clocks may skew.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Literal, Optional, Sequence

from .decoder import is_truthy
from .events import (
    SINGLE_VALUE_TYPES,
    AwayStateEvent,
    DevicePowerEvent,
    DeviceStateEvent,
    Event,
    SensorEvent,
    is_number,
)

DeviceFilter = Literal["active", "inactive", "all"]

MAX_LEAK_ROOMS = 5


@dataclass(frozen=True)
class LatestValues:
    temperature: Optional[SensorEvent] = None
    humidity: Optional[SensorEvent] = None
    power: Optional[SensorEvent] = None
    co2: Optional[SensorEvent] = None

    def get(self, sensor_type: str) -> Optional[SensorEvent]:
        return getattr(self, sensor_type, None)


@dataclass(frozen=True)
class LeakStatus:
    active: bool = False
    rooms: list[str] = field(default_factory=list)


def latest_values(events: Sequence[Event], room: Optional[str] = None) -> LatestValues:
    found: dict[str, SensorEvent] = {}
    for ev in reversed(events):
        if not isinstance(ev, SensorEvent) or ev.type not in SINGLE_VALUE_TYPES:
            continue
        if room is not None and ev.location != room:
            continue
        if ev.type not in found:
            found[ev.type] = ev
            if len(found) == len(SINGLE_VALUE_TYPES):
                break
    return LatestValues(**found)


def device_latest(events: Sequence[Event], room: Optional[str] = None) -> list[DevicePowerEvent]:
    """Most recent power reading per device, in backward-scan discovery order.

    A reported `/state` newer than that reading overrides its `active`
    flag, so a toggle is reflected before the next power sample arrives.
    Command echoes are intents and never override anything.
    """
    seen: dict[str, DevicePowerEvent] = {}
    newer_state: dict[str, bool] = {}
    for ev in reversed(events):
        if isinstance(ev, DeviceStateEvent):
            if ev.command or (room is not None and ev.room != room):
                continue
            newer_state.setdefault(_device_key(ev.room, ev.device, room), ev.active)
            continue
        if not isinstance(ev, DevicePowerEvent):
            continue
        if room is not None and ev.location != room:
            continue
        key = _device_key(ev.location, ev.device, room)
        if key in seen:
            continue
        state = newer_state.get(key)
        if state is not None and state != ev.active:
            ev = replace(ev, active=state)
        seen[key] = ev
    return list(seen.values())


def _device_key(location: Optional[str], device: str, room: Optional[str]) -> str:
    # Without a room filter the same device id may exist in two rooms
    return device if room is not None else f"{location}/{device}"


def filter_devices(devices: Iterable[DevicePowerEvent], mode: DeviceFilter = "all") -> list[DevicePowerEvent]:
    if mode == "active":
        return [d for d in devices if d.active]
    if mode == "inactive":
        return [d for d in devices if not d.active]
    return list(devices)


def away_mode(events: Sequence[Event]) -> Optional[bool]:
    """Last reported away state; commands are intents, not state, and are skipped."""
    for ev in reversed(events):
        if isinstance(ev, AwayStateEvent) and not ev.command:
            return ev.value
    return None


def sensor_series(
    events: Sequence[Event], room: Optional[str], sensor_type: str
) -> list[tuple[Optional[str], Any]]:
    return [
        (ev.timestamp, ev.value)
        for ev in events
        if isinstance(ev, SensorEvent)
        and ev.type == sensor_type
        and (room is None or ev.location == room)
        and is_number(ev.value)
    ]


def leak_status(events: Sequence[Event]) -> LeakStatus:
    rooms: list[str] = []
    for ev in reversed(events):
        if not isinstance(ev, SensorEvent) or ev.type != "leak" or not is_truthy(ev.value):
            continue
        where = ev.location or "?"
        if where not in rooms:
            rooms.append(where)
            if len(rooms) == MAX_LEAK_ROOMS:
                break
    if not rooms:
        return LeakStatus()
    rooms.reverse()
    return LeakStatus(active=True, rooms=rooms)
