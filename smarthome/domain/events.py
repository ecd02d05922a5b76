from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


class EventKind(str, Enum):
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    POWER = "power"
    CO2 = "co2"
    LEAK = "leak"
    SENSOR = "sensor"  # any sensor type not listed above
    DEVICE_POWER = "device_power"
    DEVICE_STATE = "device_state"
    AWAY_STATE = "away_state"
    ROOM_SNAPSHOT = "room_snapshot"
    RAW = "raw"


SENSOR_KINDS = frozenset({
    EventKind.TEMPERATURE, EventKind.HUMIDITY, EventKind.POWER, EventKind.CO2, EventKind.LEAK,
})

# Sensors with a single "current" value on the dashboard
SINGLE_VALUE_TYPES = ("temperature", "humidity", "power", "co2")


@dataclass(frozen=True)
class SensorEvent:
    device_id: Optional[str]
    type: str  # open: unknown sensor kinds are kept verbatim
    value: Any
    unit: Optional[str]
    timestamp: Optional[str]
    location: Optional[str]

    @property
    def kind(self) -> EventKind:
        try:
            kind = EventKind(self.type)
        except ValueError:
            return EventKind.SENSOR
        return kind if kind in SENSOR_KINDS else EventKind.SENSOR


@dataclass(frozen=True)
class DevicePowerEvent:
    device_id: Optional[str]
    device: str
    value: Any
    expected: Optional[float]
    active: bool
    timestamp: Optional[str]
    location: Optional[str]
    unit: str = "W"
    type: str = "device_power"

    @property
    def kind(self) -> EventKind:
        return EventKind.DEVICE_POWER


@dataclass(frozen=True)
class DeviceStateEvent:
    device: str
    room: str
    active: bool
    timestamp: Optional[str]
    command: bool = False  # True when decoded from a `.../set` topic

    @property
    def kind(self) -> EventKind:
        return EventKind.DEVICE_STATE


@dataclass(frozen=True)
class AwayStateEvent:
    value: bool
    timestamp: Optional[str]
    command: bool = False
    type: str = "away_state"

    @property
    def kind(self) -> EventKind:
        return EventKind.AWAY_STATE


@dataclass(frozen=True)
class RoomSnapshotEvent:
    location: str
    temperature: Any
    humidity: Any
    co2: Any
    power: Any
    timestamp: Optional[str]

    @property
    def kind(self) -> EventKind:
        return EventKind.ROOM_SNAPSHOT


@dataclass(frozen=True)
class RawEvent:
    topic: str
    text: str
    reason: str

    @property
    def kind(self) -> EventKind:
        return EventKind.RAW


Event = Union[
    SensorEvent,
    DevicePowerEvent,
    DeviceStateEvent,
    AwayStateEvent,
    RoomSnapshotEvent,
    RawEvent,
]


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
