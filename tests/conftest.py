"""Shared fixtures: an in-memory transport and state store stand in for the broker and SQLite."""

import json
from typing import Any, Dict, List, Optional, Tuple

import pytest

from smarthome.domain.interfaces import SimulatorState
from smarthome.domain.reducer import TelemetryReducer


class FakeTransport:
    def __init__(self) -> None:
        self.published: List[Tuple[str, str, bool]] = []
        self.subscriptions: List[str] = []
        self.handler = None
        self.started = False
        self.stopped = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def publish(self, topic: str, payload: str, retain: bool = False) -> None:
        self.published.append((topic, payload, retain))

    def subscribe(self, topic: str) -> None:
        self.subscriptions.append(topic)

    def set_message_handler(self, handler) -> None:
        self.handler = handler

    def bodies(self, topic: str) -> List[Dict[str, Any]]:
        return [json.loads(p) for t, p, _ in self.published if t == topic]


class MemoryStore:
    def __init__(self, initial: Optional[SimulatorState] = None) -> None:
        self.state = initial or SimulatorState()
        self.saves: List[SimulatorState] = []

    async def init(self) -> None:
        pass

    async def load(self) -> SimulatorState:
        return SimulatorState(
            away_mode=self.state.away_mode,
            overrides={r: dict(d) for r, d in self.state.overrides.items()},
        )

    async def save(self, state: SimulatorState) -> None:
        self.state = SimulatorState(
            away_mode=state.away_mode,
            overrides={r: dict(d) for r, d in state.overrides.items()},
        )
        self.saves.append(self.state)


class MemoryHistory:
    def __init__(self) -> None:
        self.records: List[Tuple[Dict[str, Any], Any]] = []

    def append(self, record, day=None) -> None:
        self.records.append((record, day))


def sensor_payload(kind: str, value: Any, room: str = "cocina", **extra) -> str:
    body = {
        "deviceId": f"sim-{room}-{kind}",
        "type": kind,
        "value": value,
        "unit": extra.pop("unit", ""),
        "timestamp": extra.pop("timestamp", "2024-05-01T12:00:00.000Z"),
        "location": room,
    }
    body.update(extra)
    return json.dumps(body)


def device_payload(device: str, value: Any, expected: Any = None, active: bool = True, room: str = "cocina") -> str:
    body = {
        "deviceId": f"sim-{room}-{device}",
        "type": "device_power",
        "value": value,
        "active": active,
        "unit": "W",
        "timestamp": "2024-05-01T12:00:00.000Z",
        "location": room,
        "device": device,
    }
    if expected is not None:
        body["expected"] = expected
    return json.dumps(body)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def reducer(transport) -> TelemetryReducer:
    return TelemetryReducer(transport=transport, capacity=300)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def memory_history() -> MemoryHistory:
    return MemoryHistory()
