from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Optional, Protocol, runtime_checkable

MessageHandler = Callable[[str, bytes], None]


@runtime_checkable
class Transport(Protocol):
    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...

    def publish(self, topic: str, payload: str, retain: bool = False) -> None:
        ...

    def subscribe(self, topic: str) -> None:
        ...

    def set_message_handler(self, handler: Optional[MessageHandler]) -> None:
        ...


@dataclass
class SimulatorState:
    away_mode: bool = False
    # room -> device -> forced on/off
    overrides: dict[str, dict[str, bool]] = field(default_factory=dict)


@runtime_checkable
class StateStore(Protocol):
    async def init(self) -> None:
        ...

    async def load(self) -> SimulatorState:
        ...

    async def save(self, state: SimulatorState) -> None:
        ...


@runtime_checkable
class HistorySink(Protocol):
    def append(self, record: dict[str, Any], day: Optional[date] = None) -> None:
        ...
