from __future__ import annotations
import math
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class DeviceProfile:
    id: str
    base: float   # W when off / idle
    peak: float   # W when on
    duty: float   # probability of being on in a cycle


ROOM_DEVICES: dict[str, list[DeviceProfile]] = {
    "cocina": [
        DeviceProfile("heladera", 120, 180, 0.6),
        DeviceProfile("microondas", 0, 1100, 0.05),
        DeviceProfile("cafetera", 0, 800, 0.03),
    ],
    "jardin": [
        DeviceProfile("bomba_agua", 0, 400, 0.1),
        DeviceProfile("luces_exterior", 20, 60, 0.7),
        DeviceProfile("cortadora", 0, 1200, 0.01),
    ],
    "bano": [
        DeviceProfile("calentador_agua", 0, 1500, 0.15),
        DeviceProfile("extractor", 0, 60, 0.3),
        DeviceProfile("luces", 5, 25, 0.5),
    ],
    "habitacion": [
        DeviceProfile("aire_acondicionado", 0, 1200, 0.2),
        DeviceProfile("pc", 40, 250, 0.5),
        DeviceProfile("lampara", 5, 20, 0.6),
    ],
}


@dataclass(frozen=True)
class DeviceSample:
    on: bool
    expected: int
    value: int


class SignalGenerator:
    """Synthetic household signals: daily cycles plus gaussian noise."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    @staticmethod
    def _hour(now: datetime) -> float:
        return now.hour + now.minute / 60.0

    def temperature(self, now: datetime) -> float:
        base = 21 + 3 * math.sin((2 * math.pi / 24) * (self._hour(now) - 3))
        return round(base + self._rng.gauss(0, 0.4), 2)

    def humidity(self, now: datetime) -> float:
        base = 55 - 6 * math.sin((2 * math.pi / 24) * (self._hour(now) - 3))
        val = base + self._rng.gauss(0, 1.2)
        return round(min(90.0, max(20.0, val)), 2)

    def co2(self, now: datetime) -> int:
        # Occupancy peaks: breakfast and evening
        base = 900 if (8 <= now.hour <= 10 or 19 <= now.hour <= 22) else 500
        return round(max(380.0, base + self._rng.gauss(0, 80)))

    def device_power(self, profile: DeviceProfile, forced: Optional[bool] = None) -> DeviceSample:
        on = forced if forced is not None else self._rng.random() < profile.duty
        expected = profile.peak if on else profile.base
        noise = self._rng.gauss(0, max(5.0, expected * 0.05))
        return DeviceSample(on=on, expected=round(expected), value=round(max(0.0, expected + noise)))

    def leak(self, away: bool, p_home: float, p_away: float) -> int:
        p = p_away if away else p_home
        return 1 if self._rng.random() < p else 0
