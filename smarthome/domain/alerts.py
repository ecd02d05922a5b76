from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

from .events import DevicePowerEvent, is_number
from .projection import LatestValues


class AlertLevel(str, Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    ALERT = "alert"


@dataclass(frozen=True)
class Alert:
    level: AlertLevel
    message: str
    key: str  # rule:room[:device], stable across re-evaluations


@dataclass(frozen=True)
class Thresholds:
    power_total_max: float = 2000
    temperature_min: float = 18
    temperature_max: float = 28
    humidity_min: float = 30
    humidity_max: float = 70
    co2_max: float = 1000
    device_over_pct: float = 0.5
    anomaly_expected_min: float = 50
    anomaly_value_max: float = 5

    @classmethod
    def from_settings(cls, s: Any) -> "Thresholds":
        return cls(
            power_total_max=s.power_total_max_w,
            temperature_min=s.temperature_min_c,
            temperature_max=s.temperature_max_c,
            humidity_min=s.humidity_min_pct,
            humidity_max=s.humidity_max_pct,
            co2_max=s.co2_max_ppm,
            device_over_pct=s.device_over_pct,
            anomaly_expected_min=s.device_anomaly_expected_w,
            anomaly_value_max=s.device_anomaly_value_w,
        )


def _num(value: float) -> str:
    """Render a reading at source precision: 1200.0 -> '1200', 3.5 -> '3.5'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _value(event: Any) -> Optional[float]:
    if event is None or not is_number(event.value):
        return None
    return event.value


def evaluate_alerts(
    latest: LatestValues,
    devices: Sequence[DevicePowerEvent],
    room: Optional[str],
    thresholds: Thresholds = Thresholds(),
) -> list[Alert]:
    """Evaluate the fixed rule set; output order is power, temperature, humidity, co2, devices."""
    t = thresholds
    where = room or "all rooms"
    scope = room or "*"
    out: list[Alert] = []

    power = _value(latest.power)
    if power is not None and power > t.power_total_max:
        out.append(Alert(
            AlertLevel.WARN,
            f"Total power consumption high in {where}: {power:.0f} W (> {_num(t.power_total_max)} W)",
            f"power_total:{scope}",
        ))

    temp = _value(latest.temperature)
    if temp is not None and (temp < t.temperature_min or temp > t.temperature_max):
        rec = "lower the AC" if temp > t.temperature_max else "raise heating"
        out.append(Alert(
            AlertLevel.INFO,
            f"Temperature out of range in {where} ({temp:.1f}°C). Recommendation: {rec}.",
            f"temperature:{scope}",
        ))

    hum = _value(latest.humidity)
    if hum is not None and (hum < t.humidity_min or hum > t.humidity_max):
        rec = "use a dehumidifier" if hum > t.humidity_max else "use a humidifier"
        out.append(Alert(
            AlertLevel.INFO,
            f"Humidity out of range in {where} ({hum:.1f}%). Recommendation: {rec}.",
            f"humidity:{scope}",
        ))

    co2 = _value(latest.co2)
    if co2 is not None and co2 > t.co2_max:
        out.append(Alert(
            AlertLevel.ALERT,
            f"Poor air quality in {where} (CO2 {_num(co2)} ppm). Recommendation: ventilate the room.",
            f"co2:{scope}",
        ))

    for dev in devices:
        value = _value(dev)
        if dev.expected is None or value is None:
            continue
        label = f"{dev.device} ({dev.location})" if dev.location else dev.device
        dev_key = f"{dev.location or scope}:{dev.device}"
        if value > dev.expected * (1 + t.device_over_pct):
            out.append(Alert(
                AlertLevel.WARN,
                f"Device {label} consuming more than expected ({_num(value)}W vs {_num(dev.expected)}W).",
                f"device_over:{dev_key}",
            ))
        if dev.expected > t.anomaly_expected_min and value < t.anomaly_value_max:
            out.append(Alert(
                AlertLevel.ERROR,
                f"Possible anomaly on {label}: zero draw while expected active.",
                f"device_anomaly:{dev_key}",
            ))

    return out
