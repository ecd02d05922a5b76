from __future__ import annotations
import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class OutboundMessage:
    topic: str
    body: dict[str, Any]
    retain: bool = False

    def payload(self) -> str:
        return json.dumps(self.body, separators=(",", ":"))


def away_set_topic(base_topic: str = "home") -> str:
    return f"{base_topic}/system/away/set"


def away_state_topic(base_topic: str = "home") -> str:
    return f"{base_topic}/system/away/state"


def device_topic(room: str, device: str, leaf: str, base_topic: str = "home") -> str:
    return f"{base_topic}/{room}/device/{device}/{leaf}"


def away_command(value: bool, base_topic: str = "home") -> OutboundMessage:
    return OutboundMessage(away_set_topic(base_topic), {"value": bool(value)})


def device_command(room: str, device: str, on: bool, base_topic: str = "home") -> OutboundMessage:
    return OutboundMessage(
        device_topic(room, device, "set", base_topic),
        {"value": "on" if on else "off"},
    )


# --- Retained state published by the simulator ---

def away_state_message(value: bool, timestamp: str, base_topic: str = "home") -> OutboundMessage:
    return OutboundMessage(
        away_state_topic(base_topic),
        {"type": "away_state", "value": bool(value), "timestamp": timestamp},
        retain=True,
    )


def device_state_message(
    room: str, device: str, active: bool, timestamp: str, base_topic: str = "home"
) -> OutboundMessage:
    return OutboundMessage(
        device_topic(room, device, "state", base_topic),
        {"device": device, "room": room, "active": bool(active), "timestamp": timestamp},
        retain=True,
    )


def subscription_topics(base_topic: str = "home", control: bool = False) -> list[str]:
    """Wildcards for the dashboard, or for the simulator's control listener."""
    if control:
        return [away_set_topic(base_topic), f"{base_topic}/+/device/+/set"]
    return [
        f"{base_topic}/+/sensor/+",
        f"{base_topic}/+/device/+/power",
        f"{base_topic}/+/device/+/state",
        away_state_topic(base_topic),
    ]


def sensor_topic(room: str, kind: str, base_topic: str = "home") -> str:
    return f"{base_topic}/{room}/sensor/{kind}"


def snapshot_topic(room: str, base_topic: str = "home") -> str:
    return f"{base_topic}/{room}/sensors"

