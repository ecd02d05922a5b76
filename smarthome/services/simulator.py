from __future__ import annotations
import asyncio
import concurrent.futures
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Union

from ..core.timeutil import now_local
from ..domain.commands import (
    OutboundMessage,
    away_state_message,
    device_state_message,
    device_topic,
    sensor_topic,
    snapshot_topic,
    subscription_topics,
)
from ..domain.decoder import decode
from ..domain.events import AwayStateEvent, DeviceStateEvent
from ..domain.interfaces import HistorySink, SimulatorState, StateStore, Transport
from .signals import DeviceProfile, SignalGenerator

logger = logging.getLogger(__name__)


@dataclass
class SimulatorLive:
    cycles: int = 0
    last_cycle_local: Optional[datetime] = None
    last_error: Optional[str] = None
    away_mode: bool = False


def _iso(dt: datetime) -> str:
    return dt.isoformat(timespec="milliseconds")


class SimulatorService:
    """Publishes synthetic telemetry for every room on a fixed interval and
    obeys away/device commands arriving on the control topics."""

    def __init__(
        self,
        transport: Transport,
        store: StateStore,
        history: HistorySink,
        rooms: dict[str, list[DeviceProfile]],
        signals: Optional[SignalGenerator] = None,
        interval_s: float = 30,
        base_topic: str = "home",
        leak_probability: float = 0.02,
        leak_probability_away: float = 0.002,
    ) -> None:
        self._transport = transport
        self._store = store
        self._history = history
        self._rooms = rooms
        self._signals = signals or SignalGenerator()
        self._interval_s = interval_s
        self._base_topic = base_topic
        self._p_leak = leak_probability
        self._p_leak_away = leak_probability_away

        self.state = SimulatorState()
        self.live = SimulatorLive()

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self.state = await self._store.load()
        self.live.away_mode = self.state.away_mode
        logger.info(
            "Simulator state loaded (away=%s overrides=%s)", self.state.away_mode, self.state.overrides
        )

        self._transport.set_message_handler(self._on_control)
        for topic in subscription_topics(self._base_topic, control=True):
            self._transport.subscribe(topic)
        self._transport.start()
        self._send(away_state_message(self.state.away_mode, _iso(now_local()), self._base_topic))

        self._stop.clear()
        self._task = asyncio.create_task(self._run(), name="simulator_loop")

    async def stop(self) -> None:
        self._stop.set()
        if self._task:
            await self._task
            self._task = None
        self._transport.set_message_handler(None)
        self._transport.stop()

    async def _run(self) -> None:
        logger.info("Simulator loop started (interval=%ss rooms=%s)", self._interval_s, list(self._rooms))
        while not self._stop.is_set():
            try:
                self.publish_cycle(now_local())
            except Exception as e:
                self.live.last_error = str(e)
                logger.exception("Simulator cycle failed: %s", e)

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval_s)
            except asyncio.TimeoutError:
                pass
        logger.info("Simulator loop stopped")

    # --- Publishing ---

    def _send(self, msg: OutboundMessage) -> None:
        self._transport.publish(msg.topic, msg.payload(), retain=msg.retain)

    def _sensor(self, room: str, kind: str, value: Any, unit: str, ts: str) -> None:
        body = {
            "deviceId": f"sim-{room}-{kind}",
            "type": kind,
            "value": value,
            "unit": unit,
            "timestamp": ts,
            "location": room,
        }
        self._send(OutboundMessage(sensor_topic(room, kind, self._base_topic), body))

    def publish_cycle(self, now: datetime) -> list[dict[str, Any]]:
        """Publish one reading set per room and append one history record per room."""
        ts = _iso(now)
        away = self.state.away_mode
        records = []

        for room, profiles in self._rooms.items():
            temp = self._signals.temperature(now)
            hum = self._signals.humidity(now)
            co2 = self._signals.co2(now)
            leak = self._signals.leak(away, self._p_leak, self._p_leak_away)

            overrides = self.state.overrides.get(room, {})
            total = 0
            devices = []
            for profile in profiles:
                sample = self._signals.device_power(profile, overrides.get(profile.id))
                total += sample.value
                self._send(OutboundMessage(
                    device_topic(room, profile.id, "power", self._base_topic),
                    {
                        "deviceId": f"sim-{room}-{profile.id}",
                        "type": "device_power",
                        "value": sample.value,
                        "expected": sample.expected,
                        "active": sample.on,
                        "unit": "W",
                        "timestamp": ts,
                        "location": room,
                        "device": profile.id,
                    },
                ))
                self._send(device_state_message(room, profile.id, sample.on, ts, self._base_topic))
                devices.append({
                    "device": profile.id,
                    "value": sample.value,
                    "expected": sample.expected,
                    "active": sample.on,
                })

            self._sensor(room, "temperature", temp, "C", ts)
            self._sensor(room, "humidity", hum, "%", ts)
            self._sensor(room, "co2", co2, "ppm", ts)
            self._sensor(room, "power", total, "W", ts)
            self._sensor(room, "leak", leak, "", ts)
            self._send(OutboundMessage(
                snapshot_topic(room, self._base_topic),
                {
                    "temperature": temp,
                    "humidity": hum,
                    "co2": co2,
                    "power": total,
                    "timestamp": ts,
                    "location": room,
                },
            ))
            if leak:
                logger.warning("Simulated leak in %s", room)

            records.append({
                "ts": ts,
                "room": room,
                "away": away,
                "temperature": temp,
                "humidity": hum,
                "co2": co2,
                "leak": leak,
                "power": total,
                "devices": devices,
            })

        day: date = now.date()
        for rec in records:
            try:
                self._history.append(rec, day=day)
            except OSError as e:
                logger.error("History append failed for %s: %s", rec["room"], e)

        self.live.cycles += 1
        self.live.last_cycle_local = now
        self.live.last_error = None
        logger.info("Published cycle %d for %d room(s)", self.live.cycles, len(records))
        return records

    # --- Control ---

    def _on_control(self, topic: str, payload: Union[bytes, str]) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        fut = asyncio.run_coroutine_threadsafe(self.apply_control(topic, payload), loop)
        fut.add_done_callback(lambda f: self._control_done(topic, f))

    def _control_done(self, topic: str, fut: concurrent.futures.Future) -> None:
        if fut.cancelled():
            return
        exc = fut.exception()
        if exc is not None:
            self.live.last_error = str(exc)
            logger.error("Control message on %s failed", topic, exc_info=exc)

    def _next_state(self) -> SimulatorState:
        return SimulatorState(
            away_mode=self.state.away_mode,
            overrides={room: dict(devs) for room, devs in self.state.overrides.items()},
        )

    async def apply_control(self, topic: str, payload: Union[bytes, str]) -> bool:
        """Apply one command message; returns False when it was ignored.

        The new state is persisted before it takes effect, so a failed save
        leaves memory, store and retained state in agreement.
        """
        event = decode(topic, payload, self._base_topic)
        ts = _iso(now_local())

        if isinstance(event, AwayStateEvent) and event.command:
            state = self._next_state()
            state.away_mode = event.value
            await self._store.save(state)
            self.state = state
            self.live.away_mode = event.value
            self._send(away_state_message(event.value, ts, self._base_topic))
            logger.info("Away mode set to %s", event.value)
            return True

        if isinstance(event, DeviceStateEvent) and event.command:
            known = {p.id for p in self._rooms.get(event.room, [])}
            if event.device not in known:
                logger.warning("Ignoring command for unknown device %s/%s", event.room, event.device)
                return False
            state = self._next_state()
            state.overrides.setdefault(event.room, {})[event.device] = event.active
            await self._store.save(state)
            self.state = state
            self._send(device_state_message(event.room, event.device, event.active, ts, self._base_topic))
            logger.info("Override %s/%s -> %s", event.room, event.device, "on" if event.active else "off")
            return True

        logger.warning("Ignoring control message on %s", topic)
        return False
