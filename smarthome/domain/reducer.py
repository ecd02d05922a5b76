from __future__ import annotations
import logging
from typing import Any, Callable, Optional, Union

from . import projection
from .alerts import Alert, Thresholds, evaluate_alerts
from .commands import OutboundMessage, away_command, device_command
from .decoder import decode
from .event_log import DEFAULT_CAPACITY, EventLog
from .events import DevicePowerEvent, Event, RawEvent
from .interfaces import Transport
from .projection import LatestValues, LeakStatus

logger = logging.getLogger(__name__)


class TelemetryReducer:
    """Folds the MQTT message stream into queryable dashboard state.

    ``handle_message`` is the only writer. Every query is recomputed from
    the log; results are memoised per log version and dropped on append.
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        capacity: int = DEFAULT_CAPACITY,
        thresholds: Thresholds = Thresholds(),
        base_topic: str = "home",
    ) -> None:
        self._transport = transport
        self._log = EventLog(capacity)
        self._thresholds = thresholds
        self._base_topic = base_topic
        self._cache: dict[tuple, Any] = {}
        self.raw_count = 0

    @property
    def log(self) -> EventLog:
        return self._log

    @property
    def thresholds(self) -> Thresholds:
        return self._thresholds

    def handle_message(self, topic: str, payload: Union[bytes, str]) -> Event:
        event = decode(topic, payload, self._base_topic)
        if isinstance(event, RawEvent):
            self.raw_count += 1
            logger.warning("Kept raw message on %s (%s)", topic, event.reason)
        self._log.append(event)
        self._cache.clear()
        return event

    def _memo(self, key: tuple, fn: Callable[[], Any]) -> Any:
        if key not in self._cache:
            self._cache[key] = fn()
        return self._cache[key]

    # --- Queries ---

    def latest(self, room: Optional[str] = None) -> LatestValues:
        return self._memo(("latest", room), lambda: projection.latest_values(self._log.snapshot(), room))

    def devices(self, room: Optional[str] = None) -> list[DevicePowerEvent]:
        return self._memo(("devices", room), lambda: projection.device_latest(self._log.snapshot(), room))

    def alerts(self, room: Optional[str] = None) -> list[Alert]:
        return self._memo(
            ("alerts", room),
            lambda: evaluate_alerts(self.latest(room), self.devices(room), room, self._thresholds),
        )

    def leak_status(self) -> LeakStatus:
        return self._memo(("leak",), lambda: projection.leak_status(self._log.snapshot()))

    def away_mode(self) -> Optional[bool]:
        return self._memo(("away",), lambda: projection.away_mode(self._log.snapshot()))

    def series(self, room: Optional[str], sensor_type: str) -> list:
        return self._memo(
            ("series", room, sensor_type),
            lambda: projection.sensor_series(self._log.snapshot(), room, sensor_type),
        )

    # --- Commands ---

    def set_away(self, value: bool) -> OutboundMessage:
        return self._send(away_command(value, self._base_topic))

    def set_device(self, room: str, device: str, on: bool) -> OutboundMessage:
        return self._send(device_command(room, device, on, self._base_topic))

    def _send(self, msg: OutboundMessage) -> OutboundMessage:
        if self._transport is None:
            raise RuntimeError("No transport configured for commands")
        self._transport.publish(msg.topic, msg.payload(), retain=msg.retain)
        logger.info("Command sent topic=%s body=%s", msg.topic, msg.body)
        return msg
