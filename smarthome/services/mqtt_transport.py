"""paho-mqtt client shared by the dashboard and the simulator."""

from __future__ import annotations

import logging
import ssl
import time
from typing import Optional
from urllib.parse import urlparse

import paho.mqtt.client as mqtt

from ..domain.interfaces import MessageHandler

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {"mqtt": 1883, "tcp": 1883, "mqtts": 8883, "ssl": 8883, "ws": 80, "wss": 443}


class MqttTransport:
    """Thin wrapper around ``paho.mqtt.client.Client``.

    - connects asynchronously and lets paho handle reconnection
    - re-subscribes every registered topic on each (re)connect
    - hands incoming messages to a single handler, on paho's network thread
    """

    def __init__(
        self,
        broker_url: str,
        client_id: str = "smarthome",
        keepalive: int = 30,
        reconnect_min_s: int = 2,
        reconnect_max_s: int = 30,
    ) -> None:
        url = urlparse(broker_url)
        if url.scheme not in _DEFAULT_PORTS:
            raise ValueError(f"Unsupported broker scheme: {broker_url}")
        self.broker_url = broker_url
        self.host = url.hostname or "localhost"
        self.port = url.port or _DEFAULT_PORTS[url.scheme]
        self.keepalive = keepalive
        self.client_id = f"{client_id}-{int(time.time())}"

        websockets = url.scheme in ("ws", "wss")
        self._client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
            transport="websockets" if websockets else "tcp",
            protocol=mqtt.MQTTv311,
        )
        if websockets:
            self._client.ws_set_options(path=url.path or "/mqtt")
        if url.scheme in ("wss", "mqtts", "ssl"):
            self._client.tls_set(cert_reqs=ssl.CERT_REQUIRED)
        self._client.reconnect_delay_set(min_delay=reconnect_min_s, max_delay=reconnect_max_s)

        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message

        self._topics: list[str] = []
        self._handler: Optional[MessageHandler] = None
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    def set_message_handler(self, handler: Optional[MessageHandler]) -> None:
        self._handler = handler

    def subscribe(self, topic: str) -> None:
        if topic not in self._topics:
            self._topics.append(topic)
        if self._connected:
            self._client.subscribe(topic, qos=0)

    def publish(self, topic: str, payload: str, retain: bool = False) -> None:
        info = self._client.publish(topic, payload, qos=0, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            # Fire-and-forget: paho queues while offline, we only log
            logger.warning("[MQTT] Publish to %s not sent (rc=%s)", topic, info.rc)
        else:
            logger.debug("[MQTT] Published %s: %s", topic, payload)

    def start(self) -> None:
        logger.info("[MQTT] Connecting to %s", self.broker_url)
        try:
            self._client.connect_async(self.host, self.port, keepalive=self.keepalive)
        except (OSError, ValueError) as e:
            logger.error("[MQTT] Connect setup failed: %s", e)
        self._client.loop_start()

    def stop(self) -> None:
        try:
            self._client.disconnect()
            self._client.loop_stop()
        except Exception as e:
            logger.warning("[MQTT] Disconnect error: %s", e)
        self._connected = False

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            self._connected = False
            logger.error("[MQTT] Connection refused: %s", reason_code)
            return
        self._connected = True
        logger.info("[MQTT] Connected to broker %s", self.broker_url)
        for topic in self._topics:
            client.subscribe(topic, qos=0)
            logger.info("[MQTT] Subscribed to %s", topic)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        self._connected = False
        logger.warning("[MQTT] Disconnected (%s), paho will retry", reason_code)

    def _on_message(self, client, userdata, msg):
        if self._handler is None:
            return
        try:
            self._handler(msg.topic, msg.payload)
        except Exception:
            logger.exception("[MQTT] Handler failed for %s", msg.topic)
