from types import SimpleNamespace
from unittest.mock import MagicMock

import paho.mqtt.client as mqtt
import pytest

from smarthome.services.mqtt_transport import MqttTransport


@pytest.fixture
def tcp_transport() -> MqttTransport:
    t = MqttTransport("mqtt://broker.local:1884", client_id="test")
    t._client = MagicMock()
    return t


class TestBrokerUrl:

    def test_tcp_url(self):
        t = MqttTransport("mqtt://broker.local:1884")

        assert (t.host, t.port) == ("broker.local", 1884)

    def test_default_port(self):
        assert MqttTransport("mqtt://broker.local").port == 1883

    def test_unsupported_scheme(self):
        with pytest.raises(ValueError):
            MqttTransport("http://broker.local")


class TestCallbacks:

    def test_message_delegated_to_handler(self, tcp_transport):
        received = []
        tcp_transport.set_message_handler(lambda topic, payload: received.append((topic, payload)))

        tcp_transport._on_message(None, None, SimpleNamespace(topic="home/a/sensor/co2", payload=b"{}"))

        assert received == [("home/a/sensor/co2", b"{}")]

    def test_handler_failure_does_not_propagate(self, tcp_transport):
        def boom(topic, payload):
            raise ValueError("bad")

        tcp_transport.set_message_handler(boom)

        tcp_transport._on_message(None, None, SimpleNamespace(topic="t", payload=b"x"))

    def test_resubscribes_on_connect(self, tcp_transport):
        tcp_transport.subscribe("home/+/sensor/+")
        tcp_transport.subscribe("home/+/sensor/+")
        client = MagicMock()

        tcp_transport._on_connect(client, None, None, SimpleNamespace(is_failure=False))

        assert tcp_transport.is_connected is True
        client.subscribe.assert_called_once_with("home/+/sensor/+", qos=0)

    def test_refused_connection(self, tcp_transport):
        tcp_transport._on_connect(MagicMock(), None, None, SimpleNamespace(is_failure=True))

        assert tcp_transport.is_connected is False

    def test_disconnect_marks_offline(self, tcp_transport):
        tcp_transport._on_connect(MagicMock(), None, None, SimpleNamespace(is_failure=False))
        tcp_transport._on_disconnect(None, None, None, "gone")

        assert tcp_transport.is_connected is False


class TestPublish:

    def test_publish_passes_retain(self, tcp_transport):
        tcp_transport._client.publish.return_value = SimpleNamespace(rc=mqtt.MQTT_ERR_SUCCESS)

        tcp_transport.publish("home/system/away/state", '{"value":true}', retain=True)

        tcp_transport._client.publish.assert_called_once_with(
            "home/system/away/state", '{"value":true}', qos=0, retain=True
        )

    def test_publish_failure_only_logged(self, tcp_transport):
        tcp_transport._client.publish.return_value = SimpleNamespace(rc=mqtt.MQTT_ERR_NO_CONN)

        tcp_transport.publish("t", "x")
