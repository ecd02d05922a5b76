import json

import pytest

from smarthome.domain.alerts import AlertLevel
from smarthome.domain.events import RawEvent, SensorEvent
from smarthome.domain.reducer import TelemetryReducer

from conftest import FakeTransport, device_payload, sensor_payload


class TestIngestion:

    def test_handle_message_appends_decoded_event(self, reducer):
        ev = reducer.handle_message("home/cocina/sensor/temperature", sensor_payload("temperature", 23.1))

        assert isinstance(ev, SensorEvent)
        assert len(reducer.log) == 1
        assert reducer.latest("cocina").temperature is ev

    def test_malformed_payload_is_kept_inert(self, reducer):
        ev = reducer.handle_message("home/cocina/sensor/temperature", b"{broken")

        assert isinstance(ev, RawEvent)
        assert reducer.raw_count == 1
        assert len(reducer.log) == 1
        assert reducer.latest("cocina").temperature is None
        assert reducer.alerts("cocina") == []

    def test_capacity_bounds_log(self):
        reducer = TelemetryReducer(capacity=3)
        for v in range(10):
            reducer.handle_message("home/cocina/sensor/power", sensor_payload("power", v))

        assert len(reducer.log) == 3
        assert [e.value for e in reducer.log.snapshot()] == [7, 8, 9]

    def test_cache_invalidated_on_append(self, reducer):
        reducer.handle_message("home/cocina/sensor/co2", sensor_payload("co2", 600))
        assert reducer.alerts("cocina") == []

        reducer.handle_message("home/cocina/sensor/co2", sensor_payload("co2", 1800))

        assert [a.level for a in reducer.alerts("cocina")] == [AlertLevel.ALERT]

    def test_repeated_queries_are_stable(self, reducer):
        reducer.handle_message("home/cocina/device/pc/power", device_payload("pc", 400, expected=200))

        assert reducer.devices("cocina") == reducer.devices("cocina")
        assert reducer.alerts("cocina") == reducer.alerts("cocina")


class TestDerivedState:

    def test_leak_and_away(self, reducer):
        reducer.handle_message("home/system/away/state", json.dumps({"type": "away_state", "value": True}))
        reducer.handle_message("home/bano/sensor/leak", sensor_payload("leak", 1, room="bano"))

        assert reducer.away_mode() is True
        status = reducer.leak_status()
        assert status.active is True
        assert status.rooms == ["bano"]

    def test_series(self, reducer):
        for v in (20, 21, 22):
            reducer.handle_message("home/cocina/sensor/temperature", sensor_payload("temperature", v))

        assert [v for _, v in reducer.series("cocina", "temperature")] == [20, 21, 22]


class TestCommands:

    def test_set_away_publishes(self, reducer, transport):
        reducer.set_away(True)

        assert transport.published == [("home/system/away/set", '{"value":true}', False)]

    def test_set_device_publishes(self, reducer, transport):
        reducer.set_device("cocina", "heladera", False)

        assert transport.bodies("home/cocina/device/heladera/set") == [{"value": "off"}]

    def test_commands_do_not_touch_log(self, reducer):
        reducer.set_away(False)

        assert len(reducer.log) == 0

    def test_without_transport(self):
        with pytest.raises(RuntimeError):
            TelemetryReducer().set_away(True)

    def test_injected_transport_is_used(self):
        t1, t2 = FakeTransport(), FakeTransport()
        TelemetryReducer(transport=t1).set_away(True)

        assert len(t1.published) == 1
        assert t2.published == []
