from smarthome.domain.alerts import Alert, AlertLevel
from smarthome.services.alert_inbox import AlertInbox


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


A = Alert(AlertLevel.WARN, "Total power consumption high in cocina: 2500 W (> 2000 W)", "power_total:cocina")
B = Alert(AlertLevel.INFO, "Temperature out of range in cocina (30.0°C). Recommendation: lower the AC.", "temperature:cocina")


class TestAlertInbox:

    def test_new_alerts_visible_in_order(self):
        inbox = AlertInbox(6.0, clock=FakeClock())

        assert inbox.observe([A, B]) == [A, B]

    def test_auto_dismiss_after_interval(self):
        clock = FakeClock()
        inbox = AlertInbox(6.0, clock=clock)
        inbox.observe([A])

        clock.now += 5.9
        assert inbox.observe([A, B]) == [A, B]

        clock.now += 0.2
        assert inbox.observe([A, B]) == [B]

    def test_manual_dismiss(self):
        inbox = AlertInbox(6.0, clock=FakeClock())
        inbox.observe([A, B])

        inbox.dismiss(A.key)

        assert inbox.observe([A, B]) == [B]
        assert inbox.is_visible(A) is False

    def test_cleared_condition_shows_again(self):
        clock = FakeClock()
        inbox = AlertInbox(6.0, clock=clock)
        inbox.observe([A])
        inbox.dismiss(A.key)

        inbox.observe([])
        clock.now += 60

        assert inbox.observe([A]) == [A]

    def test_switching_rooms_keeps_dismissals(self):
        inbox = AlertInbox(6.0, clock=FakeClock())
        jardin = Alert(AlertLevel.INFO, "Humidity out of range in jardin (80.0%). Recommendation: use a dehumidifier.",
                       "humidity:jardin")
        inbox.observe([A], "cocina")
        inbox.dismiss(A.key)

        assert inbox.observe([jardin], "jardin") == [jardin]
        assert inbox.observe([], "habitacion") == []
        assert inbox.observe([A], "cocina") == []

    def test_cleared_in_its_own_room_shows_again(self):
        clock = FakeClock()
        inbox = AlertInbox(6.0, clock=clock)
        inbox.observe([A], "cocina")
        inbox.dismiss(A.key)
        inbox.observe([], "jardin")

        inbox.observe([], "cocina")
        clock.now += 1

        assert inbox.observe([A], "cocina") == [A]
