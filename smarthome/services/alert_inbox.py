from __future__ import annotations
import time
from typing import Callable, Iterable

from ..domain.alerts import Alert


class AlertInbox:
    """Presentation-side dismissal state for alerts.

    An alert is visible from the first time its key is seen until it is
    dismissed or `dismiss_after_s` elapses. Each view (a room, or "*" for
    the whole home) reports its own alert set; a key is forgotten once no
    view still reports it, so a condition that clears and comes back shows
    again while switching rooms keeps other rooms' dismissals.
    """

    def __init__(self, dismiss_after_s: float = 6.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._dismiss_after_s = dismiss_after_s
        self._clock = clock
        self._first_seen: dict[str, float] = {}
        self._dismissed: set[str] = set()
        self._firing: dict[str, set[str]] = {}

    def dismiss(self, key: str) -> None:
        self._dismissed.add(key)

    def is_visible(self, alert: Alert) -> bool:
        if alert.key in self._dismissed:
            return False
        seen = self._first_seen.get(alert.key)
        return seen is None or (self._clock() - seen) < self._dismiss_after_s

    def observe(self, alerts: Iterable[Alert], scope: str = "*") -> list[Alert]:
        """Record the alert set of one view and return the ones still visible, in order."""
        now = self._clock()
        alerts = list(alerts)
        current = {a.key for a in alerts}
        previous = self._firing.get(scope, set())
        self._firing[scope] = current
        still_firing = set().union(*self._firing.values())
        for key in previous - still_firing:
            self._first_seen.pop(key, None)
            self._dismissed.discard(key)
        for a in alerts:
            self._first_seen.setdefault(a.key, now)
        return [a for a in alerts if self.is_visible(a)]
