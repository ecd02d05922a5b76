from __future__ import annotations
import asyncio
import logging
from typing import Optional, Union

from ..domain.commands import subscription_topics
from ..domain.interfaces import Transport
from ..domain.reducer import TelemetryReducer
from .alert_inbox import AlertInbox

logger = logging.getLogger(__name__)


class DashboardService:
    """Wires a transport to the reducer.

    paho delivers on its network thread; messages are re-posted onto the
    asyncio loop so the reducer only ever runs on the loop thread.
    """

    def __init__(
        self,
        transport: Transport,
        reducer: TelemetryReducer,
        inbox: AlertInbox,
        base_topic: str = "home",
    ) -> None:
        self.transport = transport
        self.reducer = reducer
        self.inbox = inbox
        self._base_topic = base_topic
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self.transport.set_message_handler(self._on_message)
        for topic in subscription_topics(self._base_topic):
            self.transport.subscribe(topic)
        self.transport.start()
        logger.info("Dashboard listening (capacity=%s)", self.reducer.log.capacity)

    async def stop(self) -> None:
        self.transport.set_message_handler(None)
        self.transport.stop()
        self._loop = None
        logger.info("Dashboard stopped")

    def _on_message(self, topic: str, payload: Union[bytes, str]) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self.reducer.handle_message, topic, payload)
