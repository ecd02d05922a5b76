from __future__ import annotations
import json
import logging
from datetime import datetime, timezone
from typing import Dict

import aiosqlite

from ..domain.interfaces import SimulatorState

logger = logging.getLogger(__name__)


class SQLiteStateStore:
    """Simulator away mode and device overrides, kept as JSON values in a key/value table."""

    def __init__(self, path: str) -> None:
        self._path = path

    async def init(self) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            await db.commit()

    async def _get_all(self) -> Dict[str, str]:
        async with aiosqlite.connect(self._path) as db:
            cur = await db.execute("SELECT key, value FROM state")
            rows = await cur.fetchall()
        return {k: v for k, v in rows}

    async def load(self) -> SimulatorState:
        rows = await self._get_all()
        state = SimulatorState()
        try:
            if "away_mode" in rows:
                state.away_mode = bool(json.loads(rows["away_mode"]))
            if "overrides" in rows:
                raw = json.loads(rows["overrides"])
                state.overrides = {
                    str(room): {str(dev): bool(on) for dev, on in devices.items()}
                    for room, devices in raw.items()
                }
        except (ValueError, AttributeError) as e:
            logger.warning("Stored simulator state unreadable, starting clean: %s", e)
            return SimulatorState()
        return state

    async def save(self, state: SimulatorState) -> None:
        now = datetime.now(timezone.utc).isoformat()
        updates = {
            "away_mode": json.dumps(state.away_mode),
            "overrides": json.dumps(state.overrides, sort_keys=True),
        }
        async with aiosqlite.connect(self._path) as db:
            for key, value in updates.items():
                await db.execute(
                    "INSERT INTO state(key, value, updated_at) VALUES (?, ?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
                    (key, value, now),
                )
            await db.commit()
