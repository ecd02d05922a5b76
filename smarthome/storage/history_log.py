from __future__ import annotations
import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from ..core.timeutil import local_day, today_local

logger = logging.getLogger(__name__)


class NdjsonHistoryLog:
    """Per-day append-only NDJSON files: ``<root>/YYYY-MM-DD.ndjson``, one record per line."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    def path_for(self, day: date) -> Path:
        return self._root / f"{day.isoformat()}.ndjson"

    def append(self, record: dict[str, Any], day: Optional[date] = None) -> None:
        day = day or _record_day(record)
        self._root.mkdir(parents=True, exist_ok=True)
        with self.path_for(day).open("a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=False) + "\n")

    def read_day(self, day: date, room: Optional[str] = None) -> list[dict[str, Any]]:
        path = self.path_for(day)
        if not path.exists():
            return []
        out: list[dict[str, Any]] = []
        with path.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    rec = json.loads(line)
                except ValueError:
                    logger.warning("Skipping corrupt history line %s:%d", path.name, lineno)
                    continue
                if room is None or rec.get("room") == room:
                    out.append(rec)
        return out


def _record_day(record: dict[str, Any]) -> date:
    ts = record.get("ts")
    if isinstance(ts, str):
        try:
            return local_day(datetime.fromisoformat(ts.replace("Z", "+00:00")))
        except ValueError:
            pass
    return today_local()
