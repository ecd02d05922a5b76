from __future__ import annotations

import logging
import re
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..core.config import settings
from ..core.timeutil import iso_now, today_local
from ..services.simulator import SimulatorService
from ..storage.history_log import NdjsonHistoryLog

logger = logging.getLogger(__name__)

router = APIRouter()

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# Overridden in main via app.dependency_overrides
def get_history() -> NdjsonHistoryLog:
    raise RuntimeError("History dependency not configured")


def get_simulator() -> Optional[SimulatorService]:
    return None


def _parse_day(s: str) -> date:
    if not _DATE_RE.match(s):
        raise HTTPException(status_code=400, detail=f"Invalid date: {s}, expected YYYY-MM-DD")
    try:
        return date.fromisoformat(s)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date: {s}")


@router.get("/")
async def health(sim: Optional[SimulatorService] = Depends(get_simulator)):
    out = {
        "status": "ok",
        "service": settings.service_name,
        "broker": settings.broker_url,
        "time": iso_now(),
    }
    if sim is not None:
        out["cycles"] = sim.live.cycles
        out["away"] = sim.live.away_mode
        out["last_error"] = sim.live.last_error
    return out


@router.get("/history/today")
def history_today(room: Optional[str] = None, history: NdjsonHistoryLog = Depends(get_history)):
    return history.read_day(today_local(), room=room)


@router.get("/history/{day}")
def history_for_day(day: str, room: Optional[str] = None, history: NdjsonHistoryLog = Depends(get_history)):
    return history.read_day(_parse_day(day), room=room)
