import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import settings

# Marks handlers installed here so a second app in the same process reuses them
_HANDLER_TAG = "_smarthome_handler"

_QUIET = {
    "aiosqlite": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


def _tagged(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_TAG, True)
    return handler


def configure_logging(log_file: str | None = None, level: str | None = None) -> None:
    """Console + rotating file logging for both the simulator and the dashboard."""
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())

    if any(getattr(h, _HANDLER_TAG, False) for h in root.handlers):
        return

    fmt = logging.Formatter(
        f"%(asctime)s %(levelname)s [{settings.service_name}] %(name)s - %(message)s"
    )

    console = _tagged(logging.StreamHandler())
    console.setFormatter(fmt)
    root.addHandler(console)

    path = Path(log_file or settings.log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    rotating = _tagged(RotatingFileHandler(path, maxBytes=2_000_000, backupCount=5, encoding="utf-8"))
    rotating.setFormatter(fmt)
    root.addHandler(rotating)

    for name, lvl in _QUIET.items():
        logging.getLogger(name).setLevel(lvl)
