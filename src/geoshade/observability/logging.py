"""JSON log lines for the geoshade engine and API.

A request handled by the API can fan out into a store mutation, several
geocoder calls and a backend save. The middleware stamps a correlation id
into a ContextVar so every one of those lines carries the same id.
Engine-specific fields (region code, geo level, selection generation) are
lifted to top-level keys when passed through ``extra=``.
"""

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone

# Set per request by the API middleware; empty outside a request
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

_EXTRA_FIELDS = ("code", "geo_level", "generation", "status_code", "duration_ms")

_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def get_correlation_id() -> str:
    return correlation_id.get()


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        cid = correlation_id.get()
        if cid:
            entry["correlation_id"] = cid

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)

        for key in _EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value

        return json.dumps(entry, default=str)


def setup_logging(json_format: bool = True, level: str = "INFO") -> None:
    """Install a single root handler for the engine process.

    Args:
        json_format: emit JSON lines (API deployments) instead of plain text
            (CLI and local runs).
        level: root level name; unknown names fall back to INFO.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(_TEXT_FORMAT))
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
