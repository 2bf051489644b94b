"""Usage Stats — Structured JSON Logging."""

import logging
import json
import sys
from datetime import datetime, timezone
from app.config import settings

# Upload context passed through `extra=`; copied onto the JSON line when set
EXTRA_FIELDS = (
    "ip_address",
    "event_id",
    "sites",
    "stats",
    "new_rows",
    "duration_ms",
    "status_code",
)


class JSONFormatter(logging.Formatter):
    """Produces one JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        log_entry.update(
            {key: getattr(record, key) for key in EXTRA_FIELDS if hasattr(record, key)}
        )
        return json.dumps(log_entry, default=str)


def get_logger(name: str) -> logging.Logger:
    """Return a `usagestats.<name>` logger writing JSON lines to stdout."""
    logger = logging.getLogger(f"usagestats.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return logger
