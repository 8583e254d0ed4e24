"""Structured Logging — one JSON object per line, domain ids as first-class fields.

Invariants:
    - Every line carries timestamp, level, logger and message
    - Only STRUCTURED_FIELDS are lifted out of `extra`; anything else stays private
    - UUIDs and other non-JSON values are rendered with str(); ints and bools stay typed
    - setup_logging is idempotent: calling it twice never duplicates output
"""

import json
import logging
from datetime import datetime, timezone
from typing import Literal

STRUCTURED_FIELDS = (
    "conversation_id", "user_id", "message_id", "operation",
    "error_code", "path", "removed", "count",
)

_QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncio")


def _jsonable(value):
    if isinstance(value, (bool, int, float)):
        return value
    return str(value)


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in STRUCTURED_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = _jsonable(value)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


class _ParleyHandler(logging.StreamHandler):
    """Marker type so setup_logging can find and replace its own handler."""


def setup_logging(level: str = "INFO", fmt: Literal["json", "text"] = "json") -> None:
    root = logging.getLogger()
    for handler in [h for h in root.handlers if isinstance(h, _ParleyHandler)]:
        root.removeHandler(handler)

    handler = _ParleyHandler()
    handler.setFormatter(
        JSONFormatter() if fmt == "json"
        else logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"),
    )
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
