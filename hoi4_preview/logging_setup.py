"""JSON-lines log sink for the command line.

Each record becomes one JSON object per line. Structured data passed through
``extra=`` or as a dict message lands as top-level keys of that object.
"""

import json
import logging
import os
from datetime import UTC
from datetime import datetime
from pathlib import Path

LOG_PATH_ENV = "HOI4_PREVIEW_LOG_PATH"
LOG_LEVEL_ENV = "HOI4_PREVIEW_LOG_LEVEL"
DEFAULT_LOG_FILE = "hoi4-preview.log.jsonl"

SCHEMA = {"name": "hoi4preview.log", "ver": "1.0.0"}

# Attributes every LogRecord carries; anything else came from ``extra=``
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonlFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "lvl": record.levelname,
            "schema": SCHEMA,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if isinstance(record.msg, dict):
            payload.update(record.msg)
        for key, value in vars(record).items():
            if key not in _STANDARD_ATTRS:
                payload.setdefault(key, value)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class JsonlHandler(logging.FileHandler):
    """Append JSON lines to ``path``, creating its directory on first use."""

    def __init__(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(path, mode="a", encoding="utf-8", delay=True)
        self.setFormatter(JsonlFormatter())


def init_json_logging(path: str | None = None, level: str | None = None) -> JsonlHandler:
    """Route root logging to a JSONL file, replacing any earlier JSONL sink.

    Args:
        path: Log file; defaults to $HOI4_PREVIEW_LOG_PATH, then the working directory
        level: Level name; defaults to $HOI4_PREVIEW_LOG_LEVEL, then INFO

    Returns:
        The installed handler
    """
    path = path or os.environ.get(LOG_PATH_ENV) or DEFAULT_LOG_FILE
    level = (level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()

    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, JsonlHandler):
            root.removeHandler(handler)
            handler.close()

    root.setLevel(getattr(logging, level, logging.INFO))
    handler = JsonlHandler(path)
    root.addHandler(handler)
    return handler
