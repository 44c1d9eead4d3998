"""
Logging set-up for the CLI.

Library modules only ever call logging.getLogger(__name__); handlers and
levels are configured once, here, by the entry point.

    text   2026-10-19 12:00:00 [INFO] rawh.server: # Going to sleep for 10ms
    json   {"timestamp": "...", "level": "INFO", "logger": "rawh.server", ...}

Log records go to stderr so they never mix with the response body the
client prints on stdout.
"""

import json
import logging
import sys
from datetime import datetime, timezone


TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(level: str = "INFO", log_format: str = "text") -> None:
    """
    Configure the root logger and the ``rawh`` logger.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: "text" or "json".
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    if log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT))

    logging.basicConfig(level=numeric_level, handlers=[handler], force=True)
    logging.getLogger("rawh").setLevel(numeric_level)
