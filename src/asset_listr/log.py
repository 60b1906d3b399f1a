from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict


_PLAIN_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


class JsonLineFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            payload.update(fields)
        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO", json_lines: bool = False) -> None:
    log_level = getattr(logging, str(level or "INFO").upper(), logging.INFO)

    if json_lines:
        formatter: logging.Formatter = JsonLineFormatter()
    else:
        formatter = logging.Formatter(fmt=_PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    logger = logging.getLogger("asset_listr")
    logger.setLevel(log_level)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    # urllib3 logs full request URLs at DEBUG.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
