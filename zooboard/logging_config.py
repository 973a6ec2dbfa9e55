"""Console logging for the board generator scripts."""

from __future__ import annotations

import json
import logging
import sys

PACKAGE_LOGGER = "zooboard"

_TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"
_TIME_FORMAT = "%H:%M:%S"


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record; message text is escaped, not templated."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, _TIME_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"))


def setup_logging(level: str = "INFO", format_json: bool = False) -> None:
    """
    Route ``zooboard`` log records to stdout.

    Only the package logger is touched, so embedding applications keep
    their own root configuration. Calling this again replaces the handler.

    Args:
        level: Level name; unknown names mean INFO
        format_json: Emit JSON lines instead of text
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonLineFormatter() if format_json else logging.Formatter(_TEXT_FORMAT, _TIME_FORMAT))

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
    package_logger.addHandler(handler)


__all__ = ["JsonLineFormatter", "PACKAGE_LOGGER", "setup_logging"]
