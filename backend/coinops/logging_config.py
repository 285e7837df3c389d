"""
Application-wide logging setup.
"""

from __future__ import annotations

import datetime
import json
import logging
import sys

_TEXT_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)-8s] [%(name)-24s] %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.datetime.fromtimestamp(
                record.created, datetime.UTC
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(level: str = "info", fmt: str = "json") -> None:
    """
    Configures the root logger with a single stdout handler.

    Args:
        level: Level name, e.g. "debug", "info", "warn", "error".
        fmt: "json" for one JSON object per line, anything else for plain text.
    """
    level_name = level.upper()
    if level_name == "WARN":
        level_name = "WARNING"
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    if fmt.lower() == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(_TEXT_FORMAT, datefmt=_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Reconfiguring replaces the stdout handler rather than stacking another.
    for stale in list(root_logger.handlers):
        root_logger.removeHandler(stale)

    stdout = logging.StreamHandler(sys.stdout)
    stdout.setFormatter(formatter)
    root_logger.addHandler(stdout)
    logging.getLogger(__name__).debug(
        "Logging configured. Level: %s, format: %s", logging.getLevelName(numeric_level), fmt
    )
