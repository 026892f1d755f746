"""Loguru configuration shared by the API, the CLI and batch jobs.

Every record carries a ``request_id``: the request logging middleware binds
it while a request is handled and it reads ``-`` everywhere else, so the
override and conflict lines a range write produces can be traced back to
the call that caused them. Records go to stderr as text or JSON lines, and
to a rotating file when a log directory is configured.
"""

import sys
from pathlib import Path
from typing import Literal

from loguru import logger

LogFormat = Literal["text", "json"]

LOG_FILE_NAME = "territory-api.log"
NO_REQUEST_ID = "-"

_TEXT_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {extra[request_id]} | {name}:{function}:{line} | {message}"
)


def setup_logging(log_level: str = "INFO", log_dir: str | None = None, log_format: LogFormat = "text") -> None:
    """Replace the Loguru sinks.

    Args:
        log_level: Minimum level, case-insensitive.
        log_dir: Directory for ``territory-api.log``. The file is always
            text, rotated every 24 hours and kept for 7 days.
        log_format: ``text`` for operators, ``json`` for log shippers.

    Raises:
        ValueError: If the level or format is unknown.
    """
    level = log_level.upper()
    if log_format not in ("text", "json"):
        msg = f"Unknown log format {log_format!r}; expected 'text' or 'json'"
        raise ValueError(msg)

    logger.remove()
    logger.configure(extra={"request_id": NO_REQUEST_ID})
    if log_format == "json":
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=_TEXT_FORMAT)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / LOG_FILE_NAME,
            level=level,
            format=_TEXT_FORMAT,
            rotation="24h",
            retention="7 days",
        )
