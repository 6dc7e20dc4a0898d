"""Log setup and per-command execution logging."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from core.config import LOG_FILE, LOG_LEVEL

logger = logging.getLogger("commands")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(log_file: str | None = None, level: str | None = None) -> None:
    """
    Route log records to a file.

    The screens own the terminal, so nothing is ever written to stdout/stderr.
    Without a file the root logger gets a NullHandler.
    """
    root = logging.getLogger()
    root.setLevel(level or LOG_LEVEL)

    path = log_file if log_file is not None else LOG_FILE
    if path:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    else:
        handler = logging.NullHandler()
    root.addHandler(handler)


@dataclass
class CommandLog:
    """Captured execution data for one deferred command."""

    command: str
    started_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    outcome: str = "pending"  # "ok" or "error"
    error_code: str | None = None
    error_message: str | None = None
    processing_time_ms: int = 0


def log_command(log: CommandLog) -> None:
    """Write a command log record."""
    if log.outcome == "ok":
        logger.info(
            "command=%s outcome=ok time_ms=%d started=%s",
            log.command,
            log.processing_time_ms,
            log.started_at,
        )
    else:
        logger.warning(
            "command=%s outcome=%s code=%s time_ms=%d error=%s",
            log.command,
            log.outcome,
            log.error_code,
            log.processing_time_ms,
            log.error_message,
        )
