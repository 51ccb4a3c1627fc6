"""Local logging for Sweaquity.

Two outputs live under ``$SWEAQUITY_DATA_DIR/logs`` (default ``~/.sweaquity/logs``):

- ``local-YYYY-MM-DD.log``: the regular ``sweaquity`` logger
- ``marketplace-events-YYYY-MM-DD.log``: one line per marketplace event
  (applications, equity grants, time entries)
"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
EVENT_FORMAT = "%(asctime)s | %(message)s"

_EVENT_LOGGER_NAME = "sweaquity.events"


def get_log_dir() -> Path:
    """Return the log directory, creating it if needed."""
    base = os.environ.get("SWEAQUITY_DATA_DIR")
    root = Path(base) if base else Path.home() / ".sweaquity"
    log_dir = root / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def setup_sweaquity_logging(user_id: str = "default", level: str = "INFO") -> logging.Logger:
    """Configure the ``sweaquity`` logger with a dated file handler.

    DEBUG also echoes to the console. Calling this twice does not add
    duplicate handlers.
    """
    logger = logging.getLogger("sweaquity")
    log_level = getattr(logging, str(level).upper(), None)
    if not isinstance(log_level, int):
        log_level = logging.INFO
    logger.setLevel(log_level)

    log_file = get_log_dir() / f"local-{_today()}.log"
    has_file = any(
        isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_file
        for h in logger.handlers
    )
    if not has_file:
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    if log_level == logging.DEBUG:
        has_console = any(
            isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
            for h in logger.handlers
        )
        if not has_console:
            console = logging.StreamHandler()
            console.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(console)

    logger.debug(f"Logging configured for user={user_id}")
    return logger


def _event_logger() -> logging.Logger:
    logger = logging.getLogger(_EVENT_LOGGER_NAME)
    logger.setLevel(logging.INFO)
    logger.propagate = False

    log_file = get_log_dir() / f"marketplace-events-{_today()}.log"
    current = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
    if not any(Path(h.baseFilename) == log_file for h in current):
        # Date or data dir changed: swap the handler
        for h in current:
            logger.removeHandler(h)
            h.close()
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(EVENT_FORMAT))
        logger.addHandler(handler)
    return logger


def log_marketplace_event(event_type: str, details: str, user_id: str = "default") -> None:
    """Append a single event line: ``event_type | user=<id> | details``."""
    logger = _event_logger()
    logger.info(f"{event_type} | user={user_id} | {details}")
    for h in logger.handlers:
        h.flush()


def log_application(user_id: str, action: str, application_id: str, status: str) -> None:
    """Log an application lifecycle action."""
    log_marketplace_event(
        "application",
        f"action={action}, id={application_id[:8]}..., status={status}",
        user_id=user_id,
    )


def log_equity(user_id: str, project_id: str, amount: float, total: float) -> None:
    """Log an equity grant against a project."""
    log_marketplace_event(
        "equity",
        f"project={project_id[:8]}..., amount={amount:.2f}, total={total:.2f}",
        user_id=user_id,
    )


def log_time_entry(user_id: str, ticket_id: str, hours: float) -> None:
    """Log hours recorded against a ticket."""
    log_marketplace_event(
        "time",
        f"ticket={ticket_id[:8]}..., hours={hours:.2f}",
        user_id=user_id,
    )
