"""Logging setup for the Sweaquity backend."""

import logging
import sys

from .config import get_settings

_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    try:
        level_name = get_settings().log_level.upper()
    except Exception:
        # settings unavailable (missing env)
        level_name = "INFO"
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )
    root = logging.getLogger("sweaquity")
    root.setLevel(level)
    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        root.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``sweaquity`` hierarchy."""
    _configure_root()
    return logging.getLogger(name)
