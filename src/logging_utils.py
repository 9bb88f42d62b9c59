"""
Logging helpers.

All monitoring modules obtain their logger through get_logger() so that
handlers and formatting are configured in one place. Output goes to stderr;
stdout stays free for tools that pipe exported data.

Usage:
    from src.logging_utils import get_logger
    logger = get_logger(__name__)
"""

import logging
import os
import sys

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return

    root = logging.getLogger("eisv")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(handler)
    level_name = os.environ.get("EISV_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(level_name)
    known = isinstance(level, int)
    root.setLevel(level if known else logging.INFO)
    root.propagate = True
    _configured = True
    if not known:
        root.warning(f"Unknown EISV_LOG_LEVEL '{level_name}', using INFO")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the shared 'eisv' namespace.

    Args:
        name: Usually the calling module's __name__

    Returns:
        Configured logger
    """
    _configure_root()
    return logging.getLogger(f"eisv.{name}")
