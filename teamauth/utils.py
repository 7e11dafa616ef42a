"""
Shared helpers.
"""
import logging
import sys

from teamauth.core import config


_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
    ))
    root = logging.getLogger("teamauth")
    root.addHandler(handler)
    root.setLevel(config.LOG_LEVEL)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger under the package logger.

    Usage:
        log = get_logger(__name__)
        log.info("Organisation %s created", org_id)
    """
    _configure_root()
    if name == "__main__" or not name.startswith("teamauth"):
        name = f"teamauth.{name}"
    return logging.getLogger(name)
