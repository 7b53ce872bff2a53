"""Logging setup for the dashboard service."""
import logging

LOGGER_PREFIX = "dashboard"

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the dashboard namespace."""
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach one stream handler to the dashboard logger.

    Safe to call more than once; the handler is only added the first time.
    """
    root = logging.getLogger(LOGGER_PREFIX)
    root.setLevel(level)
    if not any(getattr(h, "_dashboard_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._dashboard_handler = True
        root.addHandler(handler)
    return root
