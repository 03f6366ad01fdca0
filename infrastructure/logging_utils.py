"""Logging setup shared by the API entry point and scripts"""
import logging

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Install a single stream handler on the root logger (idempotent)"""
    root = logging.getLogger()
    root.setLevel(level.upper() if isinstance(level, str) else level)

    if not any(getattr(h, "_hotel_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._hotel_handler = True
        root.addHandler(handler)

    return root
