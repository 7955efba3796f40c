# src/uso_auth/app/core/logging.py
from __future__ import annotations
import logging

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-8s %(name)s %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

# chatty HTTP client loggers would print full Kakao request URLs at DEBUG
_NOISY = ("httpx", "httpcore", "hpack")


def _resolve(level: str) -> int:
    val = logging.getLevelName((level or "").strip().upper())
    return val if isinstance(val, int) else logging.INFO


def setup_logging(level: str = "INFO") -> None:
    """
    Configure root logging once; later calls only adjust the level.
    `level` comes from Settings.log_level (LOG_LEVEL).
    """
    lvl = _resolve(level)
    for name in _NOISY:
        logging.getLogger(name).setLevel(max(lvl, logging.WARNING))

    root = logging.getLogger()
    root.setLevel(lvl)
    if root.handlers:
        # already configured (pytest, uvicorn, etc.)
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    root.addHandler(handler)
