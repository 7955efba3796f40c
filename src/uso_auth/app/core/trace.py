# src/uso_auth/app/core/trace.py
from __future__ import annotations
import logging
import time
from typing import Any, Mapping

_log = logging.getLogger("uso_auth.auth")

# set from Settings.auth_trace by configure_trace()
_enabled = False


def configure_trace(enabled: bool) -> None:
    global _enabled
    _enabled = bool(enabled)


def trace_enabled() -> bool:
    return _enabled


def _fmt_kv(d: Mapping[str, Any]) -> str:
    return " ".join(f"{k}={d[k]}" for k in d)


def auth_trace(event: str, **kv: Any) -> None:
    """
    Emit a single-line structured log ONLY when AUTH_TRACE=true.
    Example:
      [auth] internal.verify_failed ts=... reason=ExpiredSignatureError
    Never pass raw tokens or secrets as values.
    """
    if not _enabled:
        return
    kv2 = {"ts": int(time.time()), **kv}
    _log.info("[auth] %s %s", event, _fmt_kv(kv2))
