# src/uso_auth/app/core/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigError

KAKAO_USER_ME_URL = "https://kapi.kakao.com/v2/user/me?secure_resource=true"

STORE_BACKENDS = ("supabase", "sql")

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """
    Immutable process configuration. Built once at startup and handed to
    every component; nothing else reads the environment.
    """

    jwt_secret: str = field(repr=False)
    jwt_issuer: str = "uso-auth"
    jwt_audience: str = "uso-app"
    jwt_ttl_sec: int = 30 * 24 * 3600  # 30d

    store_backend: str = "supabase"
    supabase_url: Optional[str] = None
    supabase_service_role: Optional[str] = field(default=None, repr=False)
    supabase_members_table: str = "members"
    database_url: Optional[str] = field(default=None, repr=False)

    kakao_user_me_url: str = KAKAO_USER_ME_URL
    kakao_timeout_sec: float = 10.0

    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: Tuple[str, ...] = ("*",)

    log_level: str = "INFO"
    auth_trace: bool = False

    @property
    def allow_all_origins(self) -> bool:
        return "*" in self.cors_origins

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Read settings from `environ` (defaults to os.environ after loading .env).
        Raises ConfigError naming every missing required variable.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        def get(name: str, default: Optional[str] = None) -> Optional[str]:
            val = (environ.get(name) or "").strip()
            return val or default

        backend = (get("STORE_BACKEND", "supabase") or "").lower()
        if backend not in STORE_BACKENDS:
            raise ConfigError([f"STORE_BACKEND (one of {', '.join(STORE_BACKENDS)}, got {backend!r})"])

        required = ["APP_JWT_SECRET"]
        if backend == "supabase":
            required = ["SUPABASE_URL", "SUPABASE_SERVICE_ROLE"] + required
        else:
            required = ["DATABASE_URL"] + required
        missing = [name for name in required if not get(name)]
        if missing:
            raise ConfigError(missing)

        origins = tuple(o.strip() for o in (get("APP_CORS_ORIGINS", "*") or "*").split(",") if o.strip())

        return cls(
            jwt_secret=get("APP_JWT_SECRET"),
            jwt_issuer=get("APP_JWT_ISSUER", "uso-auth"),
            jwt_audience=get("APP_JWT_AUDIENCE", "uso-app"),
            jwt_ttl_sec=_as_int(get("APP_JWT_TTL_SEC", "2592000"), "APP_JWT_TTL_SEC"),
            store_backend=backend,
            supabase_url=get("SUPABASE_URL"),
            supabase_service_role=get("SUPABASE_SERVICE_ROLE"),
            supabase_members_table=get("SUPABASE_MEMBERS_TABLE", "members"),
            database_url=get("DATABASE_URL"),
            kakao_user_me_url=get("KAKAO_USER_ME_URL", KAKAO_USER_ME_URL),
            kakao_timeout_sec=_as_float(get("KAKAO_TIMEOUT_SEC", "10"), "KAKAO_TIMEOUT_SEC"),
            host=get("HOST", "0.0.0.0"),
            port=_as_int(get("PORT", "8080"), "PORT"),
            cors_origins=origins or ("*",),
            log_level=(get("LOG_LEVEL", "INFO") or "INFO").upper(),
            auth_trace=(get("AUTH_TRACE", "") or "").lower() in _TRUTHY,
        )


def _as_int(raw: Optional[str], name: str) -> int:
    try:
        return int(raw or "")
    except ValueError:
        raise ConfigError([f"{name} (not an integer: {raw!r})"])


def _as_float(raw: Optional[str], name: str) -> float:
    try:
        return float(raw or "")
    except ValueError:
        raise ConfigError([f"{name} (not a number: {raw!r})"])
