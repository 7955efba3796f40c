import dataclasses

import pytest
from fastapi.testclient import TestClient

from uso_auth.app import main
from uso_auth.app.core.errors import ConfigError

ENV_NAMES = ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE", "APP_JWT_SECRET", "STORE_BACKEND", "DATABASE_URL")


@pytest.fixture
def bare_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.setenv(name, "")


def test_create_app_fails_at_startup_without_env(bare_env):
    with pytest.raises(ConfigError) as exc:
        main.create_app()
    assert "APP_JWT_SECRET" in exc.value.missing


def test_run_exits_before_serving(bare_env, monkeypatch):
    import uvicorn

    served = []
    monkeypatch.setattr(uvicorn, "run", lambda *a, **kw: served.append(a))
    with pytest.raises(SystemExit) as exc:
        main.run()
    assert exc.value.code == 1
    assert served == []


def test_run_serves_on_configured_port(monkeypatch, tmp_path):
    import uvicorn

    monkeypatch.setenv("STORE_BACKEND", "sql")
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'm.db'}")
    monkeypatch.setenv("APP_JWT_SECRET", "x" * 32)
    monkeypatch.setenv("PORT", "9123")
    served = {}
    monkeypatch.setattr(uvicorn, "run", lambda app, **kw: served.update(kw))
    main.run()
    assert served["port"] == 9123


def test_cors_allows_configured_origin(settings, spy_store):
    app = main.create_app(dataclasses.replace(settings, cors_origins=("https://app.example",)), store=spy_store)
    with TestClient(app) as c:
        ok = c.get("/health", headers={"Origin": "https://app.example"})
        other = c.get("/health", headers={"Origin": "https://evil.example"})
    assert ok.headers["access-control-allow-origin"] == "https://app.example"
    assert "access-control-allow-origin" not in other.headers
