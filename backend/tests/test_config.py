from __future__ import annotations

import pytest

from spoom.core.config import Settings, merge_unique, parse_csv, str_to_bool

PROD_ENV = {
    "ENV": "prod",
    "DATABASE_URL": "postgresql+psycopg2://app:pw@db:5432/spoom",
    "IDENTITY_PROVIDER": "cognito",
    "COGNITO_USER_POOL_ID": "us-east-1_Pool",
    "COGNITO_APP_CLIENT_ID": "client",
    "CORS_ORIGINS": "https://app.spoom.example",
}


@pytest.fixture()
def prod_env(monkeypatch):
    for key, value in PROD_ENV.items():
        monkeypatch.setenv(key, value)
    return monkeypatch


@pytest.mark.parametrize(
    "value,default,expected",
    [(None, True, True), ("yes", False, True), (" TRUE ", False, True), ("0", True, False), ("off", True, False)],
)
def test_str_to_bool(value, default, expected):
    assert str_to_bool(value, default=default) is expected


def test_parse_csv_and_merge():
    assert parse_csv(" a, ,b ") == ["a", "b"]
    assert parse_csv(None) == []
    assert merge_unique(["a", "b", "a"]) == ["a", "b"]


def test_prod_settings_load(prod_env):
    s = Settings()

    assert s.is_prod is True
    assert s.CORS_ORIGINS == ["https://app.spoom.example"]
    assert s.AUTH_COOKIE_SAMESITE == "none"
    assert s.uses_client_secret is False


def test_prod_requires_pool_and_client(prod_env):
    prod_env.delenv("COGNITO_USER_POOL_ID")

    with pytest.raises(RuntimeError, match="COGNITO_USER_POOL_ID"):
        Settings()


def test_prod_supabase_requires_url_and_key(prod_env):
    prod_env.setenv("IDENTITY_PROVIDER", "supabase")
    prod_env.delenv("SUPABASE_URL", raising=False)
    prod_env.delenv("SUPABASE_KEY", raising=False)

    with pytest.raises(RuntimeError, match="SUPABASE_URL, SUPABASE_KEY"):
        Settings()


def test_prod_rejects_unknown_provider(prod_env):
    prod_env.setenv("IDENTITY_PROVIDER", "auth0")
    with pytest.raises(RuntimeError, match="Unsupported IDENTITY_PROVIDER"):
        Settings()


def test_prod_rejects_localhost_cors(prod_env):
    prod_env.setenv("CORS_ORIGINS", "https://app.spoom.example,http://localhost:3000")
    with pytest.raises(RuntimeError, match="localhost"):
        Settings()


def test_database_url_built_from_parts(monkeypatch):
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("DATABASE_URL", "")
    monkeypatch.setenv("DB_HOST", "db")
    monkeypatch.setenv("DB_NAME", "spoom")
    monkeypatch.setenv("DB_APP_USER", "app")
    monkeypatch.setenv("DB_APP_PASSWORD", "p@ss word")
    monkeypatch.setenv("DB_MIGRATOR_USER", "migrator")
    monkeypatch.setenv("DB_MIGRATOR_PASSWORD", "m")

    s = Settings()

    assert s.database_url == "postgresql+psycopg2://app:p%40ss+word@db:5432/spoom?sslmode=require"
    assert s.migrations_database_url.startswith("postgresql+psycopg2://migrator:m@db:5432/spoom")


def test_recovery_window_defaults(monkeypatch):
    monkeypatch.setenv("ENV", "test")
    monkeypatch.delenv("USERNAME_RECOVERY_WINDOW_HOURS", raising=False)
    monkeypatch.delenv("USERNAME_RECOVERY_STEP_SECONDS", raising=False)

    s = Settings()

    assert s.USERNAME_RECOVERY_WINDOW_HOURS == 24
    assert s.USERNAME_RECOVERY_STEP_SECONDS == 60
