from __future__ import annotations

from datetime import timedelta

import pytest

from lms.core.config import load_settings, parse_duration

# ---- defaults and parsing ----


def test_load_settings_reads_test_env() -> None:
    settings = load_settings()
    assert settings.app_env == "test"
    assert settings.is_test
    assert settings.database_url is None


def test_load_settings_normalizes_case_and_whitespace(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "  PROD ")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.log_level == "debug"


def test_frontend_url_trailing_slash_stripped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FRONTEND_URL", "https://learn.example.com/")
    monkeypatch.delenv("CORS_ORIGINS", raising=False)
    settings = load_settings()
    assert settings.frontend_url == "https://learn.example.com"
    assert settings.cors_origins == ("https://learn.example.com",)


def test_cors_origins_split_on_commas(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com,")
    assert load_settings().cors_origins == ("https://a.example.com", "https://b.example.com")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("7d", timedelta(days=7)),
        ("12h", timedelta(hours=12)),
        ("30m", timedelta(minutes=30)),
        ("45s", timedelta(seconds=45)),
        ("3600", timedelta(seconds=3600)),
    ],
)
def test_parse_duration(raw: str, expected: timedelta) -> None:
    assert parse_duration(raw) == expected


def test_parse_duration_rejects_garbage() -> None:
    with pytest.raises(ValueError, match="JWT_EXPIRES_IN"):
        parse_duration("a week")


# ---- secret fallbacks ----


def test_webhook_secret_falls_back_to_api_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SHOPIFY_WEBHOOK_SECRET")
    monkeypatch.setenv("SHOPIFY_API_SECRET", "api-secret")
    assert load_settings().webhook_secret == "api-secret"


def test_link_secret_falls_back_to_webhook_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SHOPIFY_LINK_SECRET")
    monkeypatch.setenv("SHOPIFY_WEBHOOK_SECRET", "hook-secret")
    assert load_settings().link_secret == "hook-secret"


def test_unsigned_links_disallowed_by_default() -> None:
    assert load_settings().allow_unsigned_login_links is False


# ---- invalid values ----


def test_rejects_invalid_app_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "staging")
    with pytest.raises(ValueError, match="APP_ENV must be dev|test|prod"):
        load_settings()


def test_rejects_invalid_port(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "eighty")
    with pytest.raises(ValueError, match="PORT must be an integer"):
        load_settings()


def test_rejects_invalid_bool(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALLOW_UNSIGNED_LOGIN_LINKS", "maybe")
    with pytest.raises(ValueError, match="ALLOW_UNSIGNED_LOGIN_LINKS"):
        load_settings()
