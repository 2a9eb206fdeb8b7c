from __future__ import annotations

import os
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_DURATION_RE = re.compile(r"^(\d+)\s*([smhd]?)$")
_DURATION_UNITS = {"": "seconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def _getenv(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


def _getenv_optional(name: str) -> str | None:
    return _getenv(name) or None


def _getenv_bool(name: str, default: bool) -> bool:
    raw = _getenv(name, "true" if default else "false").lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


def parse_duration(raw: str) -> timedelta:
    """Parse '7d', '12h', '30m', '45s' or a bare number of seconds."""
    match = _DURATION_RE.match(raw.strip().lower())
    if match is None:
        raise ValueError(f"JWT_EXPIRES_IN must look like 7d|12h|30m|45s (got {raw!r})")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    frontend_url: str
    cors_origins: tuple[str, ...]

    # Signing secrets. None means "not configured"; callers that need one
    # raise Misconfigured at use time rather than failing at import.
    jwt_secret: str | None
    jwt_expires_in: timedelta
    shopify_api_secret: str | None
    shopify_webhook_secret: str | None
    shopify_link_secret: str | None
    allow_unsigned_login_links: bool
    admin_api_key: str | None

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def webhook_secret(self) -> str | None:
        return self.shopify_webhook_secret or self.shopify_api_secret

    @property
    def link_secret(self) -> str | None:
        return self.shopify_link_secret or self.shopify_webhook_secret


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "8000")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    frontend_url = _getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/")
    cors_raw = _getenv("CORS_ORIGINS", frontend_url)
    cors_origins = tuple(o.strip() for o in cors_raw.split(",") if o.strip())

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv_bool("LOG_JSON", False),
        port=port,
        database_url=_getenv_optional("DATABASE_URL"),
        frontend_url=frontend_url,
        cors_origins=cors_origins,
        jwt_secret=_getenv_optional("JWT_SECRET"),
        jwt_expires_in=parse_duration(_getenv("JWT_EXPIRES_IN", "7d")),
        shopify_api_secret=_getenv_optional("SHOPIFY_API_SECRET"),
        shopify_webhook_secret=_getenv_optional("SHOPIFY_WEBHOOK_SECRET"),
        shopify_link_secret=_getenv_optional("SHOPIFY_LINK_SECRET"),
        allow_unsigned_login_links=_getenv_bool("ALLOW_UNSIGNED_LOGIN_LINKS", False),
        admin_api_key=_getenv_optional("ADMIN_API_KEY"),
    )


SETTINGS = load_settings()
