from __future__ import annotations

from dataclasses import dataclass
import os
from urllib.parse import urlparse


class SettingsError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    store_app_id: str
    store_api_key: str
    store_server_url: str
    store_timeout_seconds: float
    store_retries: int
    admin_access_token: str | None
    admin_auth_disabled: bool
    admin_audit_admin_id: str | None
    require_panel_comment: bool
    default_actor_id: str | None


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise SettingsError(f"Missing required environment variable: {name}")
    return value


def _optional_env(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _require_url(name: str, value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise SettingsError(f"Invalid URL for {name}: {value}")
    return value


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise SettingsError(f"Invalid boolean for {name}: {raw}")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise SettingsError(f"Invalid number for {name}: {raw}") from exc
    if value <= 0:
        raise SettingsError(f"{name} must be positive")
    return value


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise SettingsError(f"Invalid integer for {name}: {raw}") from exc
    if value < 0:
        raise SettingsError(f"{name} must not be negative")
    return value


def load_settings() -> Settings:
    store_app_id = _require_env("STORE_APP_ID")
    store_api_key = _require_env("STORE_API_KEY")
    store_server_url = _require_url("STORE_SERVER_URL", _require_env("STORE_SERVER_URL"))
    store_timeout_seconds = _float_env("STORE_TIMEOUT_SECONDS", 10.0)
    store_retries = _int_env("STORE_RETRIES", 2)
    admin_auth_disabled = _bool_env("ADMIN_AUTH_DISABLED", False)
    if admin_auth_disabled:
        admin_access_token = _optional_env("ADMIN_ACCESS_TOKEN")
    else:
        admin_access_token = _require_env("ADMIN_ACCESS_TOKEN")
    admin_audit_admin_id = _optional_env("ADMIN_AUDIT_ADMIN_ID")
    require_panel_comment = _bool_env("FINAL_EVALUATION_REQUIRE_COMMENT", True)
    default_actor_id = _optional_env("DEFAULT_ACTOR_ID")

    return Settings(
        store_app_id=store_app_id,
        store_api_key=store_api_key,
        store_server_url=store_server_url,
        store_timeout_seconds=store_timeout_seconds,
        store_retries=store_retries,
        admin_access_token=admin_access_token,
        admin_auth_disabled=admin_auth_disabled,
        admin_audit_admin_id=admin_audit_admin_id,
        require_panel_comment=require_panel_comment,
        default_actor_id=default_actor_id,
    )
