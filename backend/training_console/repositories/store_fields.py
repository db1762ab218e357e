from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def normalize_date(raw: Any) -> datetime | None:
    if isinstance(raw, dict):
        raw = raw.get("iso") or raw.get("value")
    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, str) and raw.strip():
        value = raw.strip()
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def normalize_text(raw: Any) -> str | None:
    if isinstance(raw, dict):
        raw = raw.get("value")
    if isinstance(raw, str) and raw.strip():
        return raw
    return None


def named(raw: Any, key: str = "name") -> str:
    if isinstance(raw, dict):
        return str(raw.get(key, ""))
    if raw is None:
        return ""
    return str(raw)
