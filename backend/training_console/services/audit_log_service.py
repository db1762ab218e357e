from __future__ import annotations

from datetime import datetime, timezone
import json
from typing import Any

from training_console.clients.record_store import RecordStoreClient
from training_console.config import load_settings
from training_console.repositories.audit_log_repository import AuditLogRecord, AuditLogRepository


def _repo() -> AuditLogRepository:
    return AuditLogRepository(RecordStoreClient.from_settings())


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def record_audit_entry(
    *,
    admin_id: str | None,
    action: str,
    entity_type: str,
    entity_id: str,
    details: str | None = None,
    timestamp: str | None = None,
    repo: AuditLogRepository | None = None,
) -> AuditLogRecord:
    repository = repo or _repo()
    resolved_admin_id = admin_id
    if not resolved_admin_id:
        settings = load_settings()
        resolved_admin_id = settings.admin_audit_admin_id or settings.default_actor_id or "admin"
    payload = {
        "adminId": resolved_admin_id,
        "action": action,
        "entityType": entity_type,
        "entityId": entity_id,
        "timestamp": timestamp or _now_iso(),
        "details": details,
    }
    return await repository.create_entry(payload)


async def list_audit_entries(
    *,
    entity_type: str | None = None,
    admin_id: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    repo: AuditLogRepository | None = None,
) -> list[AuditLogRecord]:
    repository = repo or _repo()
    where: dict[str, Any] = {}
    if entity_type:
        where["entityType"] = entity_type
    if admin_id:
        where["adminId"] = admin_id
    if start_date or end_date:
        timestamp_filter: dict[str, Any] = {}
        if start_date:
            timestamp_filter["$gte"] = start_date
        if end_date:
            timestamp_filter["$lte"] = end_date
        where["timestamp"] = timestamp_filter
    params = {"where": json.dumps(where)} if where else None
    return await repository.list_entries(params=params)
