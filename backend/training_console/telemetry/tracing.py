from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger("training_console.telemetry")


def build_event(
    name: str,
    *,
    entity_type: str | None = None,
    entity_id: str | None = None,
    actor: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> dict[str, Any]:
    payload = {
        "type": "event",
        "name": name,
        "entityType": entity_type,
        "entityId": entity_id,
        "actor": actor,
        "attributes": attributes or {},
    }
    return payload


def emit_event(
    name: str,
    *,
    entity_type: str | None = None,
    entity_id: str | None = None,
    actor: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> dict[str, Any]:
    payload = build_event(
        name,
        entity_type=entity_type,
        entity_id=entity_id,
        actor=actor,
        attributes=attributes,
    )
    logger.info(json.dumps(payload, sort_keys=True, default=str))
    return payload


def build_metric(
    name: str,
    value: float,
    *,
    entity_id: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> dict[str, Any]:
    payload = {
        "type": "metric",
        "name": name,
        "value": value,
        "entityId": entity_id,
        "attributes": attributes or {},
    }
    return payload


def emit_metric(
    name: str,
    value: float,
    *,
    entity_id: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> dict[str, Any]:
    payload = build_metric(name, value, entity_id=entity_id, attributes=attributes)
    logger.info(json.dumps(payload, sort_keys=True, default=str))
    return payload
