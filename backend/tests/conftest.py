from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from training_console.clients.record_store import CONDITION_FAILED_CODE, RecordStoreClient

ADMIN_TOKEN = "admin-token"


def set_required_envs(monkeypatch):
    monkeypatch.setenv("STORE_APP_ID", "app")
    monkeypatch.setenv("STORE_API_KEY", "key")
    monkeypatch.setenv("STORE_SERVER_URL", "https://store.example.test")
    monkeypatch.setenv("ADMIN_ACCESS_TOKEN", ADMIN_TOKEN)


@pytest.fixture(autouse=True)
def _set_env(monkeypatch):
    set_required_envs(monkeypatch)
    for name in [
        "ADMIN_AUTH_DISABLED",
        "ADMIN_AUDIT_ADMIN_ID",
        "FINAL_EVALUATION_REQUIRE_COMMENT",
        "DEFAULT_ACTOR_ID",
        "STORE_TIMEOUT_SECONDS",
        "STORE_RETRIES",
    ]:
        monkeypatch.delenv(name, raising=False)


class InMemoryStore:
    """Just enough of the record store's REST dialect for tests."""

    def __init__(self) -> None:
        self.classes: dict[str, dict[str, dict[str, Any]]] = {}
        self.requests: list[httpx.Request] = []
        self._counter = 0

    def seed(self, class_name: str, object_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        record = {**payload, "objectId": object_id, "updatedAt": "v1", "_rev": 1}
        self.classes.setdefault(class_name, {})[object_id] = record
        return record

    def objects(self, class_name: str) -> dict[str, dict[str, Any]]:
        return self.classes.setdefault(class_name, {})

    @staticmethod
    def _public(record: dict[str, Any]) -> dict[str, Any]:
        return {key: value for key, value in record.items() if key != "_rev"}

    @staticmethod
    def _matches(record: dict[str, Any], where: dict[str, Any]) -> bool:
        for key, expected in where.items():
            if isinstance(expected, dict):
                continue
            if record.get(key) != expected:
                return False
        return True

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")
        if len(parts) < 3 or parts[:2] != ["1.1", "classes"]:
            return httpx.Response(404, json={"code": 101, "error": "not found"})
        class_name = parts[2]
        object_id = parts[3] if len(parts) > 3 else None
        objects = self.objects(class_name)
        raw_where = request.url.params.get("where")
        where = json.loads(raw_where) if raw_where else {}

        if request.method == "GET" and object_id is None:
            results = [self._public(item) for item in objects.values() if self._matches(item, where)]
            return httpx.Response(200, json={"results": results})
        if request.method == "GET":
            record = objects.get(object_id)
            if record is None:
                return httpx.Response(404, json={"code": 101, "error": "not found"})
            return httpx.Response(200, json=self._public(record))
        if request.method == "POST" and object_id is None:
            self._counter += 1
            payload = json.loads(request.content.decode() or "{}")
            new_id = f"{class_name.lower()}-{self._counter}"
            record = {**payload, "objectId": new_id, "updatedAt": "v1", "_rev": 1}
            objects[new_id] = record
            return httpx.Response(
                201,
                json={"objectId": new_id, "createdAt": "2025-01-01T00:00:00Z", "updatedAt": "v1"},
            )
        if request.method == "PUT" and object_id is not None:
            record = objects.get(object_id)
            if record is None:
                return httpx.Response(404, json={"code": 101, "error": "not found"})
            if not self._matches(record, where):
                return httpx.Response(
                    400, json={"code": CONDITION_FAILED_CODE, "error": "No effect on update"}
                )
            payload = json.loads(request.content.decode() or "{}")
            record.update(payload)
            record["_rev"] += 1
            record["updatedAt"] = f"v{record['_rev']}"
            return httpx.Response(200, json={"updatedAt": record["updatedAt"]})
        return httpx.Response(404, json={"code": 101, "error": "not found"})


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
async def store_client(store):
    client = RecordStoreClient(
        app_id="app",
        api_key="key",
        server_url="https://store.example.test",
        transport=httpx.MockTransport(store.handler),
    )
    yield client
    await client.close()


def final_evaluation_payload(**overrides: Any) -> dict[str, Any]:
    payload = {
        "plannerId": "planner-1",
        "employeeName": "Asha Menon",
        "employeeCode": "EMP001",
        "department": "PS - Food",
        "location": "Mumbai",
        "evaluationDate": "2025-02-20",
        "evaluationTime": "10:00 AM",
        "mainPanelMember": "p1",
        "otherPanelMembers": ["p2", "p3"],
        "comments": "Dr. Rao, Ms. Iyer",
        "createdDate": "2025-02-01T09:00:00Z",
        "createdBy": "QA-001",
        "result": None,
        "panelMemberComments": [],
        "isCompleted": False,
    }
    payload.update(overrides)
    return payload


def planner_payload(**overrides: Any) -> dict[str, Any]:
    payload = {
        "plannerNumber": "PLNR_EMP001_NEW",
        "plannerType": 11,
        "status": "Submitted",
        "createdBy": "TM-001",
        "createdDate": "2025-01-10T08:00:00Z",
        "submittedDate": "2025-01-12T08:00:00Z",
        "employee": {
            "id": "emp-1",
            "employeeCode": "EMP001",
            "firstName": "Asha",
            "lastName": "Menon",
            "department": {"id": "dep-1", "name": "PS - Food"},
            "location": {"id": "loc-1", "name": "Mumbai"},
            "joiningDate": "2025-01-02",
        },
    }
    payload.update(overrides)
    return payload
