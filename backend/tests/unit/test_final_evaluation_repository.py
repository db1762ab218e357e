from __future__ import annotations

import json

import httpx
import pytest

from conftest import final_evaluation_payload, planner_payload
from training_console.clients.record_store import RecordStoreClient
from training_console.errors import ConcurrentModificationError
from training_console.models.final_evaluation import FinalEvaluationResult
from training_console.models.training_planner import PlannerStatus
from training_console.repositories.final_evaluation_repository import (
    FinalEvaluationRepository,
    _result_from_store,
)
from training_console.repositories.training_planner_repository import TrainingPlannerRepository
from training_console.services import evaluation_workflow as workflow
from training_console.services.planner_approval import approve_planner

WORKFLOW_FIELDS = {
    "result",
    "resultComments",
    "panelMemberComments",
    "completedDate",
    "completedBy",
    "isCompleted",
}


@pytest.mark.asyncio
async def test_get_maps_stored_fields(store, store_client):
    store.seed(
        "FinalEvaluation",
        "fe-1",
        final_evaluation_payload(
            department={"id": "dep-1", "name": "PS - Food"},
            panelMemberComments=[
                {
                    "panelMemberId": "p1",
                    "panelMemberName": "Dr. Rao",
                    "comment": "Confident",
                    "commentDate": "2025-02-20T10:00:00.000Z",
                }
            ],
        ),
    )
    repo = FinalEvaluationRepository(store_client)

    record = await repo.get("fe-1")

    assert record is not None
    assert record.id == "fe-1"
    assert record.plan.employee_code == "EMP001"
    assert record.plan.department == "PS - Food"
    assert record.plan.other_panel_members == ("p2", "p3")
    assert record.version == "v1"
    assert workflow.is_undecided(record)
    assert record.panel_member_comments[0].panel_member_name == "Dr. Rao"
    assert record.panel_member_comments[0].comment_date.year == 2025


@pytest.mark.asyncio
async def test_get_missing_record_returns_none(store_client):
    assert await FinalEvaluationRepository(store_client).get("missing") is None


def test_unknown_stored_result_is_treated_as_absent():
    assert _result_from_store("Excellent") is None
    assert _result_from_store("Pending") is FinalEvaluationResult.PENDING
    assert _result_from_store("") is None


@pytest.mark.asyncio
async def test_save_writes_only_workflow_fields(store, store_client):
    store.seed("FinalEvaluation", "fe-1", final_evaluation_payload())
    repo = FinalEvaluationRepository(store_client)
    record = await repo.get("fe-1")

    updated = workflow.append_comment(
        record, panel_member_id="p1", panel_member_name="Dr. Rao", comment="Ready"
    )
    saved = await repo.save(updated, expected_version=record.version)

    put = [request for request in store.requests if request.method == "PUT"][-1]
    assert set(json.loads(put.content)) == WORKFLOW_FIELDS
    assert json.loads(put.url.params["where"]) == {"isCompleted": False, "updatedAt": "v1"}
    assert saved.version == "v2"
    assert saved.panel_member_comments[0].comment == "Ready"
    stored = store.objects("FinalEvaluation")["fe-1"]
    assert stored["employeeName"] == "Asha Menon"
    assert stored["panelMemberComments"][0]["panelMemberId"] == "p1"


@pytest.mark.asyncio
async def test_save_rejects_stale_version(store, store_client):
    store.seed("FinalEvaluation", "fe-1", final_evaluation_payload())
    repo = FinalEvaluationRepository(store_client)
    record = await repo.get("fe-1")

    with pytest.raises(ConcurrentModificationError) as exc:
        await repo.save(workflow.mark_pending(record), expected_version="v0")

    assert exc.value.reason == "stale_version"
    assert not any(request.method == "PUT" for request in store.requests)


@pytest.mark.asyncio
async def test_save_refuses_when_already_completed_in_store(store, store_client):
    store.seed(
        "FinalEvaluation",
        "fe-1",
        final_evaluation_payload(
            result="Satisfactory",
            isCompleted=True,
            completedBy="QA-002",
            completedDate="2025-02-21T10:00:00.000Z",
        ),
    )
    repo = FinalEvaluationRepository(store_client)
    stale = workflow.new_record((await repo.get("fe-1")).plan)

    with pytest.raises(ConcurrentModificationError) as exc:
        await repo.save(
            workflow.complete(stale, result="Below Satisfactory", completed_by="QA-001")
        )

    assert exc.value.reason == "completed_concurrently"
    assert store.objects("FinalEvaluation")["fe-1"]["result"] == "Satisfactory"


@pytest.mark.asyncio
async def test_save_maps_failed_condition_to_concurrent_modification(store):
    store.seed("FinalEvaluation", "fe-1", final_evaluation_payload())

    async def racing_handler(request):
        if request.method == "PUT":
            store.objects("FinalEvaluation")["fe-1"]["isCompleted"] = True
        return await store.handler(request)

    client = RecordStoreClient(
        app_id="app",
        api_key="key",
        server_url="https://store.example.test",
        transport=httpx.MockTransport(racing_handler),
    )
    repo = FinalEvaluationRepository(client)
    record = await repo.get("fe-1")

    with pytest.raises(ConcurrentModificationError) as exc:
        await repo.save(workflow.complete(record, result="Satisfactory", completed_by="QA-001"))

    assert exc.value.reason == "completed_concurrently"
    assert store.objects("FinalEvaluation")["fe-1"].get("result") is None

    await client.close()


@pytest.mark.asyncio
async def test_save_keeps_comment_written_between_read_and_write(store):
    store.seed("FinalEvaluation", "fe-1", final_evaluation_payload())
    other_reviewer = {
        "panelMemberId": "p2",
        "panelMemberName": "Ms. Iyer",
        "comment": "Needs more floor practice",
        "commentDate": "2025-02-20T09:00:00.000Z",
    }

    async def racing_handler(request):
        if request.method == "PUT":
            stored = store.objects("FinalEvaluation")["fe-1"]
            if not stored["panelMemberComments"]:
                stored["panelMemberComments"] = [other_reviewer]
                stored["_rev"] += 1
                stored["updatedAt"] = f"v{stored['_rev']}"
        return await store.handler(request)

    client = RecordStoreClient(
        app_id="app",
        api_key="key",
        server_url="https://store.example.test",
        transport=httpx.MockTransport(racing_handler),
    )
    repo = FinalEvaluationRepository(client)
    record = await repo.get("fe-1")
    updated = workflow.append_comment(
        record, panel_member_id="p1", panel_member_name="Dr. Rao", comment="Ready"
    )

    with pytest.raises(ConcurrentModificationError) as exc:
        await repo.save(updated, expected_version=record.version)

    assert exc.value.reason == "stale_version"
    stored = store.objects("FinalEvaluation")["fe-1"]
    assert [item["panelMemberId"] for item in stored["panelMemberComments"]] == ["p2"]

    await client.close()


@pytest.mark.asyncio
async def test_planner_decision_is_conditional_on_status(store, store_client):
    store.seed("TrainingPlanner", "planner-1", planner_payload())
    repo = TrainingPlannerRepository(store_client)
    planner = await repo.get("planner-1")

    saved = await repo.save_decision(approve_planner(planner, approved_by="QA-001"))

    assert saved.status is PlannerStatus.APPROVED
    assert saved.version == "v2"
    assert store.objects("TrainingPlanner")["planner-1"]["status"] == "Approved"

    with pytest.raises(ConcurrentModificationError) as exc:
        await repo.save_decision(approve_planner(planner, approved_by="QA-002"))
    assert exc.value.reason == "planner_status_changed"
