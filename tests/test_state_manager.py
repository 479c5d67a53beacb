import boto3
import pytest
from moto import mock_aws

from fundplanner import state_manager as sm
from fundplanner.model_impl.stub_generator import StubContentGenerator
from fundplanner.pipeline import build_plan
from fundplanner.tools import dynamodb_tool as ddb

TABLE = "fundplanner-drafts-test"


@pytest.fixture
def drafts_table(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_REGION", "eu-west-2")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-west-2")
    monkeypatch.setenv("DDB_DRAFT_TABLE", TABLE)
    with mock_aws():
        boto3.resource("dynamodb", region_name="eu-west-2").create_table(
            TableName=TABLE,
            KeySchema=[{"AttributeName": "draft_id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "draft_id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        yield


def test_save_and_resume_draft(drafts_table, plan_request):
    _, session = build_plan(plan_request, StubContentGenerator())
    assert sm.save_draft(session, "d-1") == {"ok": True, "draft_id": "d-1"}
    assert sm.has_draft("d-1")

    back = sm.load_draft("d-1")
    assert back.plan == session.plan
    assert back.risk_answers == {1: 3, 2: 3, 3: 4, 4: 3}
    assert back.financial == session.financial


def test_missing_draft(drafts_table):
    assert sm.load_draft("nobody") is None
    assert sm.has_draft("nobody") is False


def test_trace_is_capped_and_survives_saves(drafts_table, plan_request):
    for i in range(sm.MAX_TRACE + 5):
        sm.append_trace("d-2", {"event": "plan", "i": i})
    item = ddb.get_item("d-2")
    assert len(item["trace"]) == sm.MAX_TRACE
    assert item["trace"][-1]["i"] == sm.MAX_TRACE + 4

    _, session = build_plan(plan_request, StubContentGenerator())
    sm.save_draft(session, "d-2")
    assert len(ddb.get_item("d-2")["trace"]) == sm.MAX_TRACE


def test_clear_draft(drafts_table, plan_request):
    _, session = build_plan(plan_request, StubContentGenerator())
    sm.save_draft(session, "d-3")
    sm.clear_draft("d-3")
    assert not sm.has_draft("d-3")


def test_decimal_round_trip():
    stored = ddb.to_ddb({"a": 0.3, "b": 30.0, "c": [1.5]})
    assert ddb.from_ddb(stored) == {"a": 0.3, "b": 30, "c": [1.5]}
