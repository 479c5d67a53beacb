import json

from fundplanner.lambda_handler import handler


class Ctx:
    aws_request_id = "req-xyz"


def test_handler_pipeline_ok(plan_request):
    evt = {"body": json.dumps(plan_request), "headers": {"x-correlation-id": "corr-1"}}
    resp = handler(evt, Ctx())
    assert resp["statusCode"] == 200
    data = json.loads(resp["body"])
    assert data["status"] == "ok"
    assert "plan" in data and "capacity" in data and "narrative" in data


def test_handler_accepts_raw_event(plan_request):
    resp = handler(plan_request, Ctx())
    assert json.loads(resp["body"])["status"] == "ok"


def test_handler_bad_json_body():
    resp = handler({"body": "{not json"}, Ctx())
    assert resp["statusCode"] == 200
    data = json.loads(resp["body"])
    assert data["status"] == "error"
