import json

from fundplanner.lambda_handler import handler


class Ctx:
    aws_request_id = "req-123"


def test_handler_success_path(monkeypatch):
    def fake_handle(self, body):
        return {
            "status": "ok",
            "messages": [{"role": "assistant", "content": "Hi"}],
            "settled": True,
            "latency_ms": 1.0,
        }
    monkeypatch.setattr("fundplanner.dispatcher.PlannerAgent.handle", fake_handle)

    event = {"body": json.dumps({"action": "readiness"}), "headers": {"x-correlation-id": "corr-abc"}}
    resp = handler(event, Ctx())
    assert resp["statusCode"] == 200
    body = json.loads(resp["body"])
    assert body["status"] == "ok"
    assert "latency_ms" in body


def test_handler_schema_violation_becomes_error(monkeypatch):
    def bad_handle(self, body):
        return {"status": "ok", "messages": [{"role": "assistant", "content": "oops"}],
                "plan": {"slots": [], "activeTracks": [], "totals": {}}}
    monkeypatch.setattr("fundplanner.dispatcher.PlannerAgent.handle", bad_handle)

    resp = handler({"body": "{}"}, Ctx())
    body = json.loads(resp["body"])
    assert body["status"] == "error"
    assert any("Planner output schema violation" in m["content"] for m in body["messages"])


def test_handler_exception_path(monkeypatch):
    def boom(self, body):
        raise RuntimeError("boom")
    monkeypatch.setattr("fundplanner.dispatcher.PlannerAgent.handle", boom)

    resp = handler({"body": "{}"}, Ctx())
    body = json.loads(resp["body"])
    assert body["status"] == "error"
    assert any("RuntimeError: boom" in m["content"] for m in body["messages"])
