from fundplanner.dispatcher import PlannerAgent
from fundplanner.model_impl.stub_generator import StubContentGenerator


def _planned(plan_request):
    out = PlannerAgent(StubContentGenerator()).handle(plan_request)
    assert out["status"] == "ok"
    return out


def test_plan_action_is_default(plan_request):
    out = _planned(plan_request)
    assert out["trace"] == [{"action": "plan", "draft_id": None}]


def test_unknown_action_returns_error_envelope():
    out = PlannerAgent().handle({"action": "rebalance"})
    assert out["status"] == "error"
    assert "Unknown action: rebalance" in out["messages"][0]["content"]


def test_substitute_with_plan_in_request(plan_request):
    planned = _planned(plan_request)
    alt = planned["plan"]["slots"][1]["alternatives"][0]["name"]
    out = PlannerAgent().handle({"action": "substitute", "plan": planned["plan"], "slot_index": 1, "name": alt})
    assert out["status"] == "ok"
    assert out["plan"]["slots"][1]["name"] == alt
    assert out["overlapIntroduced"] is False
    assert out["settled"] is True


def test_invalid_substitution_reports_issue(plan_request):
    planned = _planned(plan_request)
    out = PlannerAgent().handle({"action": "substitute", "plan": planned["plan"], "slot_index": 1,
                                 "name": "Not A Fund"})
    assert out["status"] == "error"
    assert out["issues"]["errors"][0]["kind"] == "InvalidSubstitution"
    assert out["plan"] == planned["plan"]


def test_resolve_keeps_overridden_weights(plan_request):
    planned = _planned(plan_request)
    out = PlannerAgent().handle({"action": "override", "plan": planned["plan"], "slot_index": 0,
                                 "track": "sip", "value": 40})
    assert out["status"] == "ok"
    assert out["settled"] is False
    assert out["issues"]["notices"][0]["kind"] == "AllocationSumMismatch"

    edited = out["plan"]
    out = PlannerAgent(StubContentGenerator()).handle({"action": "resolve", "plan": edited})
    assert out["status"] == "ok"
    assert [s["sipAllocationPct"] for s in out["plan"]["slots"]] == [s["sipAllocationPct"] for s in edited["slots"]]
    assert out["plan"]["totals"]["sip"] == 110
    assert out["settled"] is False
    assert out["issues"]["notices"][0]["kind"] == "AllocationSumMismatch"


def test_readiness_action(plan_request):
    planned = _planned(plan_request)
    out = PlannerAgent().handle({"action": "readiness", "plan": planned["plan"]})
    assert out["status"] == "ok"


def test_edit_without_plan_or_draft_fails():
    out = PlannerAgent().handle({"action": "resolve"})
    assert out["status"] == "error"
    assert "No plan supplied" in out["messages"][0]["content"]


def test_storage_failures_do_not_fail_requests(plan_request, monkeypatch):
    def boom(*a, **k):
        raise RuntimeError("DDB put_item failed: unavailable")
    monkeypatch.setattr("fundplanner.state_manager.save_draft", boom)
    monkeypatch.setattr("fundplanner.state_manager.append_trace", boom)
    plan_request["draft_id"] = "d-9"
    out = PlannerAgent(StubContentGenerator()).handle(plan_request)
    assert out["status"] == "ok"
    assert out["trace"][0]["draft_id"] == "d-9"


def test_substitute_from_saved_draft(plan_request, monkeypatch):
    saved = {}
    monkeypatch.setattr("fundplanner.state_manager.save_draft",
                        lambda session, draft_id: saved.__setitem__(draft_id, session))
    monkeypatch.setattr("fundplanner.state_manager.append_trace", lambda draft_id, record: {"ok": True})
    monkeypatch.setattr("fundplanner.state_manager.load_draft", lambda draft_id: saved.get(draft_id))

    plan_request["draft_id"] = "d-10"
    PlannerAgent(StubContentGenerator()).handle(plan_request)
    before = saved["d-10"].plan
    alt = before.slots[0].alternatives[1].name

    out = PlannerAgent().handle({"action": "substitute", "draft_id": "d-10", "slot_index": 0, "name": alt})
    assert out["status"] == "ok"
    assert saved["d-10"].plan.slots[0].name == alt
