import pytest
from jsonschema import ValidationError

from fundplanner.plan_io import (
    error_to_string,
    issue_messages,
    load_schema,
    schema_errors,
    validate_plan_request,
    validate_planner_output,
)
from fundplanner.results import Issue, IssueKind


def test_plan_request_schema_accepts_minimal(plan_request):
    validate_plan_request(plan_request)


def test_plan_request_rejects_unknown_slab_and_bad_answers(plan_request):
    plan_request["financial"]["taxSlab"] = "Up to 5 lakh"
    plan_request["riskAnswers"]["5"] = 2
    errs = schema_errors(plan_request, "plan_request")
    assert any("$.financial.taxSlab" in e for e in errs)
    assert any("riskAnswers" in e for e in errs)


def test_error_to_string_carries_json_path(plan_request):
    plan_request["financial"]["monthlyIncome"] = -5
    with pytest.raises(ValidationError) as e:
        validate_plan_request(plan_request)
    assert error_to_string(e.value) == "-5 is less than the minimum of 0 at $.financial.monthlyIncome"


def test_planner_output_requires_messages():
    with pytest.raises(ValidationError):
        validate_planner_output({"status": "ok"})
    validate_planner_output({"status": "error", "messages": [{"role": "system", "content": "x"}]})


def test_issue_messages_append_suggestion():
    msgs = issue_messages([Issue(IssueKind.SLAB_MISMATCH, "Slab corrected.", "₹3,00,001 - ₹7,00,000")])
    assert msgs == [{"role": "system",
                     "content": "[SlabMismatchNotice] Slab corrected. Suggestion: ₹3,00,001 - ₹7,00,000"}]


def test_load_schema_missing():
    with pytest.raises(FileNotFoundError):
        load_schema("nope")
