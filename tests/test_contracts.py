import json

import pytest

from fundplanner.model_interface.contracts import (
    CapacityPayloadModel,
    RiskDescriptionModel,
    extract_json,
    parse_contract,
    parse_recommendations,
)
from fundplanner.results import ContentGenerationError


def scheme(name, category="Gold", **extra):
    return {"name": name, "category": category, "aum": 1000, "expenseRatio": 0.5, **extra}


def recommendation(name, category="Gold", n_alts=4):
    return scheme(name, category, sipAllocationPct=10, lumpsumAllocationPct=10,
                  alternatives=[scheme(f"{name} alt {i}", category) for i in range(n_alts)])


def test_extract_json_tolerates_fences_and_prose():
    assert extract_json('```json\n{"a": 1}\n```') == {"a": 1}
    assert extract_json('Here you go: [1, 2] hope that helps') == [1, 2]
    with pytest.raises(ValueError):
        extract_json("no json here")


def test_parse_contract_risk_description():
    raw = json.dumps({"principalRisk": "High", "suitableFor": "Long-term", "horizon": "7+ years", "x": 1})
    desc = parse_contract(raw, RiskDescriptionModel, "describe_risk").to_domain()
    assert desc.principal_risk == "High" and desc.horizon == "7+ years"


def test_parse_contract_missing_field_raises():
    with pytest.raises(ContentGenerationError) as e:
        parse_contract('{"principalRisk": "High"}', RiskDescriptionModel, "describe_risk")
    assert e.value.need == "describe_risk"


def test_capacity_payload_flat_figures():
    payload = parse_contract({
        "investableFromSalary": 48000, "investableFromSalaryWords": "Rupees Forty Eight Thousand Only",
        "investableFromCorpus": 0, "investableFromCorpusWords": "",
        "reasoning": "r", "suitabilityNarrative": "n",
        "breakdown": {"totalMonthlyInflow": 100000, "totalMonthlyOutflow": 37000, "surplusBeforeInvestment": 63000},
    }, CapacityPayloadModel, "summarize_capacity")
    flat = payload.flat_figures()
    assert flat["investableFromSalary"] == 48000
    assert flat["surplusBeforeInvestment"] == 63000
    assert flat["totalInvestable"] is None


def test_parse_recommendations_accepts_wrapped_array():
    raw = json.dumps({"schemes": [recommendation("SBI Gold Fund")]})
    slots = parse_recommendations(raw)
    assert slots[0].name == "SBI Gold Fund"
    assert len(slots[0].alternatives) == 4
    assert slots[0].sip_allocation_pct == 10


def test_parse_recommendations_rejects_wrong_alternative_count():
    with pytest.raises(ContentGenerationError):
        parse_recommendations([recommendation("SBI Gold Fund", n_alts=3)])


def test_parse_recommendations_rejects_out_of_range_pct():
    bad = recommendation("SBI Gold Fund")
    bad["sipAllocationPct"] = 140
    with pytest.raises(ContentGenerationError):
        parse_recommendations([bad])
