import copy

import pytest

from fundplanner.model_interface.types import AllocationPlan, AllocationSlot, SchemeOption

REQUEST = {
    "today": "2026-03-02",
    "personal": {"name": "Asha Rao", "dob": "1991-04-12", "mobile": "9876543210", "email": ""},
    "financial": {
        "incomeStatus": "Earning", "hasCorpus": True, "totalCorpusToInvest": 500000,
        "monthlyIncome": 120000, "monthlyExpenses": 55000, "yearlyExpenses": 60000,
        "insurance": {"termPlan": 15000, "healthInsurance": 20000, "personalAccident": 1000},
        "taxSlab": "Above ₹15,00,000",
    },
    "riskAnswers": {"1": 3, "2": 3, "3": 4, "4": 3},
}


@pytest.fixture
def plan_request():
    return copy.deepcopy(REQUEST)


@pytest.fixture(autouse=True)
def _no_ambient_config(monkeypatch):
    for var in ("DRAFT_ID", "CONTENT_GENERATOR", "USE_XRAY", "FUNDPLANNER_ALLOW_UNSETTLED_REPORT"):
        monkeypatch.delenv(var, raising=False)


def opt(name, category, aum=100.0):
    return SchemeOption(name=name, category=category, aum=aum)


@pytest.fixture
def make_plan():
    """
    Five bound slots with hand-picked names. Slot 2's alternatives include slot 0's
    instrument so a substitution can introduce a duplicate.
    """
    def _make(sip=(20, 20, 10, 10, 40), lump=(20, 20, 10, 10, 40), tracks=("sip", "lumpsum")):
        rows = [
            ("Large Cap Index", "Alpha Nifty 50 Index", ["Beta Nifty 50", "Gamma Nifty 50", "Delta Nifty 50", "Eps Nifty 50"]),
            ("Flexi Cap", "Alpha Flexi Cap", ["Beta Flexi", "Gamma Flexi", "Delta Flexi", "Eps Flexi"]),
            ("Focused", "Alpha Focused", ["Alpha Nifty 50 Index", "Beta Focused", "Gamma Focused", "Delta Focused"]),
            ("Gold", "Alpha Gold", ["Beta Gold", "Gamma Gold", "Delta Gold", "Eps Gold"]),
            ("Corporate Bond", "Alpha Corp Bond", ["Beta CB", "Gamma CB", "Delta CB", "Eps CB"]),
        ]
        slots = []
        for (cat, name, alts), s, l in zip(rows, sip, lump):
            slots.append(AllocationSlot(
                category=cat, sip_allocation_pct=float(s), lumpsum_allocation_pct=float(l),
                instrument=opt(name, cat, 500.0),
                alternatives=tuple(opt(a, cat, 400.0 - 50 * i) for i, a in enumerate(alts)),
            ))
        return AllocationPlan(slots=tuple(slots), active_tracks=tuple(tracks))
    return _make
