from dataclasses import replace

from fundplanner.model_impl.stub_generator import StubContentGenerator
from fundplanner.model_interface.types import AllocationSlot, SchemeOption
from fundplanner.overlap import (
    detect_overlap,
    is_settled,
    override_weight,
    resolve_overlap,
    substitute,
    validate_allocation_sums,
)
from fundplanner.results import IssueKind


def test_detect_overlap_is_case_and_space_insensitive(make_plan):
    plan = make_plan()
    slot = plan.slots[1]
    dup = replace(slot.instrument, name="  alpha nifty 50 INDEX ")
    plan = plan.with_slot(1, replace(slot, instrument=dup))
    assert detect_overlap(plan)["Alpha Nifty 50 Index"] == 2


def test_substitute_into_duplicate_is_allowed_but_flagged(make_plan):
    plan = make_plan()
    out = substitute(plan, 2, "Alpha Nifty 50 Index")
    assert out.ok
    res = out.value
    assert res.overlap_introduced is True
    assert detect_overlap(res.plan)["Alpha Nifty 50 Index"] == 2
    assert out.notices[0].kind == IssueKind.OVERLAP_DETECTED
    # displaced instrument takes the chosen alternative's place; weights untouched
    assert [a.name for a in res.plan.slots[2].alternatives][0] == "Alpha Focused"
    assert res.plan.slots[2].sip_allocation_pct == plan.slots[2].sip_allocation_pct
    assert plan.slots[2].name == "Alpha Focused"


def test_substitute_plain_alternative(make_plan):
    plan = make_plan()
    out = substitute(plan, 0, "gamma nifty 50")
    assert out.ok and out.value.overlap_introduced is False
    assert out.value.plan.slots[0].name == "Gamma Nifty 50"
    assert "Alpha Nifty 50 Index" in [a.name for a in out.value.plan.slots[0].alternatives]


def test_substitute_own_name_is_noop(make_plan):
    plan = make_plan()
    out = substitute(plan, 0, "Alpha Nifty 50 Index")
    assert out.ok and out.value.plan is plan


def test_substitute_rejects_unknown_name_and_bad_index(make_plan):
    plan = make_plan()
    out = substitute(plan, 1, "Some Other Fund")
    assert not out.ok and out.errors[0].kind == IssueKind.INVALID_SUBSTITUTION
    out = substitute(plan, 5, "Beta Flexi")
    assert not out.ok and out.errors[0].kind == IssueKind.INVALID_SUBSTITUTION


def test_resolve_clears_duplicate_and_keeps_weights(make_plan):
    plan = substitute(make_plan(), 2, "Alpha Nifty 50 Index").value.plan
    out = resolve_overlap(plan)
    assert out.ok
    resolved = out.value
    names = [n.casefold() for n in resolved.names()]
    assert len(set(names)) == 5
    assert resolved.slots[0].name == "Alpha Nifty 50 Index"
    assert resolved.slots[2].name == "Alpha Focused"
    assert [s.sip_allocation_pct for s in resolved.slots] == [s.sip_allocation_pct for s in plan.slots]
    aums = [a.aum for a in resolved.slots[2].alternatives]
    assert aums == sorted(aums, reverse=True)
    assert is_settled(resolved)


def test_resolve_is_idempotent(make_plan):
    plan = make_plan()
    first = resolve_overlap(plan).value
    assert first is plan
    assert resolve_overlap(first).value is first


def test_resolve_renormalises_after_rederiving_a_slot(make_plan):
    plan = substitute(make_plan(sip=(20, 20, 10, 10, 38)), 2, "Alpha Nifty 50 Index").value.plan
    out = resolve_overlap(plan)
    assert out.ok
    assert out.value.slots[2].name == "Alpha Focused"
    assert [s.sip_allocation_pct for s in out.value.slots] == [21, 20, 10, 10, 39]
    assert out.value.total("lumpsum") == 100


def test_resolve_leaves_overridden_weights_alone_without_overlap(make_plan):
    plan = override_weight(make_plan(), 0, "sip", 30).value
    out = resolve_overlap(plan)
    assert out.ok
    assert out.value is plan
    assert [s.sip_allocation_pct for s in out.value.slots] == [30, 20, 10, 10, 40]
    assert [n.kind for n in out.notices] == [IssueKind.ALLOCATION_SUM_MISMATCH]
    assert out.notices[0].details == {"track": "sip", "total": 110.0}


def test_resolve_asks_generator_when_no_local_alternative(make_plan):
    plan = make_plan()
    stranded = replace(plan.slots[1], instrument=plan.slots[0].instrument, alternatives=())
    plan = plan.with_slot(1, stranded)

    assert resolve_overlap(plan).errors[0].kind == IssueKind.OVERLAP_DETECTED

    out = resolve_overlap(plan, generator=StubContentGenerator())
    assert out.ok
    assert out.value.slots[1].name == "Parag Parikh Flexi Cap Fund"
    assert len(out.value.slots[1].alternatives) == 4


def test_override_weight_leaves_sum_mismatch_notice(make_plan):
    plan = make_plan()
    out = override_weight(plan, 0, "sip", 30)
    assert out.ok
    assert out.value.slots[0].sip_allocation_pct == 30
    assert out.notices[0].kind == IssueKind.ALLOCATION_SUM_MISMATCH
    assert out.notices[0].details == {"track": "sip", "total": 110.0}
    assert not is_settled(out.value)


def test_override_weight_rejects_bad_input(make_plan):
    plan = make_plan(tracks=("sip",))
    for args in [(0, "sip", 120), (0, "sip", -1), (0, "sip", "abc"), (7, "sip", 10),
                 (0, "lumpsum", 10), (0, "weekly", 10), (0, "sip", True)]:
        out = override_weight(plan, *args)
        assert not out.ok and out.errors[0].kind == IssueKind.INVALID_OVERRIDE


def test_inactive_track_is_not_checked(make_plan):
    plan = make_plan(lump=(0, 0, 0, 0, 0), tracks=("sip",))
    assert validate_allocation_sums(plan) == []
    assert is_settled(plan)


def opt(name, category, aum=100.0):
    return SchemeOption(name=name, category=category, aum=aum)


class OfferingGenerator:
    def __init__(self, offer):
        self.offer = offer
        self.calls = 0

    def replacement_scheme(self, category, risk_profile, exclude=()):
        self.calls += 1
        return self.offer


def _stranded(make_plan):
    plan = make_plan()
    return plan.with_slot(1, replace(plan.slots[1], instrument=plan.slots[0].instrument, alternatives=()))


def test_resolve_rejects_offer_with_wrong_alternatives(make_plan):
    plan = _stranded(make_plan)
    bad_offers = [
        # one alternative, from an excluded category
        AllocationSlot(category="Flexi Cap", instrument=opt("Fresh Flexi", "Flexi Cap"),
                       alternatives=(opt("Hot Sector Fund", "Sectoral"),)),
        # four alternatives, one of them already in the plan
        AllocationSlot(category="Flexi Cap", instrument=opt("Fresh Flexi", "Flexi Cap"),
                       alternatives=tuple(opt(n, "Flexi Cap") for n in
                                          ("Alpha Gold", "Other Flexi 1", "Other Flexi 2", "Other Flexi 3"))),
        # wrong category for the slot
        AllocationSlot(category="Sectoral", instrument=opt("Fresh Sector", "Sectoral"),
                       alternatives=tuple(opt(f"Sector {i}", "Sectoral") for i in range(4))),
    ]
    for offer in bad_offers:
        gen = OfferingGenerator(offer)
        out = resolve_overlap(plan, generator=gen)
        assert gen.calls == 1
        assert not out.ok and out.errors[0].kind == IssueKind.OVERLAP_DETECTED


def test_resolve_accepts_well_formed_offer(make_plan):
    offer = AllocationSlot(category="Flexi Cap", instrument=opt("Fresh Flexi", "Flexi Cap", 50.0),
                           alternatives=tuple(opt(f"Other Flexi {i}", "Flexi Cap", 10.0 * i) for i in range(4)))
    out = resolve_overlap(_stranded(make_plan), generator=OfferingGenerator(offer))
    assert out.ok
    assert out.value.slots[1].name == "Fresh Flexi"
    assert [a.name for a in out.value.slots[1].alternatives][0] == "Other Flexi 3"
    assert is_settled(out.value)


def test_substitute_bad_index_suggests_zero_based_range(make_plan):
    out = substitute(make_plan(), 5, "Beta Flexi")
    assert out.errors[0].suggestion == "Choose a slot between 0 and 4."
