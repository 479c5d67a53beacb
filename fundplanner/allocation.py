"""
Allocation constraint engine.

PURPOSE: Derive compliant target weights per fund category for the SIP and lumpsum tracks,
         lay them out as a five-slot plan template, and bind the schemes a content
         collaborator fills in back onto that template.

CONTEXT: Constraints are applied in precedence order:
         1) horizon guardrail (short horizon => equity <= 20, deficit to debt classes)
         2) international exclusion above age 45
         3) quality filter (excluded categories never used, Focused <= 10)
         4) equity glide path by age, shifted by risk category inside its band.
         Weights are whole percentages; each active track sums to exactly 100.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import structlog

from fundplanner.constants import asset_classes as ac
from fundplanner.constants.risk_bands import RISK_BANDS, RiskCategory
from fundplanner.model_interface.types import (
    TRACKS,
    AllocationPlan,
    AllocationSlot,
    InvestmentChoice,
    PortfolioCapacity,
    RiskProfile,
)
from fundplanner.results import Issue, IssueKind, Outcome
from fundplanner.utils.rounding import round_pct, split_integer

log = structlog.get_logger(__name__)

# Baseline equity % by age (exclusive upper age). Non-increasing by construction.
GLIDE_PATH = [
    (30, 75),
    (40, 65),
    (46, 60),
    (55, 45),
    (60, 35),
]
GLIDE_PATH_FLOOR = 25

# Debt split ratios per layout, in slot order of the debt categories.
_DEBT_RATIOS = {
    "short_horizon": {ac.LIQUID: 0.4, ac.ULTRA_SHORT: 0.3, ac.LOW_DURATION: 0.3},
    "conservative": {ac.CORPORATE_BOND: 0.6, ac.ULTRA_SHORT: 0.4},
    "growth": {ac.CORPORATE_BOND: 1.0},
}


def _clamp(x: int, lo: int, hi: int) -> int:
    """Clamp x into [lo, hi]."""
    return max(lo, min(hi, x))


def glide_path_equity(age: int) -> int:
    """Baseline equity percentage for an age before any risk adjustment."""
    for upper_age, equity in GLIDE_PATH:
        if age < upper_age:
            return equity
    return GLIDE_PATH_FLOOR


def target_equity(age: int, category: RiskCategory, short_horizon: bool) -> int:
    """
    Equity percentage after risk shift, band clamp and horizon guardrail.

    returns:
    - int – non-increasing in age, non-decreasing in category, <= 20 on a short horizon.
    """
    band = RISK_BANDS[category]
    eq = _clamp(glide_path_equity(age) + band["shift"], band["min_eq"], band["max_eq"])
    if short_horizon:
        eq = min(eq, ac.SHORT_HORIZON_EQUITY_CAP)
    return eq


def slot_layout(category: RiskCategory, age: int, short_horizon: bool) -> Tuple[str, Tuple[str, ...]]:
    """
    Choose the five category tags and the layout name.

    returns:
    - (layout_name, categories) – categories is a 5-tuple in slot order.
    """
    if short_horizon:
        return "short_horizon", (ac.LARGE_CAP_INDEX, ac.GOLD, ac.LIQUID, ac.ULTRA_SHORT, ac.LOW_DURATION)
    if category <= RiskCategory.MODERATELY_LOW:
        return "conservative", (ac.LARGE_CAP_INDEX, ac.FLEXI_CAP, ac.GOLD, ac.CORPORATE_BOND, ac.ULTRA_SHORT)
    satellite = ac.INTERNATIONAL if age <= ac.INTERNATIONAL_MAX_AGE else ac.FOCUSED
    return "growth", (ac.LARGE_CAP_INDEX, ac.FLEXI_CAP, satellite, ac.GOLD, ac.CORPORATE_BOND)


def _equity_weights(layout: Sequence[str], equity: int) -> Dict[str, int]:
    equity_slots = [c for c in layout if c in ac.EQUITY_CATEGORIES]
    if len(equity_slots) == 1:
        return {equity_slots[0]: equity}
    out: Dict[str, int] = {}
    rest = equity
    for sat, cap in ((ac.INTERNATIONAL, ac.INTERNATIONAL_CAP), (ac.FOCUSED, ac.FOCUSED_CAP)):
        if sat in equity_slots:
            out[sat] = min(cap, int(round_pct(equity * ac.SATELLITE_SHARE)))
            rest -= out[sat]
    lci, flexi = split_integer(rest, [0.5, 0.5])
    out[ac.LARGE_CAP_INDEX] = lci
    out[ac.FLEXI_CAP] = flexi
    return out


def class_weights(category: RiskCategory, age: int, short_horizon: bool) -> Tuple[Tuple[str, ...], Dict[str, int]]:
    """
    Compute the shared category weight vector.

    returns:
    - (layout, weights) – layout is the 5 category tags, weights maps each to a whole
      percentage; the weights sum to exactly 100.
    """
    layout_name, layout = slot_layout(category, age, short_horizon)
    equity = target_equity(age, category, short_horizon)
    gold = ac.GOLD_WEIGHT
    debt = 100 - equity - gold

    weights = _equity_weights(layout, equity)
    weights[ac.GOLD] = gold
    ratios = _DEBT_RATIOS[layout_name]
    for cat, part in zip(ratios, split_integer(debt, ratios.values())):
        weights[cat] = part
    return layout, {c: weights.get(c, 0) for c in layout}


def check_constraints(weights: Mapping[str, float], age: int, short_horizon: bool) -> List[str]:
    """
    Check a category weight vector against the hard constraints.

    parameters:
    - weights: mapping category tag -> percentage (one track).
    - age: int; short_horizon: bool.

    returns:
    - list[str] – human-readable violations; empty when compliant.
    """
    cats = list(weights.keys())
    vec = np.array([float(weights[c]) for c in cats], dtype=float)
    violations: List[str] = []
    if vec.size and vec.sum() > 0 and not np.isclose(vec.sum(), 100.0):
        violations.append(f"weights sum to {vec.sum():g}, expected 100")
    if (vec < 0).any():
        violations.append("negative weight")

    equity_mask = np.array([c in ac.EQUITY_CATEGORIES for c in cats], dtype=bool)
    equity = float(vec[equity_mask].sum()) if vec.size else 0.0
    if short_horizon and equity > ac.SHORT_HORIZON_EQUITY_CAP + 1e-9:
        violations.append(f"equity {equity:g}% exceeds {ac.SHORT_HORIZON_EQUITY_CAP}% on a short horizon")
    intl = sum(float(w) for c, w in weights.items() if c == ac.INTERNATIONAL)
    if age > ac.INTERNATIONAL_MAX_AGE and intl > 0:
        violations.append(f"international weight {intl:g}% not allowed above age {ac.INTERNATIONAL_MAX_AGE}")
    focused = sum(float(w) for c, w in weights.items() if c == ac.FOCUSED)
    if focused > ac.FOCUSED_CAP + 1e-9:
        violations.append(f"focused weight {focused:g}% exceeds {ac.FOCUSED_CAP}%")
    for c, w in weights.items():
        if ac.is_excluded(c):
            if float(w) > 0:
                violations.append(f"excluded category '{c}'")
        elif c not in ac.ALLOWED_CATEGORIES:
            violations.append(f"unknown category '{c}'")
    return violations


@dataclass(frozen=True)
class TargetAllocation:
    category: RiskCategory
    age: int
    short_horizon: bool
    layout: Tuple[str, ...]
    class_weights: Dict[str, int]
    active_tracks: Tuple[str, ...]

    @property
    def equity_pct(self) -> int:
        return sum(w for c, w in self.class_weights.items() if c in ac.EQUITY_CATEGORIES)

    def weights(self, track: str) -> Dict[str, int]:
        """Category weights for one track; all zero when the track is inactive."""
        if track not in self.active_tracks:
            return {c: 0 for c in self.layout}
        return dict(self.class_weights)

    def to_plan_template(self) -> AllocationPlan:
        sip = self.weights("sip")
        lump = self.weights("lumpsum")
        slots = tuple(
            AllocationSlot(category=c, sip_allocation_pct=float(sip[c]), lumpsum_allocation_pct=float(lump[c]))
            for c in self.layout
        )
        return AllocationPlan(slots=slots, active_tracks=self.active_tracks)

    def to_dict(self) -> Dict:
        return {
            "riskCategory": self.category.label,
            "age": self.age,
            "shortHorizon": self.short_horizon,
            "equityPct": self.equity_pct,
            "layout": list(self.layout),
            "sipWeights": self.weights("sip"),
            "lumpsumWeights": self.weights("lumpsum"),
            "activeTracks": list(self.active_tracks),
        }


def compute_target_allocation(
    capacity: PortfolioCapacity,
    risk_profile: RiskProfile,
    age: int,
    investment: Optional[InvestmentChoice] = None,
) -> TargetAllocation:
    """
    Build the target weight vectors for both tracks.

    parameters:
    - capacity: PortfolioCapacity – a track with zero capacity is inactive (all-zero weights).
    - risk_profile: RiskProfile – category and horizon flag.
    - age: int – current age (drives glide path and international exclusion).
    - investment: InvestmentChoice|None – when given, tracks outside the chosen type are inactive.

    returns:
    - TargetAllocation – shared class weights, five-slot layout, active tracks.
    """
    layout, weights = class_weights(risk_profile.category, age, risk_profile.short_horizon)
    active = tuple(
        t for t in TRACKS
        if capacity.capacity_for(t) > 0 and (investment is None or investment.includes(t))
    )
    violations = check_constraints(weights, age, risk_profile.short_horizon)
    if violations:
        log.error("allocation.target_invalid", category=risk_profile.category.label, violations=violations)
        raise ValueError(f"target weights violate constraints: {violations}")
    log.debug("allocation.target", category=risk_profile.category.label, age=age,
              short_horizon=risk_profile.short_horizon, weights=weights, active=active)
    return TargetAllocation(
        category=risk_profile.category,
        age=age,
        short_horizon=risk_profile.short_horizon,
        layout=layout,
        class_weights=weights,
        active_tracks=active,
    )


def slot_problems(slot: AllocationSlot, taken: Iterable[str] = ()) -> List[str]:
    """
    Shape checks for one collaborator-filled slot.

    parameters:
    - slot: AllocationSlot
    - taken: iterable of str – trimmed, casefolded names the slot's alternatives must not reuse.

    returns:
    - list[str] – empty when the slot is bound, not in an excluded category, and carries
      exactly four distinct same-category alternatives.
    """
    problems: List[str] = []
    if ac.is_excluded(slot.category):
        problems.append(f"excluded category '{slot.category}' ({slot.name})")
    if slot.instrument is None:
        problems.append(f"slot '{slot.category}' has no scheme")
    if len(slot.alternatives) != ac.ALTERNATIVES_PER_SLOT:
        problems.append(f"'{slot.name}' has {len(slot.alternatives)} alternatives, expected {ac.ALTERNATIVES_PER_SLOT}")
    used = set(taken)
    for alt in slot.alternatives:
        if alt.category != slot.category:
            problems.append(f"alternative '{alt.name}' is '{alt.category}', not '{slot.category}'")
        if alt.name.strip().casefold() in used:
            problems.append(f"alternative '{alt.name}' is already used in the plan")
    return problems


def bind_schemes(target: TargetAllocation, slots: Sequence[AllocationSlot]) -> Outcome[AllocationPlan]:
    """
    Validate collaborator-filled slots against the target and bind them into a plan.

    parameters:
    - target: TargetAllocation – the engine's weights and layout.
    - slots: sequence of AllocationSlot – one per layout category, any order.

    returns:
    - Outcome[AllocationPlan] – ContentGenerationError failure if the records don't cover the
      layout one-to-one, lack exactly four same-category alternatives, or use an excluded
      category. Percentages that drift from the target are overridden with the engine's
      weights and reported as a notice.
    """
    problems: List[str] = []
    if len(slots) != ac.SLOT_COUNT:
        problems.append(f"expected {ac.SLOT_COUNT} schemes, got {len(slots)}")

    by_category: Dict[str, AllocationSlot] = {}
    for s in slots:
        if s.category in by_category:
            problems.append(f"category '{s.category}' returned twice")
        by_category[s.category] = s
        problems.extend(slot_problems(s))
    missing = [c for c in target.layout if c not in by_category]
    if missing:
        problems.append(f"missing categories: {', '.join(missing)}")
    if problems:
        log.warning("allocation.bind_rejected", problems=problems)
        return Outcome.failure(IssueKind.CONTENT_GENERATION,
                               "Scheme recommendations did not match the allocation template.",
                               "Regenerate the recommendations.", problems=problems)

    notices: List[Issue] = []
    drifted: List[str] = []
    bound: List[AllocationSlot] = []
    sip, lump = target.weights("sip"), target.weights("lumpsum")
    for cat in target.layout:
        s = by_category[cat]
        if s.sip_allocation_pct != sip[cat] or s.lumpsum_allocation_pct != lump[cat]:
            drifted.append(cat)
        bound.append(AllocationSlot(category=cat, sip_allocation_pct=float(sip[cat]),
                                    lumpsum_allocation_pct=float(lump[cat]),
                                    instrument=s.instrument, alternatives=tuple(s.alternatives)))
    if drifted:
        notices.append(Issue(IssueKind.CONTENT_GENERATION,
                             "Recommended weights differed from the compliant target and were replaced.",
                             details={"categories": drifted}))
    return Outcome.success(AllocationPlan(slots=tuple(bound), active_tracks=target.active_tracks), notices)


def plan_violations(plan: AllocationPlan, age: int, short_horizon: bool) -> List[str]:
    """Constraint check over a bound plan, per active track."""
    out: List[str] = []
    for track in plan.active_tracks:
        weights: Dict[str, float] = {}
        for s in plan.slots:
            weights[s.category] = weights.get(s.category, 0.0) + s.pct(track)
        out.extend(f"{track}: {v}" for v in check_constraints(weights, age, short_horizon))
    return out
