"""
Overlap resolver.

PURPOSE: Keep the five scheme names in a plan distinct, let the user swap in an alternative
         or override a single weight, and report whether the plan is settled.
CONTEXT: Plans are immutable; every operation returns a new plan inside an Outcome.
         Name comparison is trimmed and case-insensitive.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

import structlog

from fundplanner.allocation import slot_problems
from fundplanner.model_interface.types import TRACKS, AllocationPlan, AllocationSlot, RiskProfile, SchemeOption
from fundplanner.results import ContentGenerationError, Issue, IssueKind, Outcome
from fundplanner.utils.rounding import normalize_to_hundred

log = structlog.get_logger(__name__)


def _key(name: Optional[str]) -> str:
    return (name or "").strip().casefold()


def detect_overlap(plan: AllocationPlan) -> Dict[str, int]:
    """
    Count instrument names across slots.

    returns:
    - dict – first-seen spelling -> occurrence count; unbound slots are ignored.
    """
    counts: Dict[str, int] = {}
    spelling: Dict[str, str] = {}
    for s in plan.slots:
        if not s.name:
            continue
        k = _key(s.name)
        spelling.setdefault(k, s.name.strip())
        counts[k] = counts.get(k, 0) + 1
    return {spelling[k]: n for k, n in counts.items()}


def overlapping_names(plan: AllocationPlan) -> List[str]:
    return [name for name, n in detect_overlap(plan).items() if n > 1]


@dataclass(frozen=True)
class SubstitutionResult:
    plan: AllocationPlan
    overlap_introduced: bool = False
    overlapping: List[str] = field(default_factory=list)


def substitute(plan: AllocationPlan, slot_index: int, new_name: str) -> Outcome[SubstitutionResult]:
    """
    Swap one of a slot's alternatives in as its instrument.

    parameters:
    - plan: AllocationPlan
    - slot_index: int – 0-based slot position.
    - new_name: str – must be the slot's own name or one of its alternatives.

    returns:
    - Outcome[SubstitutionResult] – InvalidSubstitution failure (plan untouched) for a bad
      index or unknown name. Weights are never changed. If the new name collides with
      another slot the swap still succeeds, flagged with an OverlapDetected notice.
    """
    if not isinstance(slot_index, int) or isinstance(slot_index, bool) or not 0 <= slot_index < len(plan.slots):
        return Outcome.failure(IssueKind.INVALID_SUBSTITUTION, f"No slot at position {slot_index}.",
                               f"Choose a slot between 0 and {len(plan.slots) - 1}.", slot_index=slot_index)
    slot = plan.slots[slot_index]
    wanted = _key(new_name)
    if slot.instrument is not None and _key(slot.name) == wanted:
        return Outcome.success(SubstitutionResult(plan=plan))

    match = next((a for a in slot.alternatives if _key(a.name) == wanted), None)
    if match is None:
        return Outcome.failure(
            IssueKind.INVALID_SUBSTITUTION,
            f"'{new_name}' is not an alternative for the {slot.category} slot.",
            "Pick one of the listed alternatives.",
            slot_index=slot_index, alternatives=[a.name for a in slot.alternatives],
        )

    alternatives = [a for a in slot.alternatives if a is not match]
    if slot.instrument is not None:
        position = slot.alternatives.index(match)
        alternatives.insert(position, slot.instrument)
    new_plan = plan.with_slot(slot_index, replace(slot, instrument=match, alternatives=tuple(alternatives)))

    clash = [n for n in overlapping_names(new_plan) if _key(n) == wanted]
    if clash:
        log.info("overlap.introduced", slot_index=slot_index, name=match.name)
        notice = Issue(IssueKind.OVERLAP_DETECTED,
                       f"'{match.name}' is already used in another slot.",
                       "Confirm the duplicate or run overlap resolution.",
                       {"names": clash, "slot_index": slot_index})
        return Outcome.success(SubstitutionResult(new_plan, True, clash), [notice])
    return Outcome.success(SubstitutionResult(new_plan))


def _renormalise(plan: AllocationPlan) -> AllocationPlan:
    slots = list(plan.slots)
    for track in plan.active_tracks:
        if plan.total(track) == 100.0:
            continue
        fixed = normalize_to_hundred([s.pct(track) for s in slots])
        slots = [s.with_pct(track, v) for s, v in zip(slots, fixed)]
    return replace(plan, slots=tuple(slots))


def _rederive(slot: AllocationSlot, taken: set) -> Optional[AllocationSlot]:
    pick = next((a for a in slot.alternatives if _key(a.name) not in taken), None)
    if pick is None:
        return None
    rest: List[SchemeOption] = [a for a in slot.alternatives if a is not pick]
    if slot.instrument is not None:
        rest.append(slot.instrument)
    rest.sort(key=lambda a: a.aum, reverse=True)
    return replace(slot, instrument=pick, alternatives=tuple(rest))


def _acceptable(offered: AllocationSlot, category: str, taken: set) -> bool:
    if offered.instrument is None or offered.category != category or offered.instrument.category != category:
        return False
    if _key(offered.name) in taken:
        return False
    problems = slot_problems(offered, taken | {_key(offered.name)})
    if problems:
        log.warning("overlap.replacement_rejected", category=category, problems=problems)
        return False
    return True


def resolve_overlap(plan: AllocationPlan, risk_profile: Optional[RiskProfile] = None,
                    generator=None) -> Outcome[AllocationPlan]:
    """
    Re-derive colliding slots so all five names are distinct.

    parameters:
    - plan: AllocationPlan – possibly containing duplicate names.
    - risk_profile: RiskProfile|None – passed to the generator for replacements.
    - generator: ContentGenerator|None – asked for a replacement slot only when a colliding
      slot has no unused local alternative.

    returns:
    - Outcome[AllocationPlan] – category weights held; active tracks are re-normalised to 100
      only once a slot has been re-derived. A plan that is already distinct comes back
      unchanged, carrying AllocationSumMismatch notices for any track off 100.
      OverlapDetected failure if a collision cannot be cleared.
    """
    if not overlapping_names(plan):
        return Outcome.success(plan, validate_allocation_sums(plan))

    # Every current name is reserved so a replacement never collides with a later slot.
    taken = {_key(s.name) for s in plan.slots if s.name}
    seen: set = set()
    slots = list(plan.slots)
    replaced: List[int] = []
    for i, s in enumerate(slots):
        if not s.name:
            continue
        k = _key(s.name)
        if k not in seen:
            seen.add(k)
            continue

        fresh = _rederive(s, taken)
        if fresh is None and generator is not None:
            try:
                offered = generator.replacement_scheme(s.category, risk_profile, exclude=sorted(taken))
            except ContentGenerationError as e:
                log.warning("overlap.replacement_failed", category=s.category, error=str(e))
                offered = None
            if offered is not None and _acceptable(offered, s.category, taken):
                fresh = replace(s, instrument=offered.instrument,
                                alternatives=tuple(sorted(offered.alternatives, key=lambda a: a.aum, reverse=True)))
        if fresh is None:
            return Outcome.failure(IssueKind.OVERLAP_DETECTED,
                                   f"No unused scheme is available for the {s.category} slot.",
                                   "Pick a different scheme manually.",
                                   slot_index=i, name=s.name)
        taken.add(_key(fresh.name))
        seen.add(_key(fresh.name))
        slots[i] = fresh
        replaced.append(i)

    resolved = _renormalise(replace(plan, slots=tuple(slots)))
    log.info("overlap.resolved", replaced=replaced)
    return Outcome.success(resolved)


def override_weight(plan: AllocationPlan, slot_index: int, track: str, value) -> Outcome[AllocationPlan]:
    """
    Set one slot's percentage on one track without renormalising.

    returns:
    - Outcome[AllocationPlan] – InvalidOverride failure for a bad index, track or value
      (outside 0..100); otherwise the new plan, with an AllocationSumMismatch notice
      while the track doesn't add up to 100.
    """
    if track not in TRACKS or track not in plan.active_tracks:
        return Outcome.failure(IssueKind.INVALID_OVERRIDE, f"Track '{track}' is not part of this plan.",
                               f"Use one of: {', '.join(plan.active_tracks)}.", track=track)
    if not isinstance(slot_index, int) or isinstance(slot_index, bool) or not 0 <= slot_index < len(plan.slots):
        return Outcome.failure(IssueKind.INVALID_OVERRIDE, f"No slot at position {slot_index}.",
                               slot_index=slot_index)
    try:
        pct = float(value)
    except (TypeError, ValueError):
        return Outcome.failure(IssueKind.INVALID_OVERRIDE, f"'{value}' is not a number.", value=value)
    if isinstance(value, bool) or not 0 <= pct <= 100:
        return Outcome.failure(IssueKind.INVALID_OVERRIDE, "Percentage must be between 0 and 100.",
                               value=value)

    new_plan = plan.with_slot(slot_index, plan.slots[slot_index].with_pct(track, pct))
    return Outcome.success(new_plan, validate_allocation_sums(new_plan))


def validate_allocation_sums(plan: AllocationPlan) -> List[Issue]:
    """AllocationSumMismatch issues for each active track not totalling exactly 100."""
    issues = []
    for track in plan.active_tracks:
        total = plan.total(track)
        if total != 100.0:
            issues.append(Issue(IssueKind.ALLOCATION_SUM_MISMATCH,
                                f"{track.upper()} allocation totals {total:g}%, not 100%.",
                                "Adjust the weights or run overlap resolution to re-normalise.",
                                {"track": track, "total": total}))
    return issues


def is_settled(plan: AllocationPlan) -> bool:
    """Five distinct, bound slots with every active track at exactly 100."""
    return (all(s.instrument is not None for s in plan.slots)
            and not overlapping_names(plan)
            and not validate_allocation_sums(plan))
