"""
Planner session: the state a client accumulates across the five intake steps.

PURPOSE:
- Hold personal details, financial snapshot, risk answers/profile, investment choice,
  capacity and the current plan, plus which step the client has reached.
- Serialise to and from the draft document persisted by state_manager.
- Decide whether the current plan may go into a report.

CONTEXT:
- Each `submit_*` method runs the matching engine stage and only advances the step on success.
- Engine values stay immutable; the session swaps whole values in and out.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from datetime import date
from enum import IntEnum
from typing import Any, Dict, Mapping, Optional

import structlog

from fundplanner.capacity import compute_capacity
from fundplanner.cashflow import CashFlowValidation, apply_slab_correction, evaluate_cash_flow, validate_personal
from fundplanner.model_interface.types import (
    AllocationPlan,
    FinancialSnapshot,
    InvestmentChoice,
    PersonalProfile,
    PortfolioCapacity,
    RiskProfile,
)
from fundplanner.overlap import overlapping_names, validate_allocation_sums
from fundplanner.results import IssueKind, Outcome
from fundplanner.risk_profiler import normalize_answers, profile_risk

log = structlog.get_logger(__name__)

DRAFT_VERSION = 2


class WizardStep(IntEnum):
    PERSONAL = 1
    FINANCIAL = 2
    RISK = 3
    INVESTMENT = 4
    PORTFOLIO = 5


def allow_unsettled_report() -> bool:
    return os.getenv("FUNDPLANNER_ALLOW_UNSETTLED_REPORT", "0") == "1"


@dataclass
class PlannerSession:
    personal: Optional[PersonalProfile] = None
    financial: Optional[FinancialSnapshot] = None
    risk_answers: Dict[int, int] = field(default_factory=dict)
    risk_profile: Optional[RiskProfile] = None
    investment: Optional[InvestmentChoice] = None
    capacity: Optional[PortfolioCapacity] = None
    summary: Dict[str, Any] = field(default_factory=dict)
    plan: Optional[AllocationPlan] = None
    step: WizardStep = WizardStep.PERSONAL
    cash_flow: Optional[CashFlowValidation] = field(default=None, repr=False)

    # ---------------- steps ---------------- #

    def submit_personal(self, personal: PersonalProfile, today: Optional[date] = None) -> Outcome[PersonalProfile]:
        out = validate_personal(personal, today)
        if out.ok:
            self.personal = personal
            self.step = max(self.step, WizardStep.FINANCIAL)
        return out

    def submit_financial(self, snapshot: FinancialSnapshot) -> Outcome[FinancialSnapshot]:
        """Validate cash flow, apply any slab correction, and keep the corrected snapshot."""
        validation = evaluate_cash_flow(self.personal, snapshot)
        self.cash_flow = validation
        out = apply_slab_correction(snapshot, validation)
        if out.ok:
            self.financial = out.value
            self.step = max(self.step, WizardStep.RISK)
        return out

    def submit_risk(self, answers: Mapping) -> Outcome[RiskProfile]:
        """
        Profile risk and compute capacity; the investment choice defaults to full capacity.
        """
        if self.personal is None or self.financial is None:
            return Outcome.failure(IssueKind.VALIDATION_ERROR, "Personal and financial details come first.")
        self.risk_answers = normalize_answers(answers)
        out = profile_risk(self.risk_answers, self.personal.age)
        if not out.ok:
            return out
        self.risk_profile = out.value
        self.capacity = compute_capacity(self.financial)
        if self.investment is None:
            self.investment = InvestmentChoice(self.capacity.investable_from_salary,
                                               self.capacity.investable_from_corpus, "Both")
        self.step = max(self.step, WizardStep.INVESTMENT)
        return out

    def choose_investment(self, investment: InvestmentChoice) -> None:
        self.investment = investment

    def set_plan(self, plan: AllocationPlan) -> None:
        self.plan = plan
        self.step = WizardStep.PORTFOLIO

    # ---------------- drafts ---------------- #

    def to_draft(self) -> Dict[str, Any]:
        return {
            "version": DRAFT_VERSION,
            "personal": self.personal.to_dict() if self.personal else None,
            "financial": self.financial.to_dict() if self.financial else None,
            "riskAnswers": {str(k): v for k, v in sorted(self.risk_answers.items())},
            "riskProfile": self.risk_profile.to_dict() if self.risk_profile else None,
            "investment": self.investment.to_dict() if self.investment else None,
            "capacity": self.capacity.to_dict() if self.capacity else None,
            "summary": dict(self.summary),
            "plan": self.plan.to_dict() if self.plan else None,
            "step": int(self.step),
        }

    @classmethod
    def from_draft(cls, d: Mapping[str, Any]) -> "PlannerSession":
        """
        Rebuild a session from a draft document.

        notes:
        - Age is re-derived from the date of birth, so a draft saved before a birthday
          resumes with the current age.
        - Capacity is recomputed from the snapshot rather than trusted from the draft.
        """
        personal = PersonalProfile.from_dict(d["personal"]) if d.get("personal") else None
        financial = FinancialSnapshot.from_dict(d["financial"]) if d.get("financial") else None
        return cls(
            personal=personal,
            financial=financial,
            risk_answers=normalize_answers(d.get("riskAnswers") or {}),
            risk_profile=RiskProfile.from_dict(d["riskProfile"]) if d.get("riskProfile") else None,
            investment=InvestmentChoice.from_dict(d["investment"]) if d.get("investment") else None,
            capacity=compute_capacity(financial) if financial else None,
            summary=dict(d.get("summary") or {}),
            plan=AllocationPlan.from_dict(d["plan"]) if d.get("plan") else None,
            step=WizardStep(int(d.get("step") or WizardStep.PERSONAL)),
        )


def report_readiness(session: PlannerSession) -> Outcome[AllocationPlan]:
    """
    Gate report generation on a settled plan.

    returns:
    - Outcome[AllocationPlan] – fails with AllocationSumMismatch while an active track is off
      100 (a notice instead when FUNDPLANNER_ALLOW_UNSETTLED_REPORT=1), and with
      OverlapDetected while names repeat.
    """
    plan = session.plan
    if plan is None:
        return Outcome.failure(IssueKind.VALIDATION_ERROR, "No portfolio has been generated yet.",
                               "Generate recommendations first.")
    if any(s.instrument is None for s in plan.slots):
        return Outcome.failure(IssueKind.VALIDATION_ERROR, "Every slot needs a scheme before reporting.")
    dupes = overlapping_names(plan)
    if dupes:
        return Outcome.failure(IssueKind.OVERLAP_DETECTED, "The portfolio repeats a scheme.",
                               "Resolve overlap or substitute a different alternative.", names=dupes)
    sums = validate_allocation_sums(plan)
    if sums and not allow_unsettled_report():
        return Outcome(errors=sums)
    log.info("report.ready", settled=not sums)
    return Outcome.success(plan, list(sums))
