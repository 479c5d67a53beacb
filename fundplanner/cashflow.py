# PURPOSE: Household cash-flow validation and tax-slab consistency check.
# CONTEXT: First stage of the planner. A cash-flow deficit is fatal; a slab contradiction
#          is reported as a suggested correction the caller applies with a visible notice.

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

import structlog

from fundplanner.constants.tax_slabs import slab_for_amount, slab_index, slab_rate
from fundplanner.model_interface.types import FinancialSnapshot, PersonalProfile
from fundplanner.results import Issue, IssueKind, Outcome
from fundplanner.utils.rounding import round_currency, to_decimal

log = structlog.get_logger(__name__)


@dataclass
class CashFlowValidation:
    is_valid: bool
    error_message: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    suggested_tax_slab: Optional[str] = None
    issues: List[Issue] = field(default_factory=list)
    figures: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errorMessage": self.error_message,
            "warnings": list(self.warnings),
            "suggestedTaxSlab": self.suggested_tax_slab,
        }


def monthly_outflow(snapshot: FinancialSnapshot) -> Dict[str, Any]:
    """
    Aggregate the monthly outflow components (unrounded Decimals).

    returns:
    - dict – {"insurance": Decimal, "amortized": Decimal, "outflow": Decimal}
      where outflow = monthly expenses + yearly expenses / 12 + premiums / 12.
    """
    insurance = to_decimal(snapshot.insurance.total) / 12
    amortized = to_decimal(snapshot.yearly_expenses) / 12
    outflow = to_decimal(snapshot.monthly_expenses) + amortized + insurance
    return {"insurance": insurance, "amortized": amortized, "outflow": outflow}


def taxable_base(snapshot: FinancialSnapshot) -> float:
    """Annual salary income plus the corpus to invest."""
    return float(to_decimal(snapshot.monthly_income) * 12 + to_decimal(snapshot.total_corpus_to_invest))


def _consistency_warnings(snapshot: FinancialSnapshot) -> List[str]:
    warnings: List[str] = []
    if snapshot.total_corpus_to_invest > 0 and not snapshot.has_corpus:
        warnings.append("A corpus amount was entered but 'has corpus' is not selected; the amount is still used.")
    if snapshot.income_status == "Retired" and not snapshot.has_pension and snapshot.monthly_income > 0:
        warnings.append("Retired with no pension selected, yet a monthly income was entered; please confirm its source.")
    if snapshot.income_status == "Earning" and snapshot.monthly_income == 0:
        warnings.append("Income status is Earning but monthly income is zero.")
    return warnings


def evaluate_cash_flow(personal: Optional[PersonalProfile], snapshot: FinancialSnapshot) -> CashFlowValidation:
    """
    Validate a household's cash flow and declared tax slab.

    parameters:
    - personal: PersonalProfile|None – only used for log context.
    - snapshot: FinancialSnapshot – the declared financial facts.

    returns:
    - CashFlowValidation – is_valid False only on a cash-flow deficit; a slab mismatch keeps
      is_valid True and sets suggested_tax_slab to the bracket containing the taxable base.
    """
    parts = monthly_outflow(snapshot)
    outflow = parts["outflow"]
    income = to_decimal(snapshot.monthly_income)
    base = taxable_base(snapshot)
    figures = {
        "insuranceImpactMonthly": round_currency(parts["insurance"]),
        "totalMonthlyOutflow": round_currency(outflow),
        "annualSalaryIncome": round_currency(income * 12),
        "taxableBase": round_currency(base),
    }

    if income < outflow:
        shortfall = round_currency(outflow - income)
        msg = (f"Monthly income (₹{round_currency(income):,.0f}) is below total monthly outflow "
               f"(₹{figures['totalMonthlyOutflow']:,.0f}) by ₹{shortfall:,.0f}. "
               "Reduce expenses or correct the income before continuing.")
        log.info("cashflow.deficit", shortfall=shortfall,
                 client=personal.name if personal else None)
        return CashFlowValidation(
            is_valid=False,
            error_message=msg,
            issues=[Issue(IssueKind.VALIDATION_ERROR, msg, "Correct monthly income or expenses.",
                          {"shortfall": shortfall})],
            figures=figures,
        )

    warnings = _consistency_warnings(snapshot)
    issues: List[Issue] = []
    suggested: Optional[str] = None
    expected = slab_for_amount(base)
    if expected != snapshot.tax_slab:
        suggested = expected
        direction = "higher" if slab_index(expected) > slab_index(snapshot.tax_slab) else "lower"
        note = (f"Declared tax slab '{snapshot.tax_slab}' does not match the financial base of "
                f"₹{figures['taxableBase']:,.0f}; the {direction} bracket '{expected}' "
                f"({slab_rate(expected)}) applies.")
        warnings.append(note)
        issues.append(Issue(IssueKind.SLAB_MISMATCH, note, expected,
                            {"declared": snapshot.tax_slab, "suggested": expected}))

    log.debug("cashflow.evaluated", suggested_tax_slab=suggested, warnings=len(warnings))
    return CashFlowValidation(is_valid=True, warnings=warnings, suggested_tax_slab=suggested,
                              issues=issues, figures=figures)


def apply_slab_correction(snapshot: FinancialSnapshot, validation: CashFlowValidation) -> Outcome[FinancialSnapshot]:
    """
    Apply a suggested slab to the snapshot.

    returns:
    - Outcome – failure (ValidationError) when the validation itself failed; otherwise the
      corrected snapshot with a SlabMismatchNotice when a correction was made, or the
      untouched snapshot when none was needed.
    """
    if not validation.is_valid:
        return Outcome(errors=[i for i in validation.issues if i.kind == IssueKind.VALIDATION_ERROR])
    if not validation.suggested_tax_slab or validation.suggested_tax_slab == snapshot.tax_slab:
        return Outcome.success(snapshot)
    corrected = snapshot.with_tax_slab(validation.suggested_tax_slab)
    notice = Issue(
        IssueKind.SLAB_MISMATCH,
        f"Tax slab corrected to \"{validation.suggested_tax_slab}\".",
        validation.suggested_tax_slab,
        {"declared": snapshot.tax_slab, "suggested": validation.suggested_tax_slab},
    )
    return Outcome.success(corrected, [notice])


def validate_personal(personal: PersonalProfile, today: Optional[date] = None) -> Outcome[PersonalProfile]:
    """Onboarding checks: 10-digit mobile and an age consistent with the date of birth."""
    if not personal.has_valid_mobile:
        return Outcome.failure(IssueKind.VALIDATION_ERROR, "Valid mobile required.",
                               "Enter a 10 digit mobile number.", field="mobile")
    if not personal.is_age_consistent(today):
        return Outcome.failure(IssueKind.VALIDATION_ERROR, "Age does not match date of birth.",
                               "Re-enter the date of birth.", field="dob")
    return Outcome.success(personal)
