# PURPOSE: Investable capacity from surplus cash flow and corpus under the emergency-buffer policy.
# CONTEXT: Arithmetic runs in Decimal at full precision; each derived field is rounded once at the end.

from __future__ import annotations
from decimal import Decimal
from typing import Dict, List

from fundplanner.cashflow import monthly_outflow
from fundplanner.model_interface.types import FinancialSnapshot, PortfolioCapacity
from fundplanner.utils.rounding import round_currency, to_decimal

SURPLUS_BUFFER_RATE = Decimal("0.10")
INCOME_BUFFER_RATE = Decimal("0.15")
CORPUS_INVESTABLE_RATE = Decimal("0.80")

_ZERO = Decimal(0)


def compute_capacity(snapshot: FinancialSnapshot) -> PortfolioCapacity:
    """
    Compute SIP (salary) and lumpsum (corpus) capacity.

    rules:
    - gross surplus = income - outflow, floored at 0.
    - emergency buffer = the larger of 10% of gross surplus and 15% of income.
    - SIP capacity = gross surplus - buffer, floored at 0.
    - lumpsum capacity = 80% of corpus (20% stays liquid).

    returns:
    - PortfolioCapacity – all fields rounded to the currency reporting unit, never negative.
    """
    parts = monthly_outflow(snapshot)
    income = to_decimal(snapshot.monthly_income)
    gross = max(_ZERO, income - parts["outflow"])
    buffer = max(SURPLUS_BUFFER_RATE * gross, INCOME_BUFFER_RATE * income)
    from_salary = max(_ZERO, gross - buffer)
    from_corpus = CORPUS_INVESTABLE_RATE * to_decimal(snapshot.total_corpus_to_invest)

    salary_r = round_currency(from_salary)
    corpus_r = round_currency(from_corpus)
    return PortfolioCapacity(
        total_monthly_inflow=round_currency(income),
        total_monthly_outflow=round_currency(parts["outflow"]),
        insurance_impact_monthly=round_currency(parts["insurance"]),
        amortized_yearly_expenses_monthly=round_currency(parts["amortized"]),
        emergency_buffer=round_currency(buffer),
        surplus_before_investment=round_currency(gross),
        investable_from_salary=salary_r,
        investable_from_corpus=corpus_r,
        # Sum of the two rounded fields so displayed figures reconcile.
        total_investable=round_currency(to_decimal(salary_r) + to_decimal(corpus_r)),
    )


_FIELD_KEYS = {
    "investableFromSalary": "investable_from_salary",
    "investableFromCorpus": "investable_from_corpus",
    "totalInvestable": "total_investable",
    "totalMonthlyInflow": "total_monthly_inflow",
    "totalMonthlyOutflow": "total_monthly_outflow",
    "insuranceImpactMonthly": "insurance_impact_monthly",
    "amortizedYearlyExpensesMonthly": "amortized_yearly_expenses_monthly",
    "emergencyBuffer": "emergency_buffer",
    "surplusBeforeInvestment": "surplus_before_investment",
}


def capacity_drift(reported: Dict[str, float], computed: PortfolioCapacity, tolerance: float = 1.0) -> List[str]:
    """
    Compare a collaborator-reported capacity payload against our own computation.

    parameters:
    - reported: dict – flat camelCase figures (breakdown keys and top-level keys merged).
    - computed: PortfolioCapacity – the authoritative figures.
    - tolerance: float – allowed absolute difference (one reporting unit by default).

    returns:
    - list[str] – camelCase keys whose reported value is off by more than tolerance
      (keys the collaborator left out are skipped).
    """
    drift = []
    for key, attr in _FIELD_KEYS.items():
        if key not in reported or reported[key] is None:
            continue
        if abs(float(reported[key]) - getattr(computed, attr)) > tolerance:
            drift.append(key)
    return drift
