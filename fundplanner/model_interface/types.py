"""
Domain types shared by the engine, the content-generation collaborator and the session layer.

PURPOSE: One place for the data model (profile, snapshot, risk, capacity, plan).
CONTEXT: Engine values are immutable dataclasses; every mutation returns a new value.
         `to_dict()` views use the camelCase keys the presentation layer and drafts use.
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from fundplanner.constants.risk_bands import RiskCategory
from fundplanner.constants.tax_slabs import DEFAULT_SLAB, is_known_slab
from fundplanner.utils.rounding import track_total

IncomeStatus = Literal["Earning", "Retired"]
InvestmentType = Literal["SIP", "Lumpsum", "Both"]
Track = Literal["sip", "lumpsum"]

TRACKS: Tuple[str, ...] = ("sip", "lumpsum")
INCOME_STATUSES = ("Earning", "Retired")
INVESTMENT_TYPES = ("SIP", "Lumpsum", "Both")

_MOBILE_RE = re.compile(r"^[0-9]{10}$")


# ---------------- Personal profile ---------------- #

def age_on(dob: date, today: date) -> int:
    """Full years between dob and today (birthday not yet reached this year counts one less)."""
    age = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        age -= 1
    return age


@dataclass(frozen=True)
class PersonalProfile:
    name: str
    dob: date
    age: int
    mobile: str = ""
    email: str = ""

    @classmethod
    def from_dob(cls, name: str, dob: date, mobile: str = "", email: str = "",
                 today: Optional[date] = None) -> "PersonalProfile":
        today = today or date.today()
        if dob > today:
            raise ValueError("Date of birth cannot be in the future")
        return cls(name=name, dob=dob, age=age_on(dob, today), mobile=mobile, email=email)

    def with_dob(self, dob: date, today: Optional[date] = None) -> "PersonalProfile":
        """Explicit user edit: age is always recomputed alongside the new date of birth."""
        return PersonalProfile.from_dob(self.name, dob, self.mobile, self.email, today=today)

    def is_age_consistent(self, today: Optional[date] = None) -> bool:
        return self.age >= 0 and self.age == age_on(self.dob, today or date.today())

    @property
    def has_valid_mobile(self) -> bool:
        return bool(_MOBILE_RE.match(self.mobile or ""))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "dob": self.dob.isoformat(), "age": self.age,
                "mobile": self.mobile, "email": self.email}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any], today: Optional[date] = None) -> "PersonalProfile":
        dob = date.fromisoformat(str(d["dob"]))
        return cls.from_dob(str(d.get("name") or ""), dob, str(d.get("mobile") or ""),
                            str(d.get("email") or ""), today=today)


# ---------------- Financial snapshot ---------------- #

@dataclass(frozen=True)
class InsurancePremiums:
    """Yearly premiums in rupees."""
    term: float = 0.0
    health: float = 0.0
    personal_accident: float = 0.0

    def __post_init__(self):
        for name in ("term", "health", "personal_accident"):
            if getattr(self, name) < 0:
                raise ValueError(f"insurance.{name} must be >= 0")

    @property
    def total(self) -> float:
        return self.term + self.health + self.personal_accident

    def to_dict(self) -> Dict[str, float]:
        return {"termPlan": self.term, "healthInsurance": self.health,
                "personalAccident": self.personal_accident}


_MONEY_FIELDS = ("total_corpus_to_invest", "monthly_income", "monthly_expenses", "yearly_expenses")


@dataclass(frozen=True)
class FinancialSnapshot:
    income_status: str = "Earning"
    has_corpus: bool = False
    has_pension: bool = False
    total_corpus_to_invest: float = 0.0
    monthly_income: float = 0.0
    monthly_expenses: float = 0.0
    yearly_expenses: float = 0.0
    insurance: InsurancePremiums = field(default_factory=InsurancePremiums)
    tax_slab: str = DEFAULT_SLAB

    def __post_init__(self):
        if self.income_status not in INCOME_STATUSES:
            raise ValueError(f"income_status must be one of {INCOME_STATUSES}")
        for name in _MONEY_FIELDS:
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if not is_known_slab(self.tax_slab):
            raise ValueError(f"Unknown tax slab: {self.tax_slab!r}")

    def with_tax_slab(self, label: str) -> "FinancialSnapshot":
        return replace(self, tax_slab=label)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "incomeStatus": self.income_status,
            "hasCorpus": self.has_corpus,
            "hasPension": self.has_pension,
            "totalCorpusToInvest": self.total_corpus_to_invest,
            "monthlyIncome": self.monthly_income,
            "monthlyExpenses": self.monthly_expenses,
            "yearlyExpenses": self.yearly_expenses,
            "insurance": self.insurance.to_dict(),
            "taxSlab": self.tax_slab,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "FinancialSnapshot":
        ins = d.get("insurance") or {}
        return cls(
            income_status=d.get("incomeStatus", "Earning"),
            has_corpus=bool(d.get("hasCorpus", False)),
            has_pension=bool(d.get("hasPension", False)),
            total_corpus_to_invest=float(d.get("totalCorpusToInvest") or 0),
            monthly_income=float(d.get("monthlyIncome") or 0),
            monthly_expenses=float(d.get("monthlyExpenses") or 0),
            yearly_expenses=float(d.get("yearlyExpenses") or 0),
            insurance=InsurancePremiums(
                term=float(ins.get("termPlan") or 0),
                health=float(ins.get("healthInsurance") or 0),
                personal_accident=float(ins.get("personalAccident") or 0),
            ),
            tax_slab=d.get("taxSlab") or DEFAULT_SLAB,
        )


@dataclass(frozen=True)
class InvestmentChoice:
    sip_amount: float = 0.0
    lumpsum_amount: float = 0.0
    type: str = "Both"

    def __post_init__(self):
        if self.type not in INVESTMENT_TYPES:
            raise ValueError(f"investment type must be one of {INVESTMENT_TYPES}")

    def includes(self, track: str) -> bool:
        if self.type == "Both":
            return True
        return (track == "sip" and self.type == "SIP") or (track == "lumpsum" and self.type == "Lumpsum")

    def to_dict(self) -> Dict[str, Any]:
        return {"sipAmount": self.sip_amount, "lumpsumAmount": self.lumpsum_amount, "type": self.type}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "InvestmentChoice":
        return cls(float(d.get("sipAmount") or 0), float(d.get("lumpsumAmount") or 0), d.get("type", "Both"))


# ---------------- Risk ---------------- #

@dataclass(frozen=True)
class RiskDescription:
    principal_risk: str
    suitable_for: str
    horizon: str

    def to_dict(self) -> Dict[str, str]:
        return {"principalRisk": self.principal_risk, "suitableFor": self.suitable_for, "horizon": self.horizon}

    def as_text(self) -> str:
        return (f"1. Principal Risk: {self.principal_risk}\n"
                f"2. Suitable for: {self.suitable_for}\n"
                f"3. Horizon: {self.horizon}")


@dataclass(frozen=True)
class RiskProfile:
    category: RiskCategory
    description: RiskDescription
    score: int
    age: int
    short_horizon: bool

    def with_description(self, description: RiskDescription) -> "RiskProfile":
        return replace(self, description=description)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.label,
            "description": self.description.to_dict(),
            "score": self.score,
            "age": self.age,
            "shortHorizon": self.short_horizon,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "RiskProfile":
        desc = d.get("description") or {}
        return cls(
            category=RiskCategory.from_label(d["category"]),
            description=RiskDescription(desc.get("principalRisk", ""), desc.get("suitableFor", ""),
                                        desc.get("horizon", "")),
            score=int(d.get("score") or 0),
            age=int(d.get("age") or 0),
            short_horizon=bool(d.get("shortHorizon", False)),
        )


# ---------------- Capacity ---------------- #

@dataclass(frozen=True)
class PortfolioCapacity:
    total_monthly_inflow: float
    total_monthly_outflow: float
    insurance_impact_monthly: float
    amortized_yearly_expenses_monthly: float
    emergency_buffer: float
    surplus_before_investment: float
    investable_from_salary: float
    investable_from_corpus: float
    total_investable: float

    def breakdown(self) -> Dict[str, float]:
        return {
            "totalMonthlyInflow": self.total_monthly_inflow,
            "totalMonthlyOutflow": self.total_monthly_outflow,
            "insuranceImpactMonthly": self.insurance_impact_monthly,
            "amortizedYearlyExpensesMonthly": self.amortized_yearly_expenses_monthly,
            "emergencyBuffer": self.emergency_buffer,
            "surplusBeforeInvestment": self.surplus_before_investment,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "investableFromSalary": self.investable_from_salary,
            "investableFromCorpus": self.investable_from_corpus,
            "totalInvestable": self.total_investable,
            "breakdown": self.breakdown(),
        }

    def capacity_for(self, track: str) -> float:
        return self.investable_from_salary if track == "sip" else self.investable_from_corpus


# ---------------- Schemes & plans ---------------- #

@dataclass(frozen=True)
class SchemeOption:
    name: str
    category: str
    benchmark: str = ""
    expense_ratio: Optional[float] = None
    manager_tenure: str = ""
    aum: float = 0.0
    performance: Mapping[str, float] = field(default_factory=dict)
    risk_metrics: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "benchmark": self.benchmark,
            "expenseRatio": self.expense_ratio,
            "managerTenure": self.manager_tenure,
            "aum": self.aum,
            "performance": dict(self.performance),
            "riskMetrics": dict(self.risk_metrics),
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "SchemeOption":
        return cls(
            name=str(d["name"]),
            category=str(d["category"]),
            benchmark=str(d.get("benchmark") or ""),
            expense_ratio=d.get("expenseRatio"),
            manager_tenure=str(d.get("managerTenure") or ""),
            aum=float(d.get("aum") or 0),
            performance=dict(d.get("performance") or {}),
            risk_metrics=dict(d.get("riskMetrics") or {}),
        )


@dataclass(frozen=True)
class AllocationSlot:
    category: str
    sip_allocation_pct: float = 0.0
    lumpsum_allocation_pct: float = 0.0
    instrument: Optional[SchemeOption] = None
    alternatives: Tuple[SchemeOption, ...] = ()

    @property
    def name(self) -> Optional[str]:
        return self.instrument.name if self.instrument else None

    def pct(self, track: str) -> float:
        return self.sip_allocation_pct if track == "sip" else self.lumpsum_allocation_pct

    def with_pct(self, track: str, value: float) -> "AllocationSlot":
        if track == "sip":
            return replace(self, sip_allocation_pct=value)
        return replace(self, lumpsum_allocation_pct=value)

    def to_dict(self) -> Dict[str, Any]:
        base = self.instrument.to_dict() if self.instrument else {"name": None, "category": self.category}
        base.update({
            "category": self.category,
            "sipAllocationPct": self.sip_allocation_pct,
            "lumpsumAllocationPct": self.lumpsum_allocation_pct,
            "alternatives": [a.to_dict() for a in self.alternatives],
        })
        return base

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "AllocationSlot":
        instrument = SchemeOption.from_dict(d) if d.get("name") else None
        return cls(
            category=str(d["category"]),
            sip_allocation_pct=float(d.get("sipAllocationPct") or 0),
            lumpsum_allocation_pct=float(d.get("lumpsumAllocationPct") or 0),
            instrument=instrument,
            alternatives=tuple(SchemeOption.from_dict(a) for a in d.get("alternatives") or []),
        )


@dataclass(frozen=True)
class AllocationPlan:
    slots: Tuple[AllocationSlot, ...]
    active_tracks: Tuple[str, ...] = TRACKS

    def total(self, track: str) -> float:
        return track_total(s.pct(track) for s in self.slots)

    def names(self) -> List[Optional[str]]:
        return [s.name for s in self.slots]

    def with_slot(self, index: int, slot: AllocationSlot) -> "AllocationPlan":
        slots = list(self.slots)
        slots[index] = slot
        return replace(self, slots=tuple(slots))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activeTracks": list(self.active_tracks),
            "slots": [s.to_dict() for s in self.slots],
            "totals": {t: self.total(t) for t in TRACKS},
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "AllocationPlan":
        return cls(
            slots=tuple(AllocationSlot.from_dict(s) for s in d.get("slots") or []),
            active_tracks=tuple(d.get("activeTracks") or TRACKS),
        )
