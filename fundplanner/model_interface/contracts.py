"""
Response contracts for the content-generation collaborator.

PURPOSE: Every collaborator response is parsed into one of these pydantic models before the
         engine sees it. Missing fields, wrong types, or a wrong alternative count raise
         ContentGenerationError instead of leaking half-parsed data.
CONTEXT: Field names are the camelCase keys the collaborator emits.
"""

from __future__ import annotations
import json
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from fundplanner.constants.asset_classes import ALTERNATIVES_PER_SLOT
from fundplanner.model_interface.types import AllocationSlot, RiskDescription, SchemeOption
from fundplanner.results import ContentGenerationError

M = TypeVar("M", bound=BaseModel)


class RiskDescriptionModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    principalRisk: str = Field(..., min_length=1)
    suitableFor: str = Field(..., min_length=1)
    horizon: str = Field(..., min_length=1)

    def to_domain(self) -> RiskDescription:
        return RiskDescription(self.principalRisk, self.suitableFor, self.horizon)


class CapacityBreakdownModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    totalMonthlyInflow: float
    totalMonthlyOutflow: float
    surplusBeforeInvestment: float
    insuranceImpactMonthly: Optional[float] = None
    amortizedYearlyExpensesMonthly: Optional[float] = None
    emergencyBuffer: Optional[float] = None


class CapacityPayloadModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    investableFromSalary: float
    investableFromSalaryWords: str
    investableFromCorpus: float
    investableFromCorpusWords: str
    totalInvestable: Optional[float] = None
    reasoning: str
    suitabilityNarrative: str
    breakdown: CapacityBreakdownModel

    def flat_figures(self) -> Dict[str, Optional[float]]:
        """Top-level and breakdown figures merged into one camelCase mapping."""
        out: Dict[str, Optional[float]] = self.breakdown.model_dump()
        out.update({
            "investableFromSalary": self.investableFromSalary,
            "investableFromCorpus": self.investableFromCorpus,
            "totalInvestable": self.totalInvestable,
        })
        return out


class SchemeOptionModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    benchmark: str = ""
    expenseRatio: Optional[float] = Field(None, ge=0)
    managerTenure: str = ""
    aum: float = Field(0.0, ge=0)
    performance: Dict[str, Any] = Field(default_factory=dict)
    riskMetrics: Dict[str, Any] = Field(default_factory=dict)

    def to_domain(self) -> SchemeOption:
        return SchemeOption(
            name=self.name.strip(),
            category=self.category.strip(),
            benchmark=self.benchmark,
            expense_ratio=self.expenseRatio,
            manager_tenure=self.managerTenure,
            aum=self.aum,
            performance=dict(self.performance),
            risk_metrics=dict(self.riskMetrics),
        )


class RecommendedSchemeModel(SchemeOptionModel):
    sipAllocationPct: float = Field(..., ge=0, le=100)
    lumpsumAllocationPct: float = Field(..., ge=0, le=100)
    alternatives: List[SchemeOptionModel] = Field(..., min_length=ALTERNATIVES_PER_SLOT,
                                                  max_length=ALTERNATIVES_PER_SLOT)

    def to_slot(self) -> AllocationSlot:
        return AllocationSlot(
            category=self.category.strip(),
            sip_allocation_pct=self.sipAllocationPct,
            lumpsum_allocation_pct=self.lumpsumAllocationPct,
            instrument=self.to_domain(),
            alternatives=tuple(a.to_domain() for a in self.alternatives),
        )


_RECOMMENDATIONS = TypeAdapter(List[RecommendedSchemeModel])


def extract_json(raw: str) -> Any:
    """
    Decode a model's text reply as JSON, tolerating prose or code fences around it.

    raises:
    - ValueError when no JSON object or array can be recovered.
    """
    if not raw or not raw.strip():
        raise ValueError("empty response")
    text = raw.strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    for open_, close in (("[", "]"), ("{", "}")):
        start, end = text.find(open_), text.rfind(close)
        if start >= 0 and end > start:
            try:
                return json.loads(text[start:end + 1])
            except json.JSONDecodeError:
                continue
    raise ValueError("no JSON found in response")


def _as_data(raw: Any, need: str) -> Any:
    if not isinstance(raw, str):
        return raw
    try:
        return extract_json(raw)
    except ValueError as e:
        raise ContentGenerationError(f"{need}: {e}", need=need, raw=raw) from e


def parse_contract(raw: Any, model: Type[M], need: str) -> M:
    """
    Validate a raw response (text or decoded JSON) against a contract model.

    raises:
    - ContentGenerationError – malformed JSON or a contract violation.
    """
    data = _as_data(raw, need)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ContentGenerationError(f"{need}: response broke the contract ({e.error_count()} errors)",
                                     need=need, raw=str(raw)) from e


def parse_recommendations(raw: Any, need: str = "recommend_schemes") -> List[AllocationSlot]:
    """Parse a JSON array of recommended schemes into unbound-weight AllocationSlots."""
    data = _as_data(raw, need)
    if isinstance(data, dict) and isinstance(data.get("schemes"), list):
        data = data["schemes"]
    try:
        models = _RECOMMENDATIONS.validate_python(data)
    except ValidationError as e:
        raise ContentGenerationError(f"{need}: response broke the contract ({e.error_count()} errors)",
                                     need=need, raw=str(raw)) from e
    return [m.to_slot() for m in models]
