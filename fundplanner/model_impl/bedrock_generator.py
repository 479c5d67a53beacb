# PURPOSE: Content generator backed by an AWS Bedrock model through the Converse API.
# CONTEXT: The engine has already fixed category, weights and layout; the model only fills
#          in narrative text and fund names/metrics inside those constraints. Every reply is
#          parsed through the pydantic contracts, so a malformed answer surfaces as
#          ContentGenerationError and never as a half-built plan.

from __future__ import annotations
import json
import os
from typing import List, Sequence

import boto3
import structlog
from pydantic import BaseModel, Field
from botocore.exceptions import BotoCoreError, ClientError

from fundplanner.constants.asset_classes import ALTERNATIVES_PER_SLOT, EXCLUDED_CATEGORIES
from fundplanner.constants.risk_bands import RiskCategory
from fundplanner.model_interface.content_generator import ContentGenerator
from fundplanner.model_interface.contracts import (
    CapacityPayloadModel,
    RiskDescriptionModel,
    SchemeOptionModel,
    parse_contract,
    parse_recommendations,
)
from fundplanner.model_interface.types import (
    AllocationSlot,
    FinancialSnapshot,
    PersonalProfile,
    PortfolioCapacity,
    RiskDescription,
    RiskProfile,
)
from fundplanner.results import ContentGenerationError

log = structlog.get_logger(__name__)

REGION = os.getenv("AWS_REGION", "eu-west-2")
MODEL_ID = os.getenv("MODEL_ID", "deepseek.v3-v1:0")

SYSTEM_PROMPT = (
    "You support an Indian mutual-fund suitability engine (SEBI-AMFI context). "
    "All numbers you are given are final; never recompute or change them. "
    "Reply with JSON only, no markdown fences and no commentary. "
    "Recommend Regular Growth plans only."
)

_SCHEME_FIELDS = ("name, category, benchmark, expenseRatio, managerTenure, aum, "
                  "performance{alpha, cagr3y, cagr5y, cagr10y, rollingReturn, benchmarkReturn5y}, "
                  "riskMetrics{trackingError, sebiRisk, maxDrawdown, volatility, stdDev, beta}")


class BedrockContentGenerator(ContentGenerator):
    name = "bedrock"

    def __init__(self, model_id: str = MODEL_ID, client=None, max_tokens: int = 4096):
        self.model_id = model_id
        self.max_tokens = max_tokens
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client("bedrock-runtime", region_name=REGION)
        return self._client

    def _ask(self, prompt: str, need: str, max_tokens: int | None = None) -> str:
        """Send one user turn and return the concatenated text blocks of the reply."""
        try:
            resp = self.client.converse(
                modelId=self.model_id,
                system=[{"text": SYSTEM_PROMPT}],
                messages=[{"role": "user", "content": [{"text": prompt}]}],
                inferenceConfig={"maxTokens": max_tokens or self.max_tokens, "temperature": 0.2},
            )
        except (BotoCoreError, ClientError) as e:
            log.warning("content.bedrock_error", need=need, error=str(e))
            raise ContentGenerationError(f"{need}: Bedrock call failed: {e}", need=need) from e

        parts = resp.get("output", {}).get("message", {}).get("content", [])
        text = "".join(p.get("text", "") for p in parts)
        log.debug("content.bedrock_reply", need=need, chars=len(text),
                  stop_reason=resp.get("stopReason"))
        if not text.strip():
            raise ContentGenerationError(f"{need}: empty response", need=need)
        return text

    # ---------------- content needs ---------------- #

    def describe_risk(self, category: RiskCategory) -> RiskDescription:
        prompt = (
            f"Describe the SEBI-AMFI mutual fund risk category '{category.label}'.\n"
            "Return JSON: {\"principalRisk\": str, \"suitableFor\": str, \"horizon\": str}\n"
            "principalRisk example: 'Principal at very high risk'. "
            "suitableFor: who should invest. horizon: recommended time frame."
        )
        raw = self._ask(prompt, "describe_risk", max_tokens=512)
        return parse_contract(raw, RiskDescriptionModel, "describe_risk").to_domain()

    def summarize_capacity(self, personal: PersonalProfile, snapshot: FinancialSnapshot,
                           capacity: PortfolioCapacity) -> CapacityPayloadModel:
        figures = json.dumps(capacity.to_dict())
        prompt = (
            f"Investor: {personal.name}, age {personal.age}, income status {snapshot.income_status}.\n"
            f"Computed capacity (rupees, final): {figures}\n"
            "Return JSON with exactly these keys: investableFromSalary, investableFromSalaryWords, "
            "investableFromCorpus, investableFromCorpusWords, totalInvestable, reasoning, "
            "suitabilityNarrative, breakdown{totalMonthlyInflow, totalMonthlyOutflow, "
            "insuranceImpactMonthly, amortizedYearlyExpensesMonthly, emergencyBuffer, "
            "surplusBeforeInvestment}.\n"
            "Copy the numbers unchanged. Words use the Indian numbering system (lakh, crore). "
            "suitabilityNarrative is three sentences explaining why this capacity fits the profile."
        )
        raw = self._ask(prompt, "summarize_capacity", max_tokens=1024)
        return parse_contract(raw, CapacityPayloadModel, "summarize_capacity")

    def recommend_schemes(self, risk_profile: RiskProfile, age: int, target) -> List[AllocationSlot]:
        rows = "\n".join(
            f"  {i + 1}. {cat}: sipAllocationPct={target.weights('sip')[cat]}, "
            f"lumpsumAllocationPct={target.weights('lumpsum')[cat]}"
            for i, cat in enumerate(target.layout)
        )
        prompt = (
            f"Risk category {risk_profile.category.label}, age {age}, "
            f"short horizon: {'YES' if risk_profile.short_horizon else 'NO'}.\n"
            f"Fill exactly these five slots, in this order, with these weights:\n{rows}\n"
            f"Each element: {_SCHEME_FIELDS}, sipAllocationPct, lumpsumAllocationPct, and "
            f"alternatives (exactly {ALTERNATIVES_PER_SLOT} schemes of the same category, same fields).\n"
            f"Never use {', '.join(sorted(EXCLUDED_CATEGORIES))} funds. All five names must be distinct.\n"
            "Return a JSON array of five elements."
        )
        raw = self._ask(prompt, "recommend_schemes")
        return parse_recommendations(raw)

    def replacement_scheme(self, category: str, risk_profile: RiskProfile | None,
                           exclude: Sequence[str] = ()) -> AllocationSlot:
        risk = risk_profile.category.label if risk_profile else "the same"
        prompt = (
            f"Recommend one '{category}' mutual fund for a {risk} risk investor, plus "
            f"{ALTERNATIVES_PER_SLOT} alternatives in the same category.\n"
            f"Do not use any of: {json.dumps(list(exclude))}.\n"
            f"Return JSON: {{\"scheme\": {{{_SCHEME_FIELDS}}}, \"alternatives\": [...]}}"
        )
        raw = self._ask(prompt, "replacement_scheme", max_tokens=2048)
        data = parse_contract(raw, _ReplacementModel, "replacement_scheme")
        scheme = data.scheme.to_domain()
        if scheme.category != category:
            raise ContentGenerationError(
                f"replacement_scheme: got '{scheme.category}', expected '{category}'", need="replacement_scheme")
        return AllocationSlot(category=category, instrument=scheme,
                              alternatives=tuple(a.to_domain() for a in data.alternatives))

    def amount_in_words(self, amount: float) -> str:
        if not amount or amount <= 0:
            return ""
        prompt = (f"Convert the number {amount} to Indian numbering system words (Rupees). "
                  "Return JSON: {\"words\": str}")
        raw = self._ask(prompt, "amount_in_words", max_tokens=128)
        return parse_contract(raw, _WordsModel, "amount_in_words").words.strip()


class _ReplacementModel(BaseModel):
    scheme: SchemeOptionModel
    alternatives: List[SchemeOptionModel] = Field(min_length=ALTERNATIVES_PER_SLOT, max_length=ALTERNATIVES_PER_SLOT)


class _WordsModel(BaseModel):
    words: str


def make_generator() -> BedrockContentGenerator:
    """Factory for CONTENT_GENERATOR=fundplanner.model_impl.bedrock_generator:make_generator."""
    return BedrockContentGenerator()
