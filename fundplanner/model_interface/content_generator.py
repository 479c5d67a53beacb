"""
Content-generation collaborator interface.

One method per content need. Implementations return parsed contract values (or domain
values built from them) and raise ContentGenerationError for anything unusable.
"""

from __future__ import annotations
from typing import Sequence

from fundplanner.constants.risk_bands import RiskCategory
from fundplanner.model_interface.contracts import CapacityPayloadModel
from fundplanner.model_interface.types import (
    AllocationSlot,
    FinancialSnapshot,
    PersonalProfile,
    PortfolioCapacity,
    RiskDescription,
    RiskProfile,
)


class ContentGenerator:
    name = "base"

    def describe_risk(self, category: RiskCategory) -> RiskDescription:
        """Three-part description (principal risk, suitable for, horizon) of a category."""
        raise NotImplementedError

    def summarize_capacity(self, personal: PersonalProfile, snapshot: FinancialSnapshot,
                           capacity: PortfolioCapacity) -> CapacityPayloadModel:
        """Capacity figures with amounts in words, reasoning and a suitability narrative."""
        raise NotImplementedError

    def recommend_schemes(self, risk_profile: RiskProfile, age: int, target) -> Sequence[AllocationSlot]:
        """
        Five schemes, one per category of `target.layout`, each with exactly four
        same-category alternatives, weighted per `target.weights(track)`.
        """
        raise NotImplementedError

    def replacement_scheme(self, category: str, risk_profile: RiskProfile | None,
                           exclude: Sequence[str] = ()) -> AllocationSlot:
        """One scheme (plus four alternatives) in `category` whose name is not in `exclude`."""
        raise NotImplementedError

    def amount_in_words(self, amount: float) -> str:
        """Indian-numbering words for a rupee amount; empty string for amount <= 0."""
        raise NotImplementedError
