# PURPOSE: Ordered risk categories, their equity bands and the fixed description text.
# CONTEXT: Shared by the risk profiler (banding) and the allocation engine (glide path shift/clamp).

from __future__ import annotations
from enum import IntEnum


class RiskCategory(IntEnum):
    """Six-level riskometer scale. The integer value gives the total order."""

    LOW = 1
    MODERATELY_LOW = 2
    MODERATE = 3
    MODERATELY_HIGH = 4
    HIGH = 5
    VERY_HIGH = 6

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def from_label(cls, label: str) -> "RiskCategory":
        key = (label or "").strip().lower()
        for cat, text in _LABELS.items():
            if text.lower() == key:
                return cat
        raise ValueError(f"Unknown risk category: {label!r}")


_LABELS = {
    RiskCategory.LOW: "Low",
    RiskCategory.MODERATELY_LOW: "Moderately Low",
    RiskCategory.MODERATE: "Moderate",
    RiskCategory.MODERATELY_HIGH: "Moderately High",
    RiskCategory.HIGH: "High",
    RiskCategory.VERY_HIGH: "Very High",
}

# Questionnaire total -> tolerance band. Upper bounds are inclusive, so a score sitting
# on a boundary stays in the lower-risk band.
SCORE_BANDS = [
    (5, RiskCategory.LOW),
    (7, RiskCategory.MODERATELY_LOW),
    (9, RiskCategory.MODERATE),
    (11, RiskCategory.MODERATELY_HIGH),
    (13, RiskCategory.HIGH),
    (16, RiskCategory.VERY_HIGH),
]

# Age -> highest category the investor's capacity for loss supports (exclusive upper age).
AGE_CEILINGS = [
    (40, RiskCategory.VERY_HIGH),
    (50, RiskCategory.HIGH),
    (60, RiskCategory.MODERATELY_HIGH),
    (70, RiskCategory.MODERATE),
]
AGE_CEILING_FLOOR = RiskCategory.MODERATELY_LOW

# Equity percentage bands and glide path shift per category.
RISK_BANDS = {
    RiskCategory.LOW:             {"min_eq": 10, "max_eq": 20, "shift": -20},
    RiskCategory.MODERATELY_LOW:  {"min_eq": 10, "max_eq": 35, "shift": -10},
    RiskCategory.MODERATE:        {"min_eq": 25, "max_eq": 55, "shift": 0},
    RiskCategory.MODERATELY_HIGH: {"min_eq": 40, "max_eq": 70, "shift": 5},
    RiskCategory.HIGH:            {"min_eq": 55, "max_eq": 80, "shift": 10},
    RiskCategory.VERY_HIGH:       {"min_eq": 65, "max_eq": 90, "shift": 15},
}

RISK_DESCRIPTIONS = {
    RiskCategory.LOW: {
        "principal_risk": "Principal at low risk",
        "suitable_for": "Investors who want capital preservation and can accept only minimal fluctuation in value.",
        "horizon": "Suitable for short horizons of up to 1 year.",
    },
    RiskCategory.MODERATELY_LOW: {
        "principal_risk": "Principal at low to moderate risk",
        "suitable_for": "Investors seeking regular income with limited exposure to market movements.",
        "horizon": "Suitable for horizons of 1 to 3 years.",
    },
    RiskCategory.MODERATE: {
        "principal_risk": "Principal at moderate risk",
        "suitable_for": "Investors seeking a balance between stability and growth who can sit through moderate declines.",
        "horizon": "Suitable for horizons of 3 to 5 years.",
    },
    RiskCategory.MODERATELY_HIGH: {
        "principal_risk": "Principal at moderately high risk",
        "suitable_for": "Investors seeking long-term growth who accept periodic drawdowns.",
        "horizon": "Suitable for horizons of 5 years or more.",
    },
    RiskCategory.HIGH: {
        "principal_risk": "Principal at high risk",
        "suitable_for": "Investors seeking wealth creation through equity who can tolerate sharp short-term losses.",
        "horizon": "Suitable for horizons of 7 years or more.",
    },
    RiskCategory.VERY_HIGH: {
        "principal_risk": "Principal at very high risk",
        "suitable_for": "Experienced investors seeking aggressive wealth creation who can hold through deep drawdowns.",
        "horizon": "Suitable for horizons of 10 years or more.",
    },
}
