# PURPOSE: Fixed, ordered income-tax bracket table (new regime) used for slab consistency checks.

from __future__ import annotations
from typing import Optional

# Ordered lowest to highest. `upper` is inclusive; None means unbounded.
TAX_SLABS = [
    {"range": "Up to ₹3,00,000",          "rate": "Nil", "upper": 300_000},
    {"range": "₹3,00,001 - ₹7,00,000",    "rate": "5%",  "upper": 700_000},
    {"range": "₹7,00,001 - ₹10,00,000",   "rate": "10%", "upper": 1_000_000},
    {"range": "₹10,00,001 - ₹12,00,000",  "rate": "15%", "upper": 1_200_000},
    {"range": "₹12,00,001 - ₹15,00,000",  "rate": "20%", "upper": 1_500_000},
    {"range": "Above ₹15,00,000",         "rate": "30%", "upper": None},
]

SLAB_LABELS = [s["range"] for s in TAX_SLABS]
DEFAULT_SLAB = SLAB_LABELS[0]


def is_known_slab(label: str) -> bool:
    return label in SLAB_LABELS


def slab_index(label: str) -> int:
    """Position of a label in the ordered table; raises ValueError for unknown labels."""
    return SLAB_LABELS.index(label)


def slab_for_amount(amount: float) -> str:
    """
    Return the bracket label containing an annual amount.

    parameters:
    - amount: float – annual taxable base in rupees (negative treated as 0).

    returns:
    - str – label from TAX_SLABS.
    """
    amt = max(0.0, float(amount))
    for slab in TAX_SLABS:
        if slab["upper"] is None or amt <= slab["upper"]:
            return slab["range"]
    return TAX_SLABS[-1]["range"]


def slab_rate(label: str) -> Optional[str]:
    for slab in TAX_SLABS:
        if slab["range"] == label:
            return slab["rate"]
    return None
