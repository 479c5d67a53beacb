# PURPOSE: Currency rounding and percentage normalisation helpers.
# CONTEXT: Capacity figures are rounded once per derived field; allocation tracks must sum to
#          exactly 100 after rounding, with the residual landing on the first slot.

from __future__ import annotations
import os
from decimal import Decimal, ROUND_HALF_UP, getcontext
from typing import Iterable, List, Sequence

getcontext().prec = 28

# Reporting unit for currency: 0 = whole rupees, 2 = paise.
CURRENCY_PLACES = int(os.getenv("FUNDPLANNER_CURRENCY_PLACES", "0"))

HUNDRED = Decimal(100)


def to_decimal(x) -> Decimal:
    """Convert via str so binary float artefacts (0.1 -> 0.1000000000000000055...) don't leak in."""
    if isinstance(x, Decimal):
        return x
    return Decimal(str(x if x is not None else 0))


def round_currency(x, places: int | None = None) -> float:
    """
    Round a monetary amount to the reporting unit.

    parameters:
    - x: number – raw amount (float, int or Decimal).
    - places: int – decimal places; defaults to FUNDPLANNER_CURRENCY_PLACES.

    returns:
    - float – ROUND_HALF_UP value (an int-valued float when places == 0).
    """
    p = CURRENCY_PLACES if places is None else places
    q = Decimal(1).scaleb(-p)
    return float(to_decimal(x).quantize(q, ROUND_HALF_UP))


def round_pct(x, places: int = 0) -> float:
    q = Decimal(1).scaleb(-places)
    return float(to_decimal(x).quantize(q, ROUND_HALF_UP))


def normalize_to_hundred(values: Sequence[float], places: int = 0) -> List[float]:
    """
    Scale weights so they sum to exactly 100 after rounding.

    parameters:
    - values: sequence of non-negative weights (any scale).
    - places: int – decimal places kept on each weight (default whole percent).

    returns:
    - list[float] – weights in the same order summing to 100.

    notes:
    - Each weight is scaled and rounded ROUND_HALF_UP; whatever is left over (positive or
      negative) is added to the first slot so the total reconciles without drift.
    - An all-zero input has nothing to scale and comes back unchanged.
    """
    dec = [to_decimal(v) for v in values]
    total = sum(dec, Decimal(0))
    if total <= 0:
        return [float(v) for v in dec]
    q = Decimal(1).scaleb(-places)
    scaled = [(v * HUNDRED / total).quantize(q, ROUND_HALF_UP) for v in dec]
    residual = HUNDRED - sum(scaled, Decimal(0))
    scaled[_residual_slot(scaled, residual)] += residual
    return [float(v) for v in scaled]


def split_integer(total: int, ratios: Iterable[float]) -> List[int]:
    """
    Split an integer percentage across ratios, remainder to the first part.

    e.g. split_integer(45, [0.5, 0.5]) -> [22, 23]
    """
    ratios = list(ratios)
    if total <= 0 or not ratios:
        return [0 for _ in ratios]
    weight = sum(ratios)
    parts = [int(to_decimal(total * r / weight).quantize(Decimal(1), ROUND_HALF_UP)) for r in ratios]
    residual = total - sum(parts)
    parts[_residual_slot(parts, residual)] += residual
    return parts


def _residual_slot(parts, residual) -> int:
    # First slot that stays non-negative after absorbing the residual.
    for i, p in enumerate(parts):
        if p + residual >= 0:
            return i
    return 0


def track_total(values: Iterable[float]) -> float:
    return float(sum((to_decimal(v) for v in values), Decimal(0)))
