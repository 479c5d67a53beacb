# PURPOSE: Offline, deterministic content generator backed by a small fixed scheme catalog.
# CONTEXT: Default collaborator for local runs and tests. Same inputs always give the same
#          schemes, metrics and wording, and every response satisfies the contracts.

from __future__ import annotations
import zlib
from typing import Dict, List, Sequence

import numpy as np

from fundplanner.constants import asset_classes as ac
from fundplanner.constants.risk_bands import RiskCategory
from fundplanner.model_interface.content_generator import ContentGenerator
from fundplanner.model_interface.contracts import CapacityPayloadModel, RecommendedSchemeModel
from fundplanner.model_interface.types import (
    AllocationSlot,
    FinancialSnapshot,
    PersonalProfile,
    PortfolioCapacity,
    RiskDescription,
    RiskProfile,
    SchemeOption,
)
from fundplanner.results import ContentGenerationError
from fundplanner.risk_profiler import describe
from fundplanner.utils.rounding import round_currency

# (name, benchmark, AUM in crore, expense ratio %)
CATALOG: Dict[str, List[tuple]] = {
    ac.LARGE_CAP_INDEX: [
        ("UTI Nifty 50 Index Fund", "NIFTY 50 TRI", 18500, 0.30),
        ("HDFC Index Fund Nifty 50 Plan", "NIFTY 50 TRI", 16200, 0.40),
        ("ICICI Prudential Nifty 50 Index Fund", "NIFTY 50 TRI", 9800, 0.35),
        ("SBI Nifty Index Fund", "NIFTY 50 TRI", 8100, 0.50),
        ("Nippon India Index Fund Nifty 50 Plan", "NIFTY 50 TRI", 1900, 0.45),
        ("Tata Nifty 50 Index Fund", "NIFTY 50 TRI", 900, 0.52),
    ],
    ac.FLEXI_CAP: [
        ("Parag Parikh Flexi Cap Fund", "NIFTY 500 TRI", 78000, 1.33),
        ("HDFC Flexi Cap Fund", "NIFTY 500 TRI", 64000, 1.40),
        ("Kotak Flexicap Fund", "NIFTY 500 TRI", 48000, 1.45),
        ("UTI Flexi Cap Fund", "NIFTY 500 TRI", 25000, 1.68),
        ("DSP Flexi Cap Fund", "NIFTY 500 TRI", 11000, 1.75),
        ("Canara Robeco Flexi Cap Fund", "S&P BSE 500 TRI", 12500, 1.70),
    ],
    ac.FOCUSED: [
        ("SBI Focused Equity Fund", "S&P BSE 500 TRI", 33000, 1.58),
        ("HDFC Focused 30 Fund", "NIFTY 500 TRI", 14500, 1.68),
        ("ICICI Prudential Focused Equity Fund", "S&P BSE 500 TRI", 9500, 1.80),
        ("Axis Focused Fund", "NIFTY 500 TRI", 13000, 1.65),
        ("Franklin India Focused Equity Fund", "NIFTY 500 TRI", 12000, 1.78),
    ],
    ac.INTERNATIONAL: [
        ("Motilal Oswal Nasdaq 100 Fund of Fund", "NASDAQ-100 TRI", 5500, 0.58),
        ("ICICI Prudential US Bluechip Equity Fund", "S&P 500 TRI", 3200, 2.05),
        ("Franklin U.S. Opportunities Fund", "Russell 3000 Growth", 3500, 1.55),
        ("Edelweiss US Technology Equity FoF", "Russell 1000 Equal Weighted Technology", 2600, 1.42),
        ("Mirae Asset NYSE FANG+ ETF FoF", "NYSE FANG+ TRI", 1700, 0.47),
    ],
    ac.GOLD: [
        ("SBI Gold Fund", "Domestic Price of Gold", 2800, 0.42),
        ("Nippon India Gold Savings Fund", "Domestic Price of Gold", 2300, 0.35),
        ("HDFC Gold Fund", "Domestic Price of Gold", 1900, 0.50),
        ("ICICI Prudential Regular Gold Savings Fund", "Domestic Price of Gold", 1400, 0.38),
        ("Kotak Gold Fund", "Domestic Price of Gold", 2100, 0.50),
    ],
    ac.CORPORATE_BOND: [
        ("HDFC Corporate Bond Fund", "NIFTY Corporate Bond Index B-III", 31000, 0.61),
        ("ICICI Prudential Corporate Bond Fund", "NIFTY Corporate Bond Index B-II", 28000, 0.58),
        ("Aditya Birla Sun Life Corporate Bond Fund", "NIFTY Corporate Bond Index B-III", 22000, 0.52),
        ("Kotak Corporate Bond Fund", "CRISIL Corporate Debt A-II Index", 13000, 0.67),
        ("Axis Corporate Bond Fund", "NIFTY Corporate Bond Index B-III", 6000, 0.85),
    ],
    ac.LIQUID: [
        ("SBI Liquid Fund", "CRISIL Liquid Debt A-I Index", 60000, 0.30),
        ("HDFC Liquid Fund", "CRISIL Liquid Debt A-I Index", 55000, 0.28),
        ("ICICI Prudential Liquid Fund", "CRISIL Liquid Debt A-I Index", 48000, 0.29),
        ("Aditya Birla Sun Life Liquid Fund", "CRISIL Liquid Debt A-I Index", 45000, 0.33),
        ("Axis Liquid Fund", "CRISIL Liquid Debt A-I Index", 32000, 0.24),
    ],
    ac.ULTRA_SHORT: [
        ("Aditya Birla Sun Life Savings Fund", "CRISIL Ultra Short Duration Debt A-I", 15000, 0.55),
        ("ICICI Prudential Ultra Short Term Fund", "CRISIL Ultra Short Duration Debt A-I", 13500, 0.80),
        ("HDFC Ultra Short Term Fund", "CRISIL Ultra Short Duration Debt A-I", 14000, 0.70),
        ("Kotak Savings Fund", "CRISIL Ultra Short Duration Debt A-I", 12500, 0.80),
        ("Axis Ultra Short Duration Fund", "CRISIL Ultra Short Duration Debt A-I", 5500, 1.15),
    ],
    ac.LOW_DURATION: [
        ("HDFC Low Duration Fund", "CRISIL Low Duration Debt A-I Index", 17000, 1.05),
        ("ICICI Prudential Savings Fund", "CRISIL Low Duration Debt A-I Index", 22000, 0.52),
        ("Aditya Birla Sun Life Low Duration Fund", "CRISIL Low Duration Debt A-I Index", 12000, 1.22),
        ("Axis Treasury Advantage Fund", "CRISIL Low Duration Debt A-I Index", 5500, 0.65),
        ("Kotak Low Duration Fund", "CRISIL Low Duration Debt A-I Index", 10500, 1.18),
    ],
}

# Annualised (return, volatility) assumptions per asset class used to shape stub metrics.
_CLASS_ASSUMPTIONS = {
    "equity": (0.13, 0.16),
    "commodity": (0.10, 0.14),
    "debt": (0.068, 0.015),
}

_SEBI_RISK = {
    ac.LARGE_CAP_INDEX: "Very High", ac.FLEXI_CAP: "Very High", ac.FOCUSED: "Very High",
    ac.INTERNATIONAL: "Very High", ac.GOLD: "High", ac.CORPORATE_BOND: "Moderate",
    ac.LIQUID: "Low to Moderate", ac.ULTRA_SHORT: "Low to Moderate", ac.LOW_DURATION: "Low to Moderate",
}

_ONES = ["", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine", "Ten",
         "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen", "Seventeen",
         "Eighteen", "Nineteen"]
_TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]


def _below_hundred(n: int) -> str:
    if n < 20:
        return _ONES[n]
    return _TENS[n // 10] + (f" {_ONES[n % 10]}" if n % 10 else "")


def _below_thousand(n: int) -> str:
    hundreds, rest = divmod(n, 100)
    parts = []
    if hundreds:
        parts.append(f"{_ONES[hundreds]} Hundred")
    if rest:
        parts.append(_below_hundred(rest))
    return " ".join(parts)


def indian_words(n: int) -> str:
    """Whole number in Indian grouping (crore, lakh, thousand), e.g. 120000 -> 'One Lakh Twenty Thousand'."""
    if n == 0:
        return "Zero"
    crore, n = divmod(n, 10_000_000)
    lakh, n = divmod(n, 100_000)
    thousand, n = divmod(n, 1000)
    parts = []
    if crore:
        parts.append(f"{indian_words(crore)} Crore")
    if lakh:
        parts.append(f"{_below_hundred(lakh)} Lakh")
    if thousand:
        parts.append(f"{_below_hundred(thousand)} Thousand")
    if n:
        parts.append(_below_thousand(n))
    return " ".join(parts)


def _metrics(name: str, category: str) -> tuple:
    """Deterministic per-fund performance and risk figures seeded from the fund name."""
    mu, sigma = _CLASS_ASSUMPTIONS[ac.asset_class_of(category)]
    rng = np.random.default_rng(zlib.crc32(name.encode("utf-8")))
    drift = rng.normal(0.0, sigma / 8, size=3)
    cagr3, cagr5, cagr10 = (np.round((mu + drift) * 100, 2)).tolist()
    vol = float(np.round(sigma * (1 + rng.uniform(-0.1, 0.1)) * 100, 2))
    bench5 = round(mu * 100, 2)
    performance = {
        "cagr3y": cagr3,
        "cagr5y": cagr5,
        "cagr10y": cagr10,
        "rollingReturn": round((cagr3 + cagr5) / 2, 2),
        "benchmarkReturn5y": bench5,
        "alpha": round(cagr5 - bench5, 2),
    }
    risk = {
        "sebiRisk": _SEBI_RISK.get(category, "Moderate"),
        "volatility": vol,
        "stdDev": vol,
        "maxDrawdown": round(-2.2 * vol, 2),
        "beta": round(float(1.0 + rng.normal(0.0, 0.05)), 2) if category in ac.EQUITY_CATEGORIES else 0.0,
        "trackingError": round(float(abs(rng.normal(0.0, 0.1))), 2),
    }
    return performance, risk


def _option(category: str, entry: tuple) -> SchemeOption:
    name, benchmark, aum, expense = entry
    performance, risk = _metrics(name, category)
    return SchemeOption(name=name, category=category, benchmark=benchmark, expense_ratio=expense,
                        manager_tenure="5 years", aum=float(aum), performance=performance,
                        risk_metrics=risk)


class StubContentGenerator(ContentGenerator):
    name = "stub"

    def describe_risk(self, category: RiskCategory) -> RiskDescription:
        return describe(category)

    def summarize_capacity(self, personal: PersonalProfile, snapshot: FinancialSnapshot,
                           capacity: PortfolioCapacity) -> CapacityPayloadModel:
        who = personal.name if personal and personal.name else "The investor"
        payload = {
            **capacity.to_dict(),
            "investableFromSalaryWords": self.amount_in_words(capacity.investable_from_salary),
            "investableFromCorpusWords": self.amount_in_words(capacity.investable_from_corpus),
            "reasoning": (f"Surplus of ₹{capacity.surplus_before_investment:,.0f} after a buffer of "
                          f"₹{capacity.emergency_buffer:,.0f}; 80% of the corpus is deployable."),
            "suitabilityNarrative": (f"{who} keeps an emergency buffer before investing. "
                                     "The monthly SIP comes only from surplus income. "
                                     "A fifth of the corpus stays liquid for contingencies."),
        }
        return CapacityPayloadModel.model_validate(payload)

    def recommend_schemes(self, risk_profile: RiskProfile, age: int, target) -> List[AllocationSlot]:
        sip, lump = target.weights("sip"), target.weights("lumpsum")
        records = []
        for cat in target.layout:
            options = [_option(cat, e) for e in CATALOG[cat]]
            head, alternatives = options[0], options[1:1 + ac.ALTERNATIVES_PER_SLOT]
            records.append({**head.to_dict(), "sipAllocationPct": sip[cat],
                            "lumpsumAllocationPct": lump[cat],
                            "alternatives": [a.to_dict() for a in alternatives]})
        return [RecommendedSchemeModel.model_validate(r).to_slot() for r in records]

    def replacement_scheme(self, category: str, risk_profile: RiskProfile | None,
                           exclude: Sequence[str] = ()) -> AllocationSlot:
        excluded = {e.strip().casefold() for e in exclude}
        free = [_option(category, e) for e in CATALOG.get(category, []) if e[0].casefold() not in excluded]
        if not free:
            raise ContentGenerationError(f"no unused {category} scheme in the catalog", need="replacement_scheme")
        return AllocationSlot(category=category, instrument=free[0],
                              alternatives=tuple(free[1:1 + ac.ALTERNATIVES_PER_SLOT]))

    def amount_in_words(self, amount: float) -> str:
        if not amount or amount <= 0:
            return ""
        rupees = int(round_currency(amount, 0))
        if rupees == 0:
            return ""
        return f"Rupees {indian_words(rupees)} Only"
