# PURPOSE: Fund category tags grouped into asset classes, plus the quality-filter rules.
# CONTEXT: The allocation engine builds weight vectors over these tags; the overlap resolver and
#          scheme binding use them to check that alternatives stay in the same class.

LARGE_CAP_INDEX = "Large Cap Index"
FLEXI_CAP = "Flexi Cap"
FOCUSED = "Focused"
INTERNATIONAL = "International"
GOLD = "Gold"
CORPORATE_BOND = "Corporate Bond"
LIQUID = "Liquid"
ULTRA_SHORT = "Ultra Short Duration"
LOW_DURATION = "Low Duration"

EQUITY_CATEGORIES = frozenset({LARGE_CAP_INDEX, FLEXI_CAP, FOCUSED, INTERNATIONAL})
DEBT_CATEGORIES = frozenset({CORPORATE_BOND, LIQUID, ULTRA_SHORT, LOW_DURATION})
COMMODITY_CATEGORIES = frozenset({GOLD})
ALLOWED_CATEGORIES = EQUITY_CATEGORIES | DEBT_CATEGORIES | COMMODITY_CATEGORIES

# Never recommended, regardless of profile.
EXCLUDED_CATEGORIES = frozenset({"Credit Risk", "Sectoral", "Thematic", "Contra"})

SHORT_HORIZON_EQUITY_CAP = 20
INTERNATIONAL_MAX_AGE = 45
FOCUSED_CAP = 10
INTERNATIONAL_CAP = 15
SATELLITE_SHARE = 0.20
GOLD_WEIGHT = 10

SLOT_COUNT = 5
ALTERNATIVES_PER_SLOT = 4


def asset_class_of(category: str) -> str:
    """Map a category tag to 'equity', 'debt', 'commodity' or 'excluded'/'unknown'."""
    if category in EQUITY_CATEGORIES:
        return "equity"
    if category in DEBT_CATEGORIES:
        return "debt"
    if category in COMMODITY_CATEGORIES:
        return "commodity"
    if is_excluded(category):
        return "excluded"
    return "unknown"


def is_excluded(category: str) -> bool:
    c = (category or "").strip().lower()
    return any(x.lower() in c for x in EXCLUDED_CATEGORIES)
