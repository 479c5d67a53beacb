import pytest

from fundplanner.constants import asset_classes as ac
from fundplanner.model_impl.stub_generator import CATALOG, StubContentGenerator, indian_words
from fundplanner.results import ContentGenerationError


def test_indian_words():
    assert indian_words(120000) == "One Lakh Twenty Thousand"
    assert indian_words(48000) == "Forty Eight Thousand"
    assert indian_words(12345678) == "One Crore Twenty Three Lakh Forty Five Thousand Six Hundred Seventy Eight"


def test_amount_in_words():
    gen = StubContentGenerator()
    assert gen.amount_in_words(0) == ""
    assert gen.amount_in_words(400000) == "Rupees Four Lakh Only"
    assert gen.amount_in_words(999.5) == "Rupees One Thousand Only"


def test_catalog_names_are_unique_across_categories():
    names = [e[0].casefold() for entries in CATALOG.values() for e in entries]
    assert len(names) == len(set(names))
    assert all(len(entries) > ac.ALTERNATIVES_PER_SLOT for entries in CATALOG.values())
    assert not set(CATALOG) & ac.EXCLUDED_CATEGORIES


def test_replacement_skips_excluded_names():
    gen = StubContentGenerator()
    slot = gen.replacement_scheme(ac.GOLD, None, exclude=["sbi gold fund"])
    assert slot.name == "Nippon India Gold Savings Fund"
    assert slot.category == ac.GOLD


def test_replacement_exhausted_raises():
    everything = [e[0] for e in CATALOG[ac.GOLD]]
    with pytest.raises(ContentGenerationError):
        StubContentGenerator().replacement_scheme(ac.GOLD, None, exclude=everything)


def test_metrics_are_deterministic():
    gen = StubContentGenerator()
    a = gen.replacement_scheme(ac.FLEXI_CAP, None).instrument
    b = gen.replacement_scheme(ac.FLEXI_CAP, None).instrument
    assert a.performance == b.performance
    assert a.risk_metrics["sebiRisk"] == "Very High"
