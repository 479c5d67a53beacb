import pytest

from fundplanner.constants.risk_bands import RiskCategory
from fundplanner.results import IssueKind
from fundplanner.risk_profiler import age_ceiling, categorize, profile_risk, tolerance_band


@pytest.mark.parametrize("score,expected", [
    (4, RiskCategory.LOW), (5, RiskCategory.LOW),
    (6, RiskCategory.MODERATELY_LOW), (7, RiskCategory.MODERATELY_LOW),
    (8, RiskCategory.MODERATE), (9, RiskCategory.MODERATE),
    (10, RiskCategory.MODERATELY_HIGH), (11, RiskCategory.MODERATELY_HIGH),
    (12, RiskCategory.HIGH), (13, RiskCategory.HIGH),
    (14, RiskCategory.VERY_HIGH), (16, RiskCategory.VERY_HIGH),
])
def test_tolerance_band_boundaries_stay_in_lower_band(score, expected):
    assert tolerance_band(score) == expected


@pytest.mark.parametrize("age,expected", [
    (39, RiskCategory.VERY_HIGH), (40, RiskCategory.HIGH), (49, RiskCategory.HIGH),
    (50, RiskCategory.MODERATELY_HIGH), (60, RiskCategory.MODERATE), (70, RiskCategory.MODERATELY_LOW),
    (95, RiskCategory.MODERATELY_LOW),
])
def test_age_ceiling(age, expected):
    assert age_ceiling(age) == expected


def test_category_is_safer_of_tolerance_and_age():
    aggressive = {1: 4, 2: 4, 3: 4, 4: 4}
    assert profile_risk(aggressive, 28).value.category == RiskCategory.VERY_HIGH
    assert profile_risk(aggressive, 65).value.category == RiskCategory.MODERATE
    assert categorize(5, 25) == RiskCategory.LOW


def test_category_never_rises_with_age():
    for score in range(4, 17):
        cats = [categorize(score, age) for age in range(18, 90)]
        assert all(a >= b for a, b in zip(cats, cats[1:]))


def test_short_horizon_flag_from_question_three():
    assert profile_risk({1: 4, 2: 4, 3: 2, 4: 4}, 30).value.short_horizon is True
    assert profile_risk({1: 4, 2: 4, 3: 3, 4: 4}, 30).value.short_horizon is False


def test_incomplete_answers_fail():
    out = profile_risk({1: 3, 2: 3, 4: 3}, 30)
    assert not out.ok
    assert out.errors[0].kind == IssueKind.INCOMPLETE_ANSWERS
    assert out.errors[0].details["missing"] == [3]

    out = profile_risk({1: 3, 2: 3, 3: 5, 4: 3}, 30)
    assert out.errors[0].details["missing"] == [3]


def test_string_keys_accepted_and_deterministic():
    a = profile_risk({"1": 3, "2": 3, "3": 4, "4": 3}, 34).value
    b = profile_risk({1: 3, 2: 3, 3: 4, 4: 3}, 34).value
    assert a == b
    assert a.category == RiskCategory.HIGH and a.score == 13
    assert a.description.principal_risk


@pytest.mark.parametrize("bad", [True, 2.7, 3.0, None, "three"])
def test_non_integer_answers_count_as_missing(bad):
    out = profile_risk({1: 3, 2: 3, 3: bad, 4: 3}, 30)
    assert not out.ok
    assert out.errors[0].details["missing"] == [3]


def test_digit_string_answers_accepted():
    assert profile_risk({1: "3", 2: "3", 3: "4", 4: "3"}, 34).value.score == 13
