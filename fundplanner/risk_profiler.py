# PURPOSE: Turn a completed risk questionnaire plus age into a risk category and horizon flag.
# CONTEXT: Deterministic. The category is the safer of the questionnaire band and the age ceiling,
#          so a young aggressive answer set can still land high while the same answers at 65 cannot.

from __future__ import annotations
from typing import Dict, List, Mapping

import structlog

from fundplanner.constants.risk_bands import (
    AGE_CEILING_FLOOR,
    AGE_CEILINGS,
    RISK_DESCRIPTIONS,
    SCORE_BANDS,
    RiskCategory,
)
from fundplanner.constants.risk_questions import (
    HORIZON_QUESTION_ID,
    MAX_SCORE,
    MIN_SCORE,
    QUESTION_IDS,
    SHORT_HORIZON_MAX_SCORE,
)
from fundplanner.model_interface.types import RiskDescription, RiskProfile
from fundplanner.results import IssueKind, Outcome

log = structlog.get_logger(__name__)


def missing_answers(answers: Mapping[int, int]) -> List[int]:
    """Question ids without a valid (in-range integer) answer."""
    missing = []
    for qid in QUESTION_IDS:
        v = answers.get(qid)
        if isinstance(v, bool) or not isinstance(v, int) or not (MIN_SCORE <= v <= MAX_SCORE):
            missing.append(qid)
    return missing


def normalize_answers(raw: Mapping) -> Dict[int, int]:
    """
    Accept JSON-style keys ("1") and return {int: int}.

    Only true integers (or digit strings) survive; booleans, floats and anything else are
    dropped so the question reads as unanswered.
    """
    out: Dict[int, int] = {}
    for k, v in (raw or {}).items():
        if isinstance(v, bool):
            continue
        if isinstance(v, str) and v.strip().isdigit():
            v = int(v)
        if not isinstance(v, int):
            continue
        try:
            out[int(k)] = v
        except (TypeError, ValueError):
            continue
    return out


def tolerance_band(score: int) -> RiskCategory:
    for upper, cat in SCORE_BANDS:
        if score <= upper:
            return cat
    return SCORE_BANDS[-1][1]


def age_ceiling(age: int) -> RiskCategory:
    for upper_age, cat in AGE_CEILINGS:
        if age < upper_age:
            return cat
    return AGE_CEILING_FLOOR


def categorize(score: int, age: int) -> RiskCategory:
    """Safer of questionnaire tolerance and age-based capacity."""
    return min(tolerance_band(score), age_ceiling(age))


def describe(category: RiskCategory) -> RiskDescription:
    d = RISK_DESCRIPTIONS[category]
    return RiskDescription(d["principal_risk"], d["suitable_for"], d["horizon"])


def is_short_horizon(answers: Mapping[int, int]) -> bool:
    return answers.get(HORIZON_QUESTION_ID, MAX_SCORE) <= SHORT_HORIZON_MAX_SCORE


def profile_risk(answers: Mapping[int, int], age: int) -> Outcome[RiskProfile]:
    """
    Derive a RiskProfile from a completed answer set.

    parameters:
    - answers: mapping question id -> score (1..4) for all four questions.
    - age: int – investor age at evaluation time.

    returns:
    - Outcome[RiskProfile] – IncompleteAnswers failure if any question is unanswered
      or out of range; otherwise the profile (same inputs always give the same category).
    """
    answers = normalize_answers(answers)
    missing = missing_answers(answers)
    if missing:
        return Outcome.failure(
            IssueKind.INCOMPLETE_ANSWERS,
            "Answer all questions.",
            f"Answer question(s) {', '.join(str(q) for q in missing)}.",
            missing=missing,
        )
    if age < 0:
        return Outcome.failure(IssueKind.VALIDATION_ERROR, "Age must be zero or more.", field="age")

    score = sum(answers[q] for q in QUESTION_IDS)
    category = categorize(score, age)
    profile = RiskProfile(
        category=category,
        description=describe(category),
        score=score,
        age=age,
        short_horizon=is_short_horizon(answers),
    )
    log.debug("risk.profiled", score=score, age=age, category=category.label,
              short_horizon=profile.short_horizon)
    return Outcome.success(profile)
