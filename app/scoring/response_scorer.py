from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from app.core.config.scoring import get_scoring_value
from app.schemas.assessment import ManualGrade, Question

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScoreOutcome:
    score: float | None
    is_correct: bool | None
    max_score: float


def _default_max() -> float:
    return float(get_scoring_value("responses.default_max_score", 10))


def _parse_int(raw_value: Any) -> int | None:
    """Lenient integer parse: '4', 4, 4.0 and '4.6' all read as 4."""
    if raw_value is None or isinstance(raw_value, bool):
        return None
    if isinstance(raw_value, int):
        return raw_value
    if isinstance(raw_value, float):
        return int(raw_value) if math.isfinite(raw_value) else None
    if isinstance(raw_value, str):
        text = raw_value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            parsed = float(text)
        except ValueError:
            return None
        return int(parsed) if math.isfinite(parsed) else None
    return None


def _values_equal(option_value: Any, raw_value: Any) -> bool:
    if option_value == raw_value:
        return True
    if option_value is None or raw_value is None:
        return False
    return str(option_value).strip() == str(raw_value).strip()


def _score_mcq(question: Question, raw_value: Any) -> ScoreOutcome:
    option_scores = [option.score for option in question.options]
    max_score = max([*option_scores, _default_max()])
    if raw_value is None or raw_value == "":
        return ScoreOutcome(score=0.0, is_correct=None, max_score=max_score)

    for option in question.options:
        if _values_equal(option.value, raw_value):
            return ScoreOutcome(score=max(0.0, option.score), is_correct=option.is_correct, max_score=max_score)
    return ScoreOutcome(score=0.0, is_correct=None, max_score=max_score)


def _score_likert(raw_value: Any) -> ScoreOutcome:
    low = int(get_scoring_value("responses.likert.min", 1))
    high = int(get_scoring_value("responses.likert.max", 5))
    correct_at = int(get_scoring_value("responses.likert.correct_at", 3))
    max_score = _default_max()

    value = _parse_int(raw_value)
    if value is None or value < low or value > high:
        return ScoreOutcome(score=0.0, is_correct=None, max_score=max_score)
    score = (value - low) / (high - low) * max_score
    return ScoreOutcome(score=score, is_correct=value >= correct_at, max_score=max_score)


def _score_self_rating(raw_value: Any) -> ScoreOutcome:
    low = int(get_scoring_value("responses.self_rating.min", 1))
    high = int(get_scoring_value("responses.self_rating.max", 10))
    correct_at = int(get_scoring_value("responses.self_rating.correct_at", 5))
    max_score = _default_max()

    value = _parse_int(raw_value)
    if value is None or value < low or value > high:
        return ScoreOutcome(score=0.0, is_correct=None, max_score=max_score)
    return ScoreOutcome(score=float(value), is_correct=value >= correct_at, max_score=max_score)


def _score_open_text(grade: ManualGrade | None) -> ScoreOutcome:
    max_score = _default_max()
    if grade is None:
        return ScoreOutcome(score=None, is_correct=None, max_score=max_score)
    correct_percentage = float(get_scoring_value("responses.open_text.correct_percentage", 50))
    return ScoreOutcome(
        score=min(max_score, max(0.0, grade.score)),
        is_correct=grade.percentage >= correct_percentage,
        max_score=max_score,
    )


def score_response(question: Question, raw_value: Any, *, grade: ManualGrade | None = None) -> ScoreOutcome:
    """Score one raw answer on the common 0-10 scale.

    Malformed input never raises: numeric question types fall back to a score
    of 0, and an open-text answer stays ungraded (score None) until a grade is
    supplied.
    """
    if question.type == "mcq":
        return _score_mcq(question, raw_value)
    if question.type == "likert_scale":
        return _score_likert(raw_value)
    if question.type == "self_rating":
        return _score_self_rating(raw_value)
    if question.type == "open_text":
        return _score_open_text(grade)

    logger.warning("unknown_question_type question_id=%s type=%s", question.id, question.type)
    return ScoreOutcome(score=0.0, is_correct=None, max_score=_default_max())
