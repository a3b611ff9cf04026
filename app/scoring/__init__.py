from .aggregator import (
    SkillScoreAccumulator,
    aggregate_skill_results,
    classify_level,
    overall_score,
    score_records,
)
from .categorizer import (
    PROFICIENCY_LEVELS,
    allowed_difficulties,
    categorize,
    categorize_skill_gaps,
    get_category,
    recommended_difficulty,
)
from .prioritizer import prioritize_gaps
from .response_scorer import ScoreOutcome, score_response

__all__ = [
    "SkillScoreAccumulator",
    "aggregate_skill_results",
    "classify_level",
    "overall_score",
    "score_records",
    "PROFICIENCY_LEVELS",
    "allowed_difficulties",
    "categorize",
    "categorize_skill_gaps",
    "get_category",
    "recommended_difficulty",
    "prioritize_gaps",
    "ScoreOutcome",
    "score_response",
]
