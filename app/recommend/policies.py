from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from app.core.config.scoring import get_policy_weights, get_scoring_value
from app.core.errors import UnknownPolicyError
from app.matching.matcher import MatchInfo
from app.schemas.assessment import Gap, ProficiencyCategory
from app.schemas.catalog import CourseEnrichment, QualityIndicators
from app.schemas.recommendation import ScoreBreakdown, ScoringPolicyName

DEFAULT_POLICY: ScoringPolicyName = "skill_based_only"


@dataclass(frozen=True, slots=True)
class PolicyInput:
    match: MatchInfo
    gaps: Sequence[Gap]
    category: ProficiencyCategory
    enrichment: CourseEnrichment | None = None


@dataclass(frozen=True, slots=True)
class PolicyScore:
    total: float
    breakdown: ScoreBreakdown


def _cfg(path: str, default: float) -> float:
    return float(get_scoring_value(path, default))


def _cap(value: float) -> float:
    return max(0.0, min(100.0, value))


def skill_match_score(match: MatchInfo, gaps: Sequence[Gap]) -> float:
    if not gaps:
        return 0.0
    return _cap(100.0 * match.skill_coverage / len(gaps))


def gap_weighted_match_score(match: MatchInfo, gaps: Sequence[Gap]) -> float:
    """Coverage plus a bonus for large, urgent gaps among the matched skills."""
    if not gaps:
        return 0.0
    matched = match.matched_skill_ids
    bonus = sum((gap.gap_score / 100.0) / gap.priority for gap in gaps if gap.skill_id in matched)
    coverage = len(matched & {gap.skill_id for gap in gaps}) / len(gaps)
    gap_bonus = _cfg("recommendation.multipliers.gap_bonus", 20)
    return _cap(coverage * 100.0 + gap_bonus * bonus)


def relevance_score(match: MatchInfo) -> float:
    return _cap(_cfg("recommendation.multipliers.relevance_per_point", 50) * match.total_relevance)


def ai_match_score(match: MatchInfo) -> float:
    return _cap(_cfg("recommendation.multipliers.ai_match_per_hit", 25) * match.ai_match_count)


def difficulty_alignment_score(difficulty: str | None, category: ProficiencyCategory) -> float:
    if difficulty is None:
        return _cfg("recommendation.difficulty_alignment.unknown", 50)
    if difficulty == category.recommended_difficulty:
        return _cfg("recommendation.difficulty_alignment.exact", 100)
    if difficulty in category.allowed_difficulties:
        return _cfg("recommendation.difficulty_alignment.allowed", 80)
    return _cfg("recommendation.difficulty_alignment.above_level", 20)


def stepped_difficulty_score(difficulty: str | None, category: ProficiencyCategory) -> float:
    """Allowed levels lose a fixed step for each level below the recommended one."""
    if difficulty is None:
        return _cfg("recommendation.difficulty_alignment.unknown", 50)
    exact = _cfg("recommendation.difficulty_alignment.exact", 100)
    if difficulty == category.recommended_difficulty:
        return exact
    if difficulty in category.allowed_difficulties:
        step = _cfg("recommendation.difficulty_alignment.allowed_step_penalty", 15)
        return exact - category.allowed_difficulties.index(difficulty) * step
    return _cfg("recommendation.difficulty_alignment.above_level", 20)


def _gap_keywords(gaps: Sequence[Gap]) -> list[str]:
    words: list[str] = []
    for gap in gaps:
        words.extend(" ".join(gap.names).lower().split())
    return words


def learning_outcomes_score(gaps: Sequence[Gap], outcomes: Sequence[str]) -> float:
    neutral = _cfg("recommendation.enriched_defaults.outcomes_neutral", 50)
    if not outcomes or not gaps:
        return neutral
    keywords = _gap_keywords(gaps)
    matched = 0
    for outcome in outcomes:
        words = outcome.lower().split()
        if any(len(word) > 3 and any(kw in word or word in kw for kw in keywords) for word in words):
            matched += 1
    floor = _cfg("recommendation.enriched_defaults.outcomes_floor", 30)
    return _cap(100.0 * matched / len(outcomes) + floor)


def quality_score(indicators: QualityIndicators | None) -> float:
    if indicators is None or not indicators.model_dump(exclude_none=True):
        return _cfg("recommendation.enriched_defaults.quality_neutral", 60)
    average = (
        (indicators.overall_score or 3.0)
        + (indicators.content_clarity or 3.0)
        + (indicators.practical_applicability or 3.0)
    ) / 3.0
    return average / 5.0 * 100.0


def career_relevance_score(career_paths: Sequence[str]) -> float:
    if not career_paths:
        return _cfg("recommendation.enriched_defaults.career_neutral", 60)
    base = _cfg("recommendation.enriched_defaults.career_base", 70)
    per_path = _cfg("recommendation.enriched_defaults.career_per_path", 10)
    return min(100.0, base + min(100.0 - base, len(career_paths) * per_path))


def _skill_based_only(data: PolicyInput) -> dict[str, float]:
    return {
        "skill_match": skill_match_score(data.match, data.gaps),
        "relevance": relevance_score(data.match),
        "ai_match": ai_match_score(data.match),
        "difficulty_alignment": difficulty_alignment_score(data.match.course.known_difficulty, data.category),
    }


def _enriched_difficulty(data: PolicyInput) -> str | None:
    difficulty = data.match.course.known_difficulty
    if difficulty is not None or data.enrichment is None:
        return difficulty
    level = (data.enrichment.target_audience_level or "").strip().lower()
    return level if level in data.category.allowed_difficulties else None


def _enriched_five_factor(data: PolicyInput) -> dict[str, float]:
    enrichment = data.enrichment or CourseEnrichment()
    return {
        "skill_match": gap_weighted_match_score(data.match, data.gaps),
        "difficulty_alignment": stepped_difficulty_score(_enriched_difficulty(data), data.category),
        "learning_outcomes": learning_outcomes_score(data.gaps, enrichment.learning_outcomes),
        "quality": quality_score(enrichment.quality_indicators),
        "career_relevance": career_relevance_score(enrichment.career_paths),
    }


def _basic_weighted(data: PolicyInput) -> dict[str, float]:
    return {
        "skill_match": gap_weighted_match_score(data.match, data.gaps),
        "difficulty_alignment": difficulty_alignment_score(data.match.course.known_difficulty, data.category),
    }


SCORING_POLICIES: dict[str, Callable[[PolicyInput], dict[str, float]]] = {
    "skill_based_only": _skill_based_only,
    "enriched_five_factor": _enriched_five_factor,
    "basic_weighted": _basic_weighted,
}


def resolve_policy(name: str | None = None) -> ScoringPolicyName:
    """Pick the requested policy, falling back to the configured default."""
    chosen = name or get_scoring_value("recommendation.policy", DEFAULT_POLICY) or DEFAULT_POLICY
    if chosen not in SCORING_POLICIES:
        raise UnknownPolicyError(f"Unknown scoring policy '{chosen}'.")
    return chosen  # type: ignore[return-value]


def uses_enrichment(policy: str) -> bool:
    return policy == "enriched_five_factor"


def score_with_policy(policy: str, data: PolicyInput) -> PolicyScore:
    factors_fn = SCORING_POLICIES.get(policy)
    if factors_fn is None:
        raise UnknownPolicyError(f"Unknown scoring policy '{policy}'.")
    factors = {key: round(value, 2) for key, value in factors_fn(data).items()}
    weights = get_policy_weights(policy)
    total = sum(factors.get(key, 0.0) * weight for key, weight in weights.items())
    return PolicyScore(total=round(total, 2), breakdown=ScoreBreakdown(**factors))
