from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from app.core.config.scoring import get_scoring_value
from app.schemas.assessment import (
    AnalysisResult,
    ResponseRecord,
    ScoredResponse,
    SkillLevel,
    SkillResult,
    WeightedBreakdownItem,
    WeightedTotals,
)

from .response_scorer import score_response

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SkillScoreAccumulator:
    total_weighted_score: float = 0.0
    total_weighted_max: float = 0.0
    sample_count: int = 0

    def add(self, score: float, max_score: float, weight: float) -> None:
        self.total_weighted_score += score * weight
        self.total_weighted_max += max_score * weight
        self.sample_count += 1

    @property
    def percentage(self) -> int:
        return percentage_of(self.total_weighted_score, self.total_weighted_max)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percentage_of(total: float, total_max: float) -> int:
    if not (math.isfinite(total) and math.isfinite(total_max)) or total_max <= 0:
        return 0
    return max(0, min(100, round_half_up(100 * total / total_max)))


def classify_level(percentage: int) -> SkillLevel:
    high = int(get_scoring_value("levels.thresholds.high", 70))
    medium = int(get_scoring_value("levels.thresholds.medium", 40))
    if percentage >= high:
        return "high"
    if percentage >= medium:
        return "medium"
    return "low"


def build_skill_result(skill_id: str, accumulator: SkillScoreAccumulator) -> SkillResult:
    percentage = accumulator.percentage
    return SkillResult(
        skill_id=skill_id,
        score=percentage,
        level=classify_level(percentage),
        gap_percentage=100 - percentage,
    )


def overall_score(skill_results: Iterable[SkillResult]) -> int:
    """Unweighted mean of per-skill percentages.

    Every skill counts once regardless of how many questions targeted it.
    """
    scores = [result.score for result in skill_results]
    if not scores:
        return 0
    return round_half_up(sum(scores) / len(scores))


def score_records(records: Sequence[ResponseRecord]) -> list[ScoredResponse]:
    scored: list[ScoredResponse] = []
    for record in records:
        question = record.question
        outcome = score_response(question, record.raw_value, grade=record.grade)
        scored.append(
            ScoredResponse(
                question_id=question.id,
                question_type=question.type,
                skill_id=question.skill_id,
                weight=question.weight,
                score=outcome.score,
                is_correct=outcome.is_correct,
                max_score=outcome.max_score,
            )
        )
    return scored


def aggregate_skill_results(
    records: Sequence[ResponseRecord],
    *,
    test_skill_ids: Sequence[str] = (),
) -> AnalysisResult:
    """Fold one assignment's responses into per-skill results.

    Responses without a skill link are credited to every test-level skill in
    ``test_skill_ids`` when given. Ungraded open-text answers are left out of
    all totals.
    """
    scored = score_records(records)
    fallback_skills = [str(skill_id) for skill_id in dict.fromkeys(test_skill_ids) if skill_id]

    accumulators: dict[str, SkillScoreAccumulator] = {}
    overall = SkillScoreAccumulator()
    breakdown: list[WeightedBreakdownItem] = []

    for item in scored:
        if item.score is None:
            logger.debug("response_ungraded question_id=%s type=%s", item.question_id, item.question_type)
            continue

        overall.add(item.score, item.max_score, item.weight)
        breakdown.append(
            WeightedBreakdownItem(
                question_id=item.question_id,
                question_type=item.question_type,
                skill_id=item.skill_id,
                raw_score=item.score,
                max_score=item.max_score,
                weight=item.weight,
                weighted_score=round(item.score * item.weight, 1),
                weighted_max_score=round(item.max_score * item.weight, 1),
            )
        )

        targets = [item.skill_id] if item.skill_id else fallback_skills
        for skill_id in targets:
            accumulators.setdefault(skill_id, SkillScoreAccumulator()).add(item.score, item.max_score, item.weight)

    skill_results = {
        skill_id: build_skill_result(skill_id, accumulators[skill_id])
        for skill_id in sorted(accumulators)
    }
    strengths = [skill_id for skill_id, result in skill_results.items() if result.level == "high"]

    return AnalysisResult(
        skill_results=skill_results,
        overall_score=overall_score(skill_results.values()),
        strengths=strengths,
        weighted_totals=WeightedTotals(
            total_weighted_score=round(overall.total_weighted_score, 1),
            total_weighted_max_score=round(overall.total_weighted_max, 1),
            weighted_percentage=overall.percentage,
        ),
        breakdown=breakdown,
        scored_responses=scored,
    )
