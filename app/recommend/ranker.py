from __future__ import annotations

import logging
from typing import Collection, Iterable, Mapping, Sequence

from app.core.config.scoring import get_scoring_value
from app.matching.matcher import MatchInfo
from app.schemas.assessment import Gap, ProficiencyCategory
from app.schemas.catalog import CourseEnrichment
from app.schemas.recommendation import Recommendation, SectionKey

from .policies import PolicyInput, resolve_policy, score_with_policy

logger = logging.getLogger(__name__)

DEFAULT_SECTION_ORDER: tuple[SectionKey, ...] = ("gap_based", "interest_based", "career_based")


def section_order() -> tuple[SectionKey, ...]:
    """Section priority from scoring.yaml; the first section listed keeps a repeated course."""
    configured = get_scoring_value("recommendation.section_order", None)
    if not configured:
        return DEFAULT_SECTION_ORDER
    return tuple(configured)


def rank_key(rec: Recommendation) -> tuple[float, int, str]:
    return (-rec.recommendation_score, -rec.skill_coverage, rec.course_id)


def largest_gap(match: MatchInfo, gaps: Sequence[Gap]) -> int | None:
    covered = match.matched_skill_ids
    scores = [gap.gap_score for gap in gaps if gap.skill_id in covered]
    return max(scores) if scores else None


def sort_recommendations(recs: Iterable[Recommendation]) -> list[Recommendation]:
    return sorted(recs, key=rank_key)


def score_matches(
    matches: Mapping[str, MatchInfo],
    gaps: Sequence[Gap],
    category: ProficiencyCategory,
    *,
    policy: str | None = None,
    enrichments: Mapping[str, CourseEnrichment] | None = None,
) -> list[Recommendation]:
    """Score every matched course under one policy and return them ranked."""
    policy_name = resolve_policy(policy)
    enrichment_map = enrichments or {}
    recs: list[Recommendation] = []
    for course_id, match in matches.items():
        course = match.course
        result = score_with_policy(
            policy_name,
            PolicyInput(
                match=match,
                gaps=gaps,
                category=category,
                enrichment=enrichment_map.get(course_id),
            ),
        )
        recs.append(
            Recommendation(
                course_id=course_id,
                name_ar=course.name_ar,
                name_en=course.name_en,
                url=course.url,
                provider=course.provider,
                difficulty_level=course.difficulty_level,
                matching_skills=match.matching_skills,
                recommendation_score=result.total,
                score_breakdown=result.breakdown,
                skill_coverage=match.skill_coverage,
                skill_gap_score=largest_gap(match, gaps),
                source=match.source,
                section="gap_based",
            )
        )
    return sort_recommendations(recs)


def filter_visible(recs: Iterable[Recommendation], visible_course_ids: Collection[str] | None) -> list[Recommendation]:
    """Keep only allow-listed courses. A missing or empty allow-list shows nothing."""
    if not visible_course_ids:
        return []
    allowed = {str(course_id) for course_id in visible_course_ids}
    return [rec for rec in recs if rec.course_id in allowed]


def dedupe_sections(
    sections: Mapping[SectionKey, Sequence[Recommendation]],
) -> dict[SectionKey, list[Recommendation]]:
    """Drop repeats across sections; the earliest section in configured order keeps the course."""
    seen: set[str] = set()
    output: dict[SectionKey, list[Recommendation]] = {}
    for key in section_order():
        kept: list[Recommendation] = []
        for rec in sections.get(key, ()):
            if rec.course_id in seen:
                continue
            seen.add(rec.course_id)
            kept.append(rec)
        output[key] = kept
    return output


def finalize_sections(
    sections: Mapping[SectionKey, Sequence[Recommendation]],
    visible_course_ids: Collection[str] | None,
    limit: int,
) -> dict[SectionKey, list[Recommendation]]:
    order = section_order()
    visible = {key: filter_visible(sections.get(key, ()), visible_course_ids) for key in order}
    deduped = dedupe_sections(visible)
    limited = {key: recs[: max(0, limit)] for key, recs in deduped.items()}
    logger.info(
        "recommendation_sections %s",
        " ".join(f"{key}={len(limited[key])}" for key in order),
    )
    return limited
