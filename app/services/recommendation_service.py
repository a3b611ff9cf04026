from __future__ import annotations

import logging
from typing import Mapping, Sequence

from app.core.errors import AssessmentNotFoundError, InvalidStatusError
from app.recommend.engine import build_recommendation_sections
from app.schemas.api import RecommendationPreviewRequest, StatusUpdateResponse
from app.schemas.assessment import Gap, ProficiencyCategory
from app.schemas.catalog import Skill
from app.schemas.recommendation import RecommendationSections
from app.scoring.aggregator import overall_score
from app.scoring.categorizer import categorize, get_category
from app.scoring.prioritizer import gap_sort_key, prioritize_gaps
from app.storage.results_store import (
    get_latest_assessment_for_user,
    get_recommendation_statuses,
    set_recommendation_status,
)

from .assessment_service import exam_context_for
from .catalog import load_catalog

logger = logging.getLogger(__name__)

RECOMMENDATION_STATUSES = ("recommended", "enrolled", "in_progress", "completed", "skipped")


def _preview_category(payload: RecommendationPreviewRequest) -> ProficiencyCategory:
    if payload.overall_score is not None:
        return categorize(payload.overall_score)
    if payload.skill_results:
        return categorize(overall_score(payload.skill_results))
    return get_category(None)


def _with_names(gap: Gap, skills_catalog: Mapping[str, Skill]) -> Gap:
    skill = skills_catalog.get(gap.skill_id)
    if skill is None or gap.names:
        return gap
    return gap.model_copy(
        update={
            "skill_name_ar": skill.name_ar,
            "skill_name_en": skill.name_en,
            "domain_id": gap.domain_id or skill.domain_id,
        }
    )


def preview_recommendations(payload: RecommendationPreviewRequest) -> RecommendationSections:
    """Stateless run over caller-supplied gaps or skill results and catalog."""
    skills_catalog = {skill.id: skill for skill in payload.skills}
    if payload.gaps is not None:
        gaps = sorted((_with_names(gap, skills_catalog) for gap in payload.gaps), key=gap_sort_key)
    else:
        gaps = prioritize_gaps(payload.skill_results or [], skills_catalog)

    return build_recommendation_sections(
        gaps,
        payload.courses,
        _preview_category(payload),
        visible_course_ids=payload.visible_course_ids,
        skills_catalog=skills_catalog,
        interests=payload.interests,
        career_domains=payload.career_domains,
        exam=payload.exam,
        policy=payload.policy,
        limit=payload.limit,
    )


def recommendations_for_user(
    user_id: str,
    *,
    policy: str | None = None,
    interests: Sequence[str] = (),
    career_domains: Sequence[str] = (),
    limit: int | None = None,
) -> RecommendationSections:
    record = get_latest_assessment_for_user(user_id)
    if record is None:
        raise AssessmentNotFoundError(f"No analysis found for user '{user_id}'.")

    catalog = load_catalog()
    gaps = prioritize_gaps(record.skill_results.values(), catalog.skills)
    return build_recommendation_sections(
        gaps,
        catalog.courses,
        get_category(record.category),
        visible_course_ids=catalog.visible_course_ids,
        skills_catalog=catalog.skills,
        interests=interests,
        career_domains=career_domains,
        exam=exam_context_for(record),
        policy=policy,
        limit=limit,
        statuses=get_recommendation_statuses(user_id),
    )


def update_recommendation_status(user_id: str, course_id: str, status: str) -> StatusUpdateResponse:
    normalized = (status or "").strip().lower()
    if normalized not in RECOMMENDATION_STATUSES:
        raise InvalidStatusError(
            f"Invalid status '{status}'. Expected one of: {', '.join(RECOMMENDATION_STATUSES)}."
        )
    updated_at = set_recommendation_status(user_id, course_id, normalized)
    logger.info("recommendation_status_updated user_id=%s course_id=%s status=%s", user_id, course_id, normalized)
    return StatusUpdateResponse(user_id=user_id, course_id=course_id, status=normalized, updated_at=updated_at)
