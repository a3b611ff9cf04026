from __future__ import annotations

import logging
from typing import Collection, Iterable, Mapping, Sequence

from app.core.config import settings
from app.matching.matcher import match_courses
from app.schemas.assessment import Gap, ProficiencyCategory
from app.schemas.catalog import Course, Skill
from app.schemas.recommendation import (
    ExamContext,
    Recommendation,
    RecommendationSections,
    ScoreBreakdown,
    SectionKey,
)
from app.scoring.categorizer import is_above_level
from app.services.enrichment import EnrichmentProvider, fetch_enrichments
from app.taxonomy import TaxonomyProvider, normalize_name

from .policies import resolve_policy, uses_enrichment
from .ranker import finalize_sections, score_matches, sort_recommendations
from .reasons import compose_reason

logger = logging.getLogger(__name__)

SOURCE_INTEREST = "interest_match"
SOURCE_CAREER = "career_match"


def parse_terms(raw_terms: Iterable[str]) -> list[str]:
    """Accept "skillId:Name" or plain names; return distinct display names in input order."""
    terms: list[str] = []
    seen: set[str] = set()
    for raw in raw_terms:
        if not isinstance(raw, str):
            continue
        name = raw.split(":", 1)[1] if ":" in raw else raw
        name = name.strip()
        key = normalize_name(name)
        if not key or key in seen:
            continue
        seen.add(key)
        terms.append(name)
    return terms


def _course_texts(course: Course, skills_catalog: Mapping[str, Skill], *, include_skills: bool) -> list[str]:
    texts = [course.name_ar, course.name_en, course.subject]
    if include_skills:
        for link in course.skills:
            texts.extend(link.names)
            skill = skills_catalog.get(link.skill_id)
            if skill is not None:
                texts.extend([skill.name_ar, skill.name_en])
    return [normalize_name(text) for text in texts if text and text.strip()]


def _term_section(
    terms: Sequence[str],
    catalog: Sequence[Course],
    category: ProficiencyCategory,
    skills_catalog: Mapping[str, Skill],
    *,
    section: SectionKey,
    source: str,
    include_skills: bool,
) -> list[Recommendation]:
    if not terms:
        return []
    needles = [(term, normalize_name(term)) for term in terms]
    recs: list[Recommendation] = []
    seen: set[str] = set()
    for course in catalog:
        if course.id in seen or is_above_level(course.known_difficulty, category.key):
            continue
        seen.add(course.id)
        texts = _course_texts(course, skills_catalog, include_skills=include_skills)
        matched = [term for term, needle in needles if any(needle in text for text in texts)]
        if not matched:
            continue
        coverage = round(min(100.0, 100.0 * len(matched) / len(terms)), 2)
        recs.append(
            Recommendation(
                course_id=course.id,
                name_ar=course.name_ar,
                name_en=course.name_en,
                url=course.url,
                provider=course.provider,
                difficulty_level=course.difficulty_level,
                matching_skills=matched,
                recommendation_score=coverage,
                score_breakdown=ScoreBreakdown(skill_match=coverage),
                skill_coverage=len(matched),
                source=source,
                section=section,
            )
        )
    return sort_recommendations(recs)


def _gap_section(
    gaps: Sequence[Gap],
    catalog: Sequence[Course],
    category: ProficiencyCategory,
    skills_catalog: Mapping[str, Skill],
    policy: str,
    taxonomy_provider: TaxonomyProvider | None,
    enrichment_providers: Sequence[EnrichmentProvider] | None,
) -> list[Recommendation]:
    if not gaps:
        return []
    matches = match_courses(
        gaps,
        catalog,
        category,
        skills_catalog=skills_catalog,
        taxonomy_provider=taxonomy_provider,
    )
    enrichments = None
    if matches and uses_enrichment(policy):
        enrichments = fetch_enrichments([info.course for info in matches.values()], enrichment_providers)
    return score_matches(matches, gaps, category, policy=policy, enrichments=enrichments)


def build_recommendation_sections(
    gaps: Sequence[Gap],
    catalog: Iterable[Course],
    category: ProficiencyCategory,
    *,
    visible_course_ids: Collection[str] | None,
    skills_catalog: Mapping[str, Skill] | None = None,
    interests: Iterable[str] = (),
    career_domains: Iterable[str] = (),
    exam: ExamContext | None = None,
    policy: str | None = None,
    limit: int | None = None,
    statuses: Mapping[str, str] | None = None,
    taxonomy_provider: TaxonomyProvider | None = None,
    enrichment_providers: Sequence[EnrichmentProvider] | None = None,
) -> RecommendationSections:
    """Produce the three ranked, deduplicated and explained recommendation sections.

    Courses outside ``visible_course_ids`` are never shown; an empty or missing
    allow-list yields empty sections. A course appears in at most one section,
    the first in gap, interest, career order.
    """
    policy_name = resolve_policy(policy)
    courses = list(catalog)
    skills = skills_catalog or {}
    section_limit = limit if limit is not None else settings.recommendation_limit

    raw_sections: dict[SectionKey, list[Recommendation]] = {
        "gap_based": _gap_section(
            gaps, courses, category, skills, policy_name, taxonomy_provider, enrichment_providers
        ),
        "interest_based": _term_section(
            parse_terms(interests),
            courses,
            category,
            skills,
            section="interest_based",
            source=SOURCE_INTEREST,
            include_skills=True,
        ),
        "career_based": _term_section(
            parse_terms(career_domains),
            courses,
            category,
            skills,
            section="career_based",
            source=SOURCE_CAREER,
            include_skills=False,
        ),
    }
    final = finalize_sections(raw_sections, visible_course_ids, section_limit)

    status_map = statuses or {}
    explained: dict[SectionKey, list[Recommendation]] = {}
    for key, recs in final.items():
        explained[key] = [
            rec.model_copy(
                update={
                    "reason": compose_reason(
                        exam, category, rec.matching_skills, rec.difficulty_level, rec.skill_gap_score
                    ),
                    "status": status_map.get(rec.course_id, rec.status),
                }
            )
            for rec in recs
        ]

    logger.info(
        "recommendations_built policy=%s category=%s gaps=%s total=%s",
        policy_name,
        category.key,
        len(gaps),
        sum(len(recs) for recs in explained.values()),
    )
    return RecommendationSections(
        category=category.key,
        policy=policy_name,
        gap_based=explained["gap_based"],
        interest_based=explained["interest_based"],
        career_based=explained["career_based"],
    )
