from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from app.core.config.scoring import get_scoring_value
from app.schemas.assessment import Gap, ProficiencyCategory
from app.schemas.catalog import Course, CourseSkillLink, Skill
from app.scoring.categorizer import is_above_level
from app.taxonomy import TaxonomyProvider, get_default_taxonomy_provider, normalize_name

from .similarity import fuzzy_match

logger = logging.getLogger(__name__)

SOURCE_CATALOG_LINK = "catalog_link"
SOURCE_AI_EXTRACTED = "ai_extracted"
SOURCE_NAME_DESCRIPTION = "name_description_match"


def _append_unique(items: list[str], value: str) -> None:
    if value not in items:
        items.append(value)


@dataclass(slots=True)
class MatchInfo:
    course: Course
    catalog_skill_ids: set[str] = field(default_factory=set)
    catalog_matches: list[str] = field(default_factory=list)
    matched_link_ids: set[str] = field(default_factory=set)
    total_relevance: float = 0.0
    fuzzy_skill_ids: set[str] = field(default_factory=set)
    fuzzy_matches: list[str] = field(default_factory=list)
    fuzzy_hits: list[str] = field(default_factory=list)
    text_skill_ids: set[str] = field(default_factory=set)
    text_matches: list[str] = field(default_factory=list)

    @property
    def matched_skill_ids(self) -> set[str]:
        return self.catalog_skill_ids | self.fuzzy_skill_ids | self.text_skill_ids

    @property
    def skill_coverage(self) -> int:
        return len(self.matched_skill_ids)

    @property
    def ai_match_count(self) -> int:
        return len(self.fuzzy_hits) + len(self.text_skill_ids)

    @property
    def matching_skills(self) -> list[str]:
        output: list[str] = []
        for name in (*self.catalog_matches, *self.fuzzy_matches, *self.text_matches):
            _append_unique(output, name)
        return output

    @property
    def source(self) -> str:
        if self.catalog_skill_ids:
            return SOURCE_CATALOG_LINK
        if self.fuzzy_skill_ids:
            return SOURCE_AI_EXTRACTED
        return SOURCE_NAME_DESCRIPTION

    @property
    def is_empty(self) -> bool:
        return not self.matched_skill_ids


def _link_names(link: CourseSkillLink, skills_catalog: Mapping[str, Skill]) -> list[str]:
    names = link.names
    if names:
        return names
    skill = skills_catalog.get(link.skill_id)
    if skill is None:
        return []
    return [name for name in (skill.name_ar, skill.name_en) if name and name.strip()]


def _names_match(left_names: Iterable[str], right_names: Iterable[str], taxonomy: TaxonomyProvider) -> bool:
    right = list(right_names)
    for left in left_names:
        left_norm = normalize_name(left)
        if not left_norm:
            continue
        for candidate in right:
            if left_norm == normalize_name(candidate) or taxonomy.same_skill(left, candidate):
                return True
    return False


def _match_catalog_links(
    info: MatchInfo,
    gaps: Sequence[Gap],
    skills_catalog: Mapping[str, Skill],
    taxonomy: TaxonomyProvider,
) -> None:
    for link in info.course.skills:
        link_names = _link_names(link, skills_catalog)
        link_matched = False
        for gap in gaps:
            if link.skill_id == gap.skill_id or _names_match(link_names, gap.names, taxonomy):
                info.catalog_skill_ids.add(gap.skill_id)
                _append_unique(info.catalog_matches, gap.display_name)
                link_matched = True
        if link_matched and link.skill_id not in info.matched_link_ids:
            info.matched_link_ids.add(link.skill_id)
            info.total_relevance += link.relevance_score


def _match_extracted_skills(info: MatchInfo, gaps: Sequence[Gap], threshold: float) -> None:
    for extracted in info.course.extracted_skills:
        hit = False
        for gap in gaps:
            if any(fuzzy_match(extracted, name, threshold) for name in gap.names):
                info.fuzzy_skill_ids.add(gap.skill_id)
                _append_unique(info.fuzzy_matches, gap.display_name)
                hit = True
        if hit:
            _append_unique(info.fuzzy_hits, extracted.strip().lower())


def _match_course_text(info: MatchInfo, gaps: Sequence[Gap]) -> None:
    course = info.course
    fields = [
        (value or "").casefold()
        for value in (course.name_ar, course.name_en, course.description_ar, course.description_en, course.subject)
    ]
    fields = [value for value in fields if value]
    if not fields:
        return
    for gap in gaps:
        for name in gap.names:
            needle = normalize_name(name)
            if needle and any(needle in value for value in fields):
                info.text_skill_ids.add(gap.skill_id)
                _append_unique(info.text_matches, gap.display_name)
                break


def match_course(
    course: Course,
    gaps: Sequence[Gap],
    *,
    skills_catalog: Mapping[str, Skill] | None = None,
    taxonomy_provider: TaxonomyProvider | None = None,
    threshold: float | None = None,
) -> MatchInfo:
    taxonomy = taxonomy_provider or get_default_taxonomy_provider()
    similarity_threshold = (
        threshold if threshold is not None else float(get_scoring_value("matching.fuzzy_similarity_threshold", 0.5))
    )
    info = MatchInfo(course=course)
    _match_catalog_links(info, gaps, skills_catalog or {}, taxonomy)
    _match_extracted_skills(info, gaps, similarity_threshold)
    if not course.skills and not course.extracted_skills:
        _match_course_text(info, gaps)
    return info


def match_courses(
    gaps: Sequence[Gap],
    catalog: Iterable[Course],
    category: ProficiencyCategory,
    *,
    skills_catalog: Mapping[str, Skill] | None = None,
    taxonomy_provider: TaxonomyProvider | None = None,
) -> dict[str, MatchInfo]:
    """Match open gaps against the catalog, keyed by course id in catalog order.

    Courses whose declared difficulty is above the learner's band are dropped;
    any other difficulty is kept and left to scoring.
    """
    if not gaps:
        return {}

    threshold = float(get_scoring_value("matching.fuzzy_similarity_threshold", 0.5))
    taxonomy = taxonomy_provider or get_default_taxonomy_provider()
    matches: dict[str, MatchInfo] = {}
    skipped_difficulty = 0
    for course in catalog:
        if course.id in matches:
            continue
        if is_above_level(course.known_difficulty, category.key):
            skipped_difficulty += 1
            continue
        info = match_course(
            course,
            gaps,
            skills_catalog=skills_catalog,
            taxonomy_provider=taxonomy,
            threshold=threshold,
        )
        if not info.is_empty:
            matches[course.id] = info

    logger.info(
        "course_matching gaps=%s matched=%s skipped_above_level=%s category=%s",
        len(gaps),
        len(matches),
        skipped_difficulty,
        category.key,
    )
    return matches
