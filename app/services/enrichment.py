from __future__ import annotations

import logging
from typing import Iterable, Protocol, Sequence

from app.core.config import settings
from app.integrations.graph_client import GraphClient, shared_graph_client
from app.schemas.catalog import Course, CourseEnrichment, EnrichmentPayload

from .llm import json_completion, llm_enabled

logger = logging.getLogger(__name__)

ENRICHMENT_SYSTEM_PROMPT = (
    "You are a course analysis expert. Extract structured metadata from course information. "
    "Return ONLY valid JSON."
)


class EnrichmentProvider(Protocol):
    name: str

    def enrich(self, course: Course) -> CourseEnrichment | None:
        """Return enrichment for ``course`` or None when nothing is known."""


def _course_prompt(course: Course) -> str:
    return f"""Analyze this course and extract metadata to improve course recommendations.

COURSE INFORMATION:
- Name (Arabic): {course.name_ar or 'N/A'}
- Name (English): {course.name_en or 'N/A'}
- Description (Arabic): {course.description_ar or 'N/A'}
- Description (English): {course.description_en or 'N/A'}
- Subject/Category: {course.subject or 'N/A'}
- Provider: {course.provider or 'N/A'}
- Current Difficulty: {course.difficulty_level or 'N/A'}
- Duration: {course.duration_hours or 'N/A'} hours

Return a JSON object with this structure:
{{
  "extracted_skills": ["5-15 specific skills taught, 1-3 words each"],
  "learning_outcomes": ["3-5 concrete outcomes starting with an action verb"],
  "target_audience": {{"level": "beginner | intermediate | advanced | all-levels"}},
  "career_paths": ["2-5 career paths"],
  "industry_tags": ["1-5 industries"],
  "quality_indicators": {{
    "content_clarity": 1-5,
    "skill_specificity": 1-5,
    "practical_applicability": 1-5,
    "overall_score": 1-5
  }},
  "summary_ar": "short Arabic summary",
  "summary_en": "short English summary"
}}"""


class LLMCourseEnricher:
    name = "llm"

    def enrich(self, course: Course) -> CourseEnrichment | None:
        payload = json_completion(
            EnrichmentPayload,
            system_prompt=ENRICHMENT_SYSTEM_PROMPT,
            user_prompt=_course_prompt(course),
            temperature=0.3,
            max_output_tokens=1200,
            task="course_enrichment",
        )
        return payload.to_enrichment() if payload is not None else None


class GraphEnrichmentProvider:
    name = "graph"

    def __init__(self, client: GraphClient | None = None):
        self.client = client or shared_graph_client()

    def enrich(self, course: Course) -> CourseEnrichment | None:
        return self.client.fetch_course_enrichment(course.id)


def default_enrichment_providers() -> list[EnrichmentProvider]:
    if not settings.enrichment_enabled:
        return []
    providers: list[EnrichmentProvider] = []
    graph = GraphEnrichmentProvider()
    if graph.client.configured:
        providers.append(graph)
    if llm_enabled():
        providers.append(LLMCourseEnricher())
    return providers


def enrich_course(course: Course, providers: Sequence[EnrichmentProvider]) -> CourseEnrichment:
    """First non-empty enrichment wins. Provider failures never propagate."""
    for provider in providers:
        try:
            enrichment = provider.enrich(course)
        except Exception as exc:  # noqa: BLE001 - enrichment is optional
            logger.warning("course_enrichment_failed provider=%s course_id=%s: %s", provider.name, course.id, exc)
            continue
        if enrichment is not None and not enrichment.is_empty:
            return enrichment
    return CourseEnrichment()


def fetch_enrichments(
    courses: Iterable[Course],
    providers: Sequence[EnrichmentProvider] | None = None,
) -> dict[str, CourseEnrichment]:
    active = list(providers) if providers is not None else default_enrichment_providers()
    return {course.id: enrich_course(course, active) for course in courses}
