from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

SectionKey = Literal["gap_based", "interest_based", "career_based"]
RecommendationStatus = Literal["recommended", "enrolled", "in_progress", "completed", "skipped"]
ScoringPolicyName = Literal["basic_weighted", "enriched_five_factor", "skill_based_only"]


class ScoreBreakdown(BaseModel):
    skill_match: float = 0.0
    relevance: float = 0.0
    ai_match: float = 0.0
    difficulty_alignment: float = 0.0
    learning_outcomes: float | None = None
    quality: float | None = None
    career_relevance: float | None = None


class ExamContext(BaseModel):
    test_id: str | None = None
    test_title_ar: str | None = None
    test_title_en: str | None = None
    analyzed_at: datetime | None = None


class CategoryRef(BaseModel):
    key: str
    label_ar: str
    label_en: str


class RecommendationReason(BaseModel):
    exam_id: str | None = None
    exam_name_ar: str | None = None
    exam_name_en: str | None = None
    exam_date: datetime | None = None
    user_category: CategoryRef | None = None
    matching_skills: list[str] = Field(default_factory=list)
    skill_gap_score: int | None = None
    reason_ar: str
    reason_en: str


class Recommendation(BaseModel):
    course_id: str
    name_ar: str | None = None
    name_en: str | None = None
    url: str | None = None
    provider: str | None = None
    difficulty_level: str | None = None
    matching_skills: list[str] = Field(default_factory=list)
    recommendation_score: float = 0.0
    score_breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)
    skill_coverage: int = 0
    skill_gap_score: int | None = None
    source: str
    section: SectionKey
    reason: RecommendationReason | None = None
    status: RecommendationStatus = "recommended"


class RecommendationSections(BaseModel):
    category: str | None = None
    policy: ScoringPolicyName
    gap_based: list[Recommendation] = Field(default_factory=list)
    interest_based: list[Recommendation] = Field(default_factory=list)
    career_based: list[Recommendation] = Field(default_factory=list)

    def all_course_ids(self) -> list[str]:
        return [
            rec.course_id
            for section in (self.gap_based, self.interest_based, self.career_based)
            for rec in section
        ]
