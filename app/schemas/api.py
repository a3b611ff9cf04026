from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .assessment import (
    CategorizedGap,
    CategoryKey,
    Gap,
    OpenTextAnalysis,
    ProficiencyCategory,
    Question,
    Response,
    SkillProfile,
    SkillResult,
    WeightedBreakdownItem,
    WeightedTotals,
)
from .catalog import Course, Skill
from .recommendation import ExamContext, ScoringPolicyName


class SubmitAssessmentRequest(BaseModel):
    user_id: str | None = None
    test_id: str | None = None
    test_title_ar: str | None = None
    test_title_en: str | None = None
    test_skill_ids: list[str] = Field(default_factory=list)
    questions: list[Question] = Field(default_factory=list)
    responses: list[Response] = Field(default_factory=list)
    skills: list[Skill] = Field(default_factory=list)
    analyze_open_text: bool = True

    @field_validator("test_skill_ids", mode="before")
    @classmethod
    def _stringify_skill_ids(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(item) for item in value if item is not None and str(item).strip()]
        return value


class AssessmentResponse(BaseModel):
    assignment_id: str
    user_id: str | None = None
    overall_score: int
    category: ProficiencyCategory
    skill_results: dict[str, SkillResult] = Field(default_factory=dict)
    strengths: list[str] = Field(default_factory=list)
    gaps: list[Gap] = Field(default_factory=list)
    categorized_gaps: list[CategorizedGap] = Field(default_factory=list)
    weighted_totals: WeightedTotals = Field(default_factory=WeightedTotals)
    breakdown: list[WeightedBreakdownItem] = Field(default_factory=list)
    open_text_analysis: OpenTextAnalysis | None = None
    exam_context: ExamContext
    analyzed_at: datetime


class RecommendationPreviewRequest(BaseModel):
    gaps: list[Gap] | None = None
    skill_results: list[SkillResult] | None = None
    overall_score: int | None = Field(default=None, ge=0, le=100)
    courses: list[Course] = Field(default_factory=list)
    skills: list[Skill] = Field(default_factory=list)
    visible_course_ids: list[str] | None = None
    interests: list[str] = Field(default_factory=list)
    career_domains: list[str] = Field(default_factory=list)
    exam: ExamContext | None = None
    policy: ScoringPolicyName | None = None
    limit: int | None = Field(default=None, ge=1, le=100)

    @field_validator("visible_course_ids", mode="before")
    @classmethod
    def _stringify_visible(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(item) for item in value]
        return value


class StatusUpdateRequest(BaseModel):
    status: str


class StatusUpdateResponse(BaseModel):
    user_id: str
    course_id: str
    status: str
    updated_at: datetime


class AssessmentSummary(BaseModel):
    assignment_id: str
    test_id: str | None = None
    test_title_ar: str | None = None
    test_title_en: str | None = None
    overall_score: int
    category: CategoryKey
    analyzed_at: datetime


class SkillProfileResponse(BaseModel):
    user_id: str
    skills: list[SkillProfile] = Field(default_factory=list)
    history: list[AssessmentSummary] = Field(default_factory=list)
