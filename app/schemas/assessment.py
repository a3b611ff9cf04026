from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

QuestionType = Literal["mcq", "likert_scale", "self_rating", "open_text"]
SkillLevel = Literal["low", "medium", "high"]
CategoryKey = Literal["beginner", "intermediate", "advanced"]
DifficultyLevel = Literal["beginner", "intermediate", "advanced"]

# Upper bound for question weights and option scores; keeps weighted totals finite.
MAX_QUESTION_VALUE = 1_000_000.0


def _coerce_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool) or value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class QuestionOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: Any = None
    score: float = Field(default=0.0, ge=-MAX_QUESTION_VALUE, le=MAX_QUESTION_VALUE, allow_inf_nan=False)
    is_correct: bool = False
    label_ar: str | None = None
    label_en: str | None = None

    @field_validator("score", mode="before")
    @classmethod
    def _coerce_score(cls, value: Any) -> float:
        return _coerce_float(value)

    @field_validator("is_correct", mode="before")
    @classmethod
    def _coerce_is_correct(cls, value: Any) -> bool:
        return bool(value)


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: QuestionType
    weight: float = Field(default=1.0, ge=0.0, le=MAX_QUESTION_VALUE, allow_inf_nan=False)
    skill_id: str | None = None
    options: tuple[QuestionOption, ...] = Field(default_factory=tuple)
    text_ar: str | None = None
    text_en: str | None = None

    @field_validator("id", "skill_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class ManualGrade(BaseModel):
    """Grade supplied by a human reviewer for an open-text answer."""

    score: float = Field(ge=0.0, le=10.0)
    percentage: float = Field(ge=0.0, le=100.0)


class Response(BaseModel):
    """One submitted answer. Scoring output lives in ScoredResponse."""

    question_id: str
    raw_value: Any = None
    grade: ManualGrade | None = None

    @field_validator("question_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)


class ResponseRecord(BaseModel):
    question: Question
    raw_value: Any = None
    grade: ManualGrade | None = None


class ScoredResponse(BaseModel):
    question_id: str
    question_type: QuestionType
    skill_id: str | None = None
    weight: float
    score: float | None
    is_correct: bool | None
    max_score: float


class SkillResult(BaseModel):
    skill_id: str
    score: int = Field(ge=0, le=100)
    level: SkillLevel
    gap_percentage: int = Field(ge=0, le=100)

    @model_validator(mode="after")
    def _validate_complement(self) -> "SkillResult":
        if self.score + self.gap_percentage != 100:
            raise ValueError("score and gap_percentage must add up to 100")
        return self


class Gap(BaseModel):
    skill_id: str
    gap_score: int = Field(ge=0, le=100)
    priority: Literal[1, 2]
    skill_name_ar: str | None = None
    skill_name_en: str | None = None
    domain_id: str | None = None

    @property
    def names(self) -> list[str]:
        return [name for name in (self.skill_name_ar, self.skill_name_en) if name and name.strip()]

    @property
    def display_name(self) -> str:
        return self.skill_name_en or self.skill_name_ar or self.skill_id


class WeightedBreakdownItem(BaseModel):
    question_id: str
    question_type: QuestionType
    skill_id: str | None = None
    raw_score: float
    max_score: float
    weight: float
    weighted_score: float
    weighted_max_score: float


class WeightedTotals(BaseModel):
    total_weighted_score: float = 0.0
    total_weighted_max_score: float = 0.0
    weighted_percentage: int = 0


class AnalysisResult(BaseModel):
    skill_results: dict[str, SkillResult] = Field(default_factory=dict)
    overall_score: int = Field(default=0, ge=0, le=100)
    strengths: list[str] = Field(default_factory=list)
    weighted_totals: WeightedTotals = Field(default_factory=WeightedTotals)
    breakdown: list[WeightedBreakdownItem] = Field(default_factory=list)
    scored_responses: list[ScoredResponse] = Field(default_factory=list)


class ProficiencyCategory(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: CategoryKey
    min_score: int
    max_score: int
    label_ar: str
    label_en: str
    description_ar: str
    description_en: str
    recommended_difficulty: DifficultyLevel
    allowed_difficulties: tuple[DifficultyLevel, ...]


class CategorizedGap(BaseModel):
    gap: Gap
    proficiency_score: int
    category: CategoryKey
    recommended_difficulty: DifficultyLevel
    needs_training: bool


class OpenTextAnalysis(BaseModel):
    themes: list[str] = Field(default_factory=list)
    sentiments: list[str] = Field(default_factory=list)
    key_insights: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    summary_ar: str = ""
    summary_en: str = ""
    recommendations_ar: str = ""
    recommendations_en: str = ""

    @field_validator("themes", "sentiments", "key_insights", "concerns", mode="before")
    @classmethod
    def _string_list(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        items = (str(item).strip() for item in value if isinstance(item, (str, int, float)) and not isinstance(item, bool))
        return [item for item in items if item]

    @field_validator("summary_ar", "summary_en", "recommendations_ar", "recommendations_en", mode="before")
    @classmethod
    def _stripped_text(cls, value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""


class AssessmentRecord(BaseModel):
    assignment_id: str
    user_id: str | None = None
    test_id: str | None = None
    test_title_ar: str | None = None
    test_title_en: str | None = None
    overall_score: int = Field(default=0, ge=0, le=100)
    category: CategoryKey = "beginner"
    skill_results: dict[str, SkillResult] = Field(default_factory=dict)
    strengths: list[str] = Field(default_factory=list)
    weighted_totals: WeightedTotals = Field(default_factory=WeightedTotals)
    open_text_analysis: OpenTextAnalysis | None = None
    analyzed_at: datetime


class SkillProfile(BaseModel):
    user_id: str
    skill_id: str
    current_level: SkillLevel
    last_assessment_score: int
    improvement_trend: Literal["improving", "declining", "stable"] = "stable"
    last_assessment_date: datetime
