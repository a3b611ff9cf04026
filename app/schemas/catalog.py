from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

_KNOWN_DIFFICULTIES = {"beginner", "intermediate", "advanced"}


def _clean_strings(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set)):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _optional_id(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


class Skill(BaseModel):
    id: str
    name_ar: str | None = None
    name_en: str | None = None
    domain_id: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("domain_id", mode="before")
    @classmethod
    def _stringify_domain(cls, value: Any) -> str | None:
        return _optional_id(value)


class CourseSkillLink(BaseModel):
    skill_id: str
    relevance_score: float = 0.0
    skill_name_ar: str | None = None
    skill_name_en: str | None = None

    @field_validator("skill_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("relevance_score", mode="before")
    @classmethod
    def _coerce_relevance(cls, value: Any) -> float:
        if isinstance(value, bool) or value is None:
            return 0.0
        try:
            return max(0.0, float(value))
        except (TypeError, ValueError):
            return 0.0

    @property
    def names(self) -> list[str]:
        return [name for name in (self.skill_name_ar, self.skill_name_en) if name and name.strip()]


class Course(BaseModel):
    id: str
    name_ar: str | None = None
    name_en: str | None = None
    description_ar: str | None = None
    description_en: str | None = None
    subject: str | None = None
    difficulty_level: str | None = None
    skills: list[CourseSkillLink] = Field(default_factory=list)
    extracted_skills: list[str] = Field(default_factory=list)
    url: str | None = None
    provider: str | None = None
    duration_hours: float | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("difficulty_level", mode="before")
    @classmethod
    def _normalize_difficulty(cls, value: Any) -> str | None:
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        return normalized or None

    @field_validator("extracted_skills", mode="before")
    @classmethod
    def _clean_extracted(cls, value: Any) -> list[str]:
        return _clean_strings(value)

    @field_validator("duration_hours", mode="before")
    @classmethod
    def _coerce_duration(cls, value: Any) -> float | None:
        if value is None or value == "" or isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    @property
    def known_difficulty(self) -> str | None:
        if self.difficulty_level in _KNOWN_DIFFICULTIES:
            return self.difficulty_level
        return None


class QualityIndicators(BaseModel):
    content_clarity: float | None = Field(default=None, ge=1.0, le=5.0)
    skill_specificity: float | None = Field(default=None, ge=1.0, le=5.0)
    practical_applicability: float | None = Field(default=None, ge=1.0, le=5.0)
    overall_score: float | None = Field(default=None, ge=1.0, le=5.0)


class CourseEnrichment(BaseModel):
    extracted_skills: list[str] = Field(default_factory=list)
    learning_outcomes: list[str] = Field(default_factory=list)
    career_paths: list[str] = Field(default_factory=list)
    industry_tags: list[str] = Field(default_factory=list)
    target_audience_level: str | None = None
    quality_indicators: QualityIndicators | None = None
    summary_ar: str | None = None
    summary_en: str | None = None

    @field_validator("extracted_skills", "learning_outcomes", "career_paths", "industry_tags", mode="before")
    @classmethod
    def _clean_lists(cls, value: Any) -> list[str]:
        return _clean_strings(value)

    @property
    def is_empty(self) -> bool:
        return not (
            self.extracted_skills
            or self.learning_outcomes
            or self.career_paths
            or self.industry_tags
            or self.quality_indicators
            or self.target_audience_level
        )


_QUALITY_KEYS = ("content_clarity", "skill_specificity", "practical_applicability", "overall_score")


def clamp_quality(raw: Any) -> dict[str, float] | None:
    """Keep numeric quality ratings, pulled into the 1-5 range."""
    if not isinstance(raw, dict):
        return None
    output: dict[str, float] = {}
    for key in _QUALITY_KEYS:
        value = raw.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            output[key] = max(1.0, min(5.0, float(value)))
    return output or None


class EnrichmentPayload(BaseModel):
    """Enrichment as returned by the language model or the course graph."""

    extracted_skills: list[str] = Field(default_factory=list)
    learning_outcomes: list[str] = Field(default_factory=list)
    career_paths: list[str] = Field(default_factory=list)
    industry_tags: list[str] = Field(default_factory=list)
    target_audience: dict[str, Any] | None = None
    quality_indicators: QualityIndicators | None = None
    summary_ar: str | None = None
    summary_en: str | None = None

    @field_validator("extracted_skills", "learning_outcomes", "career_paths", "industry_tags", mode="before")
    @classmethod
    def _clean_lists(cls, value: Any) -> list[str]:
        return _clean_strings(value)

    @field_validator("target_audience", mode="before")
    @classmethod
    def _audience_mapping(cls, value: Any) -> dict[str, Any] | None:
        return value if isinstance(value, dict) else None

    @field_validator("quality_indicators", mode="before")
    @classmethod
    def _clamp_quality(cls, value: Any) -> dict[str, float] | None:
        return clamp_quality(value)

    @field_validator("summary_ar", "summary_en", mode="before")
    @classmethod
    def _text_only(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None

    def to_enrichment(self) -> CourseEnrichment:
        level = (self.target_audience or {}).get("level")
        return CourseEnrichment(
            extracted_skills=self.extracted_skills,
            learning_outcomes=self.learning_outcomes,
            career_paths=self.career_paths,
            industry_tags=self.industry_tags,
            target_audience_level=level if isinstance(level, str) else None,
            quality_indicators=self.quality_indicators,
            summary_ar=self.summary_ar,
            summary_en=self.summary_en,
        )
