from .assessment import (
    AnalysisResult,
    AssessmentRecord,
    CategorizedGap,
    Gap,
    ManualGrade,
    OpenTextAnalysis,
    ProficiencyCategory,
    Question,
    QuestionOption,
    Response,
    ResponseRecord,
    ScoredResponse,
    SkillProfile,
    SkillResult,
    WeightedBreakdownItem,
    WeightedTotals,
)
from .catalog import Course, CourseEnrichment, CourseSkillLink, EnrichmentPayload, QualityIndicators, Skill
from .recommendation import (
    CategoryRef,
    ExamContext,
    Recommendation,
    RecommendationReason,
    RecommendationSections,
    ScoreBreakdown,
)

__all__ = [
    "AnalysisResult",
    "AssessmentRecord",
    "CategorizedGap",
    "Gap",
    "ManualGrade",
    "OpenTextAnalysis",
    "ProficiencyCategory",
    "Question",
    "QuestionOption",
    "Response",
    "ResponseRecord",
    "ScoredResponse",
    "SkillProfile",
    "SkillResult",
    "WeightedBreakdownItem",
    "WeightedTotals",
    "Course",
    "CourseEnrichment",
    "CourseSkillLink",
    "EnrichmentPayload",
    "QualityIndicators",
    "Skill",
    "CategoryRef",
    "ExamContext",
    "Recommendation",
    "RecommendationReason",
    "RecommendationSections",
    "ScoreBreakdown",
]
