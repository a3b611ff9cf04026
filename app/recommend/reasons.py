from __future__ import annotations

from typing import Sequence

from app.schemas.assessment import ProficiencyCategory
from app.schemas.recommendation import CategoryRef, ExamContext, RecommendationReason

DIFFICULTY_LABELS_AR = {
    "beginner": "مبتدئ",
    "intermediate": "متوسط",
    "advanced": "متقدم",
}

MAX_REASON_SKILLS = 3


def compose_reason(
    exam: ExamContext | None,
    category: ProficiencyCategory | None,
    matching_skills: Sequence[str],
    course_difficulty: str | None,
    skill_gap_score: int | None = None,
) -> RecommendationReason:
    """Build the bilingual "why this course" text shown next to a recommendation."""
    exam = exam or ExamContext()
    exam_ar = exam.test_title_ar or exam.test_title_en or ""
    exam_en = exam.test_title_en or exam.test_title_ar or ""

    reason_ar = f'تم التوصية بهذه الدورة بناءً على نتائج اختبار "{exam_ar}"'
    reason_en = f'Recommended based on test results from "{exam_en}"'

    top_skills = list(matching_skills)[:MAX_REASON_SKILLS]
    if top_skills:
        reason_ar += f" لتطوير مهارات: {'، '.join(top_skills)}"
        reason_en += f" to develop skills: {', '.join(top_skills)}"

    difficulty = (course_difficulty or "").strip().lower()
    if category is not None and difficulty and difficulty == category.recommended_difficulty:
        label_ar = DIFFICULTY_LABELS_AR.get(difficulty, difficulty)
        reason_ar += f". مستوى الدورة ({label_ar}) مناسب لمستواك"
        reason_en += f". Course difficulty ({difficulty}) matches your level"

    return RecommendationReason(
        exam_id=exam.test_id,
        exam_name_ar=exam.test_title_ar,
        exam_name_en=exam.test_title_en,
        exam_date=exam.analyzed_at,
        user_category=(
            CategoryRef(key=category.key, label_ar=category.label_ar, label_en=category.label_en)
            if category is not None
            else None
        ),
        matching_skills=top_skills,
        skill_gap_score=skill_gap_score,
        reason_ar=reason_ar,
        reason_en=reason_en,
    )
