from __future__ import annotations

from typing import Any, Iterable

from app.schemas.assessment import CategorizedGap, Gap, ProficiencyCategory

# Bands are inclusive on both ends and cover 0-100 without overlap.
PROFICIENCY_LEVELS: dict[str, ProficiencyCategory] = {
    "beginner": ProficiencyCategory(
        key="beginner",
        min_score=0,
        max_score=39,
        label_ar="مبتدئ",
        label_en="Beginner",
        description_ar="يحتاج إلى تأسيس قوي في هذا المجال",
        description_en="Needs strong foundation in this area",
        recommended_difficulty="beginner",
        allowed_difficulties=("beginner",),
    ),
    "intermediate": ProficiencyCategory(
        key="intermediate",
        min_score=40,
        max_score=69,
        label_ar="متوسط",
        label_en="Intermediate",
        description_ar="لديه أساس جيد ويمكنه التطور أكثر",
        description_en="Has good foundation and can develop further",
        recommended_difficulty="intermediate",
        allowed_difficulties=("intermediate", "beginner"),
    ),
    "advanced": ProficiencyCategory(
        key="advanced",
        min_score=70,
        max_score=100,
        label_ar="متقدم",
        label_en="Advanced",
        description_ar="أداء ممتاز، يمكنه التخصص أكثر",
        description_en="Excellent performance, can specialize further",
        recommended_difficulty="advanced",
        allowed_difficulties=("advanced", "intermediate", "beginner"),
    ),
}

DIFFICULTY_RANK: dict[str, int] = {"beginner": 0, "intermediate": 1, "advanced": 2}


def _as_score(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def categorize(score: Any) -> ProficiencyCategory:
    """Map an overall 0-100 score to its proficiency band."""
    numeric = _as_score(score)
    if numeric >= PROFICIENCY_LEVELS["advanced"].min_score:
        return PROFICIENCY_LEVELS["advanced"]
    if numeric >= PROFICIENCY_LEVELS["intermediate"].min_score:
        return PROFICIENCY_LEVELS["intermediate"]
    return PROFICIENCY_LEVELS["beginner"]


def get_category(key: str | None) -> ProficiencyCategory:
    if key and key in PROFICIENCY_LEVELS:
        return PROFICIENCY_LEVELS[key]
    return PROFICIENCY_LEVELS["beginner"]


def allowed_difficulties(category_key: str | None) -> tuple[str, ...]:
    return get_category(category_key).allowed_difficulties


def recommended_difficulty(category_key: str | None) -> str:
    return get_category(category_key).recommended_difficulty


def is_above_level(difficulty: str | None, category_key: str | None) -> bool:
    """True when a known course difficulty is strictly harder than the learner's band."""
    if difficulty not in DIFFICULTY_RANK:
        return False
    ceiling = DIFFICULTY_RANK[recommended_difficulty(category_key)]
    return DIFFICULTY_RANK[difficulty] > ceiling


def categorize_skill_gaps(gaps: Iterable[Gap]) -> list[CategorizedGap]:
    output: list[CategorizedGap] = []
    for gap in gaps:
        proficiency = 100 - gap.gap_score
        category = categorize(proficiency)
        output.append(
            CategorizedGap(
                gap=gap,
                proficiency_score=proficiency,
                category=category.key,
                recommended_difficulty=category.recommended_difficulty,
                needs_training=gap.gap_score > 0,
            )
        )
    return output
