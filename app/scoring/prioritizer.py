from __future__ import annotations

from typing import Iterable, Mapping

from app.schemas.assessment import Gap, SkillResult
from app.schemas.catalog import Skill


def gap_sort_key(gap: Gap) -> tuple[int, int, str]:
    return (gap.priority, -gap.gap_score, gap.skill_id)


def prioritize_gaps(
    skill_results: Iterable[SkillResult],
    skills_catalog: Mapping[str, Skill] | None = None,
) -> list[Gap]:
    """Turn non-high skill results into gaps, most urgent first.

    Low results become priority 1 and medium results priority 2. Within a
    priority the larger gap comes first, then skill id.
    """
    catalog = skills_catalog or {}
    gaps: list[Gap] = []
    for result in skill_results:
        if result.level == "high":
            continue
        skill = catalog.get(result.skill_id)
        gaps.append(
            Gap(
                skill_id=result.skill_id,
                gap_score=result.gap_percentage,
                priority=1 if result.level == "low" else 2,
                skill_name_ar=skill.name_ar if skill else None,
                skill_name_en=skill.name_en if skill else None,
                domain_id=skill.domain_id if skill else None,
            )
        )
    gaps.sort(key=gap_sort_key)
    return gaps
