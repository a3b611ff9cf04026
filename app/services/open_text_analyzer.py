from __future__ import annotations

import logging
from typing import Mapping, Sequence

from app.schemas.assessment import OpenTextAnalysis, SkillResult

from .llm import json_completion

logger = logging.getLogger(__name__)


def _build_prompt(
    answers: Sequence[tuple[str, str]],
    overall_score: int,
    skill_results: Mapping[str, SkillResult],
    test_title: str | None,
) -> str:
    answer_block = "\n\n".join(f"Q{index}: {question}\nA: {answer}" for index, (question, answer) in enumerate(answers, 1))
    skills_block = "\n".join(
        f"- {skill_id}: {result.score}% ({result.level})" for skill_id, result in skill_results.items()
    )
    return f"""Analyze the following employee assessment responses. Provide analysis in both Arabic and English.

Assessment: {test_title or 'N/A'}

Open-text responses:
{answer_block}

Overall Test Score: {overall_score}%

Skill Assessment Results:
{skills_block or '- none'}

Format response as JSON with this structure:
{{
  "themes": ["theme1", "theme2"],
  "sentiments": ["positive aspects", "areas of concern"],
  "key_insights": ["insight1", "insight2"],
  "concerns": ["concern1", "concern2"],
  "summary_ar": "Arabic summary",
  "summary_en": "English summary",
  "recommendations_ar": "Arabic recommendations",
  "recommendations_en": "English recommendations"
}}"""


def analyze_open_text(
    answers: Sequence[tuple[str, str]],
    *,
    overall_score: int,
    skill_results: Mapping[str, SkillResult],
    test_title: str | None = None,
) -> OpenTextAnalysis | None:
    """Summarize free-text answers. Returns None when there is nothing to analyze or the model is unavailable."""
    clean = [(question, answer.strip()) for question, answer in answers if answer and answer.strip()]
    if not clean:
        return None

    analysis = json_completion(
        OpenTextAnalysis,
        system_prompt="You analyze employee assessment answers. Return ONLY valid JSON.",
        user_prompt=_build_prompt(clean, overall_score, skill_results, test_title),
        task="open_text_analysis",
    )
    if analysis is None:
        logger.info("open_text_analysis_unavailable answers=%s", len(clean))
    return analysis
