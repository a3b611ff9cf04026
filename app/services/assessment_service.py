from __future__ import annotations

import logging
from datetime import datetime, timezone

from app.core.errors import AssessmentNotFoundError
from app.schemas.api import AssessmentResponse, AssessmentSummary, SkillProfileResponse, SubmitAssessmentRequest
from app.schemas.assessment import AssessmentRecord, Question, ResponseRecord
from app.schemas.catalog import Skill
from app.schemas.recommendation import ExamContext
from app.scoring.aggregator import aggregate_skill_results
from app.scoring.categorizer import categorize, categorize_skill_gaps, get_category
from app.scoring.prioritizer import prioritize_gaps
from app.storage.results_store import (
    get_assessment,
    get_skill_profiles,
    list_assessments_for_user,
    save_assessment,
    update_open_text_analysis,
)

from .catalog import load_catalog
from .open_text_analyzer import analyze_open_text

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _build_records(payload: SubmitAssessmentRequest) -> list[ResponseRecord]:
    questions: dict[str, Question] = {}
    for question in payload.questions:
        questions.setdefault(question.id, question)

    records: list[ResponseRecord] = []
    answered: set[str] = set()
    for answer in payload.responses:
        question = questions.get(answer.question_id)
        if question is None:
            logger.warning("response_unknown_question question_id=%s", answer.question_id)
            continue
        if answer.question_id in answered:
            continue
        answered.add(answer.question_id)
        records.append(ResponseRecord(question=question, raw_value=answer.raw_value, grade=answer.grade))
    return records


def _question_text(question: Question) -> str:
    return question.text_en or question.text_ar or question.id


def submit_assessment(assignment_id: str, payload: SubmitAssessmentRequest) -> AssessmentResponse:
    records = _build_records(payload)
    analysis = aggregate_skill_results(records, test_skill_ids=payload.test_skill_ids)
    category = categorize(analysis.overall_score)
    analyzed_at = _utc_now()

    save_assessment(
        AssessmentRecord(
            assignment_id=assignment_id,
            user_id=payload.user_id,
            test_id=payload.test_id,
            test_title_ar=payload.test_title_ar,
            test_title_en=payload.test_title_en,
            overall_score=analysis.overall_score,
            category=category.key,
            skill_results=analysis.skill_results,
            strengths=analysis.strengths,
            weighted_totals=analysis.weighted_totals,
            analyzed_at=analyzed_at,
        )
    )

    skills_catalog: dict[str, Skill] = {skill.id: skill for skill in payload.skills}
    gaps = prioritize_gaps(analysis.skill_results.values(), skills_catalog)

    open_text = None
    if payload.analyze_open_text:
        answers = [
            (_question_text(record.question), str(record.raw_value))
            for record in records
            if record.question.type == "open_text" and record.raw_value not in (None, "")
        ]
        open_text = analyze_open_text(
            answers,
            overall_score=analysis.overall_score,
            skill_results=analysis.skill_results,
            test_title=payload.test_title_en or payload.test_title_ar,
        )
        if open_text is not None:
            update_open_text_analysis(assignment_id, open_text.model_dump_json())

    logger.info(
        "assessment_submitted assignment_id=%s responses=%s skills=%s overall=%s category=%s gaps=%s",
        assignment_id,
        len(records),
        len(analysis.skill_results),
        analysis.overall_score,
        category.key,
        len(gaps),
    )
    return AssessmentResponse(
        assignment_id=assignment_id,
        user_id=payload.user_id,
        overall_score=analysis.overall_score,
        category=category,
        skill_results=analysis.skill_results,
        strengths=analysis.strengths,
        gaps=gaps,
        categorized_gaps=categorize_skill_gaps(gaps),
        weighted_totals=analysis.weighted_totals,
        breakdown=analysis.breakdown,
        open_text_analysis=open_text,
        exam_context=ExamContext(
            test_id=payload.test_id,
            test_title_ar=payload.test_title_ar,
            test_title_en=payload.test_title_en,
            analyzed_at=analyzed_at,
        ),
        analyzed_at=analyzed_at,
    )


def exam_context_for(record: AssessmentRecord) -> ExamContext:
    return ExamContext(
        test_id=record.test_id,
        test_title_ar=record.test_title_ar,
        test_title_en=record.test_title_en,
        analyzed_at=record.analyzed_at,
    )


def load_assessment(assignment_id: str) -> AssessmentResponse:
    record = get_assessment(assignment_id)
    if record is None:
        raise AssessmentNotFoundError(f"No analysis found for assignment '{assignment_id}'.")

    gaps = prioritize_gaps(record.skill_results.values(), load_catalog().skills)
    return AssessmentResponse(
        assignment_id=record.assignment_id,
        user_id=record.user_id,
        overall_score=record.overall_score,
        category=get_category(record.category),
        skill_results=record.skill_results,
        strengths=record.strengths,
        gaps=gaps,
        categorized_gaps=categorize_skill_gaps(gaps),
        weighted_totals=record.weighted_totals,
        open_text_analysis=record.open_text_analysis,
        exam_context=exam_context_for(record),
        analyzed_at=record.analyzed_at,
    )


def skill_profile_for_user(user_id: str) -> SkillProfileResponse:
    """Current per-skill level and trend plus the user's analysis history."""
    history = list_assessments_for_user(user_id)
    if not history:
        raise AssessmentNotFoundError(f"No analysis found for user '{user_id}'.")
    return SkillProfileResponse(
        user_id=user_id,
        skills=get_skill_profiles(user_id),
        history=[
            AssessmentSummary(
                assignment_id=record.assignment_id,
                test_id=record.test_id,
                test_title_ar=record.test_title_ar,
                test_title_en=record.test_title_en,
                overall_score=record.overall_score,
                category=record.category,
                analyzed_at=record.analyzed_at,
            )
            for record in history
        ],
    )
