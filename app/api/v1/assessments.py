from fastapi import APIRouter, Request

from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.schemas.api import AssessmentResponse, SkillProfileResponse, SubmitAssessmentRequest
from app.services.assessment_service import load_assessment, skill_profile_for_user, submit_assessment

router = APIRouter()


@router.post("/assessments/{assignment_id}/submit", response_model=AssessmentResponse)
@rate_limit(settings.submit_rate_limit)
def submit(request: Request, assignment_id: str, payload: SubmitAssessmentRequest):
    """Score, aggregate and persist one assignment's responses."""
    _ = request
    return submit_assessment(assignment_id, payload)


@router.get("/assessments/{assignment_id}", response_model=AssessmentResponse)
def get_assessment(assignment_id: str):
    return load_assessment(assignment_id)


@router.get("/users/{user_id}/skill-profile", response_model=SkillProfileResponse)
def get_skill_profile(user_id: str):
    return skill_profile_for_user(user_id)
