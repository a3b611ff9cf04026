from fastapi import APIRouter, Query, Request

from app.core.rate_limit import rate_limit
from app.schemas.api import RecommendationPreviewRequest, StatusUpdateRequest, StatusUpdateResponse
from app.schemas.recommendation import RecommendationSections, ScoringPolicyName
from app.services.recommendation_service import (
    preview_recommendations,
    recommendations_for_user,
    update_recommendation_status,
)

router = APIRouter()


@router.post("/recommendations/preview", response_model=RecommendationSections)
@rate_limit()
def preview(request: Request, payload: RecommendationPreviewRequest):
    _ = request
    return preview_recommendations(payload)


@router.get("/users/{user_id}/recommendations", response_model=RecommendationSections)
@rate_limit()
def user_recommendations(
    request: Request,
    user_id: str,
    policy: ScoringPolicyName | None = None,
    interests: list[str] = Query(default=[]),
    career_domains: list[str] = Query(default=[]),
    limit: int | None = Query(default=None, ge=1, le=100),
):
    _ = request
    return recommendations_for_user(
        user_id,
        policy=policy,
        interests=interests,
        career_domains=career_domains,
        limit=limit,
    )


@router.patch("/users/{user_id}/recommendations/{course_id}/status", response_model=StatusUpdateResponse)
def update_status(user_id: str, course_id: str, payload: StatusUpdateRequest):
    return update_recommendation_status(user_id, course_id, payload.status)
