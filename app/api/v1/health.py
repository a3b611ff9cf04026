from fastapi import APIRouter

from app.recommend.policies import resolve_policy

router = APIRouter()


@router.get("/health", summary="Health Check", description="Check the health status of the application.")
def health_check():
    return {"status": "healthy", "scoring_policy": resolve_policy()}
