import logging

from fastapi import APIRouter, Depends

from engagement_engine.api.deps import get_recommendation_service, to_http_error
from engagement_engine.core.errors import EngineError
from engagement_engine.schemas.recommendation import (
    GenerateResponse,
    RecommendationListResponse,
    RecommendationSchema,
)
from engagement_engine.services.recommendation_service import RecommendationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recommendations", tags=["Recommendations"])


# ---------------------------------------------------------
# 1. ALL ACTIVE RECOMMENDATIONS FOR A USER
# ---------------------------------------------------------
@router.get("", response_model=RecommendationListResponse)
def list_user_recommendations(
    user_id: str,
    service: RecommendationService = Depends(get_recommendation_service),
):
    try:
        return {"recommendations": service.list_active_for_user(user_id)}
    except EngineError as e:
        raise to_http_error(e)


# ---------------------------------------------------------
# 2. ACTIVE RECOMMENDATIONS FOR ONE CHANNEL
# ---------------------------------------------------------
@router.get("/channels/{channel_id}", response_model=RecommendationListResponse)
def list_channel_recommendations(
    channel_id: str,
    service: RecommendationService = Depends(get_recommendation_service),
):
    try:
        return {"recommendations": service.list_active(channel_id)}
    except EngineError as e:
        raise to_http_error(e)


# ---------------------------------------------------------
# 3. MANUAL GENERATION
# ---------------------------------------------------------
@router.post("/channels/{channel_id}/generate", response_model=GenerateResponse)
def generate_recommendations(
    channel_id: str,
    service: RecommendationService = Depends(get_recommendation_service),
):
    try:
        candidates = service.generate(channel_id)
    except EngineError as e:
        logger.info(f"Generate for {channel_id} rejected: {e}")
        raise to_http_error(e)

    return {"channel_id": channel_id, "generated": len(candidates), "recommendations": candidates}


# ---------------------------------------------------------
# 4. DISMISS
# ---------------------------------------------------------
@router.post("/{recommendation_id}/dismiss", response_model=RecommendationSchema)
def dismiss_recommendation(
    recommendation_id: int,
    service: RecommendationService = Depends(get_recommendation_service),
):
    try:
        return service.dismiss(recommendation_id)
    except EngineError as e:
        raise to_http_error(e)
