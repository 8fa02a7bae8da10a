import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from engagement_engine.api.deps import get_recommendation_service, to_http_error
from engagement_engine.core.config import settings
from engagement_engine.core.errors import EngineError
from engagement_engine.schemas.recommendation import BatchRunResult
from engagement_engine.services.recommendation_service import RecommendationService
from engagement_engine.workers.recommendation_batch import run_batch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["Scheduled Jobs"])


def verify_cron_secret(authorization: Optional[str] = Header(None)):
    if not settings.CRON_SECRET or authorization != f"Bearer {settings.CRON_SECRET}":
        raise HTTPException(status_code=401, detail="Unauthorized")


# ---------------------------------------------------------
# BATCH TRIGGER (external scheduler)
# ---------------------------------------------------------
@router.api_route(
    "/generate-recommendations",
    methods=["GET", "POST"],
    response_model=BatchRunResult,
    dependencies=[Depends(verify_cron_secret)],
)
def trigger_recommendation_batch(
    service: RecommendationService = Depends(get_recommendation_service),
):
    try:
        return run_batch(service)
    except EngineError as e:
        logger.error(f"❌ Recommendation batch aborted: {e}")
        raise to_http_error(e)
