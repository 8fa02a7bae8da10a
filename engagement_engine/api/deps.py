from fastapi import HTTPException, Request

from engagement_engine.core.errors import EngineError, NotFoundError, StorageError, ValidationError
from engagement_engine.services.analytics_service import AnalyticsService
from engagement_engine.services.recommendation_service import RecommendationService
from engagement_engine.storage.gateway import StorageGateway


def get_gateway(request: Request) -> StorageGateway:
    return request.app.state.gateway


def get_recommendation_service(request: Request) -> RecommendationService:
    return request.app.state.recommendation_service


def get_analytics_service(request: Request) -> AnalyticsService:
    return request.app.state.analytics_service


def to_http_error(error: EngineError) -> HTTPException:
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, StorageError):
        return HTTPException(status_code=503, detail="Storage unavailable")
    return HTTPException(status_code=500, detail=str(error))
