from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query

from engagement_engine.api.deps import get_analytics_service, to_http_error
from engagement_engine.core.errors import EngineError
from engagement_engine.schemas.analytics import ChannelAnalyticsResponse, DashboardResponse, DetailedAnalyticsResponse
from engagement_engine.schemas.channel import ChannelPostsResponse
from engagement_engine.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["Analytics"])


# ---------------------------------------------------------
# 1. DASHBOARD (all channels of a user)
# ---------------------------------------------------------
@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    user_id: str,
    service: AnalyticsService = Depends(get_analytics_service),
):
    try:
        return service.dashboard(user_id)
    except EngineError as e:
        raise to_http_error(e)


# ---------------------------------------------------------
# 2. DETAILED (chart series for every channel of a user)
# ---------------------------------------------------------
@router.get("/detailed", response_model=DetailedAnalyticsResponse)
def get_detailed_analytics(
    user_id: str,
    service: AnalyticsService = Depends(get_analytics_service),
):
    try:
        return service.detailed(user_id)
    except EngineError as e:
        raise to_http_error(e)


# ---------------------------------------------------------
# 3. CHANNEL ANALYTICS (date range + summary)
# ---------------------------------------------------------
@router.get("/channels/{channel_id}", response_model=ChannelAnalyticsResponse)
def get_channel_analytics(
    channel_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    service: AnalyticsService = Depends(get_analytics_service),
):
    """
    Daily snapshots in [start, end] plus their summary.
    Defaults to the dashboard window ending today.
    """
    end = end or date.today()
    start = start or end - timedelta(days=service.window_days)
    try:
        return service.channel_analytics(channel_id, start, end)
    except EngineError as e:
        raise to_http_error(e)


# ---------------------------------------------------------
# 4. CHANNEL POSTS
# ---------------------------------------------------------
@router.get("/channels/{channel_id}/posts", response_model=ChannelPostsResponse)
def get_channel_posts(
    channel_id: str,
    limit: int = Query(20, ge=1, le=200),
    service: AnalyticsService = Depends(get_analytics_service),
):
    try:
        posts = service.channel_posts(channel_id, limit)
    except EngineError as e:
        raise to_http_error(e)
    return {"channel_id": channel_id, "posts": posts, "limit": limit}
