from pydantic import BaseModel
from datetime import date
from typing import List

from engagement_engine.schemas.channel import SnapshotSchema, PostMetricSchema


class AnalyticsSummary(BaseModel):
    total_subscribers: int = 0
    subscriber_growth: int = 0
    subscriber_growth_percentage: float = 0.0
    avg_engagement_rate: float = 0.0
    total_posts: int = 0
    total_views: int = 0
    total_revenue: float = 0.0


class ChannelAnalyticsResponse(BaseModel):
    data: List[SnapshotSchema]
    summary: AnalyticsSummary


class TopChannel(BaseModel):
    id: str
    name: str
    subscribers: int
    growth_30d: int


class DashboardResponse(BaseModel):
    total_channels: int = 0
    total_subscribers: int = 0
    subscriber_growth_30d: int = 0
    total_posts_30d: int = 0
    avg_engagement_rate: float = 0.0
    estimated_monthly_revenue: float = 0.0
    top_channels: List[TopChannel] = []
    recent_posts: List[PostMetricSchema] = []


# --- DETAILED (per channel series for charts) ---
class SubscriberPoint(BaseModel):
    date: date
    count: int


class EngagementPoint(BaseModel):
    date: date
    rate: float


class DetailedSummary(BaseModel):
    total_views: int = 0
    total_reactions: int = 0
    avg_engagement: float = 0.0
    subscriber_growth: int = 0


class ChannelDetailedAnalytics(BaseModel):
    channel_id: str
    channel_name: str
    subscriber_growth: List[SubscriberPoint] = []
    engagement_trend: List[EngagementPoint] = []
    top_posts: List[PostMetricSchema] = []
    summary: DetailedSummary


class DetailedAnalyticsResponse(BaseModel):
    analytics: List[ChannelDetailedAnalytics] = []
