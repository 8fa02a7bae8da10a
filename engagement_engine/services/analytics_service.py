from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

from engagement_engine.core.config import settings
from engagement_engine.core.errors import NotFoundError, ValidationError
from engagement_engine.schemas.analytics import (
    AnalyticsSummary,
    ChannelAnalyticsResponse,
    ChannelDetailedAnalytics,
    DashboardResponse,
    DetailedAnalyticsResponse,
    DetailedSummary,
    EngagementPoint,
    SubscriberPoint,
    TopChannel,
)
from engagement_engine.schemas.channel import ChannelSchema, PostMetricSchema, SnapshotSchema
from engagement_engine.storage.gateway import StorageGateway

TOP_CHANNELS_LIMIT = 5
TOP_POSTS_LIMIT = 10
DETAILED_SNAPSHOT_LIMIT = 30


# ---------------------------------------------------------
# PURE AGGREGATION
# ---------------------------------------------------------

def _growth_percentage(growth: int, base: int) -> float:
    # No base to compare against: report 0 rather than divide by zero
    if base == 0:
        return 0.0
    return round(growth / base * 100, 2)


def summarize(snapshots: Sequence[SnapshotSchema]) -> AnalyticsSummary:
    """
    Reduce an ordered (oldest first) run of daily snapshots to a summary.
    An empty run gives an all-zero summary.
    """
    if not snapshots:
        return AnalyticsSummary()

    first, last = snapshots[0], snapshots[-1]
    growth = last.subscriber_count - first.subscriber_count

    return AnalyticsSummary(
        total_subscribers=last.subscriber_count,
        subscriber_growth=growth,
        subscriber_growth_percentage=_growth_percentage(growth, first.subscriber_count),
        avg_engagement_rate=round(sum(s.engagement_rate for s in snapshots) / len(snapshots), 2),
        total_posts=sum(s.posts_count for s in snapshots),
        total_views=sum(s.total_views for s in snapshots),
        total_revenue=round(sum(s.estimated_ad_revenue for s in snapshots), 2),
    )


def build_dashboard(
    channels: Sequence[ChannelSchema],
    window_snapshots: Sequence[SnapshotSchema],
    top_posts: Sequence[PostMetricSchema],
) -> DashboardResponse:
    """Roll up a set of channels. Snapshots and posts must already be limited to the window."""
    if not channels:
        return DashboardResponse()

    growth_by_channel = {}
    for s in window_snapshots:
        growth_by_channel[s.channel_id] = growth_by_channel.get(s.channel_id, 0) + s.new_subscribers

    top_channels = sorted(channels, key=lambda c: c.subscriber_count, reverse=True)[:TOP_CHANNELS_LIMIT]

    avg_engagement = 0.0
    if window_snapshots:
        avg_engagement = sum(s.engagement_rate for s in window_snapshots) / len(window_snapshots)

    return DashboardResponse(
        total_channels=len(channels),
        total_subscribers=sum(c.subscriber_count for c in channels),
        subscriber_growth_30d=sum(s.new_subscribers for s in window_snapshots),
        total_posts_30d=sum(s.posts_count for s in window_snapshots),
        avg_engagement_rate=round(avg_engagement, 2),
        estimated_monthly_revenue=round(sum(s.estimated_ad_revenue for s in window_snapshots), 2),
        top_channels=[
            TopChannel(
                id=c.id,
                name=c.name,
                subscribers=c.subscriber_count,
                growth_30d=growth_by_channel.get(c.id, 0),
            )
            for c in top_channels
        ],
        recent_posts=sorted(top_posts, key=lambda p: p.views, reverse=True)[:TOP_POSTS_LIMIT],
    )


def build_channel_detail(
    channel: ChannelSchema,
    recent_snapshots: Sequence[SnapshotSchema],
    top_posts: Sequence[PostMetricSchema],
) -> ChannelDetailedAnalytics:
    """
    Chart series and a summary for one channel. ``recent_snapshots`` is newest
    first and the series keep that order. Growth is newest minus oldest.
    """
    subscriber_growth = 0
    if len(recent_snapshots) > 1:
        subscriber_growth = recent_snapshots[0].subscriber_count - recent_snapshots[-1].subscriber_count

    avg_engagement = 0.0
    if top_posts:
        avg_engagement = sum(p.engagement_rate for p in top_posts) / len(top_posts)

    return ChannelDetailedAnalytics(
        channel_id=channel.id,
        channel_name=channel.name,
        subscriber_growth=[SubscriberPoint(date=s.date, count=s.subscriber_count) for s in recent_snapshots],
        engagement_trend=[EngagementPoint(date=s.date, rate=s.engagement_rate) for s in recent_snapshots],
        top_posts=list(top_posts),
        summary=DetailedSummary(
            total_views=sum(p.views for p in top_posts),
            total_reactions=sum(p.reactions for p in top_posts),
            avg_engagement=avg_engagement,
            subscriber_growth=subscriber_growth,
        ),
    )


# ---------------------------------------------------------
# SERVICE
# ---------------------------------------------------------

class AnalyticsService:
    def __init__(self, gateway: StorageGateway, window_days: Optional[int] = None):
        self.gateway = gateway
        self.window_days = window_days or settings.DASHBOARD_WINDOW_DAYS

    def _require_channel(self, channel_id: str) -> ChannelSchema:
        channel = self.gateway.get_channel(channel_id)
        if not channel:
            raise NotFoundError(f"Channel {channel_id} not found")
        return channel

    def channel_analytics(self, channel_id: str, start: date, end: date) -> ChannelAnalyticsResponse:
        if start > end:
            raise ValidationError("start must not be after end")
        self._require_channel(channel_id)

        snapshots = self.gateway.fetch_daily_snapshots(channel_id, start, end)
        return ChannelAnalyticsResponse(data=snapshots, summary=summarize(snapshots))

    def channel_posts(self, channel_id: str, limit: int = 20) -> List[PostMetricSchema]:
        self._require_channel(channel_id)
        return self.gateway.fetch_latest_posts(channel_id, limit)

    def dashboard(self, user_id: str, now: Optional[datetime] = None) -> DashboardResponse:
        channels = self.gateway.list_channels_for_user(user_id)
        if not channels:
            return DashboardResponse()

        today = (now or datetime.utcnow()).date()
        window_start = today - timedelta(days=self.window_days)
        channel_ids = [c.id for c in channels]

        snapshots = self.gateway.fetch_snapshots_for_channels(channel_ids, window_start)
        posts = self.gateway.fetch_top_posts(
            channel_ids,
            datetime.combine(window_start, datetime.min.time()),
            TOP_POSTS_LIMIT,
        )
        return build_dashboard(channels, snapshots, posts)

    def detailed(self, user_id: str) -> DetailedAnalyticsResponse:
        """Per-channel series for every channel the user owns. No time window."""
        analytics = []
        for channel in self.gateway.list_channels_for_user(user_id):
            analytics.append(build_channel_detail(
                channel,
                self.gateway.fetch_recent_snapshots(channel.id, DETAILED_SNAPSHOT_LIMIT),
                self.gateway.fetch_top_posts([channel.id], None, TOP_POSTS_LIMIT),
            ))
        return DetailedAnalyticsResponse(analytics=analytics)
