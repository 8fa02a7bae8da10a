import re
from datetime import date, datetime
from typing import List, Optional

from engagement_engine.schemas.channel import ChannelSchema, ContentType, PostMetricSchema, SnapshotSchema

HASHTAG_RE = re.compile(r"#(\w+)", re.UNICODE)

# Revenue estimate per 1,000 views
CPM_USD = 0.05


# ---------------------------------------------------------
# HELPERS
# ---------------------------------------------------------
def extract_hashtags(text: Optional[str]) -> List[str]:
    """Unique hashtags in order of first appearance, lower-cased, without '#'."""
    if not text:
        return []
    seen = []
    for tag in HASHTAG_RE.findall(text):
        tag = tag.lower()
        if tag not in seen:
            seen.append(tag)
    return seen


def detect_content_type(raw: dict) -> ContentType:
    if raw.get("video"):
        return ContentType.VIDEO
    if raw.get("photo"):
        return ContentType.PHOTO
    if raw.get("document"):
        return ContentType.DOCUMENT
    if raw.get("audio"):
        return ContentType.AUDIO
    return ContentType.TEXT


def has_media(raw: dict) -> bool:
    return any(raw.get(k) for k in ("video", "photo", "document", "audio"))


def engagement_rate(interactions: int, subscriber_count: int) -> float:
    if not subscriber_count:
        return 0.0
    return interactions / subscriber_count * 100


def estimated_ad_revenue(views: int) -> float:
    return (views or 0) / 1000 * CPM_USD


# ---------------------------------------------------------
# TRANSFORMS (raw platform payload -> engine records)
# ---------------------------------------------------------
def transform_post(raw: dict, channel: ChannelSchema) -> PostMetricSchema:
    text = raw.get("text") or ""
    reactions = raw.get("reactions") or 0
    forwards = raw.get("forwards") or 0

    return PostMetricSchema(
        channel_id=channel.id,
        post_id=str(raw["id"]),
        post_date=raw["date"],
        content_type=detect_content_type(raw),
        post_length=len(text),
        has_media=has_media(raw),
        views=raw.get("views") or 0,
        reactions=reactions,
        shares=forwards,
        forwards=forwards,
        engagement_rate=engagement_rate(reactions + forwards, channel.subscriber_count),
        hashtags=extract_hashtags(text),
    )


def transform_snapshot(stats: dict, channel: ChannelSchema, day: Optional[date] = None) -> SnapshotSchema:
    """
    One day's snapshot from a stats payload. New subscribers are the delta
    against the channel's last known subscriber count.
    """
    subscribers = stats.get("subscriber_count") or 0
    views = stats.get("total_views") or 0
    reactions = stats.get("total_reactions") or 0

    return SnapshotSchema(
        channel_id=channel.id,
        date=day or datetime.utcnow().date(),
        subscriber_count=subscribers,
        new_subscribers=subscribers - (channel.subscriber_count or 0),
        posts_count=stats.get("posts_count") or 0,
        total_views=views,
        total_reactions=reactions,
        engagement_rate=engagement_rate(reactions, subscribers),
        estimated_ad_revenue=estimated_ad_revenue(views),
    )
