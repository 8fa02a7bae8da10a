from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import date, datetime, timezone
from enum import Enum


class ContentType(str, Enum):
    TEXT = "text"
    PHOTO = "photo"
    VIDEO = "video"
    DOCUMENT = "document"
    AUDIO = "audio"


# --- CHANNEL ---
class ChannelSchema(BaseModel):
    id: str
    user_id: str
    name: str
    subscriber_count: int = 0
    is_active: bool = True

    class Config:
        from_attributes = True


# --- DAILY SNAPSHOT ---
class SnapshotSchema(BaseModel):
    channel_id: str
    date: date
    subscriber_count: int = 0
    new_subscribers: int = 0
    posts_count: int = 0
    total_views: int = 0
    total_reactions: int = 0
    engagement_rate: float = 0.0  # percentage
    estimated_ad_revenue: float = 0.0

    class Config:
        from_attributes = True


# --- POST METRIC ---
class PostMetricSchema(BaseModel):
    channel_id: str
    post_id: str
    post_date: datetime
    content_type: ContentType = ContentType.TEXT
    post_length: int = Field(default=0, ge=0)
    has_media: bool = False
    views: int = 0
    reactions: int = 0
    shares: int = 0
    forwards: int = 0
    engagement_rate: float = 0.0
    hashtags: List[str] = []

    @field_validator("post_date")
    @classmethod
    def to_naive_utc(cls, v: datetime) -> datetime:
        # Epoch seconds and "Z" strings parse as aware; storage and queries use naive UTC
        if v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    class Config:
        from_attributes = True


class ChannelPostsResponse(BaseModel):
    channel_id: str
    posts: List[PostMetricSchema]
    limit: Optional[int] = None
