from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from enum import Enum


class RecommendationType(str, Enum):
    POSTING_TIME = "posting_time"
    CONTENT_TYPE = "content_type"
    HASHTAG_STRATEGY = "hashtag_strategy"
    POSTING_FREQUENCY = "posting_frequency"
    ENGAGEMENT_PATTERN = "engagement_pattern"
    GROWTH_TREND = "growth_trend"
    CONTENT_LENGTH = "content_length"


# --- DETECTOR OUTPUT ---
class RecommendationCandidate(BaseModel):
    recommendation_type: RecommendationType
    title: str
    description: str
    confidence_score: float = Field(ge=0.0, le=1.0)
    expected_impact_percentage: int = Field(ge=0)
    is_active: bool = True

    class Config:
        frozen = True


# --- PERSISTED ---
class RecommendationSchema(BaseModel):
    id: int
    channel_id: str
    recommendation_type: RecommendationType
    title: str
    description: str
    confidence_score: float = Field(ge=0.0, le=1.0)
    expected_impact_percentage: int = Field(ge=0)
    is_active: bool = True
    is_dismissed: bool = False
    created_at: datetime
    channel_name: Optional[str] = None  # filled by the per-user listing

    class Config:
        from_attributes = True


class RecommendationListResponse(BaseModel):
    recommendations: List[RecommendationSchema]


class GenerateResponse(BaseModel):
    channel_id: str
    generated: int
    recommendations: List[RecommendationCandidate]


# --- BATCH TRIGGER ---
class BatchRunResult(BaseModel):
    channels_processed: int = 0
    channels_failed: int = 0
    recommendations_generated: int = 0
    duration_ms: int = 0
