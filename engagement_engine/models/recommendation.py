from sqlalchemy import Column, String, Integer, Float, Text, Boolean, TIMESTAMP, ForeignKey
from datetime import datetime
from engagement_engine.core.database import Base

class Recommendation(Base):
    __tablename__ = "recommendations"

    id = Column(Integer, primary_key=True, index=True)

    channel_id = Column(String, ForeignKey("channels.id"), index=True, nullable=False)

    # posting_time, content_type, hashtag_strategy, posting_frequency,
    # engagement_pattern, growth_trend, content_length
    recommendation_type = Column(String, nullable=False)

    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)

    confidence_score = Column(Float, nullable=False)
    expected_impact_percentage = Column(Integer, nullable=False, index=True)

    # Superseded batches flip to False; rows are never deleted
    is_active = Column(Boolean, default=True, index=True)
    is_dismissed = Column(Boolean, default=False)

    created_at = Column(TIMESTAMP, default=datetime.utcnow)
