from sqlalchemy import Column, String, Integer, BigInteger, Float, Boolean, TIMESTAMP, JSON, ForeignKey
from datetime import datetime
from engagement_engine.core.database import Base

class PostMetric(Base):
    __tablename__ = "post_metrics"

    # Platform-unique post id
    post_id = Column(String, primary_key=True, index=True)

    channel_id = Column(String, ForeignKey("channels.id"), index=True, nullable=False)
    post_date = Column(TIMESTAMP, index=True, nullable=False)

    content_type = Column(String, default="text")  # text, photo, video, document, audio
    post_length = Column(Integer, default=0)
    has_media = Column(Boolean, default=False)

    views = Column(BigInteger, default=0)
    reactions = Column(BigInteger, default=0)
    shares = Column(BigInteger, default=0)
    forwards = Column(BigInteger, default=0)

    engagement_rate = Column(Float, default=0.0)

    # JSON list instead of ARRAY so the schema also runs on SQLite
    hashtags = Column(JSON, default=list)

    created_at = Column(TIMESTAMP, default=datetime.utcnow)
