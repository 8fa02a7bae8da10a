from sqlalchemy import Column, String, Integer, BigInteger, Float, Date, TIMESTAMP, ForeignKey, UniqueConstraint
from datetime import datetime
from engagement_engine.core.database import Base

class ChannelSnapshot(Base):
    __tablename__ = "channel_metrics_snapshots"
    __table_args__ = (
        UniqueConstraint("channel_id", "date", name="uq_snapshot_channel_date"),
    )

    id = Column(Integer, primary_key=True, index=True)

    channel_id = Column(String, ForeignKey("channels.id"), index=True, nullable=False)
    date = Column(Date, nullable=False)

    subscriber_count = Column(BigInteger, default=0)
    new_subscribers = Column(Integer, default=0)
    posts_count = Column(Integer, default=0)
    total_views = Column(BigInteger, default=0)
    total_reactions = Column(BigInteger, default=0)

    engagement_rate = Column(Float, default=0.0)  # percentage
    estimated_ad_revenue = Column(Float, default=0.0)

    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow)
