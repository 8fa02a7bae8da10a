from sqlalchemy import Column, String, Text, Boolean, BigInteger, TIMESTAMP
from datetime import datetime
from engagement_engine.core.database import Base

class Channel(Base):
    __tablename__ = "channels"

    id = Column(String, primary_key=True, index=True)

    # Owner. Identity itself lives outside this service.
    user_id = Column(String, index=True, nullable=False)

    name = Column(Text, nullable=False)
    subscriber_count = Column(BigInteger, default=0)

    is_active = Column(Boolean, default=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow)
