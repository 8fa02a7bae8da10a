import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import desc, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from engagement_engine.core.errors import NotFoundError, StorageError
from engagement_engine.models import Channel, ChannelSnapshot, PostMetric, Recommendation
from engagement_engine.schemas.channel import ChannelSchema, SnapshotSchema, PostMetricSchema
from engagement_engine.schemas.recommendation import RecommendationCandidate, RecommendationSchema
from engagement_engine.storage.gateway import StorageGateway

logger = logging.getLogger(__name__)


def _post(row: PostMetric) -> PostMetricSchema:
    return PostMetricSchema(
        channel_id=row.channel_id,
        post_id=row.post_id,
        post_date=row.post_date,
        content_type=row.content_type,
        post_length=row.post_length or 0,
        has_media=bool(row.has_media),
        views=row.views or 0,
        reactions=row.reactions or 0,
        shares=row.shares or 0,
        forwards=row.forwards or 0,
        engagement_rate=row.engagement_rate or 0.0,
        hashtags=list(row.hashtags or []),
    )


class SqlStorageGateway(StorageGateway):
    """
    SQLAlchemy-backed gateway. Each call runs in its own session; the
    recommendation replace step runs in a single transaction.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    @contextmanager
    def _session(self):
        db: Session = self.session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Storage error: {e}")
            raise StorageError(str(e)) from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # ---------------------------------------------------------
    # CHANNELS
    # ---------------------------------------------------------

    def get_channel(self, channel_id: str) -> Optional[ChannelSchema]:
        with self._session() as db:
            row = db.query(Channel).filter(Channel.id == channel_id).first()
            return ChannelSchema.model_validate(row) if row else None

    def list_channels_for_user(self, user_id: str) -> List[ChannelSchema]:
        with self._session() as db:
            rows = db.query(Channel).filter(Channel.user_id == user_id).all()
            return [ChannelSchema.model_validate(r) for r in rows]

    def list_active_channels(self) -> List[ChannelSchema]:
        with self._session() as db:
            rows = db.query(Channel).filter(Channel.is_active == True).all()  # noqa: E712
            return [ChannelSchema.model_validate(r) for r in rows]

    # ---------------------------------------------------------
    # METRICS (read side)
    # ---------------------------------------------------------

    def fetch_post_metrics(self, channel_id: str, since: datetime) -> List[PostMetricSchema]:
        with self._session() as db:
            rows = db.query(PostMetric)\
                .filter(PostMetric.channel_id == channel_id, PostMetric.post_date >= since)\
                .order_by(desc(PostMetric.post_date))\
                .all()
            return [_post(r) for r in rows]

    def fetch_daily_snapshots(
        self, channel_id: str, since: date, until: Optional[date] = None
    ) -> List[SnapshotSchema]:
        with self._session() as db:
            query = db.query(ChannelSnapshot)\
                .filter(ChannelSnapshot.channel_id == channel_id, ChannelSnapshot.date >= since)
            if until is not None:
                query = query.filter(ChannelSnapshot.date <= until)
            rows = query.order_by(ChannelSnapshot.date.asc()).all()
            return [SnapshotSchema.model_validate(r) for r in rows]

    def fetch_recent_snapshots(self, channel_id: str, limit: int) -> List[SnapshotSchema]:
        with self._session() as db:
            rows = db.query(ChannelSnapshot)\
                .filter(ChannelSnapshot.channel_id == channel_id)\
                .order_by(desc(ChannelSnapshot.date))\
                .limit(limit)\
                .all()
            return [SnapshotSchema.model_validate(r) for r in rows]

    def fetch_snapshots_for_channels(self, channel_ids: Sequence[str], since: date) -> List[SnapshotSchema]:
        if not channel_ids:
            return []
        with self._session() as db:
            rows = db.query(ChannelSnapshot)\
                .filter(ChannelSnapshot.channel_id.in_(list(channel_ids)), ChannelSnapshot.date >= since)\
                .order_by(ChannelSnapshot.channel_id, ChannelSnapshot.date.asc())\
                .all()
            return [SnapshotSchema.model_validate(r) for r in rows]

    def fetch_top_posts(
        self, channel_ids: Sequence[str], since: Optional[datetime], limit: int
    ) -> List[PostMetricSchema]:
        if not channel_ids:
            return []
        with self._session() as db:
            query = db.query(PostMetric).filter(PostMetric.channel_id.in_(list(channel_ids)))
            if since is not None:
                query = query.filter(PostMetric.post_date >= since)
            rows = query.order_by(desc(PostMetric.views)).limit(limit).all()
            return [_post(r) for r in rows]

    def fetch_latest_posts(self, channel_id: str, limit: int) -> List[PostMetricSchema]:
        with self._session() as db:
            rows = db.query(PostMetric)\
                .filter(PostMetric.channel_id == channel_id)\
                .order_by(desc(PostMetric.post_date))\
                .limit(limit)\
                .all()
            return [_post(r) for r in rows]

    # ---------------------------------------------------------
    # METRICS (ingestion side)
    # ---------------------------------------------------------

    def upsert_channel(self, channel: ChannelSchema) -> ChannelSchema:
        with self._session() as db:
            row = db.query(Channel).filter(Channel.id == channel.id).first()
            if not row:
                row = Channel(id=channel.id)
                db.add(row)

            row.user_id = channel.user_id
            row.name = channel.name
            row.subscriber_count = channel.subscriber_count
            row.is_active = channel.is_active
            row.updated_at = datetime.utcnow()
        return channel

    def upsert_snapshot(self, snapshot: SnapshotSchema) -> SnapshotSchema:
        with self._session() as db:
            row = db.query(ChannelSnapshot).filter(
                ChannelSnapshot.channel_id == snapshot.channel_id,
                ChannelSnapshot.date == snapshot.date
            ).first()

            if not row:
                row = ChannelSnapshot(channel_id=snapshot.channel_id, date=snapshot.date)
                db.add(row)

            row.subscriber_count = snapshot.subscriber_count
            row.new_subscribers = snapshot.new_subscribers
            row.posts_count = snapshot.posts_count
            row.total_views = snapshot.total_views
            row.total_reactions = snapshot.total_reactions
            row.engagement_rate = snapshot.engagement_rate
            row.estimated_ad_revenue = snapshot.estimated_ad_revenue
            row.updated_at = datetime.utcnow()
        return snapshot

    def upsert_post_metric(self, post: PostMetricSchema) -> PostMetricSchema:
        with self._session() as db:
            row = db.query(PostMetric).filter(PostMetric.post_id == post.post_id).first()
            if not row:
                row = PostMetric(post_id=post.post_id)
                db.add(row)

            row.channel_id = post.channel_id
            row.post_date = post.post_date
            row.content_type = post.content_type.value
            row.post_length = post.post_length
            row.has_media = post.has_media
            row.views = post.views
            row.reactions = post.reactions
            row.shares = post.shares
            row.forwards = post.forwards
            row.engagement_rate = post.engagement_rate
            row.hashtags = list(post.hashtags)
        return post

    # ---------------------------------------------------------
    # RECOMMENDATIONS
    # ---------------------------------------------------------

    def _deactivate(self, db: Session, channel_id: str) -> int:
        result = db.execute(
            update(Recommendation)
            .where(Recommendation.channel_id == channel_id, Recommendation.is_active == True)  # noqa: E712
            .values(is_active=False)
        )
        return result.rowcount or 0

    def _insert(self, db: Session, channel_id: str, candidates) -> List[Recommendation]:
        now = datetime.utcnow()
        rows = [
            Recommendation(
                channel_id=channel_id,
                recommendation_type=c.recommendation_type.value,
                title=c.title,
                description=c.description,
                confidence_score=c.confidence_score,
                expected_impact_percentage=c.expected_impact_percentage,
                is_active=True,
                is_dismissed=False,
                created_at=now,
            )
            for c in candidates
        ]
        db.add_all(rows)
        db.flush()
        return rows

    def deactivate_active_recommendations(self, channel_id: str) -> int:
        with self._session() as db:
            return self._deactivate(db, channel_id)

    def insert_recommendations(
        self, channel_id: str, candidates: Iterable[RecommendationCandidate]
    ) -> List[RecommendationSchema]:
        with self._session() as db:
            rows = self._insert(db, channel_id, list(candidates))
            return [RecommendationSchema.model_validate(r) for r in rows]

    def replace_active_recommendations(
        self, channel_id: str, candidates: Iterable[RecommendationCandidate]
    ) -> List[RecommendationSchema]:
        candidates = list(candidates)
        with self._session() as db:
            # Row lock on the channel serializes writers across processes (no-op on SQLite)
            db.query(Channel).filter(Channel.id == channel_id).with_for_update().first()

            deactivated = self._deactivate(db, channel_id)
            rows = self._insert(db, channel_id, candidates)
            logger.debug(f"Channel {channel_id}: {deactivated} deactivated, {len(rows)} inserted")
            return [RecommendationSchema.model_validate(r) for r in rows]

    def fetch_all_recommendations(self, channel_id: str) -> List[RecommendationSchema]:
        with self._session() as db:
            rows = db.query(Recommendation)\
                .filter(Recommendation.channel_id == channel_id)\
                .order_by(Recommendation.id.asc())\
                .all()
            return [RecommendationSchema.model_validate(r) for r in rows]

    def fetch_active_recommendations(self, channel_ids: Sequence[str]) -> List[RecommendationSchema]:
        if not channel_ids:
            return []
        with self._session() as db:
            rows = db.query(Recommendation)\
                .filter(
                    Recommendation.channel_id.in_(list(channel_ids)),
                    Recommendation.is_active == True,  # noqa: E712
                    Recommendation.is_dismissed == False,  # noqa: E712
                )\
                .order_by(desc(Recommendation.expected_impact_percentage), Recommendation.id.asc())\
                .all()
            return [RecommendationSchema.model_validate(r) for r in rows]

    def set_dismissed(self, recommendation_id: int) -> RecommendationSchema:
        with self._session() as db:
            row = db.query(Recommendation).filter(Recommendation.id == recommendation_id).first()
            if not row:
                raise NotFoundError(f"Recommendation {recommendation_id} not found")
            row.is_dismissed = True
            db.flush()
            return RecommendationSchema.model_validate(row)

    # ---------------------------------------------------------
    # HEALTH
    # ---------------------------------------------------------

    def ping(self) -> None:
        with self._session() as db:
            db.execute(text("SELECT 1"))
