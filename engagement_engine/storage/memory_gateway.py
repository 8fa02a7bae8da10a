import itertools
import threading
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from engagement_engine.core.errors import NotFoundError
from engagement_engine.schemas.channel import ChannelSchema, SnapshotSchema, PostMetricSchema
from engagement_engine.schemas.recommendation import RecommendationCandidate, RecommendationSchema
from engagement_engine.storage.gateway import StorageGateway


def _by_impact(recs: List[RecommendationSchema]) -> List[RecommendationSchema]:
    # Stable on id so equal impacts keep insertion order
    return sorted(recs, key=lambda r: (-r.expected_impact_percentage, r.id))


class InMemoryStorageGateway(StorageGateway):
    """
    Process-local gateway used for tests and demo deployments.

    One re-entrant lock guards every collection, so the replace step is a
    single mutation as seen by any reader thread.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._channels: Dict[str, ChannelSchema] = {}
        self._snapshots: Dict[Tuple[str, date], SnapshotSchema] = {}
        self._posts: Dict[str, PostMetricSchema] = {}
        self._recommendations: Dict[int, RecommendationSchema] = {}
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------
    # CHANNELS
    # ------------------------------------------------------------------

    def get_channel(self, channel_id: str) -> Optional[ChannelSchema]:
        with self._lock:
            return self._channels.get(channel_id)

    def list_channels_for_user(self, user_id: str) -> List[ChannelSchema]:
        with self._lock:
            return [c for c in self._channels.values() if c.user_id == user_id]

    def list_active_channels(self) -> List[ChannelSchema]:
        with self._lock:
            return [c for c in self._channels.values() if c.is_active]

    # ------------------------------------------------------------------
    # METRICS
    # ------------------------------------------------------------------

    def fetch_post_metrics(self, channel_id: str, since: datetime) -> List[PostMetricSchema]:
        with self._lock:
            rows = [
                p for p in self._posts.values()
                if p.channel_id == channel_id and p.post_date >= since
            ]
        return sorted(rows, key=lambda p: p.post_date, reverse=True)

    def fetch_daily_snapshots(
        self, channel_id: str, since: date, until: Optional[date] = None
    ) -> List[SnapshotSchema]:
        with self._lock:
            rows = [
                s for (cid, day), s in self._snapshots.items()
                if cid == channel_id and day >= since and (until is None or day <= until)
            ]
        return sorted(rows, key=lambda s: s.date)

    def fetch_recent_snapshots(self, channel_id: str, limit: int) -> List[SnapshotSchema]:
        with self._lock:
            rows = [s for s in self._snapshots.values() if s.channel_id == channel_id]
        return sorted(rows, key=lambda s: s.date, reverse=True)[:limit]

    def fetch_snapshots_for_channels(self, channel_ids: Sequence[str], since: date) -> List[SnapshotSchema]:
        wanted = set(channel_ids)
        with self._lock:
            rows = [s for s in self._snapshots.values() if s.channel_id in wanted and s.date >= since]
        return sorted(rows, key=lambda s: (s.channel_id, s.date))

    def fetch_top_posts(
        self, channel_ids: Sequence[str], since: Optional[datetime], limit: int
    ) -> List[PostMetricSchema]:
        wanted = set(channel_ids)
        with self._lock:
            rows = [
                p for p in self._posts.values()
                if p.channel_id in wanted and (since is None or p.post_date >= since)
            ]
        return sorted(rows, key=lambda p: p.views, reverse=True)[:limit]

    def fetch_latest_posts(self, channel_id: str, limit: int) -> List[PostMetricSchema]:
        with self._lock:
            rows = [p for p in self._posts.values() if p.channel_id == channel_id]
        return sorted(rows, key=lambda p: p.post_date, reverse=True)[:limit]

    def upsert_channel(self, channel: ChannelSchema) -> ChannelSchema:
        with self._lock:
            self._channels[channel.id] = channel
        return channel

    def upsert_snapshot(self, snapshot: SnapshotSchema) -> SnapshotSchema:
        with self._lock:
            self._snapshots[(snapshot.channel_id, snapshot.date)] = snapshot
        return snapshot

    def upsert_post_metric(self, post: PostMetricSchema) -> PostMetricSchema:
        with self._lock:
            self._posts[post.post_id] = post
        return post

    # ------------------------------------------------------------------
    # RECOMMENDATIONS
    # ------------------------------------------------------------------

    def deactivate_active_recommendations(self, channel_id: str) -> int:
        count = 0
        with self._lock:
            for rec_id, rec in list(self._recommendations.items()):
                if rec.channel_id == channel_id and rec.is_active:
                    self._recommendations[rec_id] = rec.model_copy(update={"is_active": False})
                    count += 1
        return count

    def insert_recommendations(
        self, channel_id: str, candidates: Iterable[RecommendationCandidate]
    ) -> List[RecommendationSchema]:
        now = datetime.utcnow()
        stored = []
        with self._lock:
            for candidate in candidates:
                rec = RecommendationSchema(
                    id=next(self._ids),
                    channel_id=channel_id,
                    recommendation_type=candidate.recommendation_type,
                    title=candidate.title,
                    description=candidate.description,
                    confidence_score=candidate.confidence_score,
                    expected_impact_percentage=candidate.expected_impact_percentage,
                    is_active=True,
                    is_dismissed=False,
                    created_at=now,
                )
                self._recommendations[rec.id] = rec
                stored.append(rec)
        return stored

    def replace_active_recommendations(
        self, channel_id: str, candidates: Iterable[RecommendationCandidate]
    ) -> List[RecommendationSchema]:
        candidates = list(candidates)
        with self._lock:
            # Snapshot for rollback if the insert half fails
            before = dict(self._recommendations)
            try:
                self.deactivate_active_recommendations(channel_id)
                return self.insert_recommendations(channel_id, candidates)
            except Exception:
                self._recommendations = before
                raise

    def fetch_active_recommendations(self, channel_ids: Sequence[str]) -> List[RecommendationSchema]:
        wanted = set(channel_ids)
        with self._lock:
            rows = [
                r for r in self._recommendations.values()
                if r.channel_id in wanted and r.is_active and not r.is_dismissed
            ]
        return _by_impact(rows)

    def fetch_all_recommendations(self, channel_id: str) -> List[RecommendationSchema]:
        with self._lock:
            rows = [r for r in self._recommendations.values() if r.channel_id == channel_id]
        return sorted(rows, key=lambda r: r.id)

    def set_dismissed(self, recommendation_id: int) -> RecommendationSchema:
        with self._lock:
            rec = self._recommendations.get(recommendation_id)
            if rec is None:
                raise NotFoundError(f"Recommendation {recommendation_id} not found")
            if not rec.is_dismissed:
                rec = rec.model_copy(update={"is_dismissed": True})
                self._recommendations[recommendation_id] = rec
            return rec

    def ping(self) -> None:
        return None
