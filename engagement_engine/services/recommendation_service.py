import logging
import threading
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from engagement_engine.core.config import settings
from engagement_engine.core.errors import NotFoundError, ValidationError
from engagement_engine.schemas.recommendation import RecommendationCandidate, RecommendationSchema
from engagement_engine.services.detectors import DETECTORS, Detector, run_detectors
from engagement_engine.storage.gateway import StorageGateway

logger = logging.getLogger(__name__)


class ChannelLocks:
    """Hands out one lock per channel id so runs for the same channel queue up."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def get(self, channel_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(channel_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[channel_id] = lock
            return lock


class RecommendationService:
    def __init__(
        self,
        gateway: StorageGateway,
        lookback_days: Optional[int] = None,
        min_posts: Optional[int] = None,
        detectors: Sequence[Detector] = DETECTORS,
        locks: Optional[ChannelLocks] = None,
    ):
        self.gateway = gateway
        self.lookback_days = lookback_days or settings.LOOKBACK_DAYS
        self.min_posts = min_posts or settings.MIN_POSTS_FOR_RECOMMENDATIONS
        self.detectors = tuple(detectors)
        self.locks = locks or ChannelLocks()

    # ---------------------------------------------------------
    # GENERATION
    # ---------------------------------------------------------

    def generate(self, channel_id: str, now: Optional[datetime] = None) -> List[RecommendationCandidate]:
        """
        Runs every detector for one channel and swaps in the new batch.

        Raises NotFoundError for an unknown channel and ValidationError when
        fewer than ``min_posts`` posts exist in the lookback window. In both
        cases the stored recommendations are left untouched.
        """
        if not self.gateway.get_channel(channel_id):
            raise NotFoundError(f"Channel {channel_id} not found")

        since = (now or datetime.utcnow()) - timedelta(days=self.lookback_days)

        with self.locks.get(channel_id):
            posts = self.gateway.fetch_post_metrics(channel_id, since)
            snapshots = self.gateway.fetch_daily_snapshots(channel_id, since.date())

            if len(posts) < self.min_posts:
                raise ValidationError(
                    f"Insufficient data. Need at least {self.min_posts} posts, found {len(posts)}."
                )

            # All candidates are collected before anything is written
            candidates = run_detectors(posts, snapshots, self.detectors)
            self.gateway.replace_active_recommendations(channel_id, candidates)

        logger.info(
            f"✅ Channel {channel_id}: {len(candidates)} recommendations "
            f"from {len(posts)} posts / {len(snapshots)} snapshots"
        )
        return candidates

    # ---------------------------------------------------------
    # READ API
    # ---------------------------------------------------------

    def list_active(self, channel_id: str) -> List[RecommendationSchema]:
        return self.gateway.fetch_active_recommendations([channel_id])

    def list_active_for_user(self, user_id: str) -> List[RecommendationSchema]:
        channels = self.gateway.list_channels_for_user(user_id)
        if not channels:
            return []

        names = {c.id: c.name for c in channels}
        recs = self.gateway.fetch_active_recommendations(list(names))
        return [r.model_copy(update={"channel_name": names.get(r.channel_id)}) for r in recs]

    def dismiss(self, recommendation_id: int) -> RecommendationSchema:
        rec = self.gateway.set_dismissed(recommendation_id)
        logger.info(f"Recommendation {recommendation_id} dismissed (channel {rec.channel_id})")
        return rec
