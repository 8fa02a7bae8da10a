"""
Storage gateway contract.

Detectors and the lifecycle logic only ever talk to this interface. Concrete
adapters (SQL, in-memory) are picked once at startup by ``build_gateway``.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from engagement_engine.schemas.channel import ChannelSchema, SnapshotSchema, PostMetricSchema
from engagement_engine.schemas.recommendation import RecommendationCandidate, RecommendationSchema


class StorageGateway(ABC):

    # ------------------------------------------------------------------
    # CHANNELS
    # ------------------------------------------------------------------

    @abstractmethod
    def get_channel(self, channel_id: str) -> Optional[ChannelSchema]:
        ...

    @abstractmethod
    def list_channels_for_user(self, user_id: str) -> List[ChannelSchema]:
        ...

    @abstractmethod
    def list_active_channels(self) -> List[ChannelSchema]:
        ...

    # ------------------------------------------------------------------
    # METRICS (read side)
    # ------------------------------------------------------------------

    @abstractmethod
    def fetch_post_metrics(self, channel_id: str, since: datetime) -> List[PostMetricSchema]:
        """Posts published at or after ``since``, newest first."""

    @abstractmethod
    def fetch_daily_snapshots(
        self, channel_id: str, since: date, until: Optional[date] = None
    ) -> List[SnapshotSchema]:
        """Snapshots dated within [since, until], oldest first."""

    @abstractmethod
    def fetch_recent_snapshots(self, channel_id: str, limit: int) -> List[SnapshotSchema]:
        """The latest ``limit`` snapshots, newest first."""

    @abstractmethod
    def fetch_snapshots_for_channels(self, channel_ids: Sequence[str], since: date) -> List[SnapshotSchema]:
        ...

    @abstractmethod
    def fetch_top_posts(
        self, channel_ids: Sequence[str], since: Optional[datetime], limit: int
    ) -> List[PostMetricSchema]:
        """Highest-view posts across ``channel_ids``."""

    @abstractmethod
    def fetch_latest_posts(self, channel_id: str, limit: int) -> List[PostMetricSchema]:
        ...

    # ------------------------------------------------------------------
    # METRICS (ingestion side)
    # ------------------------------------------------------------------

    @abstractmethod
    def upsert_channel(self, channel: ChannelSchema) -> ChannelSchema:
        ...

    @abstractmethod
    def upsert_snapshot(self, snapshot: SnapshotSchema) -> SnapshotSchema:
        """Insert or replace the snapshot for (channel_id, date)."""

    @abstractmethod
    def upsert_post_metric(self, post: PostMetricSchema) -> PostMetricSchema:
        ...

    # ------------------------------------------------------------------
    # RECOMMENDATIONS
    # ------------------------------------------------------------------

    @abstractmethod
    def deactivate_active_recommendations(self, channel_id: str) -> int:
        ...

    @abstractmethod
    def insert_recommendations(
        self, channel_id: str, candidates: Iterable[RecommendationCandidate]
    ) -> List[RecommendationSchema]:
        ...

    @abstractmethod
    def replace_active_recommendations(
        self, channel_id: str, candidates: Iterable[RecommendationCandidate]
    ) -> List[RecommendationSchema]:
        """Deactivate the current batch and insert ``candidates`` as one transition.

        Readers must observe either the old active set or the new one, never
        an empty gap or a mix of both.
        """

    @abstractmethod
    def fetch_all_recommendations(self, channel_id: str) -> List[RecommendationSchema]:
        """Every row for a channel, superseded and dismissed ones included."""

    @abstractmethod
    def fetch_active_recommendations(self, channel_ids: Sequence[str]) -> List[RecommendationSchema]:
        """Active, non-dismissed rows sorted by expected impact, highest first."""

    @abstractmethod
    def set_dismissed(self, recommendation_id: int) -> RecommendationSchema:
        ...

    # ------------------------------------------------------------------
    # HEALTH
    # ------------------------------------------------------------------

    @abstractmethod
    def ping(self) -> None:
        """Raise StorageError if the backend cannot be reached."""
