import logging
from datetime import date
from typing import Iterable, Optional

from engagement_engine.schemas.channel import ChannelSchema
from engagement_engine.storage.gateway import StorageGateway
from engagement_engine.workers.transformers import transform_post, transform_snapshot

logger = logging.getLogger(__name__)


def write_stats(
    gateway: StorageGateway,
    channel: ChannelSchema,
    stats: dict,
    raw_posts: Iterable[dict] = (),
    day: Optional[date] = None,
) -> dict:
    """
    Materializes one sync of a channel: the day's snapshot (upserted on
    channel+date), the channel's current subscriber count, and its posts.
    """
    snapshot = transform_snapshot(stats, channel, day)
    gateway.upsert_snapshot(snapshot)

    # Post engagement is measured against the fresh subscriber count
    refreshed = channel.model_copy(update={"subscriber_count": snapshot.subscriber_count})
    gateway.upsert_channel(refreshed)

    posts = 0
    for raw in raw_posts:
        gateway.upsert_post_metric(transform_post(raw, refreshed))
        posts += 1

    logger.info(f"📊 Channel {channel.id}: snapshot {snapshot.date} written, {posts} posts upserted")
    return {"snapshot_date": snapshot.date, "new_subscribers": snapshot.new_subscribers, "posts": posts}
