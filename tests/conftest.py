from datetime import date, datetime, timedelta

import pytest

from engagement_engine.core.database import init_db, make_engine, make_session_factory
from engagement_engine.schemas.channel import ChannelSchema, PostMetricSchema, SnapshotSchema
from engagement_engine.storage.memory_gateway import InMemoryStorageGateway
from engagement_engine.storage.sql_gateway import SqlStorageGateway

NOW = datetime(2026, 10, 1, 12, 0, 0)


# ---------------------------------------------------------
# BUILDERS
# ---------------------------------------------------------
_post_seq = {"n": 0}


def make_post(channel_id="ch-1", *, post_date=None, days_ago=1, hour=12, anchor=NOW, content_type="text",
              post_length=50, has_media=False, views=100, reactions=5, engagement_rate=1.0,
              hashtags=None, post_id=None) -> PostMetricSchema:
    _post_seq["n"] += 1
    if post_date is None:
        day = (anchor - timedelta(days=days_ago)).date()
        post_date = datetime(day.year, day.month, day.day, hour, 0, 0)
    return PostMetricSchema(
        channel_id=channel_id,
        post_id=post_id or f"{channel_id}-p{_post_seq['n']}",
        post_date=post_date,
        content_type=content_type,
        post_length=post_length,
        has_media=has_media,
        views=views,
        reactions=reactions,
        shares=0,
        forwards=0,
        engagement_rate=engagement_rate,
        hashtags=hashtags or [],
    )


def make_snapshot(channel_id="ch-1", *, day=None, days_ago=0, subscriber_count=1000, new_subscribers=0,
                  posts_count=1, total_views=100, total_reactions=10, engagement_rate=1.0,
                  estimated_ad_revenue=0.0) -> SnapshotSchema:
    return SnapshotSchema(
        channel_id=channel_id,
        date=day or (NOW.date() - timedelta(days=days_ago)),
        subscriber_count=subscriber_count,
        new_subscribers=new_subscribers,
        posts_count=posts_count,
        total_views=total_views,
        total_reactions=total_reactions,
        engagement_rate=engagement_rate,
        estimated_ad_revenue=estimated_ad_revenue,
    )


def make_channel(channel_id="ch-1", user_id="user-1", name=None, subscriber_count=1000, is_active=True):
    return ChannelSchema(
        id=channel_id,
        user_id=user_id,
        name=name or f"Channel {channel_id}",
        subscriber_count=subscriber_count,
        is_active=is_active,
    )


def posting_time_posts(channel_id="ch-1", anchor=NOW):
    """5 posts at 14:00 averaging 500 views, 5 posts each at 9, 10, 11 averaging 300."""
    posts = [make_post(channel_id, days_ago=i + 1, hour=14, views=500, anchor=anchor) for i in range(5)]
    for hour in (9, 10, 11):
        posts += [make_post(channel_id, days_ago=i + 1, hour=hour, views=300, anchor=anchor) for i in range(5)]
    return posts


# ---------------------------------------------------------
# FIXTURES
# ---------------------------------------------------------
@pytest.fixture
def memory_gateway():
    return InMemoryStorageGateway()


@pytest.fixture
def sql_gateway():
    engine = make_engine("sqlite:///:memory:")
    init_db(engine)
    yield SqlStorageGateway(make_session_factory(engine))
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def gateway(request):
    return request.getfixturevalue(f"{request.param}_gateway")


@pytest.fixture
def seeded(gateway):
    """A channel with enough history for a posting_time recommendation."""
    gateway.upsert_channel(make_channel("ch-1", user_id="user-1", name="Tech Daily"))
    for post in posting_time_posts("ch-1"):
        gateway.upsert_post_metric(post)
    return gateway
