from datetime import date, datetime, timedelta, timezone

import pytest

from conftest import NOW, make_channel
from engagement_engine.schemas.channel import ContentType
from engagement_engine.services.analytics_service import AnalyticsService
from engagement_engine.services.recommendation_service import RecommendationService
from engagement_engine.workers.stats_writer import write_stats
from engagement_engine.workers.transformers import (
    detect_content_type,
    engagement_rate,
    estimated_ad_revenue,
    extract_hashtags,
    transform_post,
    transform_snapshot,
)


def test_extract_hashtags_unique_and_lowercased():
    assert extract_hashtags("New #Release today! #release #AI_news and #ai") == ["release", "ai_news", "ai"]
    assert extract_hashtags("") == []
    assert extract_hashtags(None) == []


def test_engagement_rate_zero_subscribers():
    assert engagement_rate(50, 0) == 0.0
    assert engagement_rate(25, 1000) == pytest.approx(2.5)


def test_content_type_priority():
    assert detect_content_type({"video": True, "photo": True}) == ContentType.VIDEO
    assert detect_content_type({"document": True}) == ContentType.DOCUMENT
    assert detect_content_type({}) == ContentType.TEXT


def test_transform_post():
    channel = make_channel(subscriber_count=2000)
    raw = {
        "id": 42,
        "date": datetime(2026, 9, 30, 18, 0),
        "text": "Launch day #product",
        "views": 900,
        "reactions": 30,
        "forwards": 10,
        "photo": True,
    }

    post = transform_post(raw, channel)

    assert post.post_id == "42"
    assert post.content_type == ContentType.PHOTO
    assert post.has_media is True
    assert post.post_length == len("Launch day #product")
    assert post.engagement_rate == pytest.approx(2.0)
    assert post.hashtags == ["product"]


def test_transform_snapshot_new_subscribers_delta():
    channel = make_channel(subscriber_count=1000)

    snap = transform_snapshot(
        {"subscriber_count": 1040, "posts_count": 3, "total_views": 20000, "total_reactions": 52},
        channel,
        date(2026, 10, 1),
    )

    assert snap.new_subscribers == 40
    assert snap.engagement_rate == pytest.approx(5.0)
    assert snap.estimated_ad_revenue == pytest.approx(estimated_ad_revenue(20000))
    assert snap.estimated_ad_revenue == pytest.approx(1.0)


def test_write_stats(gateway):
    channel = make_channel("ch-1", subscriber_count=500)
    gateway.upsert_channel(channel)
    raw_posts = [
        {"id": i, "date": datetime(2026, 9, 20 + i, 10, 0), "text": "hello #world", "views": 100,
         "reactions": 5, "forwards": 0}
        for i in range(3)
    ]

    result = write_stats(gateway, channel, {"subscriber_count": 550, "total_views": 1000}, raw_posts,
                         day=NOW.date())

    assert result["new_subscribers"] == 50
    assert result["posts"] == 3
    assert gateway.get_channel("ch-1").subscriber_count == 550
    assert len(gateway.fetch_post_metrics("ch-1", datetime(2026, 9, 1))) == 3
    assert len(gateway.fetch_daily_snapshots("ch-1", NOW.date())) == 1


@pytest.mark.parametrize("raw_date", [
    int(datetime(2026, 9, 30, 18, 0, tzinfo=timezone.utc).timestamp()),
    "2026-09-30T18:00:00Z",
    "2026-09-30T20:00:00+02:00",
    datetime(2026, 9, 30, 18, 0),
])
def test_transform_post_dates_become_naive_utc(raw_date):
    post = transform_post({"id": 1, "date": raw_date, "text": "hi"}, make_channel())

    assert post.post_date.tzinfo is None
    assert post.post_date == datetime(2026, 9, 30, 18, 0)


def test_epoch_and_zulu_dates_flow_through_generate_and_dashboard(gateway):
    channel = make_channel("ch-1", user_id="u1", subscriber_count=1000)
    gateway.upsert_channel(channel)

    now = datetime.utcnow().replace(microsecond=0)
    raw_posts = []
    for i in range(12):
        posted = now - timedelta(days=i + 1)
        if i % 2:
            raw_date = posted.strftime("%Y-%m-%dT%H:%M:%SZ")
        else:
            raw_date = int(posted.replace(tzinfo=timezone.utc).timestamp())
        raw_posts.append({"id": i, "date": raw_date, "text": "post", "views": 100, "reactions": 5})

    write_stats(gateway, channel, {"subscriber_count": 1000}, raw_posts, day=now.date())

    stored = gateway.fetch_post_metrics("ch-1", now - timedelta(days=30))
    assert len(stored) == 12
    assert all(p.post_date.tzinfo is None for p in stored)

    assert isinstance(RecommendationService(gateway).generate("ch-1"), list)
    assert len(AnalyticsService(gateway).dashboard("u1").recent_posts) == 10
