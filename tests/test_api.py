from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from conftest import NOW, make_channel, make_post, make_snapshot, posting_time_posts
from engagement_engine.core.config import settings
from engagement_engine.main import create_app
from engagement_engine.schemas.recommendation import RecommendationCandidate, RecommendationType


@pytest.fixture
def client(memory_gateway):
    app = create_app(gateway=memory_gateway, enable_scheduler=False)
    return TestClient(app)


@pytest.fixture
def channel(memory_gateway):
    memory_gateway.upsert_channel(make_channel("ch-1", user_id="u1", name="Tech Daily"))
    for post in posting_time_posts("ch-1", anchor=datetime.utcnow()):
        memory_gateway.upsert_post_metric(post)
    return memory_gateway


def test_root(client):
    assert client.get("/").json() == {"status": "running"}


def test_generate_then_list(client, channel):
    resp = client.post("/recommendations/channels/ch-1/generate")

    assert resp.status_code == 200
    body = resp.json()
    assert body["generated"] == 1
    assert body["recommendations"][0]["recommendation_type"] == "posting_time"
    assert body["recommendations"][0]["expected_impact_percentage"] == 66

    listed = client.get("/recommendations/channels/ch-1").json()["recommendations"]
    assert len(listed) == 1

    mine = client.get("/recommendations", params={"user_id": "u1"}).json()["recommendations"]
    assert mine[0]["channel_name"] == "Tech Daily"


def test_generate_with_thin_history_is_rejected(client, memory_gateway):
    memory_gateway.upsert_channel(make_channel("ch-thin"))
    memory_gateway.upsert_post_metric(make_post("ch-thin", post_date=datetime.utcnow()))

    resp = client.post("/recommendations/channels/ch-thin/generate")

    assert resp.status_code == 400
    assert "at least 10 posts" in resp.json()["detail"]


def test_generate_unknown_channel(client):
    assert client.post("/recommendations/channels/nope/generate").status_code == 404


def test_dismiss(client, memory_gateway):
    memory_gateway.upsert_channel(make_channel("ch-1"))
    rec = memory_gateway.insert_recommendations("ch-1", [
        RecommendationCandidate(
            recommendation_type=RecommendationType.HASHTAG_STRATEGY,
            title="Use hashtags",
            description="Posts with hashtags get 3.00% engagement vs 2.00% without.",
            confidence_score=0.82,
            expected_impact_percentage=50,
        )
    ])[0]

    first = client.post(f"/recommendations/{rec.id}/dismiss")
    second = client.post(f"/recommendations/{rec.id}/dismiss")

    assert first.status_code == 200 and second.status_code == 200
    assert second.json()["is_dismissed"] is True
    assert client.get("/recommendations/channels/ch-1").json()["recommendations"] == []
    assert client.post("/recommendations/999/dismiss").status_code == 404


def test_channel_analytics(client, memory_gateway):
    memory_gateway.upsert_channel(make_channel("ch-1"))
    day = NOW.date()
    memory_gateway.upsert_snapshot(make_snapshot("ch-1", day=day, subscriber_count=0))

    resp = client.get("/analytics/channels/ch-1", params={"start": "2026-09-01", "end": "2026-10-01"})

    assert resp.status_code == 200
    assert resp.json()["summary"]["subscriber_growth_percentage"] == 0
    assert len(resp.json()["data"]) == 1
    assert client.get(
        "/analytics/channels/ch-1", params={"start": "2026-10-02", "end": "2026-10-01"}
    ).status_code == 400
    assert client.get("/analytics/channels/missing").status_code == 404


def test_channel_posts(client, channel):
    resp = client.get("/analytics/channels/ch-1/posts", params={"limit": 5})

    assert resp.status_code == 200
    assert len(resp.json()["posts"]) == 5


def test_dashboard_empty_user(client):
    body = client.get("/analytics/dashboard", params={"user_id": "nobody"}).json()

    assert body["total_subscribers"] == 0
    assert body["top_channels"] == []
    assert body["recent_posts"] == []


def test_cron_requires_secret(client, channel, monkeypatch):
    monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")

    assert client.post("/cron/generate-recommendations").status_code == 401
    assert client.post(
        "/cron/generate-recommendations", headers={"Authorization": "Bearer wrong"}
    ).status_code == 401

    resp = client.post("/cron/generate-recommendations", headers={"Authorization": "Bearer s3cret"})

    assert resp.status_code == 200
    assert resp.json()["channels_processed"] == 1
    assert resp.json()["recommendations_generated"] == 1


def test_cron_disabled_without_secret(client, monkeypatch):
    monkeypatch.setattr(settings, "CRON_SECRET", None)

    resp = client.post("/cron/generate-recommendations", headers={"Authorization": "Bearer None"})
    assert resp.status_code == 401


def test_detailed_analytics(client, channel):
    body = client.get("/analytics/detailed", params={"user_id": "u1"}).json()

    assert len(body["analytics"]) == 1
    detail = body["analytics"][0]
    assert detail["channel_name"] == "Tech Daily"
    assert len(detail["top_posts"]) == 10
    assert detail["summary"]["total_views"] == 5 * 500 + 5 * 300
    assert detail["subscriber_growth"] == []


def test_cron_accepts_get(client, channel, monkeypatch):
    monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")

    assert client.get("/cron/generate-recommendations").status_code == 401

    resp = client.get("/cron/generate-recommendations", headers={"Authorization": "Bearer s3cret"})

    assert resp.status_code == 200
    assert resp.json()["recommendations_generated"] == 1
