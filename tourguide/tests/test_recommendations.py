from __future__ import annotations

from fastapi.testclient import TestClient

from tourguide.analytics.store import clear_events, get_events
from tourguide.app import app, get_engine
from tourguide.catalog import interactions, tour_store
from tourguide.errors import StoreError
from tourguide.recommendations.engine import RecommendationEngine
from tourguide.recommendations.store import CatalogRecommendationStore

client = TestClient(app)


def _login(c):
    c.post("/auth/login", json={"username": "user", "password": "user123"})


def _reset():
    tour_store.reset_catalog()
    interactions.clear_interactions()


def _book(c, tour_id):
    return c.post("/api/bookings", json={
        "tour_id": tour_id,
        "tour_date": "2026-07-01",
        "number_of_people": 2,
        "payment_method": "credit_card",
    })


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_popular_tours():
    _reset()
    resp = client.get("/api/recommendations/popular")
    assert resp.status_code == 200
    body = resp.json()
    assert body["results"] == 5
    assert [t["id"] for t in body["tours"]] == ["t03", "t06", "t01", "t12", "t02"]


def test_popular_tours_respects_limit():
    _reset()
    resp = client.get("/api/recommendations/popular", params={"limit": 2})
    assert len(resp.json()["tours"]) == 2


def test_popular_rejects_bad_limit():
    assert client.get("/api/recommendations/popular", params={"limit": 0}).status_code == 422
    assert client.get("/api/recommendations/popular", params={"limit": 51}).status_code == 422


def test_similar_tours():
    _reset()
    resp = client.get("/api/recommendations/similar/t02")
    assert resp.status_code == 200
    body = resp.json()
    ids = [t["id"] for t in body["tours"]]
    assert "t02" not in ids
    assert len(ids) <= 4
    ratings = [t["ratings_average"] for t in body["tours"]]
    assert ratings == sorted(ratings, reverse=True)


def test_similar_tours_unknown_id():
    _reset()
    resp = client.get("/api/recommendations/similar/nonexistent-id")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Tour not found"


def test_personalized_requires_login():
    c = TestClient(app)
    assert c.get("/api/recommendations/personalized").status_code == 401


def test_personalized_without_history_matches_popular():
    _reset()
    _login(client)
    personalized = client.get("/api/recommendations/personalized").json()
    popular = client.get("/api/recommendations/popular").json()

    assert [t["id"] for t in personalized["recommendations"]] == [t["id"] for t in popular["tours"]]
    assert all(t["relevance_score"] is None for t in personalized["recommendations"])


def test_personalized_excludes_booked_tours():
    _reset()
    _login(client)
    assert _book(client, "t02").status_code == 201

    resp = client.get("/api/recommendations/personalized", params={"limit": 5})
    assert resp.status_code == 200
    body = resp.json()
    ids = [t["id"] for t in body["recommendations"]]
    assert ids
    assert "t02" not in ids

    scores = [t["relevance_score"] for t in body["recommendations"]]
    assert all(s is not None for s in scores)
    assert scores == sorted(scores, reverse=True)


def test_profile_endpoint_after_booking():
    _reset()
    _login(client)
    _book(client, "t02")

    resp = client.get("/api/recommendations/profile")
    assert resp.status_code == 200
    body = resp.json()
    assert body["tour_types"] == {"bike": 3}
    assert body["difficulties"] == {"moderate": 3}
    assert body["durations"] == {"medium": 3}
    assert body["locations"] == {"Harbour Gate": 3}
    assert body["price_range"]["preferred"] == 50
    assert body["total_interactions"] == 3


def test_deleted_tour_is_ignored_by_profile():
    _reset()
    _login(client)
    _book(client, "t02")
    tour_store.delete_tour("t02")

    body = client.get("/api/recommendations/profile").json()
    assert body["total_interactions"] == 0
    assert body["price_range"] == {"min": 0, "max": 1000, "preferred": 0}


def test_recommendations_are_recorded_in_analytics():
    _reset()
    clear_events()
    client.get("/api/recommendations/popular")
    events = get_events()
    assert len(events) == 1
    assert events[0]["data"]["kind"] == "popular"
    assert events[0]["data"]["results"] == 5


class _BrokenStore(CatalogRecommendationStore):
    def query_tours(self, tour_filter, sort, limit):
        raise StoreError("catalog offline")


def test_store_failure_returns_500():
    app.dependency_overrides[get_engine] = lambda: RecommendationEngine(_BrokenStore())
    try:
        resp = TestClient(app).get("/api/recommendations/popular")
    finally:
        app.dependency_overrides.pop(get_engine, None)
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Service temporarily unavailable"
