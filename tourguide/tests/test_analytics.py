from __future__ import annotations

from datetime import date

from fastapi.testclient import TestClient

from tourguide.analytics.aggregator import (
    dashboard_summary,
    parse_user_agent,
    recommendation_stats,
)
from tourguide.analytics.store import clear_events, get_events, record_recommendation_event
from tourguide.app import app
from tourguide.catalog import interactions, tour_store
from tourguide.catalog.models import Booking

client = TestClient(app)

CHROME_DESKTOP = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)


def _login_admin(c):
    c.post("/auth/login", json={"username": "admin", "password": "admin123"})


def _booking(status: str, amount: float, created_at: float) -> Booking:
    return Booking(
        id=f"b-{status}-{amount}",
        user_id="u1",
        tour_id="t01",
        price=amount,
        tour_date=date(2026, 1, 1),
        number_of_people=1,
        total_amount=amount,
        status=status,
        payment_method="stripe",
        ticket_code="ABCD1234",
        created_at=created_at,
    )


# ── Aggregations ─────────────────────────────────────────────────────────


def test_parse_user_agent():
    assert parse_user_agent(CHROME_DESKTOP) == ("Chrome", "Desktop")
    assert parse_user_agent(SAFARI_IPHONE) == ("Safari", "Mobile")
    assert parse_user_agent("Mozilla/5.0 (iPad; CPU OS 17_0)") == ("Other", "Tablet")
    assert parse_user_agent("curl/8.0") == ("Other", "Desktop")


def test_dashboard_summary_counts_confirmed_revenue():
    now = 1_800_000_000.0
    old = now - 60 * 24 * 60 * 60
    users = [{"created_at": now - 10}, {"created_at": old}]
    bookings = [
        _booking("confirmed", 100, now - 10),
        _booking("confirmed", 300, old),
        _booking("pending", 50, now - 10),
    ]

    summary = dashboard_summary(users, 12, bookings, now=now)

    assert summary["total_users"] == 2
    assert summary["total_tours"] == 12
    assert summary["total_bookings"] == 3
    assert summary["total_revenue"] == 400
    assert summary["new_users"] == 1
    assert summary["new_bookings"] == 2
    assert summary["new_revenue"] == 100
    assert summary["user_growth"] == "50.0"
    assert summary["booking_growth"] == "66.7"
    assert summary["revenue_growth"] == "25.0"


def test_dashboard_summary_empty():
    summary = dashboard_summary([], 0, [])
    assert summary["revenue_growth"] == "0.0"
    assert summary["user_growth"] == "0.0"


def test_recommendation_stats():
    clear_events()
    record_recommendation_event("popular", 5, 10.0)
    record_recommendation_event("personalized", 0, 20.0, user_id="u1")
    stats = recommendation_stats(get_events())
    assert stats["total_served"] == 2
    assert stats["by_kind"] == {"popular": 1, "personalized": 1}
    assert stats["empty_results"] == 1
    assert stats["avg_response_time_ms"] == 15.0


# ── Endpoints ────────────────────────────────────────────────────────────


def test_track_event():
    clear_events()
    resp = client.post(
        "/api/analytics/track",
        json={"type": "pageview", "data": {"path": "/tours"}},
        headers={"user-agent": SAFARI_IPHONE},
    )
    assert resp.status_code == 201
    events = get_events()
    assert len(events) == 1
    assert events[0]["user_agent"] == SAFARI_IPHONE


def test_track_rejects_unknown_type_and_empty_data():
    assert client.post("/api/analytics/track", json={"type": "click", "data": {"a": 1}}).status_code == 422
    assert client.post("/api/analytics/track", json={"type": "event", "data": {}}).status_code == 422


def test_track_batch_and_page_views():
    clear_events()
    resp = client.post("/api/analytics/track-batch", json={"events": [
        {"type": "pageview", "data": {"path": "/tours"}},
        {"type": "pageview", "data": {"path": "/tours"}},
        {"type": "pageview", "data": {"path": "/favorites"}},
        {"type": "event", "data": {"name": "share"}},
    ]})
    assert resp.status_code == 201
    assert resp.json()["count"] == 4

    c = TestClient(app)
    _login_admin(c)
    body = c.get("/api/analytics/page-views").json()
    assert body["page_views"] == [
        {"path": "/tours", "views": 2},
        {"path": "/favorites", "views": 1},
    ]


def test_page_views_date_window():
    clear_events()
    client.post("/api/analytics/track", json={"type": "pageview", "data": {"path": "/tours"}})
    c = TestClient(app)
    _login_admin(c)
    body = c.get("/api/analytics/page-views", params={"end_date": "2000-01-01T00:00:00"}).json()
    assert body["page_views"] == []


def test_device_stats_endpoint():
    clear_events()
    client.post(
        "/api/analytics/track",
        json={"type": "pageview", "data": {"path": "/"}},
        headers={"user-agent": CHROME_DESKTOP},
    )
    c = TestClient(app)
    _login_admin(c)
    body = c.get("/api/analytics/devices").json()
    assert body["total"] >= 1
    assert {"name": "Desktop", "value": 1} in body["devices"]


def test_tour_performance_endpoint():
    clear_events()
    tour_store.reset_catalog()
    interactions.clear_interactions()
    for _ in range(4):
        client.post("/api/analytics/track", json={"type": "pageview", "data": {"path": "/tours/t02/details"}})

    user = TestClient(app)
    user.post("/auth/login", json={"username": "user", "password": "user123"})
    user.post("/api/bookings", json={
        "tour_id": "t02", "tour_date": "2026-07-01", "number_of_people": 1, "payment_method": "stripe",
    })

    c = TestClient(app)
    _login_admin(c)
    rows = c.get("/api/analytics/tour-performance").json()["tour_performance"]
    assert rows == [{
        "id": "t02",
        "name": "Harbour Bike Ride",
        "type": "bike",
        "views": 4,
        "bookings": 1,
        "conversion_rate": "25.0%",
        "rating": 4.6,
        "review_count": 85,
    }]


def test_recommendation_stats_endpoint():
    clear_events()
    client.get("/api/recommendations/popular")
    c = TestClient(app)
    _login_admin(c)
    body = c.get("/api/analytics/recommendations").json()
    assert body["total_served"] == 1
    assert body["by_kind"] == {"popular": 1}
