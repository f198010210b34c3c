from __future__ import annotations

import re
import time
from collections import Counter
from typing import Any, Callable

from ..catalog.models import Booking, Tour

_MOBILE_RE = re.compile(r"mobile|android|iphone|ipad|ipod", re.IGNORECASE)
_TABLET_RE = re.compile(r"tablet|ipad", re.IGNORECASE)
_BROWSERS: list[tuple[str, re.Pattern[str]]] = [
    ("Chrome", re.compile(r"chrome", re.IGNORECASE)),
    ("Firefox", re.compile(r"firefox", re.IGNORECASE)),
    ("Safari", re.compile(r"safari", re.IGNORECASE)),
    ("Edge", re.compile(r"edge", re.IGNORECASE)),
    ("Internet Explorer", re.compile(r"msie|trident", re.IGNORECASE)),
]
_TOUR_DETAILS_RE = re.compile(r"^/tours/([a-zA-Z0-9]+)/details$")

_THIRTY_DAYS = 30 * 24 * 60 * 60


def _in_window(event: dict[str, Any], start: float | None, end: float | None) -> bool:
    ts = event["timestamp"]
    if start is not None and ts < start:
        return False
    if end is not None and ts > end:
        return False
    return True


def parse_user_agent(user_agent: str) -> tuple[str, str]:
    """Return ``(browser, device_type)`` for a raw user-agent string."""
    is_mobile = bool(_MOBILE_RE.search(user_agent))
    is_tablet = bool(_TABLET_RE.search(user_agent))

    browser = next((name for name, pattern in _BROWSERS if pattern.search(user_agent)), "Other")

    if not is_mobile and not is_tablet:
        device_type = "Desktop"
    elif is_tablet:
        device_type = "Tablet"
    else:
        device_type = "Mobile"
    return browser, device_type


def page_view_stats(
    events: list[dict[str, Any]],
    start: float | None = None,
    end: float | None = None,
) -> list[dict[str, Any]]:
    counter: Counter[str] = Counter()
    for e in events:
        if e["type"] == "pageview" and _in_window(e, start, end):
            counter[e["data"].get("path", "unknown")] += 1
    return [{"path": p, "views": v} for p, v in counter.most_common()]


def device_stats(
    events: list[dict[str, Any]],
    start: float | None = None,
    end: float | None = None,
) -> dict[str, Any]:
    devices: Counter[str] = Counter()
    browsers: Counter[str] = Counter()
    total = 0
    for e in events:
        if not e.get("user_agent") or not _in_window(e, start, end):
            continue
        browser, device_type = parse_user_agent(e["user_agent"])
        devices[device_type] += 1
        browsers[browser] += 1
        total += 1

    return {
        "devices": [{"name": n, "value": v} for n, v in devices.items()],
        "browsers": [{"name": n, "value": v} for n, v in browsers.items()],
        "total": total,
    }


def tour_performance(
    events: list[dict[str, Any]],
    find_tour: Callable[[str], Tour | None],
    bookings: list[Booking],
    top: int = 10,
) -> list[dict[str, Any]]:
    """Views, bookings and conversion for the most viewed tour detail pages."""
    views: Counter[str] = Counter()
    for e in events:
        if e["type"] != "pageview":
            continue
        match = _TOUR_DETAILS_RE.match(str(e["data"].get("path", "")))
        if match:
            views[match.group(1)] += 1

    booking_counts = Counter(b.tour_id for b in bookings)

    rows: list[dict[str, Any]] = []
    for tour_id, count in views.most_common(top):
        tour = find_tour(tour_id)
        if tour is None:
            continue
        booked = booking_counts.get(tour_id, 0)
        rows.append({
            "id": tour_id,
            "name": tour.name,
            "type": tour.type,
            "views": count,
            "bookings": booked,
            "conversion_rate": f"{booked / count * 100:.1f}%" if booked else "0%",
            "rating": tour.ratings_average,
            "review_count": tour.ratings_quantity,
        })
    return rows


def dashboard_summary(
    users: list[dict[str, Any]],
    total_tours: int,
    bookings: list[Booking],
    now: float | None = None,
) -> dict[str, Any]:
    now = time.time() if now is None else now
    since = now - _THIRTY_DAYS

    confirmed = [b for b in bookings if b.status == "confirmed"]
    total_revenue = sum(b.total_amount for b in confirmed)
    new_users = sum(1 for u in users if u["created_at"] >= since)
    new_bookings = sum(1 for b in bookings if b.created_at >= since)
    new_revenue = sum(b.total_amount for b in confirmed if b.created_at >= since)

    def _growth(part: float, whole: float) -> str:
        return f"{part / whole * 100:.1f}" if whole > 0 else "0.0"

    return {
        "total_users": len(users),
        "total_tours": total_tours,
        "total_bookings": len(bookings),
        "total_revenue": total_revenue,
        "new_users": new_users,
        "new_bookings": new_bookings,
        "new_revenue": new_revenue,
        "user_growth": _growth(new_users, len(users)),
        "booking_growth": _growth(new_bookings, len(bookings)),
        "revenue_growth": _growth(new_revenue, total_revenue),
    }


def recommendation_stats(events: list[dict[str, Any]]) -> dict[str, Any]:
    served = [
        e["data"] for e in events
        if e["type"] == "event" and e["data"].get("name") == "recommendations_served"
    ]
    by_kind = Counter(s.get("kind", "unknown") for s in served)
    times = [s["response_time_ms"] for s in served if "response_time_ms" in s]
    empty = sum(1 for s in served if s.get("results", 0) == 0)

    return {
        "total_served": len(served),
        "by_kind": dict(by_kind),
        "empty_results": empty,
        "avg_response_time_ms": round(sum(times) / len(times), 1) if times else 0.0,
    }
