from __future__ import annotations

import logging
import time
from datetime import datetime

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import (
    dashboard_summary,
    device_stats,
    page_view_stats,
    recommendation_stats,
    tour_performance,
)
from .analytics.models import TrackBatchRequest, TrackEventRequest, TrackResponse
from .analytics.store import get_events, record_event, record_recommendation_event
from .auth.dependencies import get_current_user, get_current_user_id, require_admin, require_user
from .auth.models import LoginRequest, RegisterRequest
from .auth.users import authenticate, get_users, register
from .catalog import interactions, tour_store
from .catalog.models import (
    DIFFICULTIES,
    TOUR_TYPES,
    Booking,
    BookingRequest,
    Difficulty,
    Review,
    ReviewRequest,
    ReviewUpdate,
    Tour,
    TourCreate,
    TourType,
    TourUpdate,
)
from .config import DEFAULT_APP_CONFIG
from .errors import InteractionError, NotFoundError, StoreError
from .recommendations.engine import RecommendationEngine
from .recommendations.models import (
    PreferenceProfileOut,
    RecommendationResponse,
    TourListResponse,
)
from .recommendations.store import CatalogRecommendationStore

logging.basicConfig(level=DEFAULT_APP_CONFIG.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Tour Recommendation API", version="1.0.0")
app.add_middleware(SessionMiddleware, secret_key=DEFAULT_APP_CONFIG.session_secret)

_MAX_LIMIT = DEFAULT_APP_CONFIG.max_limit


def get_engine() -> RecommendationEngine:
    return RecommendationEngine(CatalogRecommendationStore())


def _elapsed_ms(start_time: float) -> float:
    return round((time.time() - start_time) * 1000, 1)


def _require_tour(tour_id: str) -> Tour:
    tour = tour_store.find_tour_by_id(tour_id)
    if tour is None:
        raise NotFoundError("Tour not found")
    return tour


# ── Error handlers ───────────────────────────────────────────────────────


@app.exception_handler(NotFoundError)
def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(InteractionError)
def interaction_error_handler(request: Request, exc: InteractionError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(StoreError)
def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Store failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Service temporarily unavailable"})


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    return {
        "tour_types": TOUR_TYPES,
        "difficulties": DIFFICULTIES,
        "total_tours": tour_store.count_tours(),
    }


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/register", status_code=201)
def register_user(body: RegisterRequest, request: Request) -> dict:
    user = register(body.username, body.password)
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Tour catalog ─────────────────────────────────────────────────────────


@app.get("/api/tours", response_model=TourListResponse)
def list_tours(
    type: TourType | None = None,
    difficulty: Difficulty | None = None,
) -> TourListResponse:
    tours = tour_store.list_tours(type, difficulty)
    return TourListResponse(results=len(tours), tours=tours)


@app.get("/api/tours/search", response_model=TourListResponse)
def search_tours(query: str | None = None) -> TourListResponse:
    if not query or not query.strip():
        raise HTTPException(status_code=400, detail="Search query is required")
    tours = tour_store.search_tours(query.strip())
    return TourListResponse(results=len(tours), tours=tours)


@app.get("/api/tours/{tour_id}", response_model=Tour)
def get_tour(tour_id: str) -> Tour:
    return _require_tour(tour_id)


@app.post("/api/tours", response_model=Tour, status_code=201)
def create_tour(body: TourCreate, user: dict = Depends(require_admin)) -> Tour:
    return tour_store.add_tour(body)


@app.put("/api/tours/{tour_id}", response_model=Tour)
def update_tour(tour_id: str, body: TourUpdate, user: dict = Depends(require_admin)) -> Tour:
    tour = tour_store.update_tour(tour_id, body)
    if tour is None:
        raise NotFoundError("Tour not found")
    return tour


@app.delete("/api/tours/{tour_id}")
def delete_tour(tour_id: str, user: dict = Depends(require_admin)) -> dict:
    if not tour_store.delete_tour(tour_id):
        raise NotFoundError("Tour not found")
    return {"status": "deleted", "tour_id": tour_id}


@app.get("/api/tours/{tour_id}/reviews", response_model=list[Review])
def tour_reviews(tour_id: str) -> list[Review]:
    _require_tour(tour_id)
    return interactions.reviews_for_tour(tour_id)


# ── Recommendations ──────────────────────────────────────────────────────


@app.get("/api/recommendations/popular", response_model=TourListResponse)
def popular_tours(
    limit: int = Query(default=DEFAULT_APP_CONFIG.default_recommendation_limit, ge=1, le=_MAX_LIMIT),
    user_id: str | None = Depends(get_current_user_id),
    engine: RecommendationEngine = Depends(get_engine),
) -> TourListResponse:
    start_time = time.time()
    tours = engine.get_popular_tours(limit)
    record_recommendation_event("popular", len(tours), _elapsed_ms(start_time), user_id)
    return TourListResponse(results=len(tours), tours=tours)


@app.get("/api/recommendations/similar/{tour_id}", response_model=TourListResponse)
def similar_tours(
    tour_id: str,
    limit: int = Query(default=DEFAULT_APP_CONFIG.default_similar_limit, ge=1, le=_MAX_LIMIT),
    user_id: str | None = Depends(get_current_user_id),
    engine: RecommendationEngine = Depends(get_engine),
) -> TourListResponse:
    start_time = time.time()
    tours = engine.get_similar_tours(tour_id, limit)
    record_recommendation_event("similar", len(tours), _elapsed_ms(start_time), user_id)
    return TourListResponse(results=len(tours), tours=tours)


@app.get("/api/recommendations/personalized", response_model=RecommendationResponse)
def personalized_recommendations(
    limit: int = Query(default=DEFAULT_APP_CONFIG.default_recommendation_limit, ge=1, le=_MAX_LIMIT),
    user: dict = Depends(require_user),
    engine: RecommendationEngine = Depends(get_engine),
) -> RecommendationResponse:
    start_time = time.time()
    recommendations = engine.get_personalized_recommendations(user["id"], limit)
    record_recommendation_event(
        "personalized", len(recommendations), _elapsed_ms(start_time), user["id"],
    )
    return RecommendationResponse(results=len(recommendations), recommendations=recommendations)


@app.get("/api/recommendations/profile", response_model=PreferenceProfileOut)
def preference_profile(
    user: dict = Depends(require_user),
    engine: RecommendationEngine = Depends(get_engine),
) -> PreferenceProfileOut:
    return PreferenceProfileOut(**engine.build_user_profile(user["id"]).to_dict())


# ── Bookings ─────────────────────────────────────────────────────────────


@app.post("/api/bookings", response_model=Booking, status_code=201)
def create_booking(body: BookingRequest, user: dict = Depends(require_user)) -> Booking:
    tour = _require_tour(body.tour_id)
    return interactions.create_booking(user["id"], tour, body)


@app.get("/api/bookings/me", response_model=list[Booking])
def my_bookings(user: dict = Depends(require_user)) -> list[Booking]:
    return interactions.bookings_for_user(user["id"])


@app.post("/api/bookings/{booking_id}/cancel", response_model=Booking)
def cancel_booking(booking_id: str, user: dict = Depends(require_user)) -> Booking:
    booking = interactions.get_booking(booking_id)
    if booking is None or booking.user_id != user["id"]:
        raise NotFoundError("Booking not found")
    return interactions.set_booking_status(booking_id, "cancelled")


@app.post("/api/bookings/{booking_id}/confirm", response_model=Booking)
def confirm_booking(booking_id: str, user: dict = Depends(require_admin)) -> Booking:
    return interactions.set_booking_status(booking_id, "confirmed")


# ── Favorites ────────────────────────────────────────────────────────────


@app.get("/api/favorites/tours", response_model=TourListResponse)
def favorite_tours(user: dict = Depends(require_user)) -> TourListResponse:
    tours = [
        tour
        for f in interactions.favorites_for_user(user["id"])
        if (tour := tour_store.find_tour_by_id(f.tour_id)) is not None
    ]
    return TourListResponse(results=len(tours), tours=tours)


@app.post("/api/favorites/tours/{tour_id}")
def add_favorite(tour_id: str, user: dict = Depends(require_user)) -> dict:
    _require_tour(tour_id)
    interactions.add_favorite(user["id"], tour_id)
    return {"message": "Tour added to favorites", "tour_id": tour_id}


@app.delete("/api/favorites/tours/{tour_id}")
def remove_favorite(tour_id: str, user: dict = Depends(require_user)) -> dict:
    interactions.remove_favorite(user["id"], tour_id)
    return {"message": "Tour removed from favorites", "tour_id": tour_id}


@app.get("/api/favorites/tours/{tour_id}/check")
def check_favorite(tour_id: str, user: dict = Depends(require_user)) -> dict:
    _require_tour(tour_id)
    return {"is_favorite": interactions.is_favorite(user["id"], tour_id)}


# ── Reviews ──────────────────────────────────────────────────────────────


@app.post("/api/reviews", response_model=Review, status_code=201)
def create_review(body: ReviewRequest, user: dict = Depends(require_user)) -> Review:
    _require_tour(body.tour_id)
    return interactions.add_review(user["id"], body)


@app.get("/api/reviews/me", response_model=list[Review])
def my_reviews(user: dict = Depends(require_user)) -> list[Review]:
    return interactions.reviews_for_user(user["id"])


@app.put("/api/reviews/{review_id}", response_model=Review)
def update_review(
    review_id: str,
    body: ReviewUpdate,
    user: dict = Depends(require_user),
) -> Review:
    review = interactions.get_review(review_id)
    if review is None:
        raise NotFoundError("Review not found")
    if review.user_id != user["id"]:
        raise HTTPException(status_code=403, detail="Not authorized to update this review")
    return interactions.update_review(review_id, body)


@app.delete("/api/reviews/{review_id}")
def delete_review(review_id: str, user: dict = Depends(require_user)) -> dict:
    review = interactions.get_review(review_id)
    if review is None:
        raise NotFoundError("Review not found")
    if review.user_id != user["id"] and user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Not authorized to delete this review")
    interactions.delete_review(review_id)
    return {"message": "Review deleted successfully", "review_id": review_id}


# ── Analytics ────────────────────────────────────────────────────────────


def _event_context(request: Request, user: dict | None) -> dict:
    return {
        "user_id": user["id"] if user else None,
        "user_agent": request.headers.get("user-agent"),
        "ip_address": request.client.host if request.client else None,
    }


@app.post("/api/analytics/track", response_model=TrackResponse, status_code=201)
def track_event(
    body: TrackEventRequest,
    request: Request,
    user: dict | None = Depends(get_current_user),
) -> TrackResponse:
    record_event(
        body.type,
        body.data,
        session_id=body.data.get("session_id"),
        **_event_context(request, user),
    )
    return TrackResponse(message="Event tracked successfully")


@app.post("/api/analytics/track-batch", response_model=TrackResponse, status_code=201)
def track_batch(
    body: TrackBatchRequest,
    request: Request,
    user: dict | None = Depends(get_current_user),
) -> TrackResponse:
    context = _event_context(request, user)
    for event in body.events:
        record_event(event.type, event.data, session_id=event.data.get("session_id"), **context)
    return TrackResponse(message="Events tracked successfully", count=len(body.events))


def _ts(value: datetime | None) -> float | None:
    return value.timestamp() if value else None


@app.get("/api/analytics/page-views")
def analytics_page_views(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    user: dict = Depends(require_admin),
) -> dict:
    return {"page_views": page_view_stats(get_events(), _ts(start_date), _ts(end_date))}


@app.get("/api/analytics/devices")
def analytics_devices(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    user: dict = Depends(require_admin),
) -> dict:
    return device_stats(get_events(), _ts(start_date), _ts(end_date))


@app.get("/api/analytics/tour-performance")
def analytics_tour_performance(user: dict = Depends(require_admin)) -> dict:
    return {
        "tour_performance": tour_performance(
            get_events(), tour_store.find_tour_by_id, interactions.get_bookings(),
        )
    }


@app.get("/api/analytics/dashboard-summary")
def analytics_dashboard_summary(user: dict = Depends(require_admin)) -> dict:
    return {
        "summary": dashboard_summary(
            get_users(), tour_store.count_tours(), interactions.get_bookings(),
        )
    }


@app.get("/api/analytics/recommendations")
def analytics_recommendations(user: dict = Depends(require_admin)) -> dict:
    return recommendation_stats(get_events())
