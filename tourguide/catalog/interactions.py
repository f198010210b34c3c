from __future__ import annotations

import logging
import random
import string
import time
import uuid

from ..errors import InteractionError, NotFoundError
from . import tour_store
from .models import (
    Booking,
    BookingRequest,
    BookingStatus,
    Favorite,
    Review,
    ReviewRequest,
    ReviewUpdate,
    Tour,
)

logger = logging.getLogger(__name__)

_TICKET_ALPHABET = string.ascii_uppercase + string.digits
_TICKET_LENGTH = 8

_bookings: list[Booking] = []
_favorites: list[Favorite] = []
_reviews: list[Review] = []


def _ticket_code() -> str:
    return "".join(random.choices(_TICKET_ALPHABET, k=_TICKET_LENGTH))


# ── Bookings ─────────────────────────────────────────────────────────────


def create_booking(user_id: str, tour: Tour, request: BookingRequest) -> Booking:
    booking = Booking(
        id=uuid.uuid4().hex[:24],
        user_id=user_id,
        tour_id=tour.id,
        price=tour.price,
        tour_date=request.tour_date,
        number_of_people=request.number_of_people,
        total_amount=tour.price * request.number_of_people,
        payment_method=request.payment_method,
        ticket_code=_ticket_code(),
        special_requests=request.special_requests,
        created_at=time.time(),
    )
    _bookings.append(booking)
    logger.info("User %s booked tour %s (%s)", user_id, tour.id, booking.ticket_code)
    return booking


def get_booking(booking_id: str) -> Booking | None:
    return next((b for b in _bookings if b.id == booking_id), None)


def set_booking_status(booking_id: str, status: BookingStatus) -> Booking:
    for i, booking in enumerate(_bookings):
        if booking.id == booking_id:
            if booking.status == "cancelled":
                raise InteractionError("Booking is already cancelled")
            _bookings[i] = booking.model_copy(update={"status": status})
            return _bookings[i]
    raise NotFoundError("Booking not found")


def bookings_for_user(user_id: str) -> list[Booking]:
    return [b for b in _bookings if b.user_id == user_id]


def get_bookings() -> list[Booking]:
    return _bookings


# ── Favorites ────────────────────────────────────────────────────────────


def add_favorite(user_id: str, tour_id: str) -> Favorite:
    if is_favorite(user_id, tour_id):
        raise InteractionError("Tour already in favorites")
    favorite = Favorite(user_id=user_id, tour_id=tour_id, created_at=time.time())
    _favorites.append(favorite)
    return favorite


def remove_favorite(user_id: str, tour_id: str) -> None:
    for i, favorite in enumerate(_favorites):
        if favorite.user_id == user_id and favorite.tour_id == tour_id:
            del _favorites[i]
            return
    raise InteractionError("Tour not in favorites")


def is_favorite(user_id: str, tour_id: str) -> bool:
    return any(f.user_id == user_id and f.tour_id == tour_id for f in _favorites)


def favorites_for_user(user_id: str) -> list[Favorite]:
    return [f for f in _favorites if f.user_id == user_id]


# ── Reviews ──────────────────────────────────────────────────────────────


def add_review(user_id: str, request: ReviewRequest) -> Review:
    """Store a review and refresh the tour's rating aggregates."""
    if any(r.user_id == user_id and r.tour_id == request.tour_id for r in _reviews):
        raise InteractionError("You have already reviewed this tour")

    review = Review(
        id=uuid.uuid4().hex[:24],
        user_id=user_id,
        tour_id=request.tour_id,
        rating=request.rating,
        title=request.title,
        review=request.review,
        created_at=time.time(),
    )
    _reviews.append(review)
    recalculate_tour_ratings(request.tour_id)
    return review


def get_review(review_id: str) -> Review | None:
    return next((r for r in _reviews if r.id == review_id), None)


def update_review(review_id: str, changes: ReviewUpdate) -> Review:
    for i, review in enumerate(_reviews):
        if review.id == review_id:
            _reviews[i] = review.model_copy(update=changes.model_dump(exclude_none=True))
            recalculate_tour_ratings(review.tour_id)
            return _reviews[i]
    raise NotFoundError("Review not found")


def delete_review(review_id: str) -> Review:
    for i, review in enumerate(_reviews):
        if review.id == review_id:
            del _reviews[i]
            recalculate_tour_ratings(review.tour_id)
            logger.info("Deleted review %s on tour %s", review_id, review.tour_id)
            return review
    raise NotFoundError("Review not found")


def recalculate_tour_ratings(tour_id: str) -> None:
    ratings = [r.rating for r in _reviews if r.tour_id == tour_id]
    if ratings:
        tour_store.update_tour_ratings(tour_id, sum(ratings) / len(ratings), len(ratings))
    else:
        tour_store.update_tour_ratings(tour_id, 4.5, 0)


def reviews_for_user(user_id: str) -> list[Review]:
    return [r for r in _reviews if r.user_id == user_id]


def reviews_for_tour(tour_id: str) -> list[Review]:
    return [r for r in _reviews if r.tour_id == tour_id]


def get_reviews() -> list[Review]:
    return _reviews


def clear_interactions() -> None:
    _bookings.clear()
    _favorites.clear()
    _reviews.clear()
