from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator

from ..catalog.models import Tour

BOOKING_WEIGHT = 3
FAVORITE_WEIGHT = 2

DEFAULT_MAX_PRICE = 1000
PRICE_BAND_LOW = 0.7
PRICE_BAND_HIGH = 1.3


def categorize_duration(minutes: float) -> str:
    """Bucket a tour duration (in minutes) into short, medium or long.

    Non-positive durations fall into ``short``.
    """
    if minutes <= 60:
        return "short"
    if minutes <= 180:
        return "medium"
    return "long"


def review_weight(rating: float) -> int:
    """Preference weight of a review: 2 for 4+ stars, 1 for 3, else 0."""
    if rating >= 4:
        return 2
    if rating >= 3:
        return 1
    return 0


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class WeightTable:
    """Category label -> accumulated weight, with zero for unknown labels."""

    def __init__(self, weights: dict[str, float] | None = None) -> None:
        self._weights: dict[str, float] = dict(weights or {})

    def add(self, key: str | None, weight: float) -> None:
        # Missing attributes never create a key.
        if not key:
            return
        self._weights[key] = self._weights.get(key, 0) + weight

    def get(self, key: str | None) -> float:
        if key is None:
            return 0
        return self._weights.get(key, 0)

    def top(self, n: int) -> list[str]:
        """Return the *n* heaviest labels; ties keep insertion order."""
        ranked = sorted(self._weights.items(), key=lambda kv: kv[1], reverse=True)
        return [key for key, _ in ranked[:n]]

    def as_dict(self) -> dict[str, float]:
        return dict(self._weights)

    def __len__(self) -> int:
        return len(self._weights)

    def __iter__(self) -> Iterator[str]:
        return iter(self._weights)

    def __contains__(self, key: object) -> bool:
        return key in self._weights

    def __eq__(self, other: object) -> bool:
        if isinstance(other, WeightTable):
            return self._weights == other._weights
        if isinstance(other, dict):
            return self._weights == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"WeightTable({self._weights!r})"


@dataclass
class PriceRange:
    min: float = 0
    max: float = DEFAULT_MAX_PRICE
    preferred: float = 0


@dataclass
class PreferenceProfile:
    tour_types: WeightTable = field(default_factory=WeightTable)
    difficulties: WeightTable = field(default_factory=WeightTable)
    durations: WeightTable = field(default_factory=WeightTable)
    locations: WeightTable = field(default_factory=WeightTable)
    price_range: PriceRange = field(default_factory=PriceRange)
    average_rating: float = 0
    total_interactions: float = 0

    def to_dict(self) -> dict:
        return {
            "tour_types": self.tour_types.as_dict(),
            "difficulties": self.difficulties.as_dict(),
            "durations": self.durations.as_dict(),
            "locations": self.locations.as_dict(),
            "price_range": {
                "min": self.price_range.min,
                "max": self.price_range.max,
                "preferred": self.price_range.preferred,
            },
            "average_rating": self.average_rating,
            "total_interactions": self.total_interactions,
        }


@dataclass(frozen=True)
class Interaction:
    """A booking, favorite or review with its tour, if it still exists."""

    tour: Tour | None
    rating: float | None = None


def _apply(profile: PreferenceProfile, tour: Tour, weight: float) -> float:
    """Add *weight* for each attribute of *tour*; return its weighted price."""
    profile.tour_types.add(tour.type, weight)
    profile.difficulties.add(tour.difficulty, weight)
    profile.durations.add(categorize_duration(tour.duration), weight)
    if tour.start_location is not None:
        profile.locations.add(tour.start_location.address, weight)
    profile.total_interactions += weight
    return tour.price * weight


def build_profile(
    bookings: list[Interaction],
    favorites: list[Interaction],
    reviews: list[Interaction],
) -> PreferenceProfile:
    """Accumulate a preference profile from a user's interaction history.

    Bookings weigh 3, favorites 2, and reviews 2/1/0 by rating. Reviews
    with a zero weight still count toward ``average_rating``.
    Interactions whose tour no longer exists are skipped.
    """
    profile = PreferenceProfile()
    price_sum = 0.0
    rating_sum = 0.0

    for booking in bookings:
        if booking.tour is not None:
            price_sum += _apply(profile, booking.tour, BOOKING_WEIGHT)

    for favorite in favorites:
        if favorite.tour is not None:
            price_sum += _apply(profile, favorite.tour, FAVORITE_WEIGHT)

    for review in reviews:
        if review.tour is None:
            continue
        rating = review.rating or 0
        weight = review_weight(rating)
        if weight > 0:
            price_sum += _apply(profile, review.tour, weight)
        rating_sum += rating

    if profile.total_interactions > 0:
        preferred = round_half_up(price_sum / profile.total_interactions)
        profile.price_range = PriceRange(
            min=max(0, preferred * PRICE_BAND_LOW),
            max=preferred * PRICE_BAND_HIGH,
            preferred=preferred,
        )

    if reviews:
        profile.average_rating = rating_sum / len(reviews)

    return profile
