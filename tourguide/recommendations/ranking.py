from __future__ import annotations

from ..catalog.filters import TourFilter
from ..catalog.models import Tour
from .models import ScoredTour
from .profile import PreferenceProfile, categorize_duration

TOP_CATEGORIES = 2
MAX_RATING_FLOOR = 4
MAX_PRICE_SCORE = 5
PRICE_STEP = 20  # one point lost per $20 away from the preferred price


def build_query(profile: PreferenceProfile, excluded_tour_ids: set[str]) -> TourFilter:
    """Catalog filter for personalized candidates.

    Matches unbooked tours that share one of the two favourite types or
    difficulties, or sit in the preferred price band, and are rated at
    least as well as the user rates (capped at 4).
    """
    return TourFilter(
        exclude_ids=frozenset(excluded_tour_ids),
        types=frozenset(profile.tour_types.top(TOP_CATEGORIES)),
        difficulties=frozenset(profile.difficulties.top(TOP_CATEGORIES)),
        price_band=(profile.price_range.min, profile.price_range.max),
        min_rating=min(profile.average_rating, MAX_RATING_FLOOR),
    )


def price_score(price: float, preferred: float) -> float:
    return MAX_PRICE_SCORE - min(MAX_PRICE_SCORE, abs(price - preferred) / PRICE_STEP)


def relevance_score(tour: Tour, profile: PreferenceProfile) -> float:
    return (
        profile.tour_types.get(tour.type)
        + profile.difficulties.get(tour.difficulty)
        + profile.durations.get(categorize_duration(tour.duration))
        + price_score(tour.price, profile.price_range.preferred)
        + tour.ratings_average
    )


def score_candidates(
    candidates: list[Tour],
    profile: PreferenceProfile,
    limit: int,
) -> list[ScoredTour]:
    """Attach relevance scores and return the best *limit* candidates.

    Only re-orders the candidates it is given; the pool is already cut
    to the top-rated tours by the store.
    """
    scored = [
        ScoredTour(**tour.model_dump(), relevance_score=relevance_score(tour, profile))
        for tour in candidates
    ]
    scored.sort(key=lambda t: t.relevance_score, reverse=True)
    return scored[:limit]
