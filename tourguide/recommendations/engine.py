from __future__ import annotations

import logging

from ..catalog.filters import SORT_BY_POPULARITY, SORT_BY_RATING, TourFilter, TourSort
from ..catalog.models import Tour
from ..errors import NotFoundError, StoreError
from .models import ScoredTour
from .profile import PRICE_BAND_HIGH, PRICE_BAND_LOW, PreferenceProfile, build_profile
from .ranking import build_query, score_candidates
from .store import RecommendationStore

logger = logging.getLogger(__name__)

POPULAR_MIN_RATING = 4


class RecommendationEngine:
    """Personalized, popular and similar tour lookups over an injected store.

    Holds no state between calls; every request rebuilds the profile.
    """

    def __init__(self, store: RecommendationStore) -> None:
        self._store = store

    def build_user_profile(self, user_id: str) -> PreferenceProfile:
        try:
            bookings = self._store.find_bookings_by_user(user_id)
            favorites = self._store.find_favorites_by_user(user_id)
            reviews = self._store.find_reviews_by_user(user_id)
        except StoreError:
            logger.exception("Could not load interaction history for user %s", user_id)
            raise
        return build_profile(bookings, favorites, reviews)

    def get_personalized_recommendations(
        self, user_id: str | None, limit: int = 5,
    ) -> list[ScoredTour]:
        """Rank unbooked tours against the user's preference profile.

        Anonymous users and users without any weighted interaction get the
        popular tours instead, as do users whose candidate pool is empty.
        Already-booked tours are never returned.
        """
        if user_id is None:
            return self._unscored(self.get_popular_tours(limit))

        profile = self.build_user_profile(user_id)
        try:
            booked = self._store.find_distinct_booked_tour_ids(user_id)
        except StoreError:
            logger.exception("Could not load booked tours for user %s", user_id)
            raise

        if profile.total_interactions == 0:
            logger.debug("No preference signal for user %s, serving popular tours", user_id)
            return self._unscored(self._popular(limit, booked))

        query = build_query(profile, booked)
        candidates = self._query(query, SORT_BY_RATING, limit)
        ranked = score_candidates(candidates, profile, limit)

        if not ranked:
            logger.info("No personalized candidates for user %s, serving popular tours", user_id)
            return self._unscored(self._popular(limit, booked))
        return ranked

    def get_popular_tours(self, limit: int = 5) -> list[Tour]:
        return self._popular(limit, set())

    def get_similar_tours(self, tour_id: str, limit: int = 4) -> list[Tour]:
        """Tours sharing the type, difficulty or price band of *tour_id*.

        Raises ``NotFoundError`` when the reference tour does not exist.
        """
        try:
            reference = self._store.find_tour_by_id(tour_id)
        except StoreError:
            logger.exception("Could not load reference tour %s", tour_id)
            raise
        if reference is None:
            raise NotFoundError("Tour not found")

        query = TourFilter(
            exclude_ids=frozenset([reference.id]),
            types=frozenset([reference.type]),
            difficulties=frozenset([reference.difficulty]),
            price_band=(reference.price * PRICE_BAND_LOW, reference.price * PRICE_BAND_HIGH),
        )
        return self._query(query, SORT_BY_RATING, limit)

    def _popular(self, limit: int, excluded: set[str]) -> list[Tour]:
        query = TourFilter(exclude_ids=frozenset(excluded), min_rating=POPULAR_MIN_RATING)
        return self._query(query, SORT_BY_POPULARITY, limit)

    def _query(self, query: TourFilter, sort: TourSort, limit: int) -> list[Tour]:
        try:
            return self._store.query_tours(query, sort, limit)
        except StoreError:
            logger.exception("Tour query failed")
            raise

    @staticmethod
    def _unscored(tours: list[Tour]) -> list[ScoredTour]:
        return [ScoredTour(**t.model_dump()) for t in tours]
