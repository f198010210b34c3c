from __future__ import annotations

from typing import Protocol

from ..catalog import interactions, tour_store
from ..catalog.filters import TourFilter, TourSort
from ..catalog.models import Tour
from .profile import Interaction


class RecommendationStore(Protocol):
    """Read interface the engine needs from the catalog and history stores."""

    def find_bookings_by_user(self, user_id: str) -> list[Interaction]: ...

    def find_favorites_by_user(self, user_id: str) -> list[Interaction]: ...

    def find_reviews_by_user(self, user_id: str) -> list[Interaction]: ...

    def find_distinct_booked_tour_ids(self, user_id: str) -> set[str]: ...

    def query_tours(self, tour_filter: TourFilter, sort: TourSort, limit: int) -> list[Tour]: ...

    def find_tour_by_id(self, tour_id: str) -> Tour | None: ...


class CatalogRecommendationStore:
    """Adapts the in-memory catalog and interaction stores."""

    def find_bookings_by_user(self, user_id: str) -> list[Interaction]:
        return [
            Interaction(tour=tour_store.find_tour_by_id(b.tour_id))
            for b in interactions.bookings_for_user(user_id)
        ]

    def find_favorites_by_user(self, user_id: str) -> list[Interaction]:
        return [
            Interaction(tour=tour_store.find_tour_by_id(f.tour_id))
            for f in interactions.favorites_for_user(user_id)
        ]

    def find_reviews_by_user(self, user_id: str) -> list[Interaction]:
        return [
            Interaction(tour=tour_store.find_tour_by_id(r.tour_id), rating=r.rating)
            for r in interactions.reviews_for_user(user_id)
        ]

    def find_distinct_booked_tour_ids(self, user_id: str) -> set[str]:
        return {b.tour_id for b in interactions.bookings_for_user(user_id)}

    def query_tours(self, tour_filter: TourFilter, sort: TourSort, limit: int) -> list[Tour]:
        return tour_store.query_tours(tour_filter, sort, limit)

    def find_tour_by_id(self, tour_id: str) -> Tour | None:
        return tour_store.find_tour_by_id(tour_id)
