from __future__ import annotations

from dataclasses import dataclass

from .models import Tour

# (field, descending) pairs applied left to right
TourSort = tuple[tuple[str, bool], ...]

SORT_BY_RATING: TourSort = (("ratings_average", True),)
SORT_BY_POPULARITY: TourSort = (("ratings_quantity", True), ("ratings_average", True))


@dataclass(frozen=True)
class TourFilter:
    """Declarative catalog filter evaluated by the tour store.

    A tour matches when its id is not excluded, it satisfies at least one
    of the configured ``types`` / ``difficulties`` / ``price_band``
    branches (only when any of them is configured), and its rating is at
    least ``min_rating``. An empty ``types`` set is a configured branch
    that matches nothing.
    """

    exclude_ids: frozenset[str] = frozenset()
    types: frozenset[str] | None = None
    difficulties: frozenset[str] | None = None
    price_band: tuple[float, float] | None = None
    min_rating: float | None = None

    @property
    def has_any_of(self) -> bool:
        return (
            self.types is not None
            or self.difficulties is not None
            or self.price_band is not None
        )

    def matches(self, tour: Tour) -> bool:
        if tour.id in self.exclude_ids:
            return False
        if self.has_any_of:
            in_types = self.types is not None and tour.type in self.types
            in_difficulties = (
                self.difficulties is not None and tour.difficulty in self.difficulties
            )
            in_band = (
                self.price_band is not None
                and self.price_band[0] <= tour.price <= self.price_band[1]
            )
            if not (in_types or in_difficulties or in_band):
                return False
        if self.min_rating is not None and tour.ratings_average < self.min_rating:
            return False
        return True
