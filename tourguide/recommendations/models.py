from __future__ import annotations

from pydantic import BaseModel, Field

from ..catalog.models import Tour


class ScoredTour(Tour):
    relevance_score: float | None = None


class TourListResponse(BaseModel):
    results: int
    tours: list[Tour]


class RecommendationResponse(BaseModel):
    results: int
    recommendations: list[ScoredTour]


class PriceRangeOut(BaseModel):
    min: float
    max: float
    preferred: float


class PreferenceProfileOut(BaseModel):
    tour_types: dict[str, float] = Field(default_factory=dict)
    difficulties: dict[str, float] = Field(default_factory=dict)
    durations: dict[str, float] = Field(default_factory=dict)
    locations: dict[str, float] = Field(default_factory=dict)
    price_range: PriceRangeOut
    average_rating: float
    total_interactions: float
