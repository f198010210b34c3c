from __future__ import annotations

import math
from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, field_validator

TourType = Literal["walking", "bus", "bike"]
Difficulty = Literal["easy", "moderate", "difficult"]
BookingStatus = Literal["pending", "confirmed", "cancelled"]
PaymentMethod = Literal["credit_card", "paypal", "stripe"]

TOUR_TYPES: list[str] = ["walking", "bus", "bike"]
DIFFICULTIES: list[str] = ["easy", "moderate", "difficult"]


class StartLocation(BaseModel):
    address: str | None = None
    description: str | None = None


class Tour(BaseModel):
    id: str
    name: str
    description: str = ""
    type: TourType = "walking"
    duration: int = Field(..., ge=1, description="Duration in minutes")
    distance: float = Field(default=0.0, ge=0.0, description="Distance in kilometres")
    difficulty: Difficulty = "moderate"
    price: float = Field(..., ge=0.0)
    currency: str = "USD"
    start_location: StartLocation | None = None
    max_group_size: int = 15
    ratings_average: float = Field(default=4.5, ge=1.0, le=5.0)
    ratings_quantity: int = Field(default=0, ge=0)

    @field_validator("ratings_average")
    @classmethod
    def _round_rating(cls, value: float) -> float:
        return math.floor(value * 10 + 0.5) / 10


class TourCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    type: TourType = "walking"
    duration: int = Field(..., ge=1)
    distance: float = Field(default=0.0, ge=0.0)
    difficulty: Difficulty = "moderate"
    price: float = Field(..., ge=0.0)
    currency: str = "USD"
    start_location: StartLocation | None = None
    max_group_size: int = Field(default=15, ge=1)


class TourUpdate(BaseModel):
    """Partial tour edit; omitted or null fields keep their current value."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    type: TourType | None = None
    duration: int | None = Field(default=None, ge=1)
    distance: float | None = Field(default=None, ge=0.0)
    difficulty: Difficulty | None = None
    price: float | None = Field(default=None, ge=0.0)
    currency: str | None = None
    start_location: StartLocation | None = None
    max_group_size: int | None = Field(default=None, ge=1)


class BookingRequest(BaseModel):
    tour_id: str = Field(..., min_length=1)
    tour_date: date
    number_of_people: int = Field(..., ge=1)
    payment_method: PaymentMethod
    special_requests: str | None = None


class Booking(BaseModel):
    id: str
    user_id: str
    tour_id: str
    price: float
    tour_date: date
    number_of_people: int
    total_amount: float
    status: BookingStatus = "pending"
    payment_method: PaymentMethod
    ticket_code: str
    special_requests: str | None = None
    created_at: float


class Favorite(BaseModel):
    user_id: str
    tour_id: str
    created_at: float


class ReviewRequest(BaseModel):
    tour_id: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    title: str = Field(..., min_length=1)
    review: str = Field(..., min_length=1)


class ReviewUpdate(BaseModel):
    rating: int | None = Field(default=None, ge=1, le=5)
    title: str | None = Field(default=None, min_length=1)
    review: str | None = Field(default=None, min_length=1)


class Review(BaseModel):
    id: str
    user_id: str
    tour_id: str
    rating: int
    title: str
    review: str
    created_at: float
