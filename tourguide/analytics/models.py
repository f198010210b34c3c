from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

EventType = Literal["pageview", "event", "error", "batch"]


class TrackEventRequest(BaseModel):
    type: EventType
    data: dict[str, Any] = Field(..., min_length=1)


class TrackBatchRequest(BaseModel):
    events: list[TrackEventRequest] = Field(..., min_length=1)


class TrackResponse(BaseModel):
    message: str
    count: int = 1
