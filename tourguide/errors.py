from __future__ import annotations


class RecommendationError(Exception):
    """Base class for errors raised by the tour services."""


class NotFoundError(RecommendationError):
    """A referenced tour (or other record) does not exist."""

    def __init__(self, message: str = "Tour not found") -> None:
        super().__init__(message)
        self.message = message


class StoreError(RecommendationError):
    """The underlying catalog or interaction store could not be read."""


class InteractionError(RecommendationError):
    """A booking, favorite or review request conflicts with existing state."""
