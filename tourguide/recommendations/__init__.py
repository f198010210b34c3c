"""
Tour recommendation engine.

Responsibilities:
- Derive a weighted preference profile from a user's bookings, favorites
  and reviews.
- Translate the profile into a catalog filter that skips booked tours.
- Score and rank candidate tours against the profile.
- Serve popular and similar tours when there is no personal signal.
"""
