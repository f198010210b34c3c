"""
Tour catalog and interaction stores.

Responsibilities:
- Load the tour catalog from its CSV seed into an in-memory DataFrame.
- Evaluate declarative tour filters with sorting and limits.
- Hold bookings, favorites and reviews and resolve their tours.
- Keep tour rating aggregates in sync with submitted reviews.
"""
