from __future__ import annotations

import logging
import math
import threading
import uuid

import pandas as pd

from ..errors import StoreError
from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .filters import TourFilter, TourSort
from .models import StartLocation, Tour, TourCreate, TourUpdate

logger = logging.getLogger(__name__)

CATALOG_COLUMNS: list[str] = [
    "id",
    "name",
    "description",
    "type",
    "duration",
    "distance",
    "difficulty",
    "price",
    "currency",
    "start_address",
    "start_description",
    "max_group_size",
    "ratings_average",
    "ratings_quantity",
]

_df: pd.DataFrame | None = None
# Guards loading and every replacement or in-place write of _df.
_lock = threading.Lock()


def _load(config: CatalogConfig = DEFAULT_CATALOG_CONFIG) -> pd.DataFrame:
    try:
        df = pd.read_csv(config.tours_path, dtype={"id": str})
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise StoreError(f"Could not load tour catalog from {config.tours_path}") from exc

    missing = [c for c in CATALOG_COLUMNS if c not in df.columns]
    if missing:
        raise StoreError(f"Tour catalog is missing columns: {', '.join(missing)}")

    df = df[CATALOG_COLUMNS].copy()
    df["ratings_quantity"] = df["ratings_quantity"].fillna(0).astype(int)
    df["ratings_average"] = df["ratings_average"].fillna(4.5).astype(float)

    logger.info("Loaded %d tours from %s", len(df), config.tours_path)
    return df


def _frame() -> pd.DataFrame:
    # caller holds _lock
    global _df
    if _df is None:
        _df = _load()
    return _df


def get_dataframe() -> pd.DataFrame:
    """Return the in-memory tour DataFrame, loading it on first call."""
    with _lock:
        return _frame()


def reset_catalog() -> None:
    """Drop in-memory changes; the next access reloads the seed."""
    global _df
    with _lock:
        _df = None


def _optional_str(value) -> str | None:
    return str(value) if pd.notna(value) and str(value) else None


def _row_to_tour(row: pd.Series) -> Tour:
    address = _optional_str(row.get("start_address"))
    description = _optional_str(row.get("start_description"))
    start_location = None
    if address or description:
        start_location = StartLocation(address=address, description=description)

    return Tour(
        id=str(row["id"]),
        name=row["name"],
        description=_optional_str(row.get("description")) or "",
        type=row["type"],
        duration=int(row["duration"]),
        distance=float(row["distance"]) if pd.notna(row["distance"]) else 0.0,
        difficulty=row["difficulty"],
        price=float(row["price"]),
        currency=_optional_str(row.get("currency")) or "USD",
        start_location=start_location,
        max_group_size=int(row["max_group_size"]) if pd.notna(row["max_group_size"]) else 15,
        ratings_average=float(row["ratings_average"]),
        ratings_quantity=int(row["ratings_quantity"]),
    )


def _mask(df: pd.DataFrame, tour_filter: TourFilter) -> pd.Series:
    mask = pd.Series(True, index=df.index)

    if tour_filter.exclude_ids:
        mask = mask & ~df["id"].isin(list(tour_filter.exclude_ids))

    if tour_filter.has_any_of:
        any_of = pd.Series(False, index=df.index)
        if tour_filter.types is not None:
            any_of = any_of | df["type"].isin(list(tour_filter.types))
        if tour_filter.difficulties is not None:
            any_of = any_of | df["difficulty"].isin(list(tour_filter.difficulties))
        if tour_filter.price_band is not None:
            low, high = tour_filter.price_band
            any_of = any_of | df["price"].between(low, high)
        mask = mask & any_of

    if tour_filter.min_rating is not None:
        mask = mask & (df["ratings_average"] >= tour_filter.min_rating)

    return mask


def query_tours(
    tour_filter: TourFilter,
    sort: TourSort = (),
    limit: int | None = None,
) -> list[Tour]:
    """Return tours matching *tour_filter*, sorted and truncated to *limit*.

    Sorting is stable, so ties keep catalog order.
    """
    df = get_dataframe()
    matched = df.loc[_mask(df, tour_filter)]

    if sort:
        matched = matched.sort_values(
            by=[field for field, _ in sort],
            ascending=[not descending for _, descending in sort],
            kind="mergesort",
        )
    if limit is not None:
        matched = matched.head(limit)

    return [_row_to_tour(row) for _, row in matched.iterrows()]


def find_tour_by_id(tour_id: str) -> Tour | None:
    df = get_dataframe()
    rows = df.loc[df["id"] == tour_id]
    if rows.empty:
        return None
    return _row_to_tour(rows.iloc[0])


def list_tours(tour_type: str | None = None, difficulty: str | None = None) -> list[Tour]:
    """Catalog listing; both filters must hold when given."""
    df = get_dataframe()
    mask = pd.Series(True, index=df.index)
    if tour_type:
        mask = mask & (df["type"] == tour_type)
    if difficulty:
        mask = mask & (df["difficulty"] == difficulty)
    return [_row_to_tour(row) for _, row in df.loc[mask].iterrows()]


def count_tours() -> int:
    return len(get_dataframe())


def search_tours(query: str) -> list[Tour]:
    """Case-insensitive substring match on name or description."""
    df = get_dataframe()
    hit = pd.Series(False, index=df.index)
    for column in ("name", "description"):
        hit = hit | df[column].fillna("").astype(str).str.contains(query, case=False, regex=False)
    return [_row_to_tour(row) for _, row in df.loc[hit].iterrows()]


def _location_columns(location: dict | None) -> dict:
    location = location or {}
    return {
        "start_address": location.get("address"),
        "start_description": location.get("description"),
    }


def add_tour(payload: TourCreate) -> Tour:
    global _df
    row = {
        "id": uuid.uuid4().hex[:24],
        "name": payload.name,
        "description": payload.description,
        "type": payload.type,
        "duration": payload.duration,
        "distance": payload.distance,
        "difficulty": payload.difficulty,
        "price": payload.price,
        "currency": payload.currency,
        **_location_columns(
            payload.start_location.model_dump() if payload.start_location else None
        ),
        "max_group_size": payload.max_group_size,
        "ratings_average": 4.5,
        "ratings_quantity": 0,
    }
    with _lock:
        df = _frame()
        _df = pd.concat([df, pd.DataFrame([row], columns=CATALOG_COLUMNS)], ignore_index=True)
        tour = _row_to_tour(_df.iloc[-1])
    logger.info("Added tour %s (%s)", tour.id, payload.name)
    return tour


def update_tour(tour_id: str, payload: TourUpdate) -> Tour | None:
    """Apply the fields set on *payload*; ``None`` if the tour is unknown."""
    changes = payload.model_dump(exclude_none=True)
    if "start_location" in changes:
        changes.update(_location_columns(changes.pop("start_location")))

    with _lock:
        df = _frame()
        idx = df.index[df["id"] == tour_id]
        if idx.empty:
            return None
        for column, value in changes.items():
            df.loc[idx, column] = value
        tour = _row_to_tour(df.loc[idx[0]])
    logger.info("Updated tour %s (%s)", tour_id, ", ".join(changes) or "no changes")
    return tour


def delete_tour(tour_id: str) -> bool:
    global _df
    with _lock:
        df = _frame()
        keep = df["id"] != tour_id
        if keep.all():
            return False
        _df = df.loc[keep].reset_index(drop=True)
    logger.info("Deleted tour %s", tour_id)
    return True


def update_tour_ratings(tour_id: str, ratings_average: float, ratings_quantity: int) -> None:
    with _lock:
        df = _frame()
        idx = df.index[df["id"] == tour_id]
        df.loc[idx, "ratings_average"] = math.floor(ratings_average * 10 + 0.5) / 10
        df.loc[idx, "ratings_quantity"] = ratings_quantity
