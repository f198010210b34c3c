from __future__ import annotations

import pytest

from tourguide.catalog.models import Tour
from tourguide.recommendations.profile import Interaction, PriceRange, build_profile
from tourguide.recommendations.ranking import (
    build_query,
    price_score,
    relevance_score,
    score_candidates,
)


def _tour(tour_id, type="walking", difficulty="easy", duration=90, price=50, rating=4.5):
    return Tour(
        id=tour_id,
        name=f"Tour {tour_id}",
        type=type,
        difficulty=difficulty,
        duration=duration,
        price=price,
        ratings_average=rating,
    )


def _bike_profile():
    booked = _tour("b0", type="bike", difficulty="moderate", duration=150, price=50)
    return build_profile([Interaction(booked)], [], [])


def test_price_score_at_preferred_price():
    assert price_score(50, 50) == 5


def test_price_score_linear_decay():
    assert price_score(70, 50) == 4
    assert price_score(30, 50) == 4
    assert price_score(150, 50) == 0


@pytest.mark.parametrize("price", [0, 10, 49, 51, 120, 500, 10_000])
def test_price_score_bounds(price):
    assert 0 <= price_score(price, 50) <= 5


def test_relevance_score_components():
    profile = _bike_profile()
    same_taste = _tour("x", type="bike", difficulty="moderate", duration=120, price=50, rating=4.0)
    other = _tour("y", type="walking", difficulty="easy", duration=90, price=50, rating=4.9)

    assert relevance_score(same_taste, profile) == pytest.approx(3 + 3 + 3 + 5 + 4.0)
    assert relevance_score(other, profile) == pytest.approx(0 + 0 + 3 + 5 + 4.9)


def test_build_query_uses_top_two_categories():
    tours = [
        Interaction(_tour("a", type="bike", difficulty="moderate")),
        Interaction(_tour("b", type="bike", difficulty="difficult")),
        Interaction(_tour("c", type="bus", difficulty="easy")),
    ]
    favorites = [Interaction(_tour("d", type="walking", difficulty="easy"))]
    profile = build_profile(tours, favorites, [])

    query = build_query(profile, {"a", "b"})

    assert query.exclude_ids == frozenset({"a", "b"})
    assert query.types == frozenset({"bike", "bus"})
    assert query.difficulties == frozenset({"easy", "moderate"})
    assert query.price_band == (profile.price_range.min, profile.price_range.max)


def test_build_query_caps_rating_floor_at_four():
    reviews = [Interaction(_tour("a"), rating=5)]
    profile = build_profile([], [], reviews)
    assert build_query(profile, set()).min_rating == 4

    profile.average_rating = 3.2
    assert build_query(profile, set()).min_rating == 3.2


def test_build_query_excludes_booked_tours():
    profile = _bike_profile()
    query = build_query(profile, {"b0"})
    booked = _tour("b0", type="bike", difficulty="moderate", price=50)
    assert not query.matches(booked)
    assert query.matches(_tour("b1", type="bike", difficulty="moderate", price=50))


def test_query_matches_any_branch():
    profile = _bike_profile()
    query = build_query(profile, set())

    assert query.matches(_tour("t", type="bike", difficulty="easy", price=500))
    assert query.matches(_tour("t", type="bus", difficulty="moderate", price=500))
    assert query.matches(_tour("t", type="bus", difficulty="easy", price=60))
    assert not query.matches(_tour("t", type="bus", difficulty="easy", price=500))


def test_score_candidates_sorts_and_truncates():
    profile = _bike_profile()
    candidates = [
        _tour("walk", type="walking", difficulty="easy", price=50, rating=4.9),
        _tour("bike", type="bike", difficulty="moderate", duration=120, price=50, rating=4.0),
        _tour("bus", type="bus", difficulty="moderate", duration=240, price=200, rating=4.5),
    ]

    ranked = score_candidates(candidates, profile, limit=2)

    assert [t.id for t in ranked] == ["bike", "walk"]
    assert ranked[0].relevance_score == pytest.approx(18.0)
    assert ranked[0].relevance_score >= ranked[1].relevance_score


def test_score_candidates_empty_pool():
    assert score_candidates([], _bike_profile(), limit=5) == []


def test_score_candidates_default_price_range():
    profile = build_profile([], [], [])
    assert profile.price_range == PriceRange(min=0, max=1000, preferred=0)
    ranked = score_candidates([_tour("a", price=0, rating=4.0)], profile, limit=1)
    assert ranked[0].relevance_score == pytest.approx(5 + 4.0)
