import math
from datetime import datetime, timedelta, timezone

import pytest

from petmatch.matching.similarity import cosine_similarity, days_between, haversine_distance_km


def test_cosine_similarity_of_vector_with_itself_is_one():
    v = [0.12, -3.4, 5.0, 0.0007, 42.0]
    assert cosine_similarity(v, v) == 1.0


def test_cosine_similarity_of_opposite_vectors_is_minus_one():
    v = [0.3, 1.7, -2.2, 9.1]
    assert cosine_similarity(v, [-x for x in v]) == -1.0


def test_cosine_similarity_orthogonal_vectors():
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0


def test_cosine_similarity_zero_vector_returns_zero():
    assert cosine_similarity([0.0, 0.0, 0.0], [1.0, 2.0, 3.0]) == 0.0
    assert cosine_similarity([1.0, 2.0, 3.0], [0.0, 0.0, 0.0]) == 0.0


def test_cosine_similarity_rejects_length_mismatch():
    with pytest.raises(ValueError):
        cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])


def test_cosine_similarity_known_angle():
    similarity = cosine_similarity([1.0, 0.0], [0.97, math.sqrt(1 - 0.97**2)])
    assert similarity == pytest.approx(0.97)


def test_haversine_same_point_is_zero():
    assert haversine_distance_km(14.5995, 120.9842, 14.5995, 120.9842) == 0.0
    assert haversine_distance_km(-90.0, 0.0, -90.0, 0.0) == 0.0


def test_haversine_known_distance():
    # Paris -> London, roughly 343 km.
    distance = haversine_distance_km(48.8566, 2.3522, 51.5074, -0.1278)
    assert distance == pytest.approx(343.5, abs=1.0)


def test_haversine_is_symmetric():
    forward = haversine_distance_km(10.0, 20.0, -15.0, 100.0)
    backward = haversine_distance_km(-15.0, 100.0, 10.0, 20.0)
    assert forward == pytest.approx(backward)


@pytest.mark.parametrize("lon", [0.0, 45.0, 120.9842, -179.5])
def test_haversine_antipodal_points_are_half_the_circumference(lon):
    half_circumference = math.pi * 6371.0
    for lat in range(-89, 90):
        distance = haversine_distance_km(lat, lon, -lat, lon - 180.0)
        assert distance == pytest.approx(half_circumference, rel=1e-6)


def test_days_between_whole_days_and_order_independent():
    start = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    end = start + timedelta(days=5)
    assert days_between(start, end) == 5
    assert days_between(end, start) == 5


def test_days_between_rounds_partial_days_up():
    start = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    assert days_between(start, start + timedelta(hours=25)) == 2
    assert days_between(start, start) == 0


def test_days_between_accepts_seconds_records_and_strings():
    start = datetime(2026, 3, 1, tzinfo=timezone.utc)
    record = {"seconds": int((start + timedelta(days=3)).timestamp()), "nanoseconds": 0}
    assert days_between(start, record) == 3
    assert days_between("2026-03-01T00:00:00Z", "2026-03-11T00:00:00Z") == 10


def test_days_between_rejects_unusable_values():
    with pytest.raises(ValueError):
        days_between("not a date", datetime(2026, 1, 1, tzinfo=timezone.utc))
