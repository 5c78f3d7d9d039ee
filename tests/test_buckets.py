from __future__ import annotations

import math

import pytest

from enrollmap.ingest.records import Entity
from enrollmap.markers.buckets import (
    ACCEPTANCE,
    ACCEPTANCE_BUCKETS,
    ATTENDING,
    ATTENDING_BUCKETS,
    UNKNOWN_BUCKET,
    all_keys,
    bucket_for,
    first_match,
    get_category_key,
    legend_entries,
)


def college(attending=0, rate=None, **kw):
    fields = dict(id="c", name="College", city="Town", state="ST", lat=40.0, lng=-90.0)
    fields.update(kw)
    return Entity(attending=attending, accepted=attending, rate=rate, **fields)


@pytest.mark.parametrize(
    "attending,key",
    [(0, "MIN"), (4, "MIN"), (5, "VERY_LOW"), (9, "VERY_LOW"), (10, "LOW"),
     (19, "LOW"), (20, "MED"), (49, "MED"), (50, "HIGH"), (500, "HIGH")],
)
def test_attendance_boundaries(attending, key):
    assert get_category_key(college(attending=attending), ATTENDING) == key


@pytest.mark.parametrize(
    "rate,key",
    [(0, "EXTREME"), (4.9, "EXTREME"), (5, "VERY_LOW"), (9.99, "VERY_LOW"),
     (10, "LOW"), (19.9, "LOW"), (20, "SELECTIVE"), (49.9, "SELECTIVE"),
     (50, "MODERATE"), (79.9, "MODERATE"), (80, "OPEN"), (100, "OPEN")],
)
def test_acceptance_boundaries(rate, key):
    assert get_category_key(college(rate=rate), ACCEPTANCE) == key


def test_absent_rate_is_unknown():
    assert get_category_key(college(rate=None), ACCEPTANCE) == "UNKNOWN"
    assert get_category_key(college(rate=math.nan), ACCEPTANCE) == "UNKNOWN"


def test_entity_without_rate_still_buckets_by_attendance():
    a = college(attending=52, rate=None)
    assert get_category_key(a, ATTENDING) == "HIGH"
    assert get_category_key(a, ACCEPTANCE) == "UNKNOWN"


def test_colour_and_radius_come_from_the_same_bucket():
    b = bucket_for(college(attending=52), ATTENDING)
    assert (b.key, b.color, b.radius) == ("HIGH", "#ef4444", 24)
    b = bucket_for(college(rate=3.0), ACCEPTANCE)
    assert (b.key, b.color, b.radius) == ("EXTREME", "#7f1d1d", 24)
    assert bucket_for(college(rate=None), ACCEPTANCE) is UNKNOWN_BUCKET


def test_first_match_scans_top_down():
    assert first_match(ATTENDING_BUCKETS, 1e9).key == "HIGH"
    assert first_match(ATTENDING_BUCKETS, -1).key == "MIN"
    assert first_match(ACCEPTANCE_BUCKETS, -5).key == "EXTREME"


def test_unknown_mode_is_rejected():
    with pytest.raises(ValueError):
        get_category_key(college(), "enrolled")


def test_legend_order():
    assert [b.key for b in legend_entries(ATTENDING)] == ["HIGH", "MED", "LOW", "VERY_LOW", "MIN"]
    assert [b.key for b in legend_entries(ACCEPTANCE)] == [
        "EXTREME", "VERY_LOW", "LOW", "SELECTIVE", "MODERATE", "OPEN", "UNKNOWN",
    ]


def test_all_keys_are_unique():
    keys = all_keys()
    assert len(keys) == len(set(keys))
    assert set(keys) == {
        "HIGH", "MED", "LOW", "VERY_LOW", "MIN",
        "OPEN", "MODERATE", "SELECTIVE", "EXTREME", "UNKNOWN",
    }
