from __future__ import annotations

import pytest

from enrollmap.dashboard.filters import FilterSet
from enrollmap.dashboard.stats import rate_distribution, stable_jitter, summarize, top_by_attendance
from enrollmap.dashboard.table import (
    ASC,
    DESC,
    SortConfig,
    format_location,
    format_rate,
    next_sort,
    query_rows,
)
from enrollmap.ingest.records import Entity, load_school
from enrollmap.markers.buckets import ACCEPTANCE, ATTENDING


def college(id, attending=0, accepted=0, rate=None, name=None, city="", state=""):
    return Entity(id=id, name=name or id, city=city, state=state, lat=40.0, lng=-90.0,
                  attending=attending, accepted=accepted, rate=rate)


@pytest.fixture(scope="module")
def sycamore():
    return load_school("SYCAMORE")


# ── Summary ──────────────────────────────────────────────────────────────

def test_summary_of_shipped_dataset(sycamore):
    stats = summarize(sycamore)
    assert stats.total_attending == 228
    assert stats.total_accepted == 641
    # 13 colleges report a rate, mean 44.77
    assert stats.avg_acceptance_rate == 45
    assert stats.most_popular.id == "osu"


def test_average_ignores_absent_rates():
    stats = summarize([college("a", rate=10), college("b", rate=None), college("c", rate=20)])
    assert stats.avg_acceptance_rate == 15


def test_average_rounds_half_up():
    assert summarize([college("a", rate=10), college("b", rate=11)]).avg_acceptance_rate == 11


def test_entity_without_rate_is_left_out_of_average():
    a = Entity(id="A", name="A", city="", state="", lat=40.0, lng=-88.0, attending=52, rate=None)
    assert summarize([a]).avg_acceptance_rate == 0
    assert summarize([a, college("b", rate=30)]).avg_acceptance_rate == 30


def test_zero_rate_is_a_reported_rate():
    assert summarize([college("a", rate=0.0), college("b", rate=10)]).avg_acceptance_rate == 5
    assert format_rate(college("a", rate=0)) == "0%"


def test_average_is_zero_without_rates():
    assert summarize([college("a"), college("b")]).avg_acceptance_rate == 0


def test_empty_summary():
    stats = summarize([])
    assert (stats.total_attending, stats.total_accepted, stats.avg_acceptance_rate) == (0, 0, 0)
    assert stats.most_popular is None


def test_most_popular_tie_goes_to_later_entity():
    stats = summarize([college("a", attending=5), college("b", attending=5), college("c", attending=1)])
    assert stats.most_popular.id == "b"


# ── Chart series ─────────────────────────────────────────────────────────

def test_top_by_attendance(sycamore):
    top = top_by_attendance(sycamore)
    assert len(top) == 8
    assert top[0] == ("The Ohio State University", 58)
    values = [v for _, v in top]
    assert values == sorted(values, reverse=True)


def test_top_by_attendance_short_list():
    assert top_by_attendance([college("a", attending=1)]) == [("a", 1)]


def test_stable_jitter():
    assert stable_jitter("abc") == 64
    assert stable_jitter("abc") == stable_jitter("abc")
    for entity_id in ("osu", "uc-1", "x", "", "a-very-long-identifier"):
        assert 10 <= stable_jitter(entity_id) < 90


def test_rate_distribution_sorted_and_filtered(sycamore):
    points = rate_distribution(sycamore)
    assert len(points) == 13
    assert "xavier" not in {p.entity_id for p in points}
    rates = [p.rate for p in points]
    assert rates == sorted(rates)
    assert points[0].entity_id == "harvard"
    assert all(p.jitter == stable_jitter(p.entity_id) for p in points)


# ── Table ────────────────────────────────────────────────────────────────

def test_next_sort_toggle():
    s = SortConfig()
    assert (s.key, s.direction) == ("attending", DESC)
    s = next_sort(s, "attending")
    assert (s.key, s.direction) == ("attending", ASC)
    s = next_sort(s, "attending")
    assert (s.key, s.direction) == ("attending", DESC)
    s = next_sort(s, "rate")
    assert (s.key, s.direction) == ("rate", DESC)


def test_default_sort_is_attending_desc(sycamore):
    rows = query_rows(sycamore, "", ATTENDING, FilterSet())
    assert len(rows) == 14
    assert rows[0].id == "osu"
    assert [r.attending for r in rows] == sorted((r.attending for r in rows), reverse=True)


def test_absent_values_sort_as_minus_one(sycamore):
    rows = query_rows(sycamore, "", ATTENDING, FilterSet(), SortConfig("rate", ASC))
    assert rows[0].id == "xavier"
    rows = query_rows(sycamore, "", ATTENDING, FilterSet(), SortConfig("rate", DESC))
    assert rows[-1].id == "xavier"
    assert rows[0].id == "uc-1"


def test_sort_by_name():
    rows = query_rows([college("b"), college("a"), college("c")], "", ATTENDING, FilterSet(),
                      SortConfig("name", ASC))
    assert [r.id for r in rows] == ["a", "b", "c"]


def test_search_matches_name_city_or_state(sycamore):
    rows = query_rows(sycamore, "cincinnati", ATTENDING, FilterSet())
    assert {r.id for r in rows} == {"uc", "uc-1", "xavier"}
    rows = query_rows(sycamore, "IN", ATTENDING, FilterSet(), SortConfig("name", ASC))
    assert {"iu", "purdue", "nd"} <= {r.id for r in rows}
    assert query_rows(sycamore, "zzz", ATTENDING, FilterSet()) == []


def test_table_shares_category_filters(sycamore):
    filters = FilterSet(hidden=["UNKNOWN"])
    rows = query_rows(sycamore, "", ACCEPTANCE, filters)
    assert "xavier" not in {r.id for r in rows}
    # UNKNOWN has no meaning in attendance mode
    rows = query_rows(sycamore, "", ATTENDING, filters)
    assert "xavier" in {r.id for r in rows}


def test_ungeocoded_rows_still_listed(sycamore):
    assert "intl" in {r.id for r in query_rows(sycamore, "", ATTENDING, FilterSet())}


def test_bad_sort_key():
    with pytest.raises(ValueError):
        query_rows([], "", ATTENDING, FilterSet(), SortConfig("lat", ASC))


def test_formatters():
    assert format_rate(college("a", rate=53.0)) == "53%"
    assert format_rate(college("a", rate=6.7)) == "6.7%"
    assert format_rate(college("a", rate=0.0)) == "0%"
    assert format_rate(college("a")) == "N/A"
    assert format_location(college("a", city="Columbus", state="OH")) == "Columbus, OH"
    assert format_location(college("a", state="OH")) == "OH"


# ── Filters ──────────────────────────────────────────────────────────────

def test_filter_set_defaults_and_toggle():
    filters = FilterSet()
    assert all(filters.values())
    assert filters.is_visible("SOMETHING_NEW")
    assert filters.toggle("MED") is False
    assert filters.hidden_keys() == ["MED"]
    assert filters.toggle("MED") is True
    assert filters.hidden_keys() == []
