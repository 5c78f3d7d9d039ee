from __future__ import annotations

import warnings

import numpy as np
import pytest

from enrollmap.geo.projection import (
    lat_lng_to_world,
    project_arrays,
    world_size,
    world_to_lat_lng,
)


def test_world_size_doubles_per_zoom_level():
    assert world_size(0) == 256
    assert world_size(4) == 4096
    assert world_size(4.5) == pytest.approx(4096 * 2 ** 0.5)


def test_null_island_is_world_centre():
    x, y = lat_lng_to_world(0.0, 0.0, 3)
    assert x == pytest.approx(1024.0)
    assert y == pytest.approx(1024.0)


def test_antimeridian_maps_to_world_edges():
    x_west, _ = lat_lng_to_world(10.0, -180.0, 2)
    x_east, _ = lat_lng_to_world(10.0, 180.0, 2)
    assert x_west == pytest.approx(0.0)
    assert x_east == pytest.approx(1024.0)


def test_north_is_up():
    _, y_north = lat_lng_to_world(60.0, 0.0, 4)
    _, y_south = lat_lng_to_world(-60.0, 0.0, 4)
    assert y_north < y_south


@pytest.mark.parametrize("zoom", [2, 4, 8, 12, 6.5])
@pytest.mark.parametrize(
    "lat,lng",
    [(39.8283, -98.5795), (51.5074, -0.1278), (-33.8688, 151.2093), (0.0, 0.0), (84.0, 179.9)],
)
def test_round_trip_is_exact(zoom, lat, lng):
    x, y = lat_lng_to_world(lat, lng, zoom)
    lat2, lng2 = world_to_lat_lng(x, y, zoom)
    assert lat2 == pytest.approx(lat, abs=1e-6)
    assert lng2 == pytest.approx(lng, abs=1e-6)


def test_project_arrays_matches_scalar():
    lats = np.array([39.8283, 40.0067, -33.8688])
    lngs = np.array([-98.5795, -83.0305, 151.2093])
    xs, ys = project_arrays(lats, lngs, 5.25)
    for lat, lng, x, y in zip(lats, lngs, xs, ys):
        ex, ey = lat_lng_to_world(lat, lng, 5.25)
        assert x == pytest.approx(ex)
        assert y == pytest.approx(ey)


def test_project_arrays_out_of_band_latitude_is_quiet():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        xs, ys = project_arrays(np.array([95.0, 40.0]), np.array([-90.0, -90.0]), 4)
    assert not np.isfinite(ys[0])
    assert np.isfinite(ys[1])
