from __future__ import annotations

import dataclasses

import pytest

from enrollmap.geo.viewport import Viewport, clamp_zoom


def test_defaults_center_on_contiguous_us():
    vp = Viewport()
    assert (vp.latitude, vp.longitude, vp.zoom) == (39.8283, -98.5795, 4.0)
    assert (vp.width, vp.height) == (800, 600)


@pytest.mark.parametrize("raw,expected", [(0, 2.0), (1.99, 2.0), (2, 2.0), (7.3, 7.3), (12, 12.0), (20, 12.0)])
def test_zoom_is_clamped(raw, expected):
    assert clamp_zoom(raw) == expected
    assert Viewport(zoom=raw).zoom == expected


def test_viewport_is_immutable():
    vp = Viewport()
    with pytest.raises(dataclasses.FrozenInstanceError):
        vp.zoom = 5


def test_copies_leave_original_untouched():
    vp = Viewport()
    moved = vp.with_center(10.0, 20.0)
    zoomed = vp.with_zoom(30)
    resized = vp.with_size(1024, 768)
    assert vp == Viewport()
    assert (moved.latitude, moved.longitude) == (10.0, 20.0)
    assert zoomed.zoom == 12.0
    assert (resized.width, resized.height) == (1024, 768)


def test_centre_of_surface_is_viewport_centre():
    vp = Viewport(45.0, 7.0, 6.5, 640, 480)
    lat, lng = vp.screen_to_lat_lng(320, 240)
    assert lat == pytest.approx(45.0, abs=1e-9)
    assert lng == pytest.approx(7.0, abs=1e-9)


def test_screen_round_trip():
    vp = Viewport()
    lat, lng = vp.screen_to_lat_lng(123.0, 456.0)
    sx, sy = vp.lat_lng_to_screen(lat, lng)
    assert sx == pytest.approx(123.0, abs=1e-6)
    assert sy == pytest.approx(456.0, abs=1e-6)


def test_default_top_left_world():
    x0, y0 = Viewport().top_left_world()
    assert x0 == pytest.approx(526.38, abs=0.05)
    assert y0 == pytest.approx(1253.2, abs=0.2)
