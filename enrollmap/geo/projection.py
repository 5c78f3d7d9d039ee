"""
Spherical (web) Mercator projection into world pixel space.

World pixels are measured at a given zoom level: the whole globe spans
``2**zoom * 256`` pixels on each axis, x growing eastward from the
antimeridian and y growing southward from the north edge.  Zoom may be
fractional.

Latitude is not clamped.  Near ±90° ``tan``/``sec`` diverge and the result
is non-finite; callers keep inputs inside the Mercator band.

Usage
-----
    x, y = lat_lng_to_world(40.0, -88.0, 4)
    lat, lng = world_to_lat_lng(x, y, 4)
"""
from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from ..settings import TILE_SIZE


def world_size(zoom: float) -> float:
    """Width (and height) of the world in pixels at ``zoom``."""
    return (2.0 ** zoom) * TILE_SIZE


def lat_lng_to_world(lat: float, lng: float, zoom: float) -> Tuple[float, float]:
    size = world_size(zoom)
    lat_rad = math.radians(lat)
    x = (lng + 180.0) / 360.0 * size
    y = (1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi) / 2.0 * size
    return x, y


def world_to_lat_lng(x: float, y: float, zoom: float) -> Tuple[float, float]:
    size = world_size(zoom)
    lng = x / size * 360.0 - 180.0
    lat_rad = math.atan(math.sinh(math.pi * (1.0 - 2.0 * y / size)))
    return math.degrees(lat_rad), lng


def project_arrays(
    lats: np.ndarray, lngs: np.ndarray, zoom: float
) -> Tuple[np.ndarray, np.ndarray]:
    """Vectorized :func:`lat_lng_to_world` for marker batches.

    Latitudes outside the Mercator band come back as NaN or inf without a
    numpy warning; the marker layer culls them.
    """
    size = world_size(zoom)
    lat_rad = np.radians(np.asarray(lats, dtype=np.float64))
    xs = (np.asarray(lngs, dtype=np.float64) + 180.0) / 360.0 * size
    with np.errstate(invalid="ignore", divide="ignore"):
        ys = (1.0 - np.log(np.tan(lat_rad) + 1.0 / np.cos(lat_rad)) / np.pi) / 2.0 * size
    return xs, ys
