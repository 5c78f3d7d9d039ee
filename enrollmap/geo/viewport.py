"""
Immutable viewport descriptor.

A :class:`Viewport` is the map centre, a continuous zoom level and the
pixel size of the rendering surface.  It is never mutated in place: the
interaction controller builds a new value for every change, and the tile
grid and marker layer read whichever value is current on each render pass.

Longitude is deliberately left unwrapped; panning far east or west simply
runs into the repeated world provided by tile wraparound.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from ..settings import DEFAULT_CENTER, DEFAULT_SIZE, DEFAULT_ZOOM, MAX_ZOOM, MIN_ZOOM
from .projection import lat_lng_to_world, world_to_lat_lng


def clamp_zoom(zoom: float) -> float:
    return min(max(zoom, MIN_ZOOM), MAX_ZOOM)


@dataclass(frozen=True)
class Viewport:
    """Centre, zoom and surface size for one render pass."""

    latitude: float = DEFAULT_CENTER[0]
    longitude: float = DEFAULT_CENTER[1]
    zoom: float = DEFAULT_ZOOM
    width: int = DEFAULT_SIZE[0]
    height: int = DEFAULT_SIZE[1]

    def __post_init__(self) -> None:
        object.__setattr__(self, "zoom", clamp_zoom(float(self.zoom)))

    # ── Derived values ────────────────────────────────────────────────

    def center_world(self, zoom: Optional[float] = None) -> Tuple[float, float]:
        """Centre in world pixels at ``zoom`` (defaults to the view zoom)."""
        z = self.zoom if zoom is None else zoom
        return lat_lng_to_world(self.latitude, self.longitude, z)

    def top_left_world(self) -> Tuple[float, float]:
        cx, cy = self.center_world()
        return cx - self.width / 2.0, cy - self.height / 2.0

    def screen_to_lat_lng(self, sx: float, sy: float) -> Tuple[float, float]:
        x0, y0 = self.top_left_world()
        return world_to_lat_lng(x0 + sx, y0 + sy, self.zoom)

    def lat_lng_to_screen(self, lat: float, lng: float) -> Tuple[float, float]:
        x0, y0 = self.top_left_world()
        x, y = lat_lng_to_world(lat, lng, self.zoom)
        return x - x0, y - y0

    # ── Copies ────────────────────────────────────────────────────────

    def with_center(self, latitude: float, longitude: float) -> "Viewport":
        return replace(self, latitude=latitude, longitude=longitude)

    def with_zoom(self, zoom: float) -> "Viewport":
        return replace(self, zoom=zoom)

    def with_size(self, width: int, height: int) -> "Viewport":
        return replace(self, width=int(width), height=int(height))
