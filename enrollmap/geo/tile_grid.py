"""
Raster tile grid covering the current viewport.

Tiles are fetched at the integer zoom ``floor(zoom)`` and drawn uniformly
scaled by ``2**(zoom - floor(zoom))``, so fractional zoom never requests
fractional tiles.  Columns wrap around the globe (the map repeats east and
west); rows above the north edge or below the south edge do not exist and
are left as background.

Usage
-----
    grid = build_tile_grid(Viewport(39.8283, -98.5795, 4.0, 800, 600))
    print(f"{len(grid)} tiles")
    for tile in grid:
        print(tile_url(TILE_URL, tile), tile.left, tile.top, tile.size)
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

from ..settings import TILE_SIZE
from .projection import lat_lng_to_world
from .viewport import Viewport


@dataclass(frozen=True)
class Tile:
    """One raster tile and its placement on screen."""

    zoom: int                 # integer tile zoom
    x: int                    # unwrapped column (may be negative or >= 2**zoom)
    y: int                    # row (0 = northernmost)
    wrapped_x: int            # column actually requested from the server

    # Screen rectangle in surface pixels
    left: float
    top: float
    size: float

    @property
    def key(self) -> Tuple[int, int, int]:
        """Cache / request key; uses the wrapped column so repeated worlds share images."""
        return (self.zoom, self.wrapped_x, self.y)


def wrap_tile_x(x: int, zoom: int) -> int:
    n = 2 ** zoom
    return x % n


def tile_url(template: str, tile: Tile) -> str:
    return template.format(z=tile.zoom, x=tile.wrapped_x, y=tile.y)


def tile_range(viewport: Viewport) -> Tuple[int, int, int, int, float, float, float]:
    """Return ``(start_x, end_x, start_y, end_y, corner_x, corner_y, scale)``.

    The end indices are exclusive.  ``corner_*`` is the viewport's top-left
    in world pixels at the tile zoom, computed from the unscaled surface size.
    """
    tile_zoom = math.floor(viewport.zoom)
    scale = 2.0 ** (viewport.zoom - tile_zoom)

    cx, cy = lat_lng_to_world(viewport.latitude, viewport.longitude, tile_zoom)
    unscaled_w = viewport.width / scale
    unscaled_h = viewport.height / scale
    corner_x = cx - unscaled_w / 2.0
    corner_y = cy - unscaled_h / 2.0

    start_x = math.floor(corner_x / TILE_SIZE)
    start_y = math.floor(corner_y / TILE_SIZE)
    end_x = math.ceil((corner_x + unscaled_w) / TILE_SIZE)
    end_y = math.ceil((corner_y + unscaled_h) / TILE_SIZE)
    return start_x, end_x, start_y, end_y, corner_x, corner_y, scale


def build_tile_grid(viewport: Viewport) -> List[Tile]:
    """Enumerate the tiles needed to cover ``viewport``.

    Parameters
    ----------
    viewport : Viewport
        Current view; zoom may be fractional.

    Returns
    -------
    list[Tile]
        Column-major (x outer, y inner), rows outside the world omitted.
    """
    start_x, end_x, start_y, end_y, corner_x, corner_y, scale = tile_range(viewport)
    tile_zoom = math.floor(viewport.zoom)
    n_rows = 2 ** tile_zoom
    size = TILE_SIZE * scale

    tiles: List[Tile] = []
    for x in range(start_x, end_x):
        for y in range(start_y, end_y):
            if y < 0 or y >= n_rows:
                continue
            tiles.append(Tile(
                zoom=tile_zoom,
                x=x,
                y=y,
                wrapped_x=wrap_tile_x(x, tile_zoom),
                left=(x * TILE_SIZE - corner_x) * scale,
                top=(y * TILE_SIZE - corner_y) * scale,
                size=size,
            ))
    return tiles
