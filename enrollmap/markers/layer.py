"""
Marker layer — entities to screen-space circles.

For every entity with a location, the layer picks its category bucket,
drops it if the bucket is filtered out, projects it onto the surface and
culls it when it lands more than :data:`CULL_MARGIN_PX` outside the
surface.  Colour and radius both come from the bucket.

Markers are returned in paint order: everything at the default stacking
level first, the hovered marker (if any) last, enlarged.

Usage
-----
    markers = build_markers(colleges, viewport, "attending", filters, hovered_id)
    hit = marker_at(markers, 412, 230)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

import numpy as np

from ..geo.projection import project_arrays
from ..geo.viewport import Viewport
from ..settings import CULL_MARGIN_PX
from .buckets import bucket_for

log = logging.getLogger(__name__)

Z_DEFAULT = 10
Z_HOVERED = 100
HOVER_SCALE = 1.2


@dataclass(frozen=True)
class Marker:
    """One visible marker on the surface."""
    entity_id: str
    x: float                  # screen centre
    y: float
    radius: float             # effective radius (hover scale applied)
    color: str
    key: str                  # bucket key
    z: int = Z_DEFAULT
    hovered: bool = False

    def contains(self, px: float, py: float) -> bool:
        dx = px - self.x
        dy = py - self.y
        return dx * dx + dy * dy <= self.radius * self.radius


def build_markers(
    entities: Sequence,
    viewport: Viewport,
    mode: str,
    filters: Mapping[str, bool],
    hovered_id: Optional[str] = None,
) -> List[Marker]:
    candidates = []
    buckets = []
    for entity in entities:
        if not entity.has_location:
            continue
        bucket = bucket_for(entity, mode)
        if filters.get(bucket.key, True) is False:
            continue
        candidates.append(entity)
        buckets.append(bucket)

    if not candidates:
        return []

    lats = np.fromiter((e.lat for e in candidates), dtype=np.float64, count=len(candidates))
    lngs = np.fromiter((e.lng for e in candidates), dtype=np.float64, count=len(candidates))
    xs, ys = project_arrays(lats, lngs, viewport.zoom)
    x0, y0 = viewport.top_left_world()
    sx = xs - x0
    sy = ys - y0

    m = CULL_MARGIN_PX
    visible = (
        (sx >= -m) & (sx <= viewport.width + m)
        & (sy >= -m) & (sy <= viewport.height + m)
    )

    markers: List[Marker] = []
    top: Optional[Marker] = None
    for i in np.flatnonzero(visible):
        entity = candidates[i]
        bucket = buckets[i]
        if entity.id == hovered_id:
            top = Marker(
                entity_id=entity.id, x=float(sx[i]), y=float(sy[i]),
                radius=bucket.radius * HOVER_SCALE, color=bucket.color,
                key=bucket.key, z=Z_HOVERED, hovered=True,
            )
            continue
        markers.append(Marker(
            entity_id=entity.id, x=float(sx[i]), y=float(sy[i]),
            radius=float(bucket.radius), color=bucket.color, key=bucket.key,
        ))
    if top is not None:
        markers.append(top)

    log.debug("Markers: %d visible of %d candidates (%d entities)",
              len(markers), len(candidates), len(entities))
    return markers


def marker_at(markers: Sequence[Marker], x: float, y: float) -> Optional[Marker]:
    """Topmost marker under ``(x, y)``, or None."""
    for marker in reversed(markers):
        if marker.contains(x, y):
            return marker
    return None
