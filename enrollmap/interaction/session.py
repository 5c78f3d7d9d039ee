"""
Headless map session.

Bundles everything the map widget needs between two paint events: the
interaction controller, the entity list, the visualization mode, the
dashboard's filters (read-only here), hover and selection.  The Qt widget
forwards raw input to it and paints whatever :meth:`MapSession.frame`
returns; nothing in here touches Qt.

Usage
-----
    session = MapSession(colleges, filters=filters, on_select=print)
    session.press(120, 80)
    session.release(120, 80)     # tap on a marker → on_select(entity_id)
    frame = session.frame()
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Sequence

from ..geo.tile_grid import Tile, build_tile_grid
from ..geo.viewport import Viewport
from ..markers.buckets import ATTENDING, MODES, Bucket, legend_entries
from ..markers.layer import Marker, build_markers, marker_at
from .controller import InteractionController

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frame:
    """Everything drawn in one render pass."""
    viewport: Viewport
    tiles: List[Tile]
    markers: List[Marker]


class MapSession:
    def __init__(
        self,
        entities: Sequence = (),
        mode: str = ATTENDING,
        filters: Optional[Mapping[str, bool]] = None,
        on_select: Optional[Callable[[str], None]] = None,
        toggle_filter: Optional[Callable[[str], None]] = None,
        viewport: Optional[Viewport] = None,
    ):
        self.controller = InteractionController(viewport)
        self._entities = list(entities)
        self._by_id = {e.id: e for e in self._entities}
        self._mode = mode
        self._filters: Mapping[str, bool] = filters if filters is not None else {}
        self._on_select = on_select
        self._toggle_filter = toggle_filter
        self._hovered_id: Optional[str] = None
        self._press_target: Optional[str] = None
        self._markers: Optional[List[Marker]] = None
        self.controller.add_listener(lambda _vp: self._invalidate())

    # ── Inputs from the dashboard ─────────────────────────────────────

    @property
    def viewport(self) -> Viewport:
        return self.controller.viewport

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def hovered_id(self) -> Optional[str]:
        return self._hovered_id

    def entity(self, entity_id: Optional[str]):
        if entity_id is None:
            return None
        return self._by_id.get(entity_id)

    def set_entities(self, entities: Sequence) -> None:
        self._entities = list(entities)
        self._by_id = {e.id: e for e in self._entities}
        self._hovered_id = None
        self._press_target = None
        self._invalidate()

    def set_mode(self, mode: str) -> None:
        if mode not in MODES:
            raise ValueError(f"Unknown mode {mode!r}; expected one of {MODES}")
        self._mode = mode
        self._hovered_id = None
        self._invalidate()

    def filters_changed(self) -> None:
        """The dashboard mutated the filter mapping in place."""
        self._invalidate()

    def legend(self) -> List[Bucket]:
        return legend_entries(self._mode)

    def is_visible(self, key: str) -> bool:
        return self._filters.get(key, True) is not False

    def legend_clicked(self, key: str) -> None:
        if self._toggle_filter is not None:
            self._toggle_filter(key)
        self._invalidate()

    # ── Rendering ─────────────────────────────────────────────────────

    def _invalidate(self) -> None:
        self._markers = None

    def markers(self) -> List[Marker]:
        if self._markers is None:
            self._markers = build_markers(
                self._entities, self.viewport, self._mode, self._filters, self._hovered_id,
            )
        return self._markers

    def frame(self) -> Frame:
        vp = self.viewport
        return Frame(viewport=vp, tiles=build_tile_grid(vp), markers=self.markers())

    # ── Pointer input ─────────────────────────────────────────────────

    def press(self, x: float, y: float) -> None:
        if self.controller.press(x, y):
            hit = marker_at(self.markers(), x, y)
            self._press_target = hit.entity_id if hit else None

    def move(self, x: float, y: float) -> None:
        if self.controller.move(x, y):
            return
        self.hover_at(x, y)

    def release(self, x: float, y: float) -> Optional[str]:
        """End a gesture; returns the selected entity id on a marker tap."""
        target, self._press_target = self._press_target, None
        if not self.controller.release():
            return None
        if target is None:
            return None
        hit = marker_at(self.markers(), x, y)
        if hit is None or hit.entity_id != target:
            return None
        log.debug("Marker tapped: %s", target)
        if self._on_select is not None:
            self._on_select(target)
        return target

    def leave(self) -> None:
        self.controller.leave()
        self._press_target = None
        self._set_hovered(None)

    def hover_at(self, x: float, y: float) -> Optional[str]:
        hit = marker_at(self.markers(), x, y)
        self._set_hovered(hit.entity_id if hit else None)
        return self._hovered_id

    def _set_hovered(self, entity_id: Optional[str]) -> None:
        if entity_id != self._hovered_id:
            self._hovered_id = entity_id
            self._invalidate()

    # ── Touch / wheel / buttons / resize ──────────────────────────────

    def touch_begin(self, points) -> None:
        if len(points) == 1:
            self.press(*points[0])

    def touch_update(self, points) -> None:
        if len(points) == 1:
            self.controller.touch_update(points)

    def touch_end(self, x: float, y: float) -> Optional[str]:
        return self.release(x, y)

    def wheel(self, x: float, y: float, zoom_in: bool) -> None:
        self.controller.wheel(x, y, zoom_in)

    def zoom_in(self) -> None:
        self.controller.zoom_in()

    def zoom_out(self) -> None:
        self.controller.zoom_out()

    def resize(self, width: int, height: int) -> None:
        self.controller.resize(width, height)
