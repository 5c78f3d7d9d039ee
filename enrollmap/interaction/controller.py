"""
Pan / zoom interaction controller.

Turns pointer, touch, wheel, button and resize input into new
:class:`~enrollmap.geo.viewport.Viewport` values.  The controller is the
only writer of the viewport; listeners are called with every new value.

States
------
  IDLE      — no contact on the surface
  DRAGGING  — one contact down; moves pan the map

Panning is measured against the centre captured at press time, so a drag
never accumulates rounding drift.  The accumulated ``|dx| + |dy|`` of every
move tells a tap (below :data:`TAP_THRESHOLD_PX`) from a pan.

Wheel zoom is anchored: the geographic point under the cursor keeps its
screen position across the zoom change.  Button zoom steps by a whole
level around the unchanged centre.
"""
from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Callable, List, Optional, Sequence, Tuple

from ..geo.projection import lat_lng_to_world, world_to_lat_lng
from ..geo.viewport import Viewport, clamp_zoom
from ..settings import BUTTON_ZOOM_STEP, TAP_THRESHOLD_PX, WHEEL_ZOOM_STEP

log = logging.getLogger(__name__)

ViewportListener = Callable[[Viewport], None]


class DragState(Enum):
    IDLE = auto()
    DRAGGING = auto()


class InteractionController:
    """Single-writer state machine over the map viewport."""

    def __init__(self, viewport: Optional[Viewport] = None):
        self._viewport = viewport or Viewport()
        self._state = DragState.IDLE
        self._press_pos: Tuple[float, float] = (0.0, 0.0)
        self._press_center: Tuple[float, float] = (
            self._viewport.latitude, self._viewport.longitude,
        )
        self._drag_distance = 0.0
        self._listeners: List[ViewportListener] = []

    # ── State ─────────────────────────────────────────────────────────

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def is_dragging(self) -> bool:
        return self._state is DragState.DRAGGING

    @property
    def drag_distance(self) -> float:
        return self._drag_distance

    @property
    def is_tap(self) -> bool:
        """Whether the current/last gesture is short enough to be a tap."""
        return self._drag_distance < TAP_THRESHOLD_PX

    def add_listener(self, listener: ViewportListener) -> None:
        self._listeners.append(listener)

    def _commit(self, viewport: Viewport) -> None:
        if viewport == self._viewport:
            return
        self._viewport = viewport
        for listener in self._listeners:
            listener(viewport)

    # ── Pointer ───────────────────────────────────────────────────────

    def press(self, x: float, y: float) -> bool:
        """Begin a drag.  Ignored (returns False) unless idle."""
        if self._state is not DragState.IDLE:
            return False
        self._state = DragState.DRAGGING
        self._press_pos = (x, y)
        self._press_center = (self._viewport.latitude, self._viewport.longitude)
        self._drag_distance = 0.0
        return True

    def move(self, x: float, y: float) -> bool:
        """Pan to follow the contact.  Returns True while dragging."""
        if self._state is not DragState.DRAGGING:
            return False
        dx = x - self._press_pos[0]
        dy = y - self._press_pos[1]
        self._drag_distance += abs(dx) + abs(dy)

        vp = self._viewport
        cx, cy = lat_lng_to_world(self._press_center[0], self._press_center[1], vp.zoom)
        lat, lng = world_to_lat_lng(cx - dx, cy - dy, vp.zoom)
        self._commit(vp.with_center(lat, lng))
        return True

    def release(self) -> bool:
        """End the drag.  Returns True when the gesture was a tap."""
        if self._state is not DragState.DRAGGING:
            return False
        self._state = DragState.IDLE
        tap = self.is_tap
        if not tap:
            log.debug("Pan finished (%.0f px)", self._drag_distance)
        return tap

    def leave(self) -> None:
        """Contact left the surface: force IDLE so a drag can't get stuck."""
        if self._state is DragState.DRAGGING:
            self._state = DragState.IDLE

    # ── Touch ─────────────────────────────────────────────────────────

    def touch_begin(self, points: Sequence[Tuple[float, float]]) -> bool:
        if len(points) != 1:
            return False
        return self.press(*points[0])

    def touch_update(self, points: Sequence[Tuple[float, float]]) -> bool:
        if len(points) != 1:
            return False
        return self.move(*points[0])

    def touch_end(self) -> bool:
        return self.release()

    # ── Zoom ──────────────────────────────────────────────────────────

    def wheel(self, x: float, y: float, zoom_in: bool) -> None:
        """Anchored zoom by one wheel step around surface point ``(x, y)``."""
        vp = self._viewport
        current = vp.zoom
        new_zoom = clamp_zoom(current + (WHEEL_ZOOM_STEP if zoom_in else -WHEEL_ZOOM_STEP))
        if new_zoom == current:
            return

        # Point under the cursor, in world pixels at the current zoom
        tl_x, tl_y = vp.top_left_world()
        lat, lng = world_to_lat_lng(tl_x + x, tl_y + y, current)

        # Same point at the new zoom; place the new top-left so it stays under (x, y)
        mx, my = lat_lng_to_world(lat, lng, new_zoom)
        new_cx = mx - x + vp.width / 2.0
        new_cy = my - y + vp.height / 2.0
        c_lat, c_lng = world_to_lat_lng(new_cx, new_cy, new_zoom)
        self._commit(Viewport(c_lat, c_lng, new_zoom, vp.width, vp.height))

    def zoom_by(self, steps: float) -> None:
        self._commit(self._viewport.with_zoom(self._viewport.zoom + steps))

    def zoom_in(self) -> None:
        self.zoom_by(BUTTON_ZOOM_STEP)

    def zoom_out(self) -> None:
        self.zoom_by(-BUTTON_ZOOM_STEP)

    # ── Surface ───────────────────────────────────────────────────────

    def resize(self, width: int, height: int) -> None:
        self._commit(self._viewport.with_size(width, height))
