"""
Enrollment map widget — QPainter-based slippy map.

Paints, back to front:
  - raster tiles from the configured XYZ endpoint (fractional zoom scales
    the whole tile layer; columns wrap around the antimeridian)
  - one circle per college, colour and size from its category bucket
  - the hovered college's name in a small label
  - floating +/- zoom buttons and a legend whose entries toggle filters

All geometry and input handling lives in the headless
:class:`~enrollmap.interaction.session.MapSession`; this widget only
translates Qt events and draws the frame the session returns.

Tile images arrive on TileSource worker threads and cross to the GUI thread
through the ``_tile_arrived`` signal (queued connection).
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Dict, Mapping, Optional, Sequence

from PyQt5 import QtCore, QtGui, QtWidgets

from ..geo.tile_source import TileKey, TileSource
from ..interaction.session import MapSession
from ..markers.buckets import ATTENDING
from ..settings import TILE_URL

log = logging.getLogger(__name__)

_BACKGROUND = QtGui.QColor("#f1f5f9")
_PIXMAP_CACHE_SIZE = 512

_BTN_SS = (
    "QPushButton { background: rgba(255,255,255,230); color: #334155; "
    "border: 1px solid #cbd5e1; border-radius: 4px; "
    "font-size: 16px; font-weight: bold; }"
    "QPushButton:hover { background: #f1f5f9; color: #2563eb; }"
)

_LEGEND_SS = (
    "QFrame#legend { background: rgba(255,255,255,235); "
    "border: 1px solid #e2e8f0; border-radius: 6px; }"
)

_ENTRY_SS = (
    "QPushButton { background: transparent; border: none; text-align: left; "
    "color: #334155; font-size: 11px; padding: 3px 4px; }"
    "QPushButton:hover { background: #f1f5f9; }"
)


def _swatch_icon(color: str, radius: int, visible: bool) -> QtGui.QIcon:
    """Small circle in the bucket colour, greyed out when hidden."""
    size = 16
    pm = QtGui.QPixmap(size, size)
    pm.fill(QtCore.Qt.transparent)
    p = QtGui.QPainter(pm)
    p.setRenderHint(QtGui.QPainter.Antialiasing)
    c = QtGui.QColor(color)
    if not visible:
        c = QtGui.QColor(c.lightness(), c.lightness(), c.lightness())
    p.setBrush(c)
    p.setPen(QtGui.QPen(QtGui.QColor("#ffffff"), 1))
    r = max(3, min(7, radius // 3))
    p.drawEllipse(QtCore.QPointF(size / 2, size / 2), r, r)
    p.end()
    return QtGui.QIcon(pm)


class TileMapWidget(QtWidgets.QWidget):
    """Pannable, zoomable map of one school's college destinations.

    Signals
    -------
    entity_selected(str)
        A marker was tapped (entity id).
    filter_toggled(str)
        A legend entry was clicked (bucket key).  The owner of the filter
        set flips it and calls :meth:`refresh_filters`.
    """

    entity_selected = QtCore.pyqtSignal(str)
    filter_toggled = QtCore.pyqtSignal(str)
    _tile_arrived = QtCore.pyqtSignal(object, object)

    def __init__(
        self,
        entities: Sequence = (),
        mode: str = ATTENDING,
        filters: Optional[Mapping[str, bool]] = None,
        tile_url: str = TILE_URL,
        parent: Optional[QtWidgets.QWidget] = None,
    ):
        super().__init__(parent)
        self.setMinimumSize(320, 240)
        self.setMouseTracking(True)
        self.setAttribute(QtCore.Qt.WA_AcceptTouchEvents, True)
        self.setAttribute(QtCore.Qt.WA_OpaquePaintEvent, True)

        self._session = MapSession(
            entities,
            mode=mode,
            filters=filters,
            on_select=self.entity_selected.emit,
            toggle_filter=self.filter_toggled.emit,
        )
        self._session.controller.add_listener(lambda _vp: self.update())

        self._pixmaps: "OrderedDict[TileKey, QtGui.QPixmap]" = OrderedDict()
        self._tile_arrived.connect(self._on_tile_arrived, QtCore.Qt.QueuedConnection)
        self._source = TileSource(tile_url, on_loaded=self._tile_arrived.emit)

        # ── Zoom buttons (top-left) ──
        self._btn_in = QtWidgets.QPushButton("+", self)
        self._btn_out = QtWidgets.QPushButton("−", self)
        for btn in (self._btn_in, self._btn_out):
            btn.setFixedSize(30, 30)
            btn.setStyleSheet(_BTN_SS)
            btn.setCursor(QtCore.Qt.PointingHandCursor)
        self._btn_in.setToolTip("Zoom in")
        self._btn_out.setToolTip("Zoom out")
        self._btn_in.clicked.connect(self._session.zoom_in)
        self._btn_out.clicked.connect(self._session.zoom_out)

        # ── Legend (bottom-left) ──
        self._legend = QtWidgets.QFrame(self)
        self._legend.setObjectName("legend")
        self._legend.setStyleSheet(_LEGEND_SS)
        self._legend_layout = QtWidgets.QVBoxLayout(self._legend)
        self._legend_layout.setContentsMargins(6, 6, 6, 6)
        self._legend_layout.setSpacing(0)
        self._legend_buttons: Dict[str, QtWidgets.QPushButton] = {}
        self._rebuild_legend()

    # ── Public API ────────────────────────────────────────────────────

    @property
    def session(self) -> MapSession:
        return self._session

    def set_entities(self, entities: Sequence) -> None:
        self._session.set_entities(entities)
        self.update()

    def set_mode(self, mode: str) -> None:
        self._session.set_mode(mode)
        self._rebuild_legend()
        self.update()

    def refresh_filters(self) -> None:
        """The filter mapping changed; repaint markers and legend state."""
        self._session.filters_changed()
        self._update_legend_state()
        self.update()

    def shutdown(self) -> None:
        self._source.close()

    # ── Legend ────────────────────────────────────────────────────────

    def _rebuild_legend(self) -> None:
        while self._legend_layout.count():
            item = self._legend_layout.takeAt(0)
            widget = item.widget()
            if widget is not None:
                widget.deleteLater()
        self._legend_buttons.clear()

        title = QtWidgets.QLabel(
            "Students Attending" if self._session.mode == ATTENDING else "Acceptance Rate"
        )
        title.setStyleSheet(
            "color: #64748b; font-size: 10px; font-weight: bold; "
            "text-transform: uppercase; padding: 0 4px 4px 4px; background: transparent;"
        )
        self._legend_layout.addWidget(title)

        for bucket in self._session.legend():
            btn = QtWidgets.QPushButton(bucket.label)
            btn.setStyleSheet(_ENTRY_SS)
            btn.setCursor(QtCore.Qt.PointingHandCursor)
            btn.setIconSize(QtCore.QSize(16, 16))
            btn.clicked.connect(lambda _checked=False, k=bucket.key: self._session.legend_clicked(k))
            self._legend_layout.addWidget(btn)
            self._legend_buttons[bucket.key] = btn
        self._update_legend_state()
        self._legend.adjustSize()
        self._place_overlays()

    def _update_legend_state(self) -> None:
        for bucket in self._session.legend():
            btn = self._legend_buttons.get(bucket.key)
            if btn is None:
                continue
            visible = self._session.is_visible(bucket.key)
            btn.setIcon(_swatch_icon(bucket.color, bucket.radius, visible))
            btn.setToolTip(("Hide " if visible else "Show ") + bucket.label)
            effect = None
            if not visible:
                effect = QtWidgets.QGraphicsOpacityEffect(btn)
                effect.setOpacity(0.5)
            btn.setGraphicsEffect(effect)

    def _place_overlays(self) -> None:
        self._btn_in.move(10, 10)
        self._btn_out.move(10, 44)
        self._legend.move(10, max(80, self.height() - self._legend.height() - 10))

    # ── Tiles ─────────────────────────────────────────────────────────

    @QtCore.pyqtSlot(object, object)
    def _on_tile_arrived(self, key: TileKey, data: bytes) -> None:
        pm = QtGui.QPixmap()
        if not pm.loadFromData(data, "PNG"):
            log.debug("Tile %s/%s/%s rejected by QPixmap", *key)
            return
        self._pixmaps[key] = pm
        self._pixmaps.move_to_end(key)
        while len(self._pixmaps) > _PIXMAP_CACHE_SIZE:
            old_key, _ = self._pixmaps.popitem(last=False)
            self._source.forget(old_key)
        self.update()

    # ── Painting ──────────────────────────────────────────────────────

    def paintEvent(self, event):
        frame = self._session.frame()
        painter = QtGui.QPainter(self)
        painter.fillRect(self.rect(), _BACKGROUND)
        painter.setRenderHint(QtGui.QPainter.SmoothPixmapTransform)

        for tile in frame.tiles:
            pm = self._pixmaps.get(tile.key)
            if pm is None:
                self._source.request(tile)
                continue
            self._pixmaps.move_to_end(tile.key)
            # +0.5 px overlap hides hairline seams at fractional zoom
            target = QtCore.QRectF(tile.left, tile.top, tile.size + 0.5, tile.size + 0.5)
            painter.drawPixmap(target, pm, QtCore.QRectF(pm.rect()))

        painter.setRenderHint(QtGui.QPainter.Antialiasing)
        hovered = None
        for marker in frame.markers:
            fill = QtGui.QColor(marker.color)
            fill.setAlpha(235 if marker.hovered else 200)
            painter.setBrush(fill)
            painter.setPen(QtGui.QPen(QtGui.QColor("#ffffff"), 2.0 if marker.hovered else 1.0))
            painter.drawEllipse(QtCore.QPointF(marker.x, marker.y), marker.radius, marker.radius)
            if marker.hovered:
                hovered = marker

        if hovered is not None:
            self._draw_hover_label(painter, hovered)
        painter.end()

    def _draw_hover_label(self, painter: QtGui.QPainter, marker) -> None:
        entity = self._session.entity(marker.entity_id)
        if entity is None:
            return
        if self._session.mode == ATTENDING:
            detail = f"{entity.attending} attending"
        else:
            detail = "Rate unknown" if entity.rate is None else f"{entity.rate:g}% acceptance"
        text = f"{entity.name}  ·  {detail}"

        font = painter.font()
        font.setPointSize(9)
        painter.setFont(font)
        fm = QtGui.QFontMetrics(font)
        w = fm.horizontalAdvance(text) + 12
        h = fm.height() + 8
        x = min(max(4.0, marker.x - w / 2), self.width() - w - 4)
        y = marker.y - marker.radius - h - 6
        if y < 4:
            y = marker.y + marker.radius + 6
        rect = QtCore.QRectF(x, y, w, h)
        painter.setPen(QtCore.Qt.NoPen)
        painter.setBrush(QtGui.QColor(30, 41, 59, 230))
        painter.drawRoundedRect(rect, 4, 4)
        painter.setPen(QtGui.QColor("#ffffff"))
        painter.drawText(rect, QtCore.Qt.AlignCenter, text)

    # ── Input ─────────────────────────────────────────────────────────

    def mousePressEvent(self, event):
        if event.button() != QtCore.Qt.LeftButton:
            return super().mousePressEvent(event)
        self._session.press(event.x(), event.y())
        self.setCursor(QtCore.Qt.ClosedHandCursor)
        event.accept()

    def mouseMoveEvent(self, event):
        before = self._session.hovered_id
        self._session.move(event.x(), event.y())
        if not self._session.controller.is_dragging:
            self.setCursor(
                QtCore.Qt.PointingHandCursor if self._session.hovered_id else QtCore.Qt.OpenHandCursor
            )
            if self._session.hovered_id != before:
                self.update()
        event.accept()

    def mouseReleaseEvent(self, event):
        if event.button() != QtCore.Qt.LeftButton:
            return super().mouseReleaseEvent(event)
        self._session.release(event.x(), event.y())
        self.setCursor(QtCore.Qt.OpenHandCursor)
        event.accept()

    def leaveEvent(self, event):
        self._session.leave()
        self.unsetCursor()
        self.update()
        super().leaveEvent(event)

    def wheelEvent(self, event):
        """Anchored zoom; one notch is half a zoom level."""
        delta = event.angleDelta().y()
        if delta == 0:
            event.ignore()
            return
        pos = event.pos()
        self._session.wheel(pos.x(), pos.y(), delta > 0)
        event.accept()

    def event(self, event):
        etype = event.type()
        if etype in (QtCore.QEvent.TouchBegin, QtCore.QEvent.TouchUpdate, QtCore.QEvent.TouchEnd):
            points = [(tp.pos().x(), tp.pos().y()) for tp in event.touchPoints()]
            if etype == QtCore.QEvent.TouchBegin:
                self._session.touch_begin(points)
            elif etype == QtCore.QEvent.TouchUpdate:
                self._session.touch_update(points)
            elif points:
                self._session.touch_end(*points[0])
            else:
                self._session.leave()
            event.accept()
            return True
        if etype == QtCore.QEvent.TouchCancel:
            self._session.leave()
            event.accept()
            return True
        return super().event(event)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._session.resize(self.width(), self.height())
        self._place_overlays()

    def closeEvent(self, event):
        self.shutdown()
        super().closeEvent(event)
