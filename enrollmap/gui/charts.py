"""
Dashboard charts (pyqtgraph).

  TopAttendanceChart   horizontal bars, the colleges most students attend
  RateDotPlot          every college with a known acceptance rate on a
                       0–100 % axis; vertical position is a stable per-id
                       jitter so dots do not stack
"""
from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
import pyqtgraph as pg
from PyQt5 import QtGui

from ..dashboard.stats import rate_distribution, top_by_attendance
from ..markers.buckets import ACCEPTANCE_BUCKETS, first_match

log = logging.getLogger(__name__)

_BAR_COLOR = "#3b82f6"
_AXIS_PEN = pg.mkPen("#cbd5e1")


def _style_plot(plot: pg.PlotWidget, title: str) -> None:
    plot.setBackground("#ffffff")
    plot.setTitle(title, color="#334155", size="10pt")
    plot.setMouseEnabled(x=False, y=False)
    plot.setMenuEnabled(False)
    plot.hideButtons()
    for name in ("left", "bottom"):
        axis = plot.getAxis(name)
        axis.setPen(_AXIS_PEN)
        axis.setTextPen(pg.mkPen("#64748b"))


class TopAttendanceChart(pg.PlotWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        _style_plot(self, "Top Destinations (Students Attending)")
        self.showGrid(x=True, y=False, alpha=0.15)
        self._bars = None

    def set_entities(self, entities: Sequence) -> None:
        rows = top_by_attendance(entities)
        if self._bars is not None:
            self.removeItem(self._bars)
            self._bars = None
        if not rows:
            return

        # first row at the top
        labels = [name for name, _ in rows][::-1]
        values = np.array([value for _, value in rows][::-1], dtype=float)
        ys = np.arange(len(values))
        self._bars = pg.BarGraphItem(
            x0=0, y=ys, height=0.6, width=values,
            brush=pg.mkBrush(_BAR_COLOR), pen=pg.mkPen(None),
        )
        self.addItem(self._bars)
        self.getAxis("left").setTicks([[(int(y), _shorten(label)) for y, label in zip(ys, labels)]])
        self.setXRange(0, max(1.0, float(values.max())) * 1.05, padding=0)
        self.setYRange(-0.6, len(values) - 0.4, padding=0)


def _shorten(label: str, limit: int = 22) -> str:
    return label if len(label) <= limit else label[: limit - 1] + "…"


class RateDotPlot(pg.PlotWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        _style_plot(self, "Acceptance Rate Distribution")
        self.setLabel("bottom", "Acceptance Rate", units="%")
        self.getAxis("left").setTicks([[]])
        self.setXRange(0, 100, padding=0.02)
        self.setYRange(0, 100, padding=0)
        self._scatter = pg.ScatterPlotItem(
            size=8, pen=pg.mkPen("#ffffff"), hoverable=True,
            hoverSize=11, tip=self._tip,
        )
        self.addItem(self._scatter)

    @staticmethod
    def _tip(x, y, data):
        return f"{data}: {x:g}%"

    def set_entities(self, entities: Sequence) -> None:
        points = rate_distribution(entities)
        spots = []
        for p in points:
            color = QtGui.QColor(first_match(ACCEPTANCE_BUCKETS, p.rate).color)
            color.setAlpha(180)
            spots.append({"pos": (p.rate, p.jitter), "brush": pg.mkBrush(color), "data": p.name})
        self._scatter.setData(spots)
        log.debug("Dot plot: %d colleges with a known rate", len(points))
