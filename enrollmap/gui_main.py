#!/usr/bin/env python3
"""
enrollmap — college destination dashboard for one high school.

Header metric cards, an interactive tile map of where students were
accepted / enrolled, two summary charts and a searchable, sortable table.
The legend on the map and the table share one set of category filters;
tapping a marker selects and scrolls to its table row.

Built with PyQt5 + pyqtgraph.

Usage
-----
    enrollmap --school NEUQUA --mode acceptance
    python -m enrollmap.gui_main --debug --log-file logs/enrollmap.log
"""
from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Dict, List, Optional

# Force pyqtgraph to use PyQt5 (not PySide6 which may also be installed)
os.environ["PYQTGRAPH_QT_LIB"] = "PyQt5"

import pyqtgraph as pg
from PyQt5 import QtCore, QtGui, QtWidgets

from .dashboard.filters import FilterSet
from .dashboard.stats import summarize
from .dashboard.table import (
    ASC, COLUMNS, SortConfig, format_location, format_rate, next_sort, query_rows,
)
from .gui.charts import RateDotPlot, TopAttendanceChart
from .gui.map_widget import TileMapWidget
from .gui.metric_card import MetricCard
from .ingest.records import DatasetError, Entity, load_school
from .logger import setup_logging
from .markers.buckets import ACCEPTANCE, ATTENDING, MODES
from .settings import DEFAULT_SCHOOL, TILE_URL, load_school_config

log = logging.getLogger(__name__)

_ROW_SELECTED = QtGui.QColor("#eff6ff")


# ---------------------------------------------------------------------------
# Main window
# ---------------------------------------------------------------------------

class MainWindow(QtWidgets.QMainWindow):
    def __init__(
        self,
        schools: Dict[str, dict],
        school_key: str = DEFAULT_SCHOOL,
        mode: str = ATTENDING,
        tile_url: str = TILE_URL,
    ):
        super().__init__()
        self.setWindowTitle("College Tracker")
        self.resize(1280, 960)

        self._schools = schools
        self._entities: List[Entity] = []
        self._rows: List[Entity] = []
        self._mode = mode
        self._filters = FilterSet()
        self._sort = SortConfig()
        self._selected_id: Optional[str] = None

        self.setStyleSheet("""
            QMainWindow, QScrollArea, QWidget#central {
                background-color: #f8fafc;
                color: #1e293b;
            }
            QLabel#heading {
                color: #1e40af;
                font-size: 18px;
                font-weight: bold;
            }
            QLabel#section {
                color: #1e293b;
                font-size: 13px;
                font-weight: bold;
            }
        """)

        central = QtWidgets.QWidget()
        central.setObjectName("central")
        root = QtWidgets.QVBoxLayout(central)
        root.setContentsMargins(16, 12, 16, 12)
        root.setSpacing(12)

        # ── Header: title + school selector ──
        header = QtWidgets.QHBoxLayout()
        title = QtWidgets.QLabel("College Tracker")
        title.setObjectName("heading")
        header.addWidget(title)
        header.addStretch(1)
        header.addWidget(QtWidgets.QLabel("Select School:"))
        self.school_combo = QtWidgets.QComboBox()
        for key, entry in schools.items():
            self.school_combo.addItem(entry.get("name", key), key)
        header.addWidget(self.school_combo)
        root.addLayout(header)

        # ── Metric cards ──
        cards = QtWidgets.QHBoxLayout()
        cards.setSpacing(12)
        self.card_attending = MetricCard("Total Attending", "#2563eb")
        self.card_accepted = MetricCard("Total Acceptances", "#059669")
        self.card_rate = MetricCard("Avg. Acceptance Rate", "#9333ea")
        self.card_top = MetricCard("Top Destination", "#ea580c")
        for card in (self.card_attending, self.card_accepted, self.card_rate, self.card_top):
            cards.addWidget(card, 1)
        root.addLayout(cards)

        # ── Map header: title + mode toggle ──
        map_header = QtWidgets.QHBoxLayout()
        map_title = QtWidgets.QLabel("Geographic Distribution")
        map_title.setObjectName("section")
        map_header.addWidget(map_title)
        map_header.addStretch(1)
        self._mode_group = QtWidgets.QButtonGroup(self)
        self._mode_buttons: Dict[str, QtWidgets.QPushButton] = {}
        for key, text in ((ATTENDING, "By Attendance"), (ACCEPTANCE, "By Acceptance Rate")):
            btn = QtWidgets.QPushButton(text)
            btn.setCheckable(True)
            btn.setStyleSheet("""
                QPushButton {
                    background: #f1f5f9; color: #64748b; border: none;
                    padding: 5px 12px; font-size: 11px; border-radius: 4px;
                }
                QPushButton:checked { background: #ffffff; color: #1e293b; font-weight: bold; }
            """)
            self._mode_group.addButton(btn)
            self._mode_buttons[key] = btn
            map_header.addWidget(btn)
        self._mode_buttons[mode].setChecked(True)
        root.addLayout(map_header)

        # ── Map ──
        self.map = TileMapWidget(mode=mode, filters=self._filters, tile_url=tile_url)
        self.map.setMinimumHeight(460)
        root.addWidget(self.map, 3)

        # ── Charts ──
        charts = QtWidgets.QHBoxLayout()
        charts.setSpacing(12)
        self.bar_chart = TopAttendanceChart()
        self.dot_plot = RateDotPlot()
        for plot in (self.bar_chart, self.dot_plot):
            plot.setMinimumHeight(220)
            charts.addWidget(plot, 1)
        root.addLayout(charts, 2)

        # ── Table: title + search ──
        table_header = QtWidgets.QHBoxLayout()
        table_title = QtWidgets.QLabel("College Data")
        table_title.setObjectName("section")
        table_header.addWidget(table_title)
        table_header.addStretch(1)
        self.search_edit = QtWidgets.QLineEdit()
        self.search_edit.setPlaceholderText("Search colleges...")
        self.search_edit.setClearButtonEnabled(True)
        self.search_edit.setFixedWidth(260)
        table_header.addWidget(self.search_edit)
        root.addLayout(table_header)

        self.table = QtWidgets.QTableWidget()
        self.table.setColumnCount(len(COLUMNS))
        self.table.setHorizontalHeaderLabels([label for _, label in COLUMNS])
        self.table.horizontalHeader().setStretchLastSection(True)
        self.table.horizontalHeader().setSectionResizeMode(0, QtWidgets.QHeaderView.Stretch)
        self.table.horizontalHeader().setSectionsClickable(True)
        self.table.horizontalHeader().setSortIndicatorShown(True)
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QtWidgets.QTableWidget.NoEditTriggers)
        self.table.setSelectionBehavior(QtWidgets.QTableWidget.SelectRows)
        self.table.setSelectionMode(QtWidgets.QTableWidget.SingleSelection)
        self.table.setMinimumHeight(320)
        self.table.setStyleSheet("""
            QTableWidget {
                background-color: #ffffff;
                color: #475569;
                gridline-color: #f1f5f9;
                font-size: 12px;
                selection-background-color: #dbeafe;
                selection-color: #0f172a;
            }
            QHeaderView::section {
                background-color: #f8fafc;
                color: #334155;
                padding: 6px;
                border: none;
                border-bottom: 1px solid #e2e8f0;
                font-weight: bold;
            }
        """)
        root.addWidget(self.table, 3)

        self.footer = QtWidgets.QLabel("")
        self.footer.setStyleSheet("color: #64748b; font-size: 11px;")
        root.addWidget(self.footer)

        scroll = QtWidgets.QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QtWidgets.QFrame.NoFrame)
        scroll.setWidget(central)
        self.setCentralWidget(scroll)

        # ── Wiring ──
        self.school_combo.currentIndexChanged.connect(self._on_school_changed)
        for key, btn in self._mode_buttons.items():
            btn.clicked.connect(lambda _checked=False, k=key: self._set_mode(k))
        self.map.entity_selected.connect(self._on_map_select)
        self.map.filter_toggled.connect(self._on_filter_toggled)
        self.search_edit.textChanged.connect(lambda _text: self._refresh_table())
        self.table.horizontalHeader().sectionClicked.connect(self._on_header_clicked)
        self.table.itemSelectionChanged.connect(self._on_table_selection)

        idx = self.school_combo.findData(school_key)
        self.school_combo.setCurrentIndex(max(0, idx))
        if idx <= 0:
            # setCurrentIndex(0) on the already-current index emits nothing
            self._load_school(self.school_combo.currentData())

    # ── Data ──────────────────────────────────────────────────────────

    def _on_school_changed(self, _index: int) -> None:
        self._load_school(self.school_combo.currentData())

    def _load_school(self, school_key: str) -> None:
        try:
            entities = load_school(school_key)
        except (KeyError, DatasetError) as exc:
            log.error("Could not load school %s: %s", school_key, exc)
            QtWidgets.QMessageBox.warning(self, "Dataset error", str(exc))
            entities = []
        self._entities = entities
        self._selected_id = None
        self.statusBar().showMessage(
            f"{self._schools.get(school_key, {}).get('name', school_key)}: "
            f"{len(entities)} colleges", 5000,
        )
        self.map.set_entities(entities)
        self.bar_chart.set_entities(entities)
        self.dot_plot.set_entities(entities)
        self._refresh_cards()
        self._refresh_table()

    def _refresh_cards(self) -> None:
        stats = summarize(self._entities)
        self.card_attending.set_value(f"{stats.total_attending:,}", "Students confirmed")
        self.card_accepted.set_value(f"{stats.total_accepted:,}", "Admissions offers")
        self.card_rate.set_value(f"{stats.avg_acceptance_rate}%", "Based on available data")
        top = stats.most_popular
        self.card_top.set_value(
            top.name if top else "N/A",
            f"{top.attending if top else 0} students attending",
        )

    # ── Mode / filters ────────────────────────────────────────────────

    def _set_mode(self, mode: str) -> None:
        if mode == self._mode:
            return
        log.info("Visualization mode: %s", mode)
        self._mode = mode
        self.map.set_mode(mode)
        self._refresh_table()

    def _on_filter_toggled(self, key: str) -> None:
        self._filters.toggle(key)
        self.map.refresh_filters()
        self._refresh_table()

    # ── Table ─────────────────────────────────────────────────────────

    def _on_header_clicked(self, column: int) -> None:
        self._sort = next_sort(self._sort, COLUMNS[column][0])
        self._refresh_table()

    def _refresh_table(self) -> None:
        self._rows = query_rows(
            self._entities, self.search_edit.text(), self._mode, self._filters, self._sort,
        )
        table = self.table
        table.blockSignals(True)
        table.setRowCount(len(self._rows))
        for row, entity in enumerate(self._rows):
            values = [
                entity.name,
                format_location(entity),
                str(entity.attending),
                str(entity.accepted),
                format_rate(entity),
            ]
            for col, text in enumerate(values):
                item = QtWidgets.QTableWidgetItem(text)
                if col >= 2:
                    item.setTextAlignment(QtCore.Qt.AlignRight | QtCore.Qt.AlignVCenter)
                if col == 0:
                    font = item.font()
                    font.setBold(True)
                    item.setFont(font)
                if col == 4 and entity.rate is None:
                    item.setForeground(QtGui.QColor("#94a3b8"))
                if entity.id == self._selected_id:
                    item.setBackground(_ROW_SELECTED)
                table.setItem(row, col, item)
        table.blockSignals(False)

        column = [key for key, _ in COLUMNS].index(self._sort.key)
        order = QtCore.Qt.AscendingOrder if self._sort.direction == ASC else QtCore.Qt.DescendingOrder
        table.horizontalHeader().setSortIndicator(column, order)
        self.footer.setText(f"Showing {len(self._rows)} colleges")
        self._highlight_selected(scroll=False)

    def _on_table_selection(self) -> None:
        rows = self.table.selectionModel().selectedRows()
        if rows:
            self._selected_id = self._rows[rows[0].row()].id

    def _on_map_select(self, entity_id: str) -> None:
        log.info("Selected from map: %s", entity_id)
        self._selected_id = entity_id
        self._highlight_selected(scroll=True)

    def _highlight_selected(self, scroll: bool) -> None:
        for row, entity in enumerate(self._rows):
            if entity.id != self._selected_id:
                continue
            self.table.blockSignals(True)
            self.table.selectRow(row)
            self.table.blockSignals(False)
            if scroll:
                item = self.table.item(row, 0)
                self.table.scrollToItem(item, QtWidgets.QAbstractItemView.PositionAtCenter)
                self.centralWidget().ensureWidgetVisible(self.table)
            return
        self.table.clearSelection()

    # ── Shutdown ──────────────────────────────────────────────────────

    def closeEvent(self, ev):
        log.info("Shutting down...")
        self.map.shutdown()
        super().closeEvent(ev)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    schools = load_school_config()

    parser = argparse.ArgumentParser(description="enrollmap — college destination dashboard")
    parser.add_argument(
        "--school", choices=sorted(schools), default=DEFAULT_SCHOOL,
        help=f"School dataset to open (default: {DEFAULT_SCHOOL})",
    )
    parser.add_argument(
        "--mode", choices=MODES, default=ATTENDING,
        help="Initial marker encoding (default: attending)",
    )
    parser.add_argument(
        "--tile-url", default=TILE_URL,
        help="XYZ tile endpoint template with {z}/{x}/{y}",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file")
    args, remaining = parser.parse_known_args()

    setup_logging(logging.DEBUG if args.debug else logging.INFO, args.log_file)

    pg.setConfigOption("background", "#ffffff")
    pg.setConfigOption("foreground", "#475569")
    pg.setConfigOptions(antialias=True)

    sys.argv = sys.argv[:1] + remaining
    app = QtWidgets.QApplication(sys.argv)
    app.setStyle("Fusion")

    log.info("Opening %s (%s mode), tiles from %s", args.school, args.mode, args.tile_url)
    win = MainWindow(schools, school_key=args.school, mode=args.mode, tile_url=args.tile_url)
    win.show()

    # ── Graceful Ctrl+C / SIGTERM shutdown ──
    # Qt's event loop blocks Python signal delivery, so a small timer lets
    # Python run the handler periodically.
    def _sigint_handler(*_args):
        log.info("SIGINT received, closing window")
        win.close()

    signal.signal(signal.SIGINT, _sigint_handler)
    signal.signal(signal.SIGTERM, _sigint_handler)

    _sig_timer = QtCore.QTimer()
    _sig_timer.timeout.connect(lambda: None)
    _sig_timer.start(200)

    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
