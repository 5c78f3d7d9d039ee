"""Header metric card: title, big value, one line of subtext."""
from __future__ import annotations

from typing import Optional

from PyQt5 import QtCore, QtWidgets


class MetricCard(QtWidgets.QFrame):
    def __init__(
        self,
        title: str,
        accent: str = "#2563eb",
        parent: Optional[QtWidgets.QWidget] = None,
    ):
        super().__init__(parent)
        self.setObjectName("metricCard")
        self.setStyleSheet(f"""
            QFrame#metricCard {{
                background-color: #ffffff;
                border: 1px solid #e2e8f0;
                border-left: 4px solid {accent};
                border-radius: 8px;
            }}
            QLabel {{ background: transparent; border: none; }}
        """)

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(14, 10, 14, 10)
        layout.setSpacing(2)

        self._title = QtWidgets.QLabel(title.upper())
        self._title.setStyleSheet("color: #64748b; font-size: 10px; font-weight: bold;")
        layout.addWidget(self._title)

        self._value = QtWidgets.QLabel("—")
        self._value.setStyleSheet("color: #0f172a; font-size: 22px; font-weight: bold;")
        self._value.setTextInteractionFlags(QtCore.Qt.TextSelectableByMouse)
        layout.addWidget(self._value)

        self._subtext = QtWidgets.QLabel("")
        self._subtext.setStyleSheet(f"color: {accent}; font-size: 11px;")
        layout.addWidget(self._subtext)

    def set_value(self, value: str, subtext: str = "") -> None:
        self._value.setText(value)
        self._subtext.setText(subtext)
