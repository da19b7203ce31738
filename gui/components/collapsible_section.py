from typing import Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import QFrame, QHBoxLayout, QLabel, QVBoxLayout, QWidget

_STYLE = """
#sectionHeader { background: #232323; border-bottom: 1px solid #2a2a2a; }
#sectionArrow, #sectionTitle { color: #8cb4ff; font-family: monospace; font-size: 11px; }
#sectionTitle { font-weight: bold; }
#sectionSummary { color: #8c8c8c; font-family: monospace; font-size: 11px; }
#sectionBody { background: #1e1e1e; }
"""

_EXPANDED_ARROW = "▼"
_COLLAPSED_ARROW = "▶"


class CollapsibleSection(QWidget):
    """Titled container whose body is shown or hidden by clicking the header.

    The header also carries a short right-aligned summary, so a collapsed
    section can still say what it holds (for filters, how many values pass).
    """

    toggled = Signal(bool)

    def __init__(self, title: str, collapsed: bool = False, parent=None):
        super().__init__(parent)
        self._collapsed = collapsed
        self.setStyleSheet(_STYLE)

        self._header = QFrame(objectName="sectionHeader")
        self._header.setCursor(Qt.PointingHandCursor)
        self._arrow = QLabel(objectName="sectionArrow")
        self._arrow.setFixedWidth(14)
        self._title_label = QLabel(title, objectName="sectionTitle")
        self._summary_label = QLabel(objectName="sectionSummary")
        header_row = QHBoxLayout(self._header)
        header_row.setContentsMargins(8, 3, 8, 3)
        header_row.addWidget(self._arrow)
        header_row.addWidget(self._title_label)
        header_row.addStretch()
        header_row.addWidget(self._summary_label)
        self._header.mousePressEvent = lambda event: self.set_collapsed(not self._collapsed)

        self._body = QWidget(objectName="sectionBody")
        self._body_layout = QVBoxLayout(self._body)
        self._body_layout.setContentsMargins(8, 4, 8, 4)
        self._body_layout.setSpacing(2)

        outer = QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)
        outer.setSpacing(0)
        outer.addWidget(self._header)
        outer.addWidget(self._body)
        self._sync()

    def _sync(self):
        self._body.setVisible(not self._collapsed)
        self._arrow.setText(_COLLAPSED_ARROW if self._collapsed else _EXPANDED_ARROW)

    def set_collapsed(self, collapsed: bool):
        if collapsed == self._collapsed:
            return
        self._collapsed = collapsed
        self._sync()
        self.toggled.emit(collapsed)

    def set_title(self, title: str):
        self._title_label.setText(title)

    def set_summary(self, text: str):
        self._summary_label.setText(text)

    @property
    def summary(self) -> str:
        return self._summary_label.text()

    def set_body(self, widget: Optional[QWidget]):
        """Swap in *widget* as the only body content; the old one is deleted."""
        while self._body_layout.count():
            old = self._body_layout.takeAt(0).widget()
            if old is not None:
                old.deleteLater()
        if widget is not None:
            self._body_layout.addWidget(widget)

    @property
    def body_widget(self) -> Optional[QWidget]:
        item = self._body_layout.itemAt(0)
        return item.widget() if item is not None else None

    @property
    def is_collapsed(self) -> bool:
        return self._collapsed
