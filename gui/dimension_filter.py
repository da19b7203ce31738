from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QComboBox, QCheckBox, QPushButton, QLabel
from PySide6.QtCore import Qt, Signal
from typing import Dict, FrozenSet, Iterable, Optional

from core.dimensions import Dimension


class SingleValueFilter(QWidget):
    """Single mode: exactly one value, chosen from a combo box."""

    value_selected = Signal(str)

    def __init__(self, dimension: Dimension, current: Optional[str] = None, parent=None):
        super().__init__(parent)
        self.dimension = dimension
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.combo = QComboBox()
        self.combo.addItems(list(dimension.values))
        index = self.combo.findText(current) if current is not None else 0
        self.combo.setCurrentIndex(max(0, index))
        self.combo.currentTextChanged.connect(self._on_text_changed)
        layout.addWidget(self.combo)

    @property
    def current_value(self) -> str:
        return self.combo.currentText()

    def _on_text_changed(self, text: str):
        if text:
            self.value_selected.emit(text)


class SoloLabel(QLabel):

    clicked = Signal(str)

    def __init__(self, value: str):
        super().__init__(value)
        self.value = value
        self.setCursor(Qt.PointingHandCursor)
        self.setToolTip("Click to show only this value (click again to show all)")

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            self.clicked.emit(self.value)
            event.accept()
        else:
            super().mousePressEvent(event)


class MultiValueFilter(QWidget):
    """Multi mode: a checkbox per value, All/None buttons and solo labels.

    Every user action is reported as a request; the owner applies it to the
    filter state and pushes the resulting selection back through
    ``set_selected``.
    """

    value_toggled = Signal(str)
    value_soloed = Signal(str)
    all_requested = Signal()
    none_requested = Signal()

    def __init__(self, dimension: Dimension, selected: Optional[Iterable[str]] = None, parent=None):
        super().__init__(parent)
        self.dimension = dimension
        self.checkboxes: Dict[str, QCheckBox] = {}

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(1)

        buttons = QHBoxLayout()
        self.all_button = QPushButton("All")
        self.all_button.clicked.connect(self.all_requested)
        self.none_button = QPushButton("None")
        self.none_button.clicked.connect(self.none_requested)
        for button in (self.all_button, self.none_button):
            button.setFocusPolicy(Qt.NoFocus)
            buttons.addWidget(button)
        buttons.addStretch()
        layout.addLayout(buttons)

        for value in dimension.values:
            row = QHBoxLayout()
            row.setContentsMargins(0, 0, 0, 0)
            checkbox = QCheckBox()
            checkbox.clicked.connect(lambda _checked, v=value: self.value_toggled.emit(v))
            label = SoloLabel(value)
            label.clicked.connect(self.value_soloed)
            row.addWidget(checkbox)
            row.addWidget(label, 1)
            layout.addLayout(row)
            self.checkboxes[value] = checkbox

        self.set_selected(dimension.values if selected is None else selected)

    def set_selected(self, values: Iterable[str]):
        selected: FrozenSet[str] = frozenset(values)
        for value, checkbox in self.checkboxes.items():
            checkbox.blockSignals(True)
            checkbox.setChecked(value in selected)
            checkbox.blockSignals(False)
        count = sum(1 for v in self.dimension.values if v in selected)
        self.all_button.setEnabled(count < len(self.dimension.values))
        self.none_button.setEnabled(count > 0)

    def selected_values(self) -> FrozenSet[str]:
        return frozenset(v for v, cb in self.checkboxes.items() if cb.isChecked())
