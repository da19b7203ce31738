from PySide6.QtWidgets import QWidget, QHBoxLayout, QSlider, QLabel
from PySide6.QtCore import Qt, Signal
import logging

MIN_CELL_SIZE = 100
MAX_CELL_SIZE = 600
CELL_SIZE_STEP = 10


def clamp_cell_size(size) -> int:
    """Snap *size* to the zoom step inside the allowed range."""
    try:
        size = int(size)
    except (TypeError, ValueError):
        logging.warning(f"Invalid cell size {size!r}, using {MIN_CELL_SIZE}")
        return MIN_CELL_SIZE
    size = round(size / CELL_SIZE_STEP) * CELL_SIZE_STEP
    return max(MIN_CELL_SIZE, min(MAX_CELL_SIZE, size))


class ZoomControl(QWidget):
    """Labelled slider choosing the grid cell size in pixels."""

    zoom_changed = Signal(int)

    def __init__(self, size: int = 250, parent=None):
        super().__init__(parent)
        layout = QHBoxLayout(self)
        layout.setContentsMargins(6, 2, 6, 2)
        layout.setSpacing(6)

        self.label = QLabel("Zoom")
        layout.addWidget(self.label)

        self.slider = QSlider(Qt.Horizontal)
        self.slider.setRange(MIN_CELL_SIZE, MAX_CELL_SIZE)
        self.slider.setSingleStep(CELL_SIZE_STEP)
        self.slider.setPageStep(CELL_SIZE_STEP)
        self.slider.setFixedWidth(160)
        self.slider.setAccessibleName("Zoom slider")
        self.slider.setValue(clamp_cell_size(size))
        self.slider.valueChanged.connect(self._on_slider_moved)
        layout.addWidget(self.slider)

        self.value_label = QLabel()
        self.value_label.setMinimumWidth(48)
        layout.addWidget(self.value_label)
        layout.addStretch(1)

        self._value = self.slider.value()
        self._update_label()

    @property
    def value(self) -> int:
        return self._value

    def set_value(self, size: int):
        """Move the slider without emitting ``zoom_changed``."""
        size = clamp_cell_size(size)
        self._value = size
        self.slider.blockSignals(True)
        self.slider.setValue(size)
        self.slider.blockSignals(False)
        self._update_label()

    def _on_slider_moved(self, raw: int):
        size = clamp_cell_size(raw)
        if size != raw:
            # Dragging lands between steps; snap and let the re-entrant call emit.
            self.slider.setValue(size)
            return
        if size == self._value:
            return
        self._value = size
        self._update_label()
        self.zoom_changed.emit(size)

    def _update_label(self):
        self.value_label.setText(f"{self._value}px")
