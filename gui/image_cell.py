from PySide6.QtWidgets import QFrame, QLabel, QVBoxLayout
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QKeyEvent, QPixmap
from typing import Optional, Sequence

from core.grid_builder import GridCell
from core.scrub import BACKWARD, FORWARD, step_value
from .slider_bar import SliderBar

MISSING_TEXT = "missing"

_KEY_DIRECTIONS = {
    int(Qt.Key_Right): FORWARD,
    int(Qt.Key_Up): FORWARD,
    int(Qt.Key_Left): BACKWARD,
    int(Qt.Key_Down): BACKWARD,
}


class ImageLabel(QLabel):

    def __init__(self, size: int, config: dict):
        super().__init__()
        self.size = size
        self.config = config
        self.loaded = False
        self.setFixedSize(size, size)
        self.setAlignment(Qt.AlignCenter)
        self.setStyleSheet(self._makeStyleSheet())

    def _makeStyleSheet(self) -> str:
        return f"""
            QLabel {{
                background-color: {self.config.get("placeholder_color", "#2a2a2a")};
                color: #777777;
                border: 1px solid transparent;
            }}
            QLabel:hover {{
                border: 1px solid {self.config.get("active_border_color", "#2d59b6")};
            }}
        """

    def updateImage(self, pixmap: Optional[QPixmap]):
        if pixmap is None or pixmap.isNull():
            self.clear()
            self.setText(MISSING_TEXT)
            self.loaded = False
            return
        # Don't upscale: only scale down if the pixmap exceeds the label size.
        if pixmap.width() > self.size or pixmap.height() > self.size:
            pixmap = pixmap.scaled(self.size, self.size, Qt.KeepAspectRatio, Qt.SmoothTransformation)
        self.setText("")
        self.setPixmap(pixmap)
        self.loaded = True


class ImageCell(QFrame):
    """One grid position: its image (or a placeholder) plus an optional per-cell slider."""

    clicked = Signal(str)  # cell key
    slider_changed = Signal(str, str)  # cell key, value

    def __init__(self, cell: GridCell, size: int, config: dict,
                 slider_values: Sequence[str] = (), slider_name: str = "", parent=None):
        super().__init__(parent)
        self.cell = cell
        self.setCursor(Qt.PointingHandCursor)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(2)

        self.image_label = ImageLabel(size, config)
        layout.addWidget(self.image_label)

        self.slider_bar: Optional[SliderBar] = None
        if slider_values:
            self.slider_bar = SliderBar(slider_values, cell.slider_value, label=slider_name, arrow_keys=False)
            self.slider_bar.setFixedWidth(size)
            self.slider_bar.value_changed.connect(lambda value: self.slider_changed.emit(self.cell.key, value))
            layout.addWidget(self.slider_bar)
            self.setFocusPolicy(Qt.StrongFocus)

        self.image_label.updateImage(None)

    @property
    def key(self) -> str:
        return self.cell.key

    @property
    def is_missing(self) -> bool:
        return self.cell.is_missing

    def set_pixmap(self, pixmap: Optional[QPixmap]):
        self.image_label.updateImage(pixmap)

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton and not self.cell.is_missing:
            self.clicked.emit(self.cell.key)
            event.accept()
        else:
            super().mousePressEvent(event)

    def keyPressEvent(self, event: QKeyEvent):
        """Arrow keys scrub this cell's slider, wrapping at either end."""
        direction = _KEY_DIRECTIONS.get(int(event.key()))
        if self.slider_bar is None or direction is None or event.modifiers() & Qt.ControlModifier:
            super().keyPressEvent(event)
            return
        value = step_value(self.slider_bar.values, self.cell.slider_value, direction, loop=True)
        if value is not None:
            self.slider_changed.emit(self.cell.key, value)
        event.accept()
