from PySide6.QtWidgets import QWidget
from PySide6.QtCore import Qt, Signal, QRect
from PySide6.QtGui import QPainter, QPixmap, QColor, QKeyEvent, QPaintEvent
from typing import List, Optional, Sequence, Tuple
import logging

from core.keyboard_ownership import (
    ACTION_CLOSE, ACTION_NEXT_IMAGE, ACTION_PREVIOUS_IMAGE,
    ACTION_SLIDER_NEXT, ACTION_SLIDER_PREVIOUS, viewer_registry,
)
from core.scrub import BACKWARD, FORWARD


class ImageViewer(QWidget):
    """Full-size view of one grid image.

    Left/Right move through the grid's images and wrap at either end.
    Up/Down ask the owner to scrub the viewed cell's slider, which does not
    wrap. The viewer owns the viewer registry while it is open.
    """

    closeRequested = Signal()
    sliderStepRequested = Signal(str, int)  # cell key, direction

    def __init__(self, image_loader, config_manager=None, registry=None, parent=None):
        super().__init__(parent)
        self.setFocusPolicy(Qt.StrongFocus)
        self.image_loader = image_loader
        self.config_manager = config_manager
        self._registry = registry if registry is not None else viewer_registry
        self._entries: List[Tuple[str, str]] = []
        self._index = 0
        self._pixmap: Optional[QPixmap] = None
        self._caption = ""
        background = config_manager.get("gui.background_color", "#1e1e1e") if config_manager else "#1e1e1e"
        self._background = QColor(background)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def current_key(self) -> Optional[str]:
        return self._entries[self._index][0] if self._entries else None

    @property
    def current_path(self) -> Optional[str]:
        return self._entries[self._index][1] if self._entries else None

    @property
    def entries(self) -> List[Tuple[str, str]]:
        return list(self._entries)

    def open(self, entries: Sequence[Tuple[str, str]], relative_path: str):
        """Show *relative_path* with *entries* as the navigation list."""
        self._registry.register(self)
        self.set_entries(entries, relative_path=relative_path)

    def set_entries(self, entries: Sequence[Tuple[str, str]], key: Optional[str] = None,
                    relative_path: Optional[str] = None):
        """Replace the navigation list, staying on *key* or *relative_path* if present."""
        self._entries = list(entries)
        # Stay at the same position when the target has dropped out of the list.
        self._index = min(self._index, len(self._entries) - 1) if self._entries else 0
        for index, (entry_key, entry_path) in enumerate(self._entries):
            if (relative_path is not None and entry_path == relative_path) or \
                    (relative_path is None and key is not None and entry_key == key):
                self._index = index
                break
        self._load_current()

    def navigate(self, direction: int) -> Optional[str]:
        if not self._entries:
            return None
        self._index = (self._index + direction) % len(self._entries)
        self._load_current()
        return self.current_path

    def close_viewer(self):
        self._registry.deregister(self)
        self._entries = []
        self._pixmap = None
        self.closeRequested.emit()

    def handle_key_action(self, action: str) -> bool:
        if action == ACTION_NEXT_IMAGE:
            self.navigate(FORWARD)
        elif action == ACTION_PREVIOUS_IMAGE:
            self.navigate(BACKWARD)
        elif action == ACTION_SLIDER_NEXT:
            if self.current_key is not None:
                self.sliderStepRequested.emit(self.current_key, FORWARD)
        elif action == ACTION_SLIDER_PREVIOUS:
            if self.current_key is not None:
                self.sliderStepRequested.emit(self.current_key, BACKWARD)
        elif action == ACTION_CLOSE:
            self.close_viewer()
        else:
            return False
        return True

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _load_current(self):
        path = self.current_path
        self._pixmap = self.image_loader.pixmap(path) if path else None
        self._caption = path or ""
        if path:
            logging.debug(f"ImageViewer: showing {path} ({self._index + 1}/{len(self._entries)})")
        self.update()

    def paintEvent(self, event: QPaintEvent) -> None:
        painter = QPainter(self)
        painter.fillRect(self.rect(), self._background)
        if self._pixmap is not None and not self._pixmap.isNull():
            scaled = self._pixmap.scaled(self.size(), Qt.KeepAspectRatio, Qt.SmoothTransformation)
            x = (self.width() - scaled.width()) // 2
            y = (self.height() - scaled.height()) // 2
            painter.drawPixmap(x, y, scaled)
        if self._caption:
            painter.setPen(QColor("#dcdcdc"))
            painter.drawText(QRect(8, self.height() - 24, self.width() - 16, 20),
                             Qt.AlignLeft | Qt.AlignVCenter, self._caption)
        painter.end()

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if event.key() == Qt.Key_Escape:
            self.close_viewer()
        else:
            super().keyPressEvent(event)
