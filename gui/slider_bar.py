from PySide6.QtWidgets import QWidget, QHBoxLayout, QSlider, QLabel
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QKeyEvent
from typing import Optional, Sequence
import logging

from core.scrub import BACKWARD, FORWARD, ScrubIndex

_NEXT_KEYS = (Qt.Key_Right, Qt.Key_Up)
_PREVIOUS_KEYS = (Qt.Key_Left, Qt.Key_Down)


class SliderBar(QWidget):
    """Per-cell scrub control over the slider dimension's values.

    Arrow keys on the control itself step without wrapping; nothing is
    emitted at either end. With ``arrow_keys=False`` the control takes no
    focus and leaves arrow keys to its parent.
    """

    value_changed = Signal(str)

    def __init__(self, values: Sequence[str] = (), current: Optional[str] = None,
                 label: str = "", arrow_keys: bool = True, parent=None):
        super().__init__(parent)
        self._arrow_keys = arrow_keys
        self.setFocusPolicy(Qt.StrongFocus if arrow_keys else Qt.NoFocus)
        self._scrub = ScrubIndex(values, current)
        self._label = label

        layout = QHBoxLayout(self)
        layout.setContentsMargins(2, 0, 2, 0)
        layout.setSpacing(6)

        self.slider = QSlider(Qt.Horizontal)
        self.slider.setSingleStep(1)
        self.slider.setPageStep(1)
        if not arrow_keys:
            self.slider.setFocusPolicy(Qt.NoFocus)
        self.slider.valueChanged.connect(self._on_slider_moved)
        if label:
            self.slider.setAccessibleName(f"{label} slider")
        layout.addWidget(self.slider, 1)

        self.value_label = QLabel()
        self.value_label.setMinimumWidth(40)
        self.value_label.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
        layout.addWidget(self.value_label)

        self._sync()

    @property
    def values(self):
        return self._scrub.values

    @property
    def current_value(self) -> Optional[str]:
        return self._scrub.current

    def current_index(self) -> int:
        return self._scrub.index()

    def set_values(self, values: Sequence[str], current: Optional[str] = None):
        self._scrub.set_values(values)
        self._scrub.current = current if current is not None else (self._scrub.values[0] if self._scrub.values else None)
        self._sync()

    def set_current(self, value: Optional[str]):
        """Show *value* without emitting value_changed."""
        self._scrub.current = value
        self._sync()

    def _sync(self):
        self.slider.blockSignals(True)
        self.slider.setRange(0, max(0, len(self._scrub.values) - 1))
        self.slider.setValue(self._scrub.index())
        self.slider.blockSignals(False)
        self.slider.setEnabled(len(self._scrub.values) > 1)
        self.value_label.setText(self._scrub.current or "")

    def step(self, direction: int) -> Optional[str]:
        value = self._scrub.step(direction, loop=False)
        if value is not None:
            self._sync()
            self.value_changed.emit(value)
        return value

    def _on_slider_moved(self, index: int):
        value = self._scrub.value_at(index)
        if value is None or value == self._scrub.current:
            return
        self._scrub.current = value
        self.value_label.setText(value)
        logging.debug(f"SliderBar{f' [{self._label}]' if self._label else ''}: moved to {value}")
        self.value_changed.emit(value)

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if not self._arrow_keys:
            event.ignore()
            return
        if event.modifiers() & Qt.ControlModifier:
            # Ctrl+Arrow belongs to the master slider.
            super().keyPressEvent(event)
            return
        if event.key() in _NEXT_KEYS:
            self.step(FORWARD)
            event.accept()
        elif event.key() in _PREVIOUS_KEYS:
            self.step(BACKWARD)
            event.accept()
        else:
            super().keyPressEvent(event)
