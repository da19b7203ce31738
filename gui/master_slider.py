from PySide6.QtWidgets import QWidget, QHBoxLayout, QLabel, QPushButton, QCheckBox, QComboBox
from PySide6.QtCore import Qt, Signal, QEvent
from typing import Optional, Sequence
import logging

from core.autoplay import AutoplayScheduler, DEFAULT_SPEED_MS
from core.keyboard_ownership import ACTION_NEXT, ACTION_PREVIOUS, scrub_registry
from core.scrub import BACKWARD, FORWARD
from .slider_bar import SliderBar

_PLAY_TEXT = "▶ Play"
_PAUSE_TEXT = "❚❚ Pause"


class MasterSlider(QWidget):
    """Sets every cell of the grid to the same slider value.

    Registers with the scrub ownership registry for its whole lifetime;
    Ctrl+Arrow reaches it only while it is the registry's active handle.
    Clicking or focusing any part of it claims ownership.
    """

    value_changed = Signal(str)
    playing_changed = Signal(bool)

    def __init__(self, dimension_name: str, values: Sequence[str] = (), current: Optional[str] = None,
                 config_manager=None, registry=None, timer_factory=None, parent=None):
        super().__init__(parent)
        self.dimension_name = dimension_name
        self.config_manager = config_manager
        self._registry = registry if registry is not None else scrub_registry

        speeds = self._config("playback.speeds_ms", [250, 500, 1000, 2000, 3000])
        default_speed = self._config("playback.default_speed_ms", DEFAULT_SPEED_MS)
        loop = bool(self._config("playback.loop", False))

        self.scheduler = AutoplayScheduler(values, current, speed_ms=default_speed, loop=loop,
                                           timer_factory=timer_factory, parent=self)
        self.scheduler.advanced.connect(self._on_advanced)
        self.scheduler.stateChanged.connect(self._on_state_changed)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(6, 2, 6, 2)
        layout.setSpacing(8)

        self.name_label = QLabel(dimension_name)
        self.name_label.setStyleSheet("font-weight: bold;")
        layout.addWidget(self.name_label)

        self.slider_bar = SliderBar(values, self.scheduler.current, label=dimension_name)
        self.slider_bar.value_changed.connect(self._on_manual_change)
        layout.addWidget(self.slider_bar, 1)

        self.play_button = QPushButton(_PLAY_TEXT)
        self.play_button.setFocusPolicy(Qt.NoFocus)
        self.play_button.clicked.connect(self.toggle_playback)
        layout.addWidget(self.play_button)

        self.loop_checkbox = QCheckBox("Loop")
        self.loop_checkbox.setFocusPolicy(Qt.NoFocus)
        self.loop_checkbox.setChecked(loop)
        self.loop_checkbox.toggled.connect(self._on_loop_toggled)
        layout.addWidget(self.loop_checkbox)

        self.speed_combo = QComboBox()
        self.speed_combo.setFocusPolicy(Qt.NoFocus)
        for speed in speeds:
            self.speed_combo.addItem(f"{speed / 1000:g}s", int(speed))
        index = self.speed_combo.findData(int(default_speed))
        if index >= 0:
            self.speed_combo.setCurrentIndex(index)
        self.speed_combo.currentIndexChanged.connect(self._on_speed_selected)
        layout.addWidget(self.speed_combo)

        for child in (self.slider_bar, self.slider_bar.slider, self.play_button,
                      self.loop_checkbox, self.speed_combo):
            child.installEventFilter(self)

        self._update_controls()
        self._registry.register(self)

    def _config(self, key, default):
        if self.config_manager is None:
            return default
        return self.config_manager.get(key, default)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def current_value(self) -> Optional[str]:
        return self.scheduler.current

    @property
    def values(self):
        return self.scheduler.values

    @property
    def is_playing(self) -> bool:
        return self.scheduler.is_playing

    def set_values(self, values: Sequence[str], current: Optional[str] = None):
        self.scheduler.set_values(values)
        self.slider_bar.set_values(values, current)
        self.scheduler.set_current(self.slider_bar.current_value)
        self._update_controls()

    def set_current(self, value: Optional[str]):
        """Follow a value set elsewhere without emitting value_changed."""
        self.scheduler.set_current(value)
        self.slider_bar.set_current(value)

    def step(self, direction: int) -> Optional[str]:
        return self.slider_bar.step(direction)

    def toggle_playback(self):
        self._registry.claim(self)
        self.scheduler.toggle()

    def claim(self):
        self._registry.claim(self)

    def handle_key_action(self, action: str) -> bool:
        if action == ACTION_NEXT:
            self.step(FORWARD)
            return True
        if action == ACTION_PREVIOUS:
            self.step(BACKWARD)
            return True
        return False

    def shutdown(self):
        self.scheduler.shutdown()
        self._registry.deregister(self)

    # ------------------------------------------------------------------
    # Internal handlers
    # ------------------------------------------------------------------

    def eventFilter(self, obj, event):
        if event.type() in (QEvent.Type.FocusIn, QEvent.Type.MouseButtonPress):
            self._registry.claim(self)
        return super().eventFilter(obj, event)

    def _on_manual_change(self, value: str):
        self.scheduler.set_current(value)
        self.value_changed.emit(value)

    def _on_advanced(self, value: str):
        self.slider_bar.set_current(value)
        self.value_changed.emit(value)

    def _on_state_changed(self, playing: bool):
        self._update_controls()
        logging.debug(f"MasterSlider [{self.dimension_name}]: {'playing' if playing else 'stopped'}")
        self.playing_changed.emit(playing)

    def _on_loop_toggled(self, checked: bool):
        self.scheduler.loop = checked

    def _on_speed_selected(self, index: int):
        speed = self.speed_combo.itemData(index)
        if speed:
            self.scheduler.set_speed(int(speed))

    def _update_controls(self):
        self.play_button.setText(_PAUSE_TEXT if self.scheduler.is_playing else _PLAY_TEXT)
        self.play_button.setEnabled(len(self.scheduler.values) > 1)

    def mousePressEvent(self, event):
        self._registry.claim(self)
        super().mousePressEvent(event)

    def closeEvent(self, event):
        self.shutdown()
        super().closeEvent(event)
