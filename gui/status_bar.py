import logging

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QFont, QFontMetrics
from PySide6.QtWidgets import QHBoxLayout, QLabel, QStatusBar, QWidget

PLAYING_MARK = "▶"


class CustomStatusBar(QStatusBar):
    """Grid summary on the left, scrub state in the middle, transient messages on the right."""

    def __init__(self, config_manager=None, parent=None):
        super().__init__(parent)
        self.config_manager = config_manager
        self._summary = ""
        self._scrub = ""
        self._message = ""

        self._message_timer = QTimer(self)
        self._message_timer.setSingleShot(True)
        self._message_timer.timeout.connect(lambda: self.setProcessMessage(""))

        container = QWidget(self)
        row = QHBoxLayout(container)
        row.setContentsMargins(4, 0, 4, 0)
        row.setSpacing(8)
        self._summary_label = QLabel()
        self._scrub_label = QLabel()
        self._scrub_label.setAlignment(Qt.AlignCenter)
        self._message_label = QLabel()
        self._message_label.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
        row.addWidget(self._summary_label, 3)
        row.addWidget(self._scrub_label, 1)
        row.addWidget(self._message_label, 2)
        self.addWidget(container, 1)

        self._apply_font()

    def _apply_font(self):
        family, size = "Arial", 10
        if self.config_manager:
            family = self.config_manager.get("gui.statusbar_font", family)
            size = self.config_manager.get("gui.statusbar_font_size", size)
        try:
            font = QFont(str(family), int(size))
        except (TypeError, ValueError) as e:
            logging.warning(f"Ignoring status bar font {family!r} {size!r}: {e}")
            return
        for label in (self._summary_label, self._scrub_label, self._message_label):
            label.setFont(font)

    @property
    def summary(self) -> str:
        return self._summary

    @property
    def scrub_state(self) -> str:
        return self._scrub

    @property
    def process_message(self) -> str:
        return self._message

    def setSummary(self, text: str):
        self._summary = text
        self._summary_label.setText(text)
        self._summary_label.setToolTip(text)

    def setScrubState(self, dimension: str | None, value: str | None = None, playing: bool = False):
        if not dimension:
            self._scrub = ""
        else:
            self._scrub = f"{dimension} = {value if value is not None else '?'}"
            if playing:
                self._scrub = f"{PLAYING_MARK} {self._scrub}"
        self._scrub_label.setText(self._scrub)

    def setProcessMessage(self, message: str, timeout: int = 0):
        self._message_timer.stop()
        self._message = message
        self._elide_message()
        if message and timeout > 0:
            self._message_timer.start(timeout)

    def _elide_message(self):
        width = self._message_label.width()
        text = self._message
        if width > 0:
            text = QFontMetrics(self._message_label.font()).elidedText(text, Qt.ElideRight, width)
        self._message_label.setText(text)
        self._message_label.setToolTip(self._message)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._elide_message()
