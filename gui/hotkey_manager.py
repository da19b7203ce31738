from PySide6.QtGui import QKeySequence, QKeyEvent
import logging
from PySide6.QtWidgets import QApplication, QLineEdit, QTextEdit, QPlainTextEdit, QAbstractSpinBox
from PySide6.QtCore import Qt, QObject, QEvent
from typing import Dict, Optional

from config.hotkeys import load_hotkey_definitions
from core.keyboard_ownership import KeyChord, KeyDispatcher, KeyboardOwnershipRegistry, REGISTRIES

_TEXT_INPUT_TYPES = (QLineEdit, QTextEdit, QPlainTextEdit, QAbstractSpinBox)
_MODIFIER_KEYS = (Qt.Key_Control, Qt.Key_Shift, Qt.Key_Alt, Qt.Key_Meta, Qt.Key_AltGr)


def is_text_input_focused() -> bool:
    widget = QApplication.focusWidget()
    if isinstance(widget, _TEXT_INPUT_TYPES):
        return True
    # An editable combo box routes typing through its line edit.
    return bool(widget is not None and hasattr(widget, "isEditable") and widget.isEditable())


def chord_from_event(event: QKeyEvent) -> Optional[KeyChord]:
    """Translate a key press into a KeyChord, ignoring bare modifier presses."""
    key = event.key()
    if key in _MODIFIER_KEYS or key == Qt.Key_unknown:
        return None
    modifiers = event.modifiers()
    names = set()
    if modifiers & Qt.ControlModifier:
        names.add("Ctrl")
    if modifiers & Qt.ShiftModifier:
        names.add("Shift")
    if modifiers & Qt.AltModifier:
        names.add("Alt")
    if modifiers & Qt.MetaModifier:
        names.add("Meta")
    key_text = QKeySequence(key).toString()
    if not key_text or "+" in key_text:
        return None
    return KeyChord(key=key_text.capitalize(), modifiers=frozenset(names))


class HotkeyManager(QObject):
    """Application-wide key listener that feeds chords to the ownership registries.

    Exactly one handle per registry sees a chord: the registry's active one.
    Nothing is dispatched while a text-entry widget has focus.
    """

    def __init__(self, parent_widget, hotkeys_config: dict,
                 registries: Optional[Dict[str, KeyboardOwnershipRegistry]] = None):
        super().__init__()
        self.setParent(parent_widget)
        self.parent_widget = parent_widget
        self.registries = registries if registries is not None else REGISTRIES
        self.dispatcher = KeyDispatcher(is_text_input_focused=is_text_input_focused)
        self.definitions = []
        self.load_config(hotkeys_config)
        app = QApplication.instance()
        if app:
            app.installEventFilter(self)
        else:
            logging.warning("HotkeyManager: QApplication instance not found, falling back to parent widget for event filter.")
            parent_widget.installEventFilter(self)

    def load_config(self, config: dict):
        self.definitions = load_hotkey_definitions(config)
        self.dispatcher.load_bindings(self.definitions, self.registries)
        logging.debug(f"HotkeyManager: {len(self.dispatcher.chords)} chords bound")

    def eventFilter(self, obj, event):
        if event.type() != QEvent.Type.KeyPress or not isinstance(event, QKeyEvent):
            return super().eventFilter(obj, event)

        chord = chord_from_event(event)
        if chord is None or self.dispatcher.binding_for(chord) is None:
            return super().eventFilter(obj, event)

        if self.dispatcher.dispatch(chord):
            event.accept()
            return True
        return super().eventFilter(obj, event)

    def shutdown(self):
        app = QApplication.instance()
        if app:
            app.removeEventFilter(self)
