"""Keyboard ownership: which live control consumes a global key chord.

Several scrub controls (and the image viewer) can be alive at once. Each
registers with a ``KeyboardOwnershipRegistry``; the registry keeps a stack of
weak handles whose top entry is the active one. A chord routed through
``KeyDispatcher`` reaches the active handle of its registry and nobody else.

Registries are per chord namespace: master sliders listen on Ctrl+Arrow via
``scrub_registry`` while the image viewer listens on plain arrows via
``viewer_registry``, so both can be registered without interfering.
"""

import logging
import weakref
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Protocol, Tuple

# Handle actions understood by scrub controls.
ACTION_PREVIOUS = "previous"
ACTION_NEXT = "next"

# Handle actions understood by the image viewer.
ACTION_PREVIOUS_IMAGE = "previous_image"
ACTION_NEXT_IMAGE = "next_image"
ACTION_SLIDER_PREVIOUS = "slider_previous"
ACTION_SLIDER_NEXT = "slider_next"
ACTION_CLOSE = "close"

_MODIFIER_NAMES = ("Ctrl", "Shift", "Alt", "Meta")


class KeyHandle(Protocol):
    def handle_key_action(self, action: str) -> bool:
        ...


@dataclass(frozen=True)
class KeyChord:
    """A key plus its modifier set, e.g. ``KeyChord.parse("Ctrl+Left")``."""
    key: str
    modifiers: frozenset = frozenset()

    @classmethod
    def parse(cls, text: str) -> 'KeyChord':
        parts = [p.strip() for p in text.split("+") if p.strip()]
        if not parts:
            raise ValueError(f"Empty key chord: {text!r}")
        modifiers = set()
        for part in parts[:-1]:
            name = part.capitalize()
            if name == "Control":
                name = "Ctrl"
            if name not in _MODIFIER_NAMES:
                raise ValueError(f"Unknown modifier {part!r} in chord {text!r}")
            modifiers.add(name)
        return cls(key=parts[-1].capitalize(), modifiers=frozenset(modifiers))

    def __str__(self) -> str:
        mods = [m for m in _MODIFIER_NAMES if m in self.modifiers]
        return "+".join(mods + [self.key])


class KeyboardOwnershipRegistry:
    def __init__(self, name: str = "default"):
        self.name = name
        self._stack: List[weakref.ref] = []

    def _prune(self):
        self._stack = [ref for ref in self._stack if ref() is not None]

    def _remove(self, handle) -> bool:
        before = len(self._stack)
        self._stack = [ref for ref in self._stack if ref() is not None and ref() is not handle]
        return len(self._stack) != before

    def register(self, handle: KeyHandle):
        """Add *handle*; the newest registration owns input by default."""
        self._remove(handle)
        self._stack.append(weakref.ref(handle))
        logging.debug(f"KeyboardOwnership[{self.name}]: registered {type(handle).__name__} ({len(self._stack)} live)")

    def deregister(self, handle: KeyHandle):
        if self._remove(handle):
            logging.debug(f"KeyboardOwnership[{self.name}]: deregistered {type(handle).__name__} ({len(self._stack)} live)")

    def claim(self, handle: KeyHandle):
        """Make *handle* the owner, e.g. after a click or focus on it."""
        self._remove(handle)
        self._stack.append(weakref.ref(handle))

    @property
    def active(self) -> Optional[KeyHandle]:
        self._prune()
        return self._stack[-1]() if self._stack else None

    def is_active(self, handle: KeyHandle) -> bool:
        return handle is not None and self.active is handle

    @property
    def count(self) -> int:
        self._prune()
        return len(self._stack)

    def dispatch(self, action: str) -> bool:
        """Deliver *action* to the active handle only. Returns True if it was consumed."""
        handle = self.active
        if handle is None:
            return False
        try:
            return bool(handle.handle_key_action(action))
        except Exception as e:
            # why: one broken control must not take down global key handling
            logging.error(f"KeyboardOwnership[{self.name}]: error handling '{action}' in {type(handle).__name__}: {e}", exc_info=True)
            return False

    def reset(self):
        """Forget every handle. Intended for tests and dataset teardown."""
        self._stack.clear()


class KeyDispatcher:
    """Routes key chords to ``(registry, action)`` bindings.

    *is_text_input_focused* is consulted on every dispatch; while it returns
    True no navigation chord is delivered so typing is never hijacked.
    """

    def __init__(self, is_text_input_focused: Optional[Callable[[], bool]] = None):
        self._bindings: Dict[KeyChord, Tuple[KeyboardOwnershipRegistry, str]] = {}
        self._is_text_input_focused = is_text_input_focused or (lambda: False)

    def bind(self, chord, registry: KeyboardOwnershipRegistry, action: str):
        if isinstance(chord, str):
            chord = KeyChord.parse(chord)
        self._bindings[chord] = (registry, action)
        logging.debug(f"KeyDispatcher: {chord} -> {registry.name}:{action}")

    def load_bindings(self, definitions, registries: Mapping[str, KeyboardOwnershipRegistry]):
        """Bind every sequence of each HotkeyDefinition named ``<registry>:<action>``."""
        for definition in definitions:
            registry = registries.get(definition.namespace)
            action = definition.action
            if registry is None or not action:
                logging.debug(f"KeyDispatcher: skipping hotkey '{definition.action_name}'")
                continue
            for sequence in definition.sequences:
                try:
                    self.bind(sequence, registry, action)
                except ValueError as e:
                    logging.error(f"KeyDispatcher: invalid sequence for {definition.action_name}: {e}")

    def binding_for(self, chord: KeyChord) -> Optional[Tuple[KeyboardOwnershipRegistry, str]]:
        return self._bindings.get(chord)

    @property
    def chords(self) -> List[KeyChord]:
        return list(self._bindings)

    def dispatch(self, chord: KeyChord) -> bool:
        binding = self._bindings.get(chord)
        if binding is None:
            return False
        if self._is_text_input_focused():
            logging.debug(f"KeyDispatcher: {chord} ignored, text input has focus")
            return False
        registry, action = binding
        return registry.dispatch(action)


scrub_registry = KeyboardOwnershipRegistry("scrub")
viewer_registry = KeyboardOwnershipRegistry("viewer")

REGISTRIES: Dict[str, KeyboardOwnershipRegistry] = {
    "scrub": scrub_registry,
    "viewer": viewer_registry,
}
