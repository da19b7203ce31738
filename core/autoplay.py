from PySide6.QtCore import QObject, QTimer, Signal
from enum import Enum
from typing import Callable, Optional, Sequence
import logging

from .scrub import FORWARD, ScrubIndex

DEFAULT_SPEED_MS = 1000


class PlaybackState(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"


class AutoplayScheduler(QObject):
    """Advances a ScrubIndex on a repeating timer.

    Playback only starts with more than one value. A non-looping run stops
    itself at the last value. Changing the speed re-arms the timer, so the
    next tick is a full period after the change.
    """

    advanced = Signal(str)  # new current value
    stateChanged = Signal(bool)  # True while playing

    def __init__(self, values: Sequence[str] = (), current: Optional[str] = None,
                 speed_ms: int = DEFAULT_SPEED_MS, loop: bool = False,
                 timer_factory: Optional[Callable[[QObject], object]] = None, parent=None):
        super().__init__(parent)
        self._scrub = ScrubIndex(values, current)
        self._speed_ms = speed_ms
        self.loop = loop
        self._state = PlaybackState.STOPPED
        self._timer = timer_factory(self) if timer_factory else QTimer(self)
        self._timer.setInterval(self._speed_ms)
        self._timer.timeout.connect(self._on_tick)

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state == PlaybackState.PLAYING

    @property
    def speed_ms(self) -> int:
        return self._speed_ms

    @property
    def current(self) -> Optional[str]:
        return self._scrub.current

    @property
    def values(self):
        return self._scrub.values

    def set_current(self, value: Optional[str]):
        """Follow a value chosen outside playback (e.g. a manual scrub)."""
        self._scrub.current = value

    def set_values(self, values: Sequence[str]):
        if self._scrub.set_values(values):
            logging.debug(f"AutoplayScheduler: values replaced ({len(self._scrub.values)}), stopping")
            self.stop()

    def set_speed(self, speed_ms: int):
        if speed_ms <= 0 or speed_ms == self._speed_ms:
            return
        self._speed_ms = speed_ms
        if self.is_playing:
            # stop() before start() so the old window can never fire
            self._timer.stop()
            self._timer.setInterval(speed_ms)
            self._timer.start()
        else:
            self._timer.setInterval(speed_ms)
        logging.debug(f"AutoplayScheduler: speed set to {speed_ms} ms")

    def play(self) -> bool:
        if self.is_playing:
            return True
        if not self._scrub.can_step():
            logging.debug("AutoplayScheduler: refusing to play fewer than two values")
            return False
        self._timer.setInterval(self._speed_ms)
        self._timer.start()
        self._set_state(PlaybackState.PLAYING)
        return True

    def stop(self):
        self._timer.stop()
        self._set_state(PlaybackState.STOPPED)

    def toggle(self) -> bool:
        if self.is_playing:
            self.stop()
        else:
            self.play()
        return self.is_playing

    def shutdown(self):
        """Stop unconditionally; called when the owning control goes away."""
        self.stop()

    def _set_state(self, state: PlaybackState):
        if state == self._state:
            return
        self._state = state
        logging.debug(f"AutoplayScheduler: {state.value}")
        self.stateChanged.emit(state == PlaybackState.PLAYING)

    def _on_tick(self):
        if not self.is_playing:
            return
        value = self._scrub.step(FORWARD, self.loop)
        if value is None:
            self.stop()
            return
        self.advanced.emit(value)
