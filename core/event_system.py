import logging
import threading
from collections import defaultdict, deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, DefaultDict, FrozenSet, List, Optional

from PySide6.QtCore import QObject


class EventType(Enum):
    # Dataset lifecycle
    DATASET_LOADED = "dataset_loaded"

    # Grid configuration
    ROLE_ASSIGNMENT_CHANGED = "role_assignment_changed"
    FILTER_MODE_CHANGED = "filter_mode_changed"
    SELECTION_CHANGED = "selection_changed"

    # Scrubbing
    SLIDER_VALUE_CHANGED = "slider_value_changed"
    PLAYBACK_STATE_CHANGED = "playback_state_changed"

    # Grid interaction
    HEADER_CLICKED = "header_clicked"
    CELL_CLICKED = "cell_clicked"

    # Status messages
    STATUS_MESSAGE = "status_message"


@dataclass
class EventData:
    event_type: EventType
    source: str  # Source widget/component name
    timestamp: float


@dataclass
class DatasetLoadedEventData(EventData):
    root: str
    artifact_count: int
    dimension_count: int


@dataclass
class RoleChangedEventData(EventData):
    dimension: str
    role: str


@dataclass
class FilterModeChangedEventData(EventData):
    dimension: str
    mode: str


@dataclass
class SelectionChangedEventData(EventData):
    dimension: str
    selected_values: FrozenSet[str]


@dataclass
class SliderValueChangedEventData(EventData):
    cell_key: Optional[str]  # None for the master slider
    value: str


@dataclass
class PlaybackStateEventData(EventData):
    playing: bool


@dataclass
class HeaderClickedEventData(EventData):
    dimension: str
    value: str


@dataclass
class CellClickedEventData(EventData):
    cell_key: str
    relative_path: str


@dataclass
class StatusMessageEventData(EventData):
    message: str
    timeout: int = 0


# Fired on every autoplay tick and slider drag; never recorded in history.
_UNRECORDED_EVENT_TYPES: FrozenSet[EventType] = frozenset({EventType.SLIDER_VALUE_CHANGED})


def _callback_name(callback) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


class EventSystem(QObject):
    """Synchronous publish/subscribe bus shared by the grid widgets."""

    def __init__(self, history_size: int = 500):
        super().__init__()
        self._handlers: DefaultDict[EventType, List[Callable]] = defaultdict(list)
        self._history: deque = deque(maxlen=history_size)
        self._lock = threading.Lock()

    def subscribe(self, event_type: EventType, callback: Callable[[EventData], None]):
        with self._lock:
            self._handlers[event_type].append(callback)
        logging.debug(f"{_callback_name(callback)} listening for {event_type.value}")

    def unsubscribe(self, event_type: EventType, callback: Callable[[EventData], None]):
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if callback not in handlers:
                logging.warning(f"Cannot unsubscribe {_callback_name(callback)}: not listening for {event_type.value}")
                return
            handlers.remove(callback)
        logging.debug(f"{_callback_name(callback)} stopped listening for {event_type.value}")

    def subscriber_count(self, event_type: EventType) -> int:
        with self._lock:
            return len(self._handlers.get(event_type, []))

    def publish(self, event_data: EventData):
        event_type = event_data.event_type
        with self._lock:
            if event_type not in _UNRECORDED_EVENT_TYPES:
                self._history.append(event_data)
            handlers = tuple(self._handlers.get(event_type, ()))

        logging.debug(f"{event_data.source} -> {event_type.value} ({len(handlers)} handlers)")
        for handler in handlers:
            try:
                handler(event_data)
            except Exception as e:
                logging.error(f"Handler {_callback_name(handler)} failed on {event_type.value}: {e}", exc_info=True)

    def get_event_history(self, event_type: Optional[EventType] = None,
                          source: Optional[str] = None) -> List[EventData]:
        return [event for event in self._history
                if (event_type is None or event.event_type is event_type)
                and (source is None or event.source == source)]

    def clear_history(self):
        self._history.clear()


event_system = EventSystem()
