from PySide6.QtCore import QObject, Signal, QTimer
from PySide6.QtGui import QPixmap
from collections import OrderedDict
from typing import List, Optional, Sequence
import logging
import os


class ImageCache:
    """In-memory LRU cache of decoded pixmaps keyed by relative path."""

    def __init__(self, max_size: int = 2000):
        self._cache: "OrderedDict[str, QPixmap]" = OrderedDict()
        self._max_size = max_size

    def get(self, key: str) -> Optional[QPixmap]:
        pixmap = self._cache.get(key)
        if pixmap is not None:
            self._cache.move_to_end(key)
        return pixmap

    def put(self, key: str, pixmap: QPixmap):
        self._cache[key] = pixmap
        self._cache.move_to_end(key)
        while len(self._cache) > self._max_size:
            self._cache.popitem(last=False)

    def clear(self):
        self._cache.clear()

    def __contains__(self, key):
        return key in self._cache

    def __len__(self):
        return len(self._cache)


class ImageLoader(QObject):
    """Loads dataset images from disk and warms the cache in idle timer ticks."""

    imageLoaded = Signal(str)  # relative path
    preloadFinished = Signal()

    def __init__(self, config_manager=None, parent=None):
        super().__init__(parent)
        self.config_manager = config_manager
        self.root: Optional[str] = None
        self.cache = ImageCache(self._config("preload.cache_size", 2000))
        self._batch_size = max(1, int(self._config("preload.batch_size", 8)))
        self._queue: List[str] = []

        self._preload_timer = QTimer(self)
        self._preload_timer.setInterval(int(self._config("preload.interval_ms", 15)))
        self._preload_timer.timeout.connect(self._preload_batch)

    def _config(self, key, default):
        if self.config_manager is None:
            return default
        return self.config_manager.get(key, default)

    def set_root(self, root: Optional[str]):
        self.cancel_preload()
        self.cache.clear()
        self.root = root

    def absolute_path(self, relative_path: str) -> Optional[str]:
        if not self.root:
            return None
        return os.path.join(self.root, relative_path)

    def pixmap(self, relative_path: str) -> Optional[QPixmap]:
        """Cached pixmap for *relative_path*, loading it synchronously on a miss."""
        cached = self.cache.get(relative_path)
        if cached is not None:
            return cached
        path = self.absolute_path(relative_path)
        if path is None:
            return None
        pixmap = QPixmap(path)
        if pixmap.isNull():
            logging.warning(f"Could not load image: {path}")
            return None
        self.cache.put(relative_path, pixmap)
        self.imageLoaded.emit(relative_path)
        return pixmap

    def preload(self, ordered_paths: Sequence[str]):
        """Replace the pending preload queue; earlier paths load first."""
        self._queue = [p for p in reversed(ordered_paths) if p not in self.cache]
        if self._queue:
            logging.debug(f"ImageLoader: preloading {len(self._queue)} images")
            self._preload_timer.start()
        else:
            self._preload_timer.stop()

    def cancel_preload(self):
        self._queue = []
        self._preload_timer.stop()

    @property
    def pending(self) -> int:
        return len(self._queue)

    def _preload_batch(self):
        for _ in range(self._batch_size):
            if not self._queue:
                break
            relative_path = self._queue.pop()
            if relative_path not in self.cache:
                self.pixmap(relative_path)
        if not self._queue:
            self._preload_timer.stop()
            logging.debug("ImageLoader: preload finished")
            self.preloadFinished.emit()
