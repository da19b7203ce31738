"""
Shared pytest fixtures for SampleGrid tests.
"""
import os
import sys

# Ensure project root is on path for all tests
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Widget tests run without a display.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtWidgets import QApplication

from core.dimensions import Artifact, Dataset, Dimension, DimensionType
from core.event_system import EventSystem
from core.keyboard_ownership import scrub_registry, viewer_registry


class MockConfigManager:
    """Minimal ConfigManager substitute that accepts a plain dict.

    Implements the dotted-key ``get``/``set`` interface; ``set`` never
    touches disk.
    """

    def __init__(self, overrides: dict | None = None):
        self._cfg: dict = {
            "dataset": {"ignore_patterns": ["._*", ".*"], "last_directory": ""},
            "gui": {"cell_size": 64, "spacing": 2},
            "playback": {"speeds_ms": [250, 500, 1000], "default_speed_ms": 1000, "loop": False},
            "preload": {"batch_size": 4, "interval_ms": 1},
            "hotkeys": {},
        }
        if overrides:
            self._cfg.update(overrides)

    def get(self, key: str, default=None):
        keys = key.split(".")
        val = self._cfg
        for k in keys:
            if isinstance(val, dict):
                val = val.get(k)
            else:
                return default
        return val if val is not None else default

    def set(self, key: str, value):
        keys = key.split(".")
        node = self._cfg
        for k in keys[:-1]:
            node = node.setdefault(k, {})
        node[keys[-1]] = value


class FakeSignal:
    def __init__(self):
        self._callbacks = []

    def connect(self, callback):
        self._callbacks.append(callback)

    def emit(self):
        for callback in list(self._callbacks):
            callback()


class FakeTimer:
    """Deterministic QTimer substitute driven by ``advance(ms)``.

    Tracks the time elapsed since the last ``start`` so tests can check that
    re-arming resets the tick window.
    """

    def __init__(self, parent=None):
        self.timeout = FakeSignal()
        self._interval = 0
        self.active = False
        self.elapsed = 0
        self.start_count = 0
        self.stop_count = 0

    def setInterval(self, ms: int):
        self._interval = ms

    def interval(self) -> int:
        return self._interval

    def start(self, ms: int | None = None):
        if ms is not None:
            self._interval = ms
        self.active = True
        self.elapsed = 0
        self.start_count += 1

    def stop(self):
        self.active = False
        self.elapsed = 0
        self.stop_count += 1

    def isActive(self) -> bool:
        return self.active

    def advance(self, ms: int) -> int:
        """Move the clock forward; returns the number of ticks fired."""
        fired = 0
        for _ in range(ms):
            if not self.active:
                break
            self.elapsed += 1
            if self.elapsed >= self._interval:
                self.elapsed = 0
                fired += 1
                self.timeout.emit()
        return fired


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture()
def config():
    return MockConfigManager()


@pytest.fixture()
def fake_timers():
    """Timer factory that records every FakeTimer it creates."""
    created = []

    def factory(parent=None):
        timer = FakeTimer(parent)
        created.append(timer)
        return timer

    factory.created = created
    return factory


@pytest.fixture(autouse=True)
def fresh_registries():
    """Module-level ownership registries must not leak handles between tests."""
    scrub_registry.reset()
    viewer_registry.reset()
    yield
    scrub_registry.reset()
    viewer_registry.reset()


@pytest.fixture()
def fresh_event_system(monkeypatch):
    """Replace the module-level singleton so tests never leak subscribers."""
    fresh = EventSystem()
    monkeypatch.setattr("core.event_system.event_system", fresh)
    monkeypatch.setattr("gui.main_window.event_system", fresh)
    return fresh


def _artifact(seed, step, cfg, batch=1):
    return Artifact(
        relative_path=f"ckpt/seed={seed}&step={step}&cfg={cfg}&_{batch:05d}_.png",
        dimensions={"seed": str(seed), "step": str(step), "cfg": str(cfg)},
    )


@pytest.fixture()
def sample_dims():
    return {
        "seed": Dimension("seed", DimensionType.INT, ("42", "123")),
        "step": Dimension("step", DimensionType.INT, ("500", "1000")),
        "cfg": Dimension("cfg", DimensionType.INT, ("3", "7")),
    }


@pytest.fixture()
def sample_artifacts():
    """Five artifacts; seed=123, step=1000, cfg=3 is the missing combination."""
    return [
        _artifact(42, 500, 3),
        _artifact(123, 500, 3),
        _artifact(42, 1000, 3),
        _artifact(42, 500, 7),
        _artifact(123, 1000, 7),
    ]


@pytest.fixture()
def sample_dataset(sample_dims, sample_artifacts):
    return Dataset(
        artifacts=tuple(sorted(sample_artifacts, key=lambda a: a.relative_path)),
        dimensions=(sample_dims["cfg"], sample_dims["seed"], sample_dims["step"]),
    )


@pytest.fixture()
def sample_dir(tmp_path, sample_artifacts):
    """The sample artifacts as (empty) PNG files below tmp_path."""
    for artifact in sample_artifacts:
        path = tmp_path / artifact.relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"")
    return tmp_path
