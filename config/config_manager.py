import copy
import logging
import os

import yaml

DEFAULT_CONFIG = {
    "logging_level": "INFO",
    "dataset": {
        "last_directory": "",
        "ignore_patterns": ["._*", ".*"],
    },
    "gui": {
        "background_color": "#1e1e1e",
        "header_color": "#8cb4ff",
        "placeholder_color": "#2a2a2a",
        "active_border_color": "#2d59b6",
        "cell_size": 250,
        "spacing": 4,
    },
    "playback": {
        "speeds_ms": [250, 500, 1000, 2000, 3000],
        "default_speed_ms": 1000,
        "loop": False,
    },
    "preload": {
        "batch_size": 8,
        "interval_ms": 15,
        "cache_size": 2000,
    },
    # "<registry>:<action>", see core.keyboard_ownership
    "hotkeys": {
        "scrub:previous": {
            "sequence": "Ctrl+Left",
            "description": "Master slider: previous value",
            "extra_sequences": ["Ctrl+Down"]
        },
        "scrub:next": {
            "sequence": "Ctrl+Right",
            "description": "Master slider: next value",
            "extra_sequences": ["Ctrl+Up"]
        },
        "viewer:previous_image": {
            "sequence": "Left",
            "description": "Image viewer: previous grid image"
        },
        "viewer:next_image": {
            "sequence": "Right",
            "description": "Image viewer: next grid image"
        },
        "viewer:slider_previous": {
            "sequence": "Down",
            "description": "Image viewer: previous slider value"
        },
        "viewer:slider_next": {
            "sequence": "Up",
            "description": "Image viewer: next slider value"
        },
        "viewer:close": {
            "sequence": "Esc",
            "description": "Close the image viewer"
        }
    }
}

# Integer settings that must be positive: dotted key -> lower bound.
_POSITIVE_INTS = {
    "gui.cell_size": 100,
    "gui.spacing": 0,
    "playback.default_speed_ms": 16,
    "preload.batch_size": 1,
    "preload.interval_ms": 0,
    "preload.cache_size": 1,
}


def config_path_for(app_name: str = "samplegrid") -> str:
    base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return os.path.join(base, app_name, "config.yaml")


def merge_config(defaults: dict, overrides: dict) -> dict:
    """Recursively overlay *overrides* on a copy of *defaults*."""
    merged = copy.deepcopy(defaults)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """YAML-backed settings with dotted-key access.

    A missing file is created from ``DEFAULT_CONFIG``. Out-of-range numbers in
    the user's file fall back to their defaults with a warning rather than
    failing the whole load.
    """

    def __init__(self, config_path: str | None = None):
        self.config_path = config_path or config_path_for()
        self.config = self.load_config()

    def load_config(self) -> dict:
        if not os.path.exists(self.config_path):
            logging.info(f"No config at {self.config_path}; writing defaults")
            config = copy.deepcopy(DEFAULT_CONFIG)
            self.save_config(config)
            return config

        try:
            with open(self.config_path, "r") as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ValueError(f"Malformed config at {self.config_path}") from exc

        if loaded is not None and not isinstance(loaded, dict):
            raise ValueError(f"Malformed config at {self.config_path}: top level must be a mapping")
        config = merge_config(DEFAULT_CONFIG, loaded or {})
        self._validate(config)
        return config

    def reload(self):
        self.config = self.load_config()

    def save_config(self, config: dict):
        os.makedirs(os.path.dirname(self.config_path) or ".", exist_ok=True)
        with open(self.config_path, "w") as f:
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)

    @staticmethod
    def _lookup(config: dict, key: str):
        node = config
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def _validate(self, config: dict):
        for key, minimum in _POSITIVE_INTS.items():
            value = self._lookup(config, key)
            if not isinstance(value, int) or isinstance(value, bool) or value < minimum:
                fallback = self._lookup(DEFAULT_CONFIG, key)
                logging.warning(f"Config {key}={value!r} is invalid (expected int >= {minimum}); using {fallback}")
                self._store(config, key, fallback)

        speeds = self._lookup(config, "playback.speeds_ms")
        if not isinstance(speeds, list) or not speeds or not all(isinstance(s, int) and s > 0 for s in speeds):
            logging.warning(f"Config playback.speeds_ms={speeds!r} is invalid; using defaults")
            speeds = list(DEFAULT_CONFIG["playback"]["speeds_ms"])
        self._store(config, "playback.speeds_ms", sorted(set(speeds)))

    @staticmethod
    def _store(config: dict, key: str, value):
        *parents, leaf = key.split(".")
        node = config
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[leaf] = value

    def get(self, key: str, default=None):
        value = self._lookup(self.config, key)
        return default if value is None else value

    def set(self, key: str, value):
        self._store(self.config, key, value)
        self.save_config(self.config)

    @property
    def logging_level(self) -> str:
        return str(self.get("logging_level", "INFO")).upper()

    @property
    def playback_speeds(self) -> list:
        return list(self.get("playback.speeds_ms", DEFAULT_CONFIG["playback"]["speeds_ms"]))
