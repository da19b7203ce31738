import logging
from dataclasses import dataclass, field
from typing import List, Mapping


@dataclass
class HotkeyDefinition:
    """A ``<registry>:<action>`` name bound to one or more key chords."""
    action_name: str
    sequences: List[str] = field(default_factory=list)
    description: str = ""

    @property
    def namespace(self) -> str:
        return self.action_name.partition(":")[0]

    @property
    def action(self) -> str:
        return self.action_name.partition(":")[2]

    @classmethod
    def from_config(cls, action_name: str, entry) -> 'HotkeyDefinition':
        # Either "Ctrl+Left" or {sequence, extra_sequences, description}
        if isinstance(entry, str):
            return cls(action_name, [entry])
        if not isinstance(entry, Mapping):
            return cls(action_name)
        primary = [entry["sequence"]] if entry.get("sequence") else []
        extras = [s for s in entry.get("extra_sequences") or [] if s]
        return cls(action_name, primary + extras, entry.get("description", ""))


def load_hotkey_definitions(hotkeys_config: dict) -> List[HotkeyDefinition]:
    definitions = []
    for action_name, entry in (hotkeys_config or {}).items():
        if ":" not in action_name:
            logging.warning(f"Hotkey '{action_name}' is not of the form <registry>:<action>; skipping")
            continue
        definition = HotkeyDefinition.from_config(action_name, entry)
        if not definition.sequences:
            logging.warning(f"Hotkey '{action_name}' has no key sequence; skipping")
            continue
        definitions.append(definition)
    return definitions
