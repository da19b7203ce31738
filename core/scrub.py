from typing import Optional, Sequence, Tuple

FORWARD = 1
BACKWARD = -1


class ScrubIndex:
    """Index arithmetic over an ordered value list, shared by every scrub control."""

    def __init__(self, values: Sequence[str] = (), current: Optional[str] = None):
        self._values: Tuple[str, ...] = tuple(values)
        self.current = current if current is not None else (self._values[0] if self._values else None)

    @property
    def values(self) -> Tuple[str, ...]:
        return self._values

    def set_values(self, values: Sequence[str]) -> bool:
        """Replace the value list; returns True if its content changed."""
        new_values = tuple(values)
        if new_values == self._values:
            return False
        self._values = new_values
        return True

    def index(self, value: Optional[str] = None) -> int:
        """Position of *value* (default: current), 0 when it is not in the list."""
        value = self.current if value is None else value
        try:
            return self._values.index(value)
        except ValueError:
            return 0

    def can_step(self) -> bool:
        return len(self._values) > 1

    def peek(self, direction: int, loop: bool = False) -> Optional[str]:
        """Value one step away in *direction*, or None when there is no change."""
        if not self.can_step():
            return None
        idx = self.index() + direction
        if not 0 <= idx < len(self._values):
            if not loop:
                return None
            idx %= len(self._values)
        value = self._values[idx]
        if value == self.current:
            return None
        return value

    def step(self, direction: int, loop: bool = False) -> Optional[str]:
        """Move one step and return the new value, or None (and stay put) at an end."""
        value = self.peek(direction, loop)
        if value is not None:
            self.current = value
        return value

    def value_at(self, index: int) -> Optional[str]:
        if 0 <= index < len(self._values):
            return self._values[index]
        return None


def step_value(values: Sequence[str], current: Optional[str], direction: int, loop: bool = False) -> Optional[str]:
    """Stateless form of ``ScrubIndex.step``."""
    return ScrubIndex(values, current).peek(direction, loop)
