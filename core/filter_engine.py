"""Filter engine: effective visible values per dimension.

Pure-function module over selection state owned by the caller. The only
stateful piece is ``FilterState``, a small container the GUI keeps per
dataset; every operation on it returns the new selection rather than
hiding changes.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional

from .dimensions import Dimension, FilterMode


@dataclass(frozen=True)
class Selection:
    """Either *unset* (``values is None``, nothing filtered yet) or an explicit value set.

    An explicit empty set is legal and hides every artifact of the dimension.
    """
    values: Optional[FrozenSet[str]] = None

    @property
    def is_unset(self) -> bool:
        return self.values is None

    def resolve(self, dimension: Dimension) -> FrozenSet[str]:
        """The explicit value set, with *unset* meaning the full domain."""
        if self.values is None:
            return frozenset(dimension.values)
        return self.values


UNSET = Selection()


def selected(values: Iterable[str]) -> Selection:
    return Selection(frozenset(values))


def effective_values(dimension: Dimension, mode: FilterMode, selection: Selection = UNSET) -> FrozenSet[str]:
    domain = dimension.values
    if mode == FilterMode.HIDE:
        return frozenset(domain)

    if mode == FilterMode.SINGLE:
        if not domain:
            return frozenset()
        if selection.values:
            for value in domain:
                if value in selection.values:
                    return frozenset((value,))
        return frozenset((domain[0],))

    if selection.is_unset:
        return frozenset(domain)
    return frozenset(v for v in domain if v in selection.values)


def select_all(dimension: Dimension) -> FrozenSet[str]:
    return frozenset(dimension.values)


def select_none() -> FrozenSet[str]:
    return frozenset()


def solo(dimension: Dimension, value: str, current: Iterable[str]) -> FrozenSet[str]:
    """Isolate *value*, or restore the full domain if it is already isolated."""
    if frozenset(current) == frozenset((value,)):
        return select_all(dimension)
    return frozenset((value,))


def toggle(current: Iterable[str], value: str) -> FrozenSet[str]:
    current = frozenset(current)
    if value in current:
        return current - {value}
    return current | {value}


def single_value(dimension: Dimension, selection: Selection) -> Optional[str]:
    """The value shown in single mode: the selected one if valid, else the first."""
    values = effective_values(dimension, FilterMode.SINGLE, selection)
    return next(iter(values), None)


class FilterState:
    """Filter modes and selections for every dimension of one dataset."""

    def __init__(self, dimensions: Optional[List[Dimension]] = None,
                 default_mode: FilterMode = FilterMode.MULTI):
        self.default_mode = default_mode
        self._dimensions: Dict[str, Dimension] = {}
        self._modes: Dict[str, FilterMode] = {}
        self._selections: Dict[str, Selection] = {}
        self.reset(dimensions or [])

    def reset(self, dimensions: List[Dimension]):
        self._dimensions = {dim.name: dim for dim in dimensions}
        self._modes = {dim.name: self.default_mode for dim in dimensions}
        self._selections = {}

    def dimension(self, name: str) -> Optional[Dimension]:
        return self._dimensions.get(name)

    def mode_of(self, name: str) -> FilterMode:
        return self._modes.get(name, FilterMode.HIDE)

    def set_mode(self, name: str, mode: FilterMode) -> bool:
        if self._known(name, "filter mode") is None:
            return False
        if self._modes[name] == mode:
            return False
        self._modes[name] = mode
        logging.debug(f"Filter mode: {name} -> {mode.value}")
        return True

    def selection_of(self, name: str) -> Selection:
        return self._selections.get(name, UNSET)

    def _known(self, name: str, action: str) -> Optional[Dimension]:
        dim = self._dimensions.get(name)
        if dim is None:
            logging.warning(f"Ignoring {action} for unknown dimension '{name}'")
        return dim

    def set_selection(self, name: str, values: Iterable[str]) -> FrozenSet[str]:
        dim = self._known(name, "selection")
        if dim is None:
            return frozenset()
        new_values = frozenset(v for v in values if v in dim)
        self._selections[name] = Selection(new_values)
        logging.debug(f"Selection: {name} -> {sorted(new_values)}")
        return new_values

    def clear_selection(self, name: str):
        self._selections.pop(name, None)

    def toggle(self, name: str, value: str) -> FrozenSet[str]:
        dim = self._known(name, "toggle")
        if dim is None:
            return frozenset()
        return self.set_selection(name, toggle(self.selection_of(name).resolve(dim), value))

    def solo(self, name: str, value: str) -> FrozenSet[str]:
        dim = self._known(name, "solo")
        if dim is None:
            return frozenset()
        return self.set_selection(name, solo(dim, value, self.selection_of(name).resolve(dim)))

    def select_all(self, name: str) -> FrozenSet[str]:
        dim = self._known(name, "select all")
        if dim is None:
            return frozenset()
        return self.set_selection(name, select_all(dim))

    def select_none(self, name: str) -> FrozenSet[str]:
        return self.set_selection(name, select_none())

    def effective(self, name: str) -> FrozenSet[str]:
        dim = self._dimensions.get(name)
        if dim is None:
            return frozenset()
        return effective_values(dim, self.mode_of(name), self.selection_of(name))

    def effective_sets(self) -> Dict[str, FrozenSet[str]]:
        """Effective sets for every dimension that actually restricts something.

        Hidden dimensions and untouched multi selections admit the full
        domain and are left out, so callers can treat absence as "no filter".
        """
        result: Dict[str, FrozenSet[str]] = {}
        for name, dim in self._dimensions.items():
            mode = self.mode_of(name)
            if mode == FilterMode.HIDE:
                continue
            if mode == FilterMode.MULTI and self.selection_of(name).is_unset:
                continue
            result[name] = self.effective(name)
        return result
