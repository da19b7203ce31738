"""Grid builder: places tagged artifacts on an X/Y grid.

Pure-function module with no Qt dependencies. Given the same inputs,
``build_grid`` always returns the same visible values and cell matches.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from .dimensions import Artifact, Dimension

CELL_KEY_SEPARATOR = "|"
FLAT_CELL_KEY = CELL_KEY_SEPARATOR


def cell_key(x_value: Optional[str], y_value: Optional[str]) -> str:
    """``"<x>|<y>"`` with an empty slot for an unassigned axis."""
    return f"{x_value or ''}{CELL_KEY_SEPARATOR}{y_value or ''}"


@dataclass(frozen=True)
class GridCell:
    row: int
    column: int
    x_value: Optional[str]
    y_value: Optional[str]
    key: str
    slider_value: Optional[str]
    artifact: Optional[Artifact]

    @property
    def is_missing(self) -> bool:
        return self.artifact is None


@dataclass(frozen=True)
class GridResult:
    x_values: Tuple[str, ...] = ()
    y_values: Tuple[str, ...] = ()
    cells: Tuple[GridCell, ...] = ()
    slider_values: Tuple[str, ...] = ()
    flat: Tuple[Artifact, ...] = ()
    is_flat: bool = False

    @property
    def is_empty(self) -> bool:
        if self.is_flat:
            return not self.flat
        return not self.cells

    @property
    def row_count(self) -> int:
        return max(1, len(self.y_values)) if self.cells else 0

    @property
    def column_count(self) -> int:
        return max(1, len(self.x_values)) if self.cells else 0

    @property
    def filled_count(self) -> int:
        return sum(1 for cell in self.cells if not cell.is_missing)

    @property
    def missing_count(self) -> int:
        return sum(1 for cell in self.cells if cell.is_missing)

    def cell_by_key(self, key: str) -> Optional[GridCell]:
        for cell in self.cells:
            if cell.key == key:
                return cell
        return None


def visible_axis_values(dimension: Optional[Dimension],
                        effective_sets: Mapping[str, FrozenSet[str]]) -> Tuple[str, ...]:
    """Axis values in domain order, restricted by the axis' own filter if it has one."""
    if dimension is None:
        return ()
    allowed = effective_sets.get(dimension.name)
    if allowed is None:
        return tuple(dimension.values)
    return tuple(v for v in dimension.values if v in allowed)


def passes_filters(artifact: Artifact, effective_sets: Mapping[str, FrozenSet[str]],
                   skip: Iterable[str] = ()) -> bool:
    skipped = set(skip)
    for name, allowed in effective_sets.items():
        if name in skipped:
            continue
        if artifact.value_of(name) not in allowed:
            return False
    return True


def resolve_slider_value(key: str, slider_dim: Optional[Dimension],
                         slider_overrides: Mapping[str, str],
                         default_slider_value: Optional[str]) -> Optional[str]:
    if slider_dim is None:
        return None
    if key in slider_overrides:
        return slider_overrides[key]
    if default_slider_value is not None:
        return default_slider_value
    return slider_dim.values[0] if slider_dim.values else None


def build_grid(artifacts: Sequence[Artifact],
               x_dim: Optional[Dimension],
               y_dim: Optional[Dimension],
               slider_dim: Optional[Dimension] = None,
               effective_sets: Optional[Mapping[str, FrozenSet[str]]] = None,
               slider_overrides: Optional[Mapping[str, str]] = None,
               default_slider_value: Optional[str] = None) -> GridResult:
    effective_sets = effective_sets or {}
    slider_overrides = slider_overrides or {}

    filtered = [a for a in artifacts if passes_filters(a, effective_sets)]
    slider_values = visible_axis_values(slider_dim, effective_sets)

    if x_dim is None and y_dim is None:
        if slider_dim is not None:
            value = resolve_slider_value(FLAT_CELL_KEY, slider_dim, slider_overrides, default_slider_value)
            filtered = [a for a in filtered if a.value_of(slider_dim.name) == value]
        logging.debug(f"Built flat grid: {len(filtered)} of {len(artifacts)} artifacts visible")
        return GridResult(slider_values=slider_values, flat=tuple(filtered), is_flat=True)

    x_values = visible_axis_values(x_dim, effective_sets)
    y_values = visible_axis_values(y_dim, effective_sets)
    if (x_dim is not None and not x_values) or (y_dim is not None and not y_values):
        logging.debug("Built empty grid: an assigned axis has no visible values")
        return GridResult(x_values=x_values, y_values=y_values, slider_values=slider_values)

    # (x, y) -> slider value -> matching artifacts
    index: Dict[Tuple[Optional[str], Optional[str]], Dict[Optional[str], List[Artifact]]] = defaultdict(lambda: defaultdict(list))
    for artifact in filtered:
        coord = (
            artifact.value_of(x_dim.name) if x_dim else None,
            artifact.value_of(y_dim.name) if y_dim else None,
        )
        slider_value = artifact.value_of(slider_dim.name) if slider_dim else None
        index[coord][slider_value].append(artifact)

    cells: List[GridCell] = []
    row_values: Sequence[Optional[str]] = y_values if y_dim else (None,)
    column_values: Sequence[Optional[str]] = x_values if x_dim else (None,)
    for row, y_value in enumerate(row_values):
        for column, x_value in enumerate(column_values):
            key = cell_key(x_value, y_value)
            by_slider = index.get((x_value, y_value), {})
            slider_value = resolve_slider_value(key, slider_dim, slider_overrides, default_slider_value)
            matches = by_slider.get(slider_value, [])
            if len(matches) > 1:
                logging.debug(f"Cell {key} has {len(matches)} matching artifacts; showing as missing")
            cells.append(GridCell(
                row=row,
                column=column,
                x_value=x_value,
                y_value=y_value,
                key=key,
                slider_value=slider_value,
                artifact=matches[0] if len(matches) == 1 else None,
            ))

    result = GridResult(
        x_values=x_values,
        y_values=y_values,
        cells=tuple(cells),
        slider_values=slider_values,
    )
    logging.debug(f"Built grid {len(column_values)}x{len(row_values)}: {result.filled_count} filled, {result.missing_count} missing")
    return result
