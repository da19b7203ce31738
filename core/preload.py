"""Preload ordering so slider scrubbing hits a warm image cache.

Pure-function module. Artifacts that can appear in the current grid come
first (with every slider position of each visible cell, since those are one
scrub away), then everything else in dataset order.
"""

from typing import FrozenSet, List, Mapping, Optional, Sequence

from .dimensions import Artifact, Dimension
from .grid_builder import passes_filters


def preload_order(artifacts: Sequence[Artifact],
                  slider_dim: Optional[Dimension] = None,
                  effective_sets: Optional[Mapping[str, FrozenSet[str]]] = None) -> List[str]:
    effective_sets = effective_sets or {}
    skip = (slider_dim.name,) if slider_dim else ()

    ordered: List[str] = []
    seen = set()
    for artifact in artifacts:
        if artifact.relative_path not in seen and passes_filters(artifact, effective_sets, skip=skip):
            seen.add(artifact.relative_path)
            ordered.append(artifact.relative_path)
    for artifact in artifacts:
        if artifact.relative_path not in seen:
            seen.add(artifact.relative_path)
            ordered.append(artifact.relative_path)
    return ordered
