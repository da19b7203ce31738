import fnmatch
import logging
import os
import re
import time
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Set, Tuple
from urllib.parse import parse_qsl

from core.dimensions import Artifact, Dataset, Dimension, DimensionType

# ComfyUI batch counter at the end of a filename: ``..._00001_.png``
BATCH_PATTERN = re.compile(r"_(\d+)_$")
CHECKPOINT_STEP_PATTERN = re.compile(r"step0*(\d+)", re.IGNORECASE)
CHECKPOINT_DIMENSION = "checkpoint"
IMAGE_EXTENSION = ".png"


def parse_filename(filename: str) -> Tuple[Optional[Dict[str, str]], int]:
    """Parse ``key=value&key=value&_NNNNN_.png`` into ``(dimensions, batch_number)``.

    Returns ``(None, batch)`` for non-PNG files and names with no parseable pairs.
    """
    name, ext = os.path.splitext(filename)
    if ext.lower() != IMAGE_EXTENSION:
        return None, 0

    batch = 0
    match = BATCH_PATTERN.search(name)
    if match:
        batch = int(match.group(1))
        name = name[:match.start()]
    name = name.rstrip("&")
    if not name:
        return None, batch

    # Segments without '=' (e.g. a bare prefix) carry no dimension.
    pairs = "&".join(segment for segment in name.split("&") if "=" in segment)
    dims: Dict[str, str] = {}
    for key, value in parse_qsl(pairs, keep_blank_values=True):
        if key and key not in dims:
            dims[key] = value
    return (dims or None), batch


def parse_image_path(relative_path: str, checkpoints: Optional[Mapping[str, int]] = None) -> Optional[Artifact]:
    """Parse ``<directory>/<query-encoded filename>`` into an Artifact.

    When *checkpoints* maps the directory name to a step number, a
    ``checkpoint`` dimension is added.
    """
    directory, _, filename = relative_path.rpartition("/")
    if not directory or not filename:
        return None
    dims, _ = parse_filename(filename)
    if dims is None:
        return None
    if checkpoints:
        step = checkpoints.get(os.path.basename(directory))
        if step is not None:
            dims[CHECKPOINT_DIMENSION] = str(step)
    return Artifact(relative_path=relative_path, dimensions=dims)


def infer_checkpoint_steps(directories: List[str]) -> Dict[str, int]:
    """Map directory names to the step number embedded in them.

    Returns an empty mapping unless every directory carries a step, so the
    derived dimension is never partial.
    """
    steps: Dict[str, int] = {}
    for name in directories:
        match = CHECKPOINT_STEP_PATTERN.search(name)
        if not match:
            return {}
        steps[name] = int(match.group(1))
    return steps


def _is_int(value: str) -> bool:
    try:
        int(value)
        return True
    except ValueError:
        return False


def sort_values(values: Set[str], dim_type: DimensionType) -> List[str]:
    if dim_type == DimensionType.INT:
        return sorted(values, key=int)
    return sorted(values)


@dataclass
class _Entry:
    artifact: Artifact
    batch: int


class DatasetScanner:
    """Builds a Dataset from a directory of query-encoded sample images."""

    def __init__(self, config_manager=None):
        self.config_manager = config_manager
        self.ignore_patterns = config_manager.get("dataset.ignore_patterns", ["._*"]) if config_manager else ["._*"]

    def is_ignored(self, name: str) -> bool:
        for pattern in self.ignore_patterns:
            if fnmatch.fnmatch(name, pattern):
                logging.debug(f"Skipping {name}: matches ignore pattern '{pattern}'")
                return True
        return False

    def _list_image_files(self, root: str) -> List[str]:
        """Relative paths (``/``-separated) of the PNGs in each directory directly under *root*."""
        found: List[str] = []
        for dirname in sorted(os.listdir(root)):
            path = os.path.join(root, dirname)
            # Images must live in a checkpoint directory; deeper levels are not scanned.
            if not os.path.isdir(path) or self.is_ignored(dirname):
                continue
            for filename in sorted(os.listdir(path)):
                if self.is_ignored(filename) or not filename.lower().endswith(IMAGE_EXTENSION):
                    continue
                if os.path.isfile(os.path.join(path, filename)):
                    found.append(f"{dirname}/{filename}")
        return found

    def scan(self, root: str, checkpoints: Optional[Mapping[str, int]] = None) -> Dataset:
        scan_start = time.monotonic()
        if not os.path.isdir(root):
            logging.warning(f"Dataset directory does not exist or is not a directory: {root}")
            return Dataset()

        try:
            paths = self._list_image_files(root)
        except OSError as e:
            logging.error(f"Error scanning dataset directory {root}: {e}")
            return Dataset()

        if checkpoints is None:
            directories = sorted({os.path.basename(p.rpartition("/")[0]) for p in paths})
            checkpoints = infer_checkpoint_steps(directories)

        entries: Dict[Tuple[Tuple[str, str], ...], _Entry] = {}
        for path in paths:
            artifact = parse_image_path(path, checkpoints)
            if artifact is None:
                logging.debug(f"Skipping unparseable image path: {path}")
                continue
            _, batch = parse_filename(path.rpartition("/")[2])
            dedup_key = tuple(sorted(artifact.dimensions.items()))
            existing = entries.get(dedup_key)
            if existing is None or batch > existing.batch:
                entries[dedup_key] = _Entry(artifact, batch)

        dataset = self.build_dataset([e.artifact for e in entries.values()])
        elapsed = time.monotonic() - scan_start
        logging.info(f"Scanned {root}: {len(dataset.artifacts)} images, {len(dataset.dimensions)} dimensions ({elapsed:.3f}s)")
        return dataset

    @staticmethod
    def build_dataset(artifacts: List[Artifact]) -> Dataset:
        """Derive dimensions from *artifacts*, dropping artifacts without a full tag set."""
        names: Set[str] = set()
        for artifact in artifacts:
            names.update(artifact.dimensions)

        complete = []
        for artifact in artifacts:
            missing = names.difference(artifact.dimensions)
            if missing:
                logging.warning(f"Dropping {artifact.relative_path}: no value for {sorted(missing)}")
                continue
            complete.append(artifact)

        values: Dict[str, Set[str]] = {name: set() for name in names}
        for artifact in complete:
            for name, value in artifact.dimensions.items():
                values[name].add(value)

        dimensions = []
        for name in sorted(names):
            if not values[name]:
                continue
            dim_type = DimensionType.INT if all(_is_int(v) for v in values[name]) else DimensionType.STRING
            dimensions.append(Dimension(name=name, type=dim_type, values=tuple(sort_values(values[name], dim_type))))

        complete.sort(key=lambda a: a.relative_path)
        return Dataset(artifacts=tuple(complete), dimensions=tuple(dimensions))
