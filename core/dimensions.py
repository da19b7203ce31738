import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple


class DimensionType(Enum):
    INT = "int"
    STRING = "string"


class Role(Enum):
    X = "x"
    Y = "y"
    SLIDER = "slider"
    NONE = "none"


class FilterMode(Enum):
    HIDE = "hide"
    SINGLE = "single"
    MULTI = "multi"


# Roles that at most one dimension may hold at a time.
EXCLUSIVE_ROLES = (Role.X, Role.Y, Role.SLIDER)


@dataclass(frozen=True)
class Dimension:
    """A named axis of variation. ``values`` keeps the order it was loaded in."""
    name: str
    type: DimensionType
    values: Tuple[str, ...]

    @classmethod
    def create(cls, name: str, values, dim_type: DimensionType = DimensionType.STRING) -> 'Dimension':
        return cls(name=name, type=dim_type, values=tuple(str(v) for v in values))

    def __contains__(self, value: str) -> bool:
        return value in self.values

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class Artifact:
    relative_path: str
    dimensions: Mapping[str, str] = field(default_factory=dict)

    def value_of(self, dimension_name: str) -> Optional[str]:
        return self.dimensions.get(dimension_name)


@dataclass(frozen=True)
class Dataset:
    """Artifacts plus their dimensions, as produced by a scan."""
    artifacts: Tuple[Artifact, ...] = ()
    dimensions: Tuple[Dimension, ...] = ()

    def dimension(self, name: str) -> Optional[Dimension]:
        for dim in self.dimensions:
            if dim.name == name:
                return dim
        return None

    @property
    def is_empty(self) -> bool:
        return not self.artifacts


class RoleAssignment:
    """Maps every dimension of the loaded dataset to a Role.

    Dimensions start as ``Role.NONE``. ``x``, ``y`` and ``slider`` are
    exclusive: assigning one of them moves the previous holder back to
    ``Role.NONE``.
    """

    def __init__(self, dimensions: Optional[List[Dimension]] = None):
        self._dimensions: Dict[str, Dimension] = {}
        self._roles: Dict[str, Role] = {}
        self.reset(dimensions or [])

    def reset(self, dimensions: List[Dimension]):
        self._dimensions = {dim.name: dim for dim in dimensions}
        self._roles = {dim.name: Role.NONE for dim in dimensions}

    def assign(self, dimension_name: str, role: Role) -> Dict[str, Role]:
        """Assign *role* and return every dimension whose role changed."""
        if dimension_name not in self._roles:
            logging.warning(f"Ignoring role assignment for unknown dimension '{dimension_name}'")
            return {}

        changed: Dict[str, Role] = {}
        if role in EXCLUSIVE_ROLES:
            for name, existing in self._roles.items():
                if existing == role and name != dimension_name:
                    self._roles[name] = Role.NONE
                    changed[name] = Role.NONE

        if self._roles[dimension_name] != role:
            self._roles[dimension_name] = role
            changed[dimension_name] = role
        logging.debug(f"Role assignment: {dimension_name} -> {role.value} (changed: {list(changed)})")
        return changed

    def role_of(self, dimension_name: str) -> Role:
        return self._roles.get(dimension_name, Role.NONE)

    def dimension_for(self, role: Role) -> Optional[Dimension]:
        for name, assigned in self._roles.items():
            if assigned == role:
                return self._dimensions[name]
        return None

    @property
    def x(self) -> Optional[Dimension]:
        return self.dimension_for(Role.X)

    @property
    def y(self) -> Optional[Dimension]:
        return self.dimension_for(Role.Y)

    @property
    def slider(self) -> Optional[Dimension]:
        return self.dimension_for(Role.SLIDER)
