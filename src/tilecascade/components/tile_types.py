from dataclasses import dataclass, field
from typing import List

from tilecascade.constants import OBSTACLE_TYPE

@dataclass(slots=True)
class TileTypes:
    """Canonical tile type names stored on a single entity.

    ``spawnable`` lists the elemental types the factory draws from. The obstacle
    type is defined alongside them but is never spawnable; it is drawn separately
    by probability.
    """
    types: List[str]
    spawnable: List[str] = field(default_factory=list)
    obstacle: str = OBSTACLE_TYPE

    def __post_init__(self) -> None:
        if self.obstacle not in self.types:
            raise ValueError(f"Obstacle type '{self.obstacle}' is not defined")
        candidates = self.spawnable or list(self.types)
        seen: set[str] = set()
        filtered: List[str] = []
        for name in candidates:
            if name in self.types and name != self.obstacle and name not in seen:
                filtered.append(name)
                seen.add(name)
        if not filtered:
            raise ValueError("At least one spawnable elemental type is required")
        self.spawnable = filtered

    def is_obstacle(self, type_name: str | None) -> bool:
        return type_name == self.obstacle

    def elemental_types(self) -> List[str]:
        return list(self.spawnable)
