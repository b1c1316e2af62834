from dataclasses import dataclass

from tilecascade.constants import MIN_GRID_SIZE

@dataclass(slots=True)
class Board:
    """Singleton board configuration.

    The board is always square (size x size). ``level`` is supplied by the
    progression layer and only drives obstacle density; the board never changes it.
    """
    size: int
    level: int = 1
    next_tile_id: int = 0

    def __post_init__(self) -> None:
        if self.size < MIN_GRID_SIZE:
            raise ValueError(f"Board size must be at least {MIN_GRID_SIZE}, got {self.size}")
        if self.level < 1:
            raise ValueError(f"Level must be at least 1, got {self.level}")

    def allocate_tile_id(self) -> str:
        uid = f"tile-{self.next_tile_id}"
        self.next_tile_id += 1
        return uid
