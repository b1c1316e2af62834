from __future__ import annotations

import random
from typing import Iterable, List, Sequence

from esper import World

from tilecascade.components.tile import TileType
from tilecascade.events.bus import EVENT_TILE_CLICK, EventBus
from tilecascade.systems.board import BoardSystem
from tilecascade.systems.board_ops import tile_grid, type_grid
from tilecascade.world import create_world

CODES = {
    'F': 'force',
    'M': 'mass',
    'V': 'velocity',
    'A': 'acceleration',
    'G': 'gravity',
    'X': 'obstacle',
}
NAMES = {name: code for code, name in CODES.items()}

# No two equal tiles are adjacent or one cell apart in any row or column, so this
# layout has no runs and no swap on it can create one.
BASE_5X5 = [
    "FMVAG",
    "VAGFM",
    "GFMVA",
    "MVAGF",
    "AGFMV",
]


class ScriptedRandom(random.Random):
    """Random source whose choice() replays a fixed list of tile codes."""

    def __init__(self, codes: Iterable[str] = (), obstacle_roll: float = 0.999):
        super().__init__(0)
        self.script: List[str] = [CODES[code] for code in codes]
        self.obstacle_roll = obstacle_roll

    def choice(self, seq):
        if not self.script:
            raise AssertionError("ScriptedRandom ran out of scripted tiles")
        value = self.script.pop(0)
        assert value in seq, f"{value} is not a legal choice among {list(seq)}"
        return value

    def random(self):
        return self.obstacle_roll


def apply_layout(world: World, layout: Sequence[str]) -> None:
    grid = tile_grid(world)
    assert len(grid) == len(layout)
    for r, row in enumerate(layout):
        for c, code in enumerate(row):
            world.component_for_entity(grid[r][c], TileType).type_name = CODES[code]


def layout_of(world: World) -> List[str]:
    return ["".join(NAMES[name] for name in row) for row in type_grid(world)]


def make_board(layout: Sequence[str], *, level: int = 1, seed: int = 0, reshuffle: bool = False):
    bus = EventBus()
    world = create_world(seed=seed)
    board = BoardSystem(world, bus, size=len(layout), level=level, reshuffle_when_deadlocked=reshuffle)
    apply_layout(world, layout)
    return bus, world, board


def capture(bus: EventBus, name: str) -> list:
    seen: list = []
    bus.subscribe(name, lambda sender, **kwargs: seen.append(kwargs))
    return seen


# Swapping (4, 2) with (4, 3) lines up three force tiles on the bottom row;
# refilling with "GVF" leaves the board stable. (0, 4) holds an obstacle.
SWAPPABLE_5X5 = list(BASE_5X5)
SWAPPABLE_5X5[0] = "FMVAX"
SWAPPABLE_5X5[4] = "FFMFV"


def click(bus: EventBus, row: int, col: int) -> None:
    bus.emit(EVENT_TILE_CLICK, row=row, col=col)
