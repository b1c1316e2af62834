from __future__ import annotations

import random
from typing import Iterable

from esper import World

from tilecascade.components.board_position import BoardPosition
from tilecascade.components.clear_mark import ClearMark
from tilecascade.components.tile import TileIdentity, TileType
from tilecascade.components.tile_types import TileTypes
from tilecascade.constants import OBSTACLE_MAX_PROBABILITY, OBSTACLE_RAMP
from tilecascade.utils.lookups import get_board, get_tile_registry, world_random


def obstacle_probability(level: int) -> float:
    """Chance that a freshly spawned tile is an obstacle at ``level``.

    Level 1 spawns no obstacles; each level above adds OBSTACLE_RAMP until the cap.
    """
    return max(0.0, min(OBSTACLE_MAX_PROBABILITY, (level - 1) * OBSTACLE_RAMP))


def roll_tile_type(
    registry: TileTypes,
    probability: float,
    rng: random.Random,
    exclude: Iterable[str] = (),
) -> str:
    if probability > 0 and rng.random() < probability:
        return registry.obstacle
    choices = registry.elemental_types()
    banned = set(exclude)
    if banned:
        allowed = [name for name in choices if name not in banned]
        if allowed:
            choices = allowed
    return rng.choice(choices)


def create_tile(
    world: World,
    row: int,
    col: int,
    probability: float,
    *,
    rng: random.Random | None = None,
    exclude: Iterable[str] = (),
) -> int:
    """Create a tile entity at (row, col) with a freshly rolled type and identity."""
    registry = get_tile_registry(world)
    board = get_board(world)
    type_name = roll_tile_type(registry, probability, world_random(world, rng), exclude)
    return world.create_entity(
        TileIdentity(uid=board.allocate_tile_id()),
        TileType(type_name=type_name),
        BoardPosition(row=row, col=col),
        ClearMark(),
    )
