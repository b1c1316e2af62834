from __future__ import annotations

import random

from esper import World

from tilecascade.components.board import Board
from tilecascade.components.tile_type_registry import TileTypeRegistry
from tilecascade.components.tile_types import TileTypes


def get_tile_registry(world: World) -> TileTypes:
    for entity, _ in world.get_component(TileTypeRegistry):
        return world.component_for_entity(entity, TileTypes)
    raise RuntimeError("TileTypes definitions not found")


def get_board(world: World) -> Board:
    for _, board in world.get_component(Board):
        return board
    raise RuntimeError("Board configuration not found")


def world_random(world: World, rng: random.Random | None = None) -> random.Random:
    """Return ``rng`` if given, else the world's shared Random, else a fresh one."""
    if rng is not None:
        return rng
    candidate = getattr(world, "random", None)
    if isinstance(candidate, random.Random):
        return candidate
    return random.Random()
