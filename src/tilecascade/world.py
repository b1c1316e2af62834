import random

from esper import World

from tilecascade.components.tile_type_registry import TileTypeRegistry
from tilecascade.components.tile_types import TileTypes
from tilecascade.constants import OBSTACLE_TYPE

ELEMENTAL_TYPES = ('force', 'mass', 'velocity', 'acceleration', 'gravity')


def create_world(
    *,
    rng: random.Random | None = None,
    seed: int | None = None,
) -> World:
    """Create a world holding the tile type registry and a shared random source.

    Pass ``rng`` (or ``seed``) to make every draw on the board reproducible. The
    board itself is created by BoardSystem.
    """
    world = World()
    if rng is None:
        rng = random.Random(seed)
    setattr(world, "random", rng)

    # Single registry entity with canonical types
    world.create_entity(
        TileTypeRegistry(),
        TileTypes(
            types=[*ELEMENTAL_TYPES, OBSTACLE_TYPE],
            spawnable=list(ELEMENTAL_TYPES),
            obstacle=OBSTACLE_TYPE,
        ),
    )
    return world
