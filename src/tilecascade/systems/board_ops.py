from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from esper import World

from tilecascade.components.board_position import BoardPosition
from tilecascade.components.clear_mark import ClearMark
from tilecascade.components.tile import TileIdentity, TileType
from tilecascade.constants import (
    MAX_CASCADE_DEPTH,
    MAX_RESHUFFLE_ATTEMPTS,
    MIN_RUN_LENGTH,
    OBSTACLE_CLEAR_RUN_LENGTH,
    OBSTACLE_TYPE,
)
from tilecascade.factories.tiles import create_tile, obstacle_probability, roll_tile_type
from tilecascade.utils.lookups import get_board, get_tile_registry, world_random

logger = logging.getLogger(__name__)

Position = Tuple[int, int]
TypeGrid = List[List[Optional[str]]]
EntityGrid = List[List[Optional[int]]]


@dataclass(slots=True, frozen=True)
class MatchGroup:
    """One maximal run of identical elemental tiles in a single row or column."""
    type_name: str
    orientation: str
    positions: Tuple[Position, ...]

    def __len__(self) -> int:
        return len(self.positions)


@dataclass(slots=True, frozen=True)
class MatchDetail:
    type_name: str
    count: int = 1


@dataclass(slots=True)
class GravityMove:
    source: Position
    target: Position
    type_name: str


@dataclass(slots=True)
class CascadeStep:
    depth: int
    groups: List[MatchGroup]
    positions: List[Position]
    moves: List[GravityMove]
    spawned: List[Position]
    obstacles_cleared: bool = False


@dataclass(slots=True)
class CascadeResult:
    cleared_positions: Set[Position] = field(default_factory=set)
    obstacles_cleared: bool = False
    match_details: List[MatchDetail] = field(default_factory=list)
    groups: List[MatchGroup] = field(default_factory=list)
    depth: int = 0


@dataclass(slots=True)
class SwapOutcome:
    accepted: bool
    reason: Optional[str] = None
    result: Optional[CascadeResult] = None


@dataclass(slots=True, frozen=True)
class TileView:
    """Read-only snapshot of a tile for renderers and tests."""
    uid: str
    type_name: str
    row: int
    col: int
    cleared: bool


# ---------------------------------------------------------------------------
# Board lookups
# ---------------------------------------------------------------------------

def board_dimensions(world: World) -> Tuple[int, int] | None:
    try:
        board = get_board(world)
    except RuntimeError:
        return None
    return board.size, board.size


def in_bounds(world: World, pos: Position) -> bool:
    dims = board_dimensions(world)
    if not dims:
        return False
    rows, cols = dims
    row, col = pos
    return 0 <= row < rows and 0 <= col < cols


def tile_grid(world: World) -> EntityGrid:
    """Row-major matrix of tile entities; None where a cell is (transiently) empty."""
    dims = board_dimensions(world)
    if not dims:
        return []
    rows, cols = dims
    grid: EntityGrid = [[None] * cols for _ in range(rows)]
    for entity, position in world.get_component(BoardPosition):
        if 0 <= position.row < rows and 0 <= position.col < cols:
            grid[position.row][position.col] = entity
    return grid


def get_entity_at(world: World, row: int, col: int) -> int | None:
    for entity, position in world.get_component(BoardPosition):
        if position.row == row and position.col == col:
            return entity
    return None


def type_grid(world: World) -> TypeGrid:
    """Row-major matrix of type names; cells that are empty or marked cleared read as None."""
    types: TypeGrid = []
    for row in tile_grid(world):
        row_types: List[Optional[str]] = []
        for entity in row:
            if entity is None or world.component_for_entity(entity, ClearMark).cleared:
                row_types.append(None)
            else:
                row_types.append(world.component_for_entity(entity, TileType).type_name)
        types.append(row_types)
    return types


def tile_views(world: World) -> List[List[TileView]]:
    views: List[List[TileView]] = []
    for row in tile_grid(world):
        row_views: List[TileView] = []
        for entity in row:
            if entity is None:
                raise RuntimeError("Board has an empty cell outside of resolution")
            position = world.component_for_entity(entity, BoardPosition)
            row_views.append(
                TileView(
                    uid=world.component_for_entity(entity, TileIdentity).uid,
                    type_name=world.component_for_entity(entity, TileType).type_name,
                    row=position.row,
                    col=position.col,
                    cleared=world.component_for_entity(entity, ClearMark).cleared,
                )
            )
        views.append(row_views)
    return views


def obstacle_positions(world: World) -> List[Position]:
    registry = get_tile_registry(world)
    found: List[Position] = []
    for entity, position in world.get_component(BoardPosition):
        if registry.is_obstacle(world.component_for_entity(entity, TileType).type_name):
            found.append((position.row, position.col))
    return sorted(found)


# ---------------------------------------------------------------------------
# Match detection
# ---------------------------------------------------------------------------

def _scan_line(
    cells: Sequence[Optional[str]],
    coords: Sequence[Position],
    orientation: str,
    obstacle: str,
) -> List[MatchGroup]:
    groups: List[MatchGroup] = []
    length = len(cells)
    start = 0
    while start <= length - MIN_RUN_LENGTH:
        tval = cells[start]
        if tval is None or tval == obstacle:
            start += 1
            continue
        end = start + 1
        while end < length and cells[end] == tval:
            end += 1
        if end - start >= MIN_RUN_LENGTH:
            groups.append(MatchGroup(type_name=tval, orientation=orientation, positions=tuple(coords[start:end])))
        # Every cell in [start, end) has the same type, so no shorter run can start inside it.
        start = end
    return groups


def find_match_groups(types: Sequence[Sequence[Optional[str]]], obstacle: str = OBSTACLE_TYPE) -> List[MatchGroup]:
    """Detect every maximal horizontal and vertical run of length >= 3.

    Rows are scanned left to right first, then columns top to bottom. The two
    passes are independent so a cell can appear in one group of each orientation.
    Obstacles and empty cells (None) never start, extend or sit inside a run.
    """
    rows = len(types)
    cols = len(types[0]) if rows else 0
    matches: List[MatchGroup] = []
    for r in range(rows):
        matches.extend(
            _scan_line(types[r], [(r, c) for c in range(cols)], "horizontal", obstacle)
        )
    for c in range(cols):
        matches.extend(
            _scan_line([types[r][c] for r in range(rows)], [(r, c) for r in range(rows)], "vertical", obstacle)
        )
    return matches


def find_all_matches(world: World) -> List[MatchGroup]:
    registry = get_tile_registry(world)
    types = type_grid(world)
    if not types:
        return []
    return find_match_groups(types, obstacle=registry.obstacle)


# ---------------------------------------------------------------------------
# Swaps
# ---------------------------------------------------------------------------

def is_adjacent(a: Position, b: Position) -> bool:
    ar, ac = a
    br, bc = b
    return (abs(ar - br) == 1 and ac == bc) or (abs(ac - bc) == 1 and ar == br)


def swap_tile_types(world: World, src: Position, dst: Position) -> bool:
    """Exchange the type names of the tiles at src and dst; the entities stay in place."""
    src_entity = get_entity_at(world, src[0], src[1])
    dst_entity = get_entity_at(world, dst[0], dst[1])
    if src_entity is None or dst_entity is None:
        return False
    src_tile: TileType = world.component_for_entity(src_entity, TileType)
    dst_tile: TileType = world.component_for_entity(dst_entity, TileType)
    src_tile.type_name, dst_tile.type_name = dst_tile.type_name, src_tile.type_name
    return True


def swap_rejection_reason(world: World, src: Position, dst: Position, *, types: TypeGrid | None = None) -> str | None:
    """Return why a swap between src and dst is ineligible, or None if it may be attempted."""
    if not in_bounds(world, src) or not in_bounds(world, dst):
        return "out_of_bounds"
    if not is_adjacent(src, dst):
        return "not_adjacent"
    registry = get_tile_registry(world)
    tile_types = types if types is not None else type_grid(world)
    src_type = tile_types[src[0]][src[1]]
    dst_type = tile_types[dst[0]][dst[1]]
    if src_type is None or dst_type is None:
        return "empty_cell"
    if registry.is_obstacle(src_type) or registry.is_obstacle(dst_type):
        return "obstacle"
    return None


def predict_swap_creates_match(
    world: World, src: Position, dst: Position, *, types: TypeGrid | None = None
) -> bool:
    """Return True if swapping src/dst would leave at least one run on the board."""
    tile_types = types if types is not None else type_grid(world)
    if swap_rejection_reason(world, src, dst, types=tile_types) is not None:
        return False
    swapped = [list(row) for row in tile_types]
    (sr, sc), (dr, dc) = src, dst
    swapped[sr][sc], swapped[dr][dc] = swapped[dr][dc], swapped[sr][sc]
    return bool(find_match_groups(swapped, obstacle=get_tile_registry(world).obstacle))


def find_valid_swaps(world: World) -> List[Tuple[Position, Position]]:
    """Enumerate adjacent swaps that would produce a match."""
    dims = board_dimensions(world)
    if not dims:
        return []
    rows, cols = dims
    types = type_grid(world)
    swaps: List[Tuple[Position, Position]] = []
    for row in range(rows):
        for col in range(cols):
            pos = (row, col)
            right = (row, col + 1)
            if col + 1 < cols and predict_swap_creates_match(world, pos, right, types=types):
                swaps.append((pos, right))
            down = (row + 1, col)
            if row + 1 < rows and predict_swap_creates_match(world, pos, down, types=types):
                swaps.append((pos, down))
    return swaps


# ---------------------------------------------------------------------------
# Clearing, gravity and refill
# ---------------------------------------------------------------------------

def mark_cleared(world: World, positions: Iterable[Position]) -> List[Tuple[int, int, str]]:
    """Flag tiles at positions as cleared and return (row, col, type_name) for each newly flagged tile."""
    grid = tile_grid(world)
    typed: List[Tuple[int, int, str]] = []
    for row, col in positions:
        entity = grid[row][col]
        if entity is None:
            continue
        mark: ClearMark = world.component_for_entity(entity, ClearMark)
        if mark.cleared:
            continue
        mark.cleared = True
        typed.append((row, col, world.component_for_entity(entity, TileType).type_name))
    return typed


def apply_gravity(world: World) -> List[GravityMove]:
    """Remove cleared tiles and slide the survivors of each column down, keeping their order."""
    grid = tile_grid(world)
    if not grid:
        return []
    size = len(grid)
    moves: List[GravityMove] = []
    for col in range(len(grid[0])):
        survivors: List[Tuple[int, int]] = []
        for row in range(size):
            entity = grid[row][col]
            if entity is None:
                continue
            if world.component_for_entity(entity, ClearMark).cleared:
                world.delete_entity(entity, immediate=True)
            else:
                survivors.append((row, entity))
        offset = size - len(survivors)
        for index, (row, entity) in enumerate(survivors):
            target = offset + index
            if target == row:
                continue
            position: BoardPosition = world.component_for_entity(entity, BoardPosition)
            position.row = target
            tile_type: TileType = world.component_for_entity(entity, TileType)
            moves.append(GravityMove(source=(row, col), target=(target, col), type_name=tile_type.type_name))
    return moves


def refill_cleared(world: World, probability: float, *, rng: random.Random | None = None) -> List[Position]:
    """Spawn new tiles into every empty cell, column by column from the top."""
    rng = world_random(world, rng)
    grid = tile_grid(world)
    spawned: List[Position] = []
    if not grid:
        return spawned
    for col in range(len(grid[0])):
        for row in range(len(grid)):
            if grid[row][col] is None:
                create_tile(world, row, col, probability, rng=rng)
                spawned.append((row, col))
    return spawned


def resolve_cascade(
    world: World,
    *,
    rng: random.Random | None = None,
    on_step: Callable[[CascadeStep], None] | None = None,
    max_depth: int = MAX_CASCADE_DEPTH,
) -> CascadeResult:
    """Clear, collapse and refill until the board holds no more runs.

    Any single run of OBSTACLE_CLEAR_RUN_LENGTH or more also sweeps every obstacle
    on the board. ``match_details`` carries one entry per cleared cell across all
    passes.
    """
    rng = world_random(world, rng)
    board = get_board(world)
    probability = obstacle_probability(board.level)
    result = CascadeResult()
    while True:
        groups = find_all_matches(world)
        if not groups:
            break
        if result.depth >= max_depth:
            raise RuntimeError(f"Cascade did not settle after {max_depth} passes")
        result.depth += 1
        cleared: Set[Position] = {pos for group in groups for pos in group.positions}
        sweep = any(len(group) >= OBSTACLE_CLEAR_RUN_LENGTH for group in groups)
        if sweep:
            result.obstacles_cleared = True
            cleared.update(obstacle_positions(world))
        positions = sorted(cleared)
        typed = mark_cleared(world, positions)
        # Swept obstacles count as cleared cells too, so they get a detail each.
        result.match_details.extend(MatchDetail(type_name=type_name) for _, _, type_name in typed)
        result.cleared_positions.update(cleared)
        result.groups.extend(groups)
        moves = apply_gravity(world)
        spawned = refill_cleared(world, probability, rng=rng)
        logger.debug(
            "cascade pass %d cleared %d cells (%d groups, sweep=%s)",
            result.depth, len(typed), len(groups), sweep,
        )
        if on_step is not None:
            on_step(CascadeStep(
                depth=result.depth,
                groups=groups,
                positions=positions,
                moves=moves,
                spawned=spawned,
                obstacles_cleared=sweep,
            ))
    return result


def propose_swap(
    world: World,
    src: Position,
    dst: Position,
    *,
    rng: random.Random | None = None,
    on_step: Callable[[CascadeStep], None] | None = None,
) -> SwapOutcome:
    """Attempt a swap; keep it and resolve the cascade only if it creates a match."""
    reason = swap_rejection_reason(world, src, dst)
    if reason is not None:
        return SwapOutcome(accepted=False, reason=reason)
    swap_tile_types(world, src, dst)
    if not find_all_matches(world):
        swap_tile_types(world, src, dst)
        return SwapOutcome(accepted=False, reason="no_match")
    result = resolve_cascade(world, rng=rng, on_step=on_step)
    return SwapOutcome(accepted=True, result=result)


# ---------------------------------------------------------------------------
# Board population
# ---------------------------------------------------------------------------

def _run_completing_types(layout: Dict[Position, str], row: int, col: int, obstacle: str) -> Set[str]:
    """Types that would complete a run with the two cells left of or above (row, col)."""
    banned: Set[str] = set()
    left1 = layout.get((row, col - 1))
    if left1 is not None and left1 != obstacle and left1 == layout.get((row, col - 2)):
        banned.add(left1)
    up1 = layout.get((row - 1, col))
    if up1 is not None and up1 != obstacle and up1 == layout.get((row - 2, col)):
        banned.add(up1)
    return banned


def clear_board(world: World) -> None:
    for entity, _ in list(world.get_component(BoardPosition)):
        world.delete_entity(entity, immediate=True)


def fill_board(world: World, *, rng: random.Random | None = None) -> List[Position]:
    """Replace every tile with a fresh one such that the board starts without runs."""
    rng = world_random(world, rng)
    board = get_board(world)
    registry = get_tile_registry(world)
    probability = obstacle_probability(board.level)
    clear_board(world)
    layout: Dict[Position, str] = {}
    positions: List[Position] = []
    for row in range(board.size):
        for col in range(board.size):
            banned = _run_completing_types(layout, row, col, registry.obstacle)
            entity = create_tile(world, row, col, probability, rng=rng, exclude=banned)
            layout[(row, col)] = world.component_for_entity(entity, TileType).type_name
            positions.append((row, col))
    return positions


def reshuffle_board(
    world: World,
    *,
    rng: random.Random | None = None,
    max_attempts: int = MAX_RESHUFFLE_ATTEMPTS,
) -> List[Position]:
    """Re-roll the board so it has no runs and, if at all possible, a valid swap.

    Elemental tiles are re-rolled first with obstacles kept in their cells. Some
    obstacle layouts leave no swap that could ever match, so when those attempts
    run out the types are restored and the whole board is refilled, obstacles
    included. Returns the re-rolled positions. If no playable layout turns up the
    last refill is kept; it never contains a run.
    """
    rng = world_random(world, rng)
    registry = get_tile_registry(world)
    grid = tile_grid(world)
    if not grid:
        return []
    original: Dict[Position, str] = {}
    fixed: Dict[Position, str] = {}
    movable: List[Position] = []
    for row, entities in enumerate(grid):
        for col, entity in enumerate(entities):
            if entity is None:
                raise RuntimeError("Cannot reshuffle a board with empty cells")
            type_name = world.component_for_entity(entity, TileType).type_name
            original[(row, col)] = type_name
            if registry.is_obstacle(type_name):
                fixed[(row, col)] = type_name
            else:
                movable.append((row, col))
    if movable:
        for _ in range(max_attempts):
            layout: Dict[Position, str] = dict(fixed)
            for row, col in movable:
                banned = _run_completing_types(layout, row, col, registry.obstacle)
                layout[(row, col)] = roll_tile_type(registry, 0.0, rng, exclude=banned)
            for row, col in movable:
                world.component_for_entity(grid[row][col], TileType).type_name = layout[(row, col)]
            if find_all_matches(world):
                continue
            if not find_valid_swaps(world):
                continue
            return movable
        for (row, col), type_name in original.items():
            world.component_for_entity(grid[row][col], TileType).type_name = type_name
    logger.debug("obstacles block every swap; refilling the whole board")
    positions: List[Position] = []
    for _ in range(max_attempts):
        positions = fill_board(world, rng=rng)
        if find_valid_swaps(world):
            return positions
    if positions:
        logger.debug("no playable layout after %d refills", max_attempts)
    return positions
