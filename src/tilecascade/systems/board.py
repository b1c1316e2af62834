import logging
from typing import List, Optional, Tuple

from esper import World

from tilecascade.components.board import Board
from tilecascade.constants import GRID_SIZE
from tilecascade.events.bus import (
    EventBus,
    EVENT_BOARD_DEADLOCKED,
    EVENT_BOARD_REBUILT,
    EVENT_CASCADE_COMPLETE,
    EVENT_LEVEL_CHANGED,
    EVENT_TILE_CLICK,
    EVENT_TILE_DESELECTED,
    EVENT_TILE_SELECTED,
    EVENT_TILE_SWAP_REQUEST,
)
from tilecascade.systems.board_ops import (
    fill_board,
    find_valid_swaps,
    in_bounds,
    is_adjacent,
    reshuffle_board,
    type_grid,
)
from tilecascade.systems.resolution_state_utils import get_or_create_resolution_state
from tilecascade.utils.lookups import get_tile_registry

logger = logging.getLogger(__name__)


class BoardSystem:
    """Owns the board entity and the single-slot selection protocol.

    First click selects a tile, a second click on an adjacent tile requests a swap,
    a click elsewhere moves the selection. The selection is cleared after every
    swap attempt whatever its outcome.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        size: int = GRID_SIZE,
        level: int = 1,
        *,
        reshuffle_when_deadlocked: bool = True,
    ):
        self.world = world
        self.event_bus = event_bus
        self.reshuffle_when_deadlocked = reshuffle_when_deadlocked
        self.board_entity = self.world.create_entity(Board(size=size, level=level))
        self.selected: Optional[Tuple[int, int]] = None
        self.event_bus.subscribe(EVENT_TILE_CLICK, self.on_tile_click)
        self.event_bus.subscribe(EVENT_LEVEL_CHANGED, self.on_level_changed)
        self.event_bus.subscribe(EVENT_CASCADE_COMPLETE, self.on_cascade_complete)
        self._init_board()

    @property
    def board(self) -> Board:
        return self.world.component_for_entity(self.board_entity, Board)

    def _init_board(self):
        fill_board(self.world)
        if self.reshuffle_when_deadlocked and not find_valid_swaps(self.world):
            reshuffle_board(self.world)
        self.event_bus.emit(EVENT_BOARD_REBUILT, size=self.board.size, level=self.board.level)

    def rebuild(self, level: int):
        """Replace the whole grid, e.g. after the progression layer changes level."""
        if level < 1:
            raise ValueError(f"Level must be at least 1, got {level}")
        self.board.level = level
        self._deselect('rebuild')
        self._init_board()

    def on_level_changed(self, sender, **kwargs):
        level = kwargs.get('level')
        if level is None:
            return
        self.rebuild(level)

    def on_tile_click(self, sender, **kwargs):
        row = kwargs.get('row')
        col = kwargs.get('col')
        if row is None or col is None:
            return
        if get_or_create_resolution_state(self.world).processing:
            return
        pos = (row, col)
        if not in_bounds(self.world, pos):
            return
        registry = get_tile_registry(self.world)
        if registry.is_obstacle(type_grid(self.world)[row][col]):
            return
        if self.selected is None:
            self._select(pos)
        elif self.selected == pos:
            self._deselect('same_tile')
        elif is_adjacent(self.selected, pos):
            src = self.selected
            self._deselect('swap_attempt')
            self.event_bus.emit(EVENT_TILE_SWAP_REQUEST, src=src, dst=pos)
        else:
            self._select(pos)

    def on_cascade_complete(self, sender, **kwargs):
        if not self.reshuffle_when_deadlocked:
            return
        if find_valid_swaps(self.world):
            return
        reshuffled: List[Tuple[int, int]] = reshuffle_board(self.world)
        playable = bool(find_valid_swaps(self.world))
        logger.debug("board deadlocked; reshuffled %d tiles (playable=%s)", len(reshuffled), playable)
        self.event_bus.emit(EVENT_BOARD_DEADLOCKED, reshuffled=reshuffled, playable=playable)

    def _select(self, pos: Tuple[int, int]):
        self.selected = pos
        self.event_bus.emit(EVENT_TILE_SELECTED, row=pos[0], col=pos[1])

    def _deselect(self, reason: str):
        prev = self.selected
        if prev is None:
            return
        self.selected = None
        self.event_bus.emit(EVENT_TILE_DESELECTED, reason=reason, prev_row=prev[0], prev_col=prev[1])
