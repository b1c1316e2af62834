"""Headless wiring of the board systems for a UI shell or a test harness.

Sets up the world, event bus and systems without any window or render loop.
"""
import random
from typing import Callable, List, Optional, Sequence

from tilecascade.constants import GRID_SIZE
from tilecascade.events.bus import EventBus, EVENT_MATCH_RESOLVED, EVENT_TILE_CLICK
from tilecascade.systems.board import BoardSystem
from tilecascade.systems.board_ops import MatchDetail, TileView, tile_views, type_grid
from tilecascade.systems.match import MatchSystem
from tilecascade.systems.match_resolution import MatchResolutionSystem
from tilecascade.world import create_world

MatchCallback = Callable[[Sequence[MatchDetail], bool], None]


class MatchEngine:
    def __init__(
        self,
        size: int = GRID_SIZE,
        level: int = 1,
        *,
        rng: random.Random | None = None,
        seed: int | None = None,
        event_bus: EventBus | None = None,
        reshuffle_when_deadlocked: bool = True,
    ):
        self.event_bus = event_bus or EventBus()
        self.world = create_world(rng=rng, seed=seed)
        self.board_system = BoardSystem(
            self.world,
            self.event_bus,
            size=size,
            level=level,
            reshuffle_when_deadlocked=reshuffle_when_deadlocked,
        )
        self.match_system = MatchSystem(self.world, self.event_bus)
        self.match_resolution_system = MatchResolutionSystem(self.world, self.event_bus)

    @property
    def selected(self):
        return self.board_system.selected

    def click(self, row: int, col: int) -> None:
        self.event_bus.emit(EVENT_TILE_CLICK, row=row, col=col)

    def on_match(self, callback: MatchCallback) -> None:
        """Call ``callback(match_details, obstacles_cleared)`` after every resolved swap."""
        def _forward(sender, **kwargs):
            callback(kwargs.get('match_details') or [], bool(kwargs.get('obstacles_cleared')))
        self.event_bus.subscribe(EVENT_MATCH_RESOLVED, _forward)

    def tiles(self) -> List[List[TileView]]:
        return tile_views(self.world)

    def types(self) -> List[List[Optional[str]]]:
        return type_grid(self.world)
