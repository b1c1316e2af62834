from esper import World

from tilecascade.events.bus import (
    EventBus,
    EVENT_CASCADE_COMPLETE,
    EVENT_CASCADE_STEP,
    EVENT_MATCH_RESOLVED,
    EVENT_TILE_SWAP_INVALID,
    EVENT_TILE_SWAP_VALID,
)
from tilecascade.systems.board_ops import CascadeStep, propose_swap
from tilecascade.systems.resolution_state_utils import get_or_create_resolution_state


class MatchResolutionSystem:
    """Commits validated swaps and runs the cascade to completion.

    Resolution is synchronous: every pass is reported with a cascade_step event so a
    renderer can pace its animations, and exactly one match_resolved event carries the
    aggregated details once the board is stable again.
    """

    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_TILE_SWAP_VALID, self.on_swap_valid)

    def on_swap_valid(self, sender, **kwargs):
        src = kwargs.get('src')
        dst = kwargs.get('dst')
        if not src or not dst:
            return
        state = get_or_create_resolution_state(self.world)
        if state.processing:
            return
        state.processing = True
        try:
            outcome = propose_swap(self.world, src, dst, on_step=self._on_step)
        finally:
            state.processing = False
        if not outcome.accepted:
            self.event_bus.emit(EVENT_TILE_SWAP_INVALID, src=src, dst=dst, reason=outcome.reason)
            return
        result = outcome.result
        self.event_bus.emit(
            EVENT_MATCH_RESOLVED,
            match_details=list(result.match_details),
            obstacles_cleared=result.obstacles_cleared,
        )
        self.event_bus.emit(EVENT_CASCADE_COMPLETE, depth=result.depth)

    def _on_step(self, step: CascadeStep):
        self.event_bus.emit(
            EVENT_CASCADE_STEP,
            depth=step.depth,
            positions=step.positions,
            groups=step.groups,
            moves=step.moves,
            spawned=step.spawned,
            obstacles_cleared=step.obstacles_cleared,
        )
