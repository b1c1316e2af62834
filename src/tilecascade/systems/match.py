import logging
from typing import Tuple

from esper import World

from tilecascade.events.bus import EventBus, EVENT_TILE_SWAP_REQUEST, EVENT_TILE_SWAP_VALID, EVENT_TILE_SWAP_INVALID
from tilecascade.systems.board_ops import predict_swap_creates_match, swap_rejection_reason, type_grid

logger = logging.getLogger(__name__)


class MatchSystem:
    """Answers swap requests by virtually swapping types and scanning for runs."""

    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        event_bus.subscribe(EVENT_TILE_SWAP_REQUEST, self.on_swap_request)

    def on_swap_request(self, sender, **kwargs):
        src = kwargs.get('src')
        dst = kwargs.get('dst')
        if not src or not dst:
            return
        reason = self.rejection_reason(src, dst)
        if reason is None:
            self.event_bus.emit(EVENT_TILE_SWAP_VALID, src=src, dst=dst)
        else:
            logger.debug("swap %s -> %s rejected: %s", src, dst, reason)
            self.event_bus.emit(EVENT_TILE_SWAP_INVALID, src=src, dst=dst, reason=reason)

    def rejection_reason(self, a: Tuple[int, int], b: Tuple[int, int]) -> str | None:
        types = type_grid(self.world)
        reason = swap_rejection_reason(self.world, a, b, types=types)
        if reason is not None:
            return reason
        if not predict_swap_creates_match(self.world, a, b, types=types):
            return 'no_match'
        return None
