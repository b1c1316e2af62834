from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # weak=False keeps bound methods of systems that are not stored anywhere alive.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# INPUT & SELECTION
# ============================================================================
EVENT_TILE_CLICK = "tile_click"                    # payload: row, col
EVENT_TILE_SELECTED = "tile_selected"              # payload: row, col
EVENT_TILE_DESELECTED = "tile_deselected"          # payload: reason=str, prev_row, prev_col


# ============================================================================
# SWAPS
# ============================================================================
EVENT_TILE_SWAP_REQUEST = "tile_swap_request"      # payload: src=(r,c), dst=(r,c)
EVENT_TILE_SWAP_VALID = "tile_swap_valid"          # payload: src=(r,c), dst=(r,c)
EVENT_TILE_SWAP_INVALID = "tile_swap_invalid"      # payload: src=(r,c), dst=(r,c), reason=str


# ============================================================================
# CASCADE
# ============================================================================
EVENT_CASCADE_STEP = "cascade_step"                # payload: depth=int, positions=[(r,c),...], groups, moves, spawned, obstacles_cleared=bool
EVENT_CASCADE_COMPLETE = "cascade_complete"        # payload: depth=int
EVENT_MATCH_RESOLVED = "match_resolved"            # payload: match_details=[MatchDetail,...], obstacles_cleared=bool
EVENT_BOARD_DEADLOCKED = "board_deadlocked"        # payload: reshuffled=[(r,c),...], playable=bool
EVENT_BOARD_REBUILT = "board_rebuilt"              # payload: size=int, level=int


# ============================================================================
# PROGRESSION
# ============================================================================
EVENT_TARGET_REACHED = "target_reached"            # payload: target_type=str, collected=int, required=int
EVENT_LEVEL_CHANGED = "level_changed"              # payload: level=int, previous_level=int|None
EVENT_SESSION_UPDATED = "session_updated"          # payload: score=int, stability=int, collected=int, required=int
