from dataclasses import dataclass

@dataclass(slots=True)
class ClearMark:
    """Per-tile transient flag.

    cleared: True while the tile is scheduled for removal in the current resolution
    pass. Always False once the board is stable.
    """
    cleared: bool = False
