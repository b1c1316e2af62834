from dataclasses import dataclass


@dataclass(slots=True)
class ResolutionState:
    """Tracks whether a swap/cascade is in flight; clicks are ignored while it is."""

    processing: bool = False
