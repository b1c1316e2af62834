from dataclasses import dataclass

@dataclass(slots=True)
class TileTypeRegistry:
    """Empty tag component marking the single entity that stores canonical tile type definitions.

    The same entity also has a TileTypes component listing the type names.
    """
    pass
