from dataclasses import dataclass

@dataclass(slots=True)
class TileType:
    """Per-tile type assignment.

    A swap exchanges ``type_name`` between two tiles; the tile entities themselves
    stay where they are. Canonical colours live on the TileTypeRegistry entity.
    """
    type_name: str


@dataclass(slots=True)
class TileIdentity:
    """Opaque identity for a tile instance, stable for its lifetime (render keying only)."""
    uid: str
