"""Progression session state consumed by the scoring collaborator."""
from dataclasses import dataclass

from tilecascade.constants import INITIAL_REQUIRED_TARGET, STABILITY_MAX


@dataclass(slots=True)
class Session:
    """Singleton component tracking score, stability and the level's collection target."""
    score: int = 0
    stability: int = STABILITY_MAX
    level: int = 1
    collected_target_count: int = 0
    required_target_count: int = INITIAL_REQUIRED_TARGET
    target_type: str = 'gravity'
    target_announced: bool = False
