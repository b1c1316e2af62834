"""Scoring and level progression driven by resolved matches.

The board never reads this state back; it only hears about level changes through
EVENT_LEVEL_CHANGED.
"""
from __future__ import annotations

import logging
from typing import Sequence

from esper import World

from tilecascade.components.session import Session
from tilecascade.constants import (
    INITIAL_REQUIRED_TARGET,
    REQUIRED_TARGET_PER_LEVEL,
    SCORE_LEVEL_BONUS,
    SCORE_OBSTACLE_BONUS,
    SCORE_PER_TILE,
    STABILITY_MAX,
    STABILITY_OBSTACLE_BONUS,
    STABILITY_PER_TILE,
    TARGET_ROTATION,
)
from tilecascade.events.bus import (
    EventBus,
    EVENT_LEVEL_CHANGED,
    EVENT_MATCH_RESOLVED,
    EVENT_SESSION_UPDATED,
    EVENT_TARGET_REACHED,
)

logger = logging.getLogger(__name__)


def get_or_create_session(world: World) -> Session:
    """Return the shared Session component, creating it if absent."""
    existing = list(world.get_component(Session))
    if existing:
        return existing[0][1]
    world.create_entity(Session())
    return list(world.get_component(Session))[0][1]


def target_type_for_level(level: int) -> str:
    return TARGET_ROTATION[level % len(TARGET_ROTATION)]


def required_target_for_level(level: int) -> int:
    if level <= 1:
        return INITIAL_REQUIRED_TARGET
    return INITIAL_REQUIRED_TARGET + level * REQUIRED_TARGET_PER_LEVEL


class ProgressionSystem:
    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        get_or_create_session(world)
        self.event_bus.subscribe(EVENT_MATCH_RESOLVED, self.on_match_resolved)

    @property
    def session(self) -> Session:
        return get_or_create_session(self.world)

    def on_match_resolved(self, sender, **kwargs):
        details: Sequence = kwargs.get('match_details') or []
        obstacles_cleared = bool(kwargs.get('obstacles_cleared'))
        self.apply_match(details, obstacles_cleared)

    def apply_match(self, details: Sequence, obstacles_cleared: bool) -> None:
        session = self.session
        cleared = len(details)
        session.score += cleared * SCORE_PER_TILE + (SCORE_OBSTACLE_BONUS if obstacles_cleared else 0)
        session.stability = min(
            STABILITY_MAX,
            session.stability + cleared * STABILITY_PER_TILE + (STABILITY_OBSTACLE_BONUS if obstacles_cleared else 0),
        )
        session.collected_target_count += sum(1 for detail in details if detail.type_name == session.target_type)
        self._emit_updated()
        if session.collected_target_count >= session.required_target_count and not session.target_announced:
            session.target_announced = True
            logger.debug("target %s reached at level %d", session.target_type, session.level)
            self.event_bus.emit(
                EVENT_TARGET_REACHED,
                target_type=session.target_type,
                collected=session.collected_target_count,
                required=session.required_target_count,
            )

    def advance_level(self) -> int:
        """Move to the next level after the content layer reports a completed challenge."""
        session = self.session
        previous = session.level
        session.level = previous + 1
        session.score += SCORE_LEVEL_BONUS
        session.stability = STABILITY_MAX
        session.collected_target_count = 0
        session.required_target_count = required_target_for_level(session.level)
        session.target_type = target_type_for_level(session.level)
        session.target_announced = False
        self._emit_updated()
        self.event_bus.emit(EVENT_LEVEL_CHANGED, level=session.level, previous_level=previous)
        return session.level

    def reset(self) -> None:
        session = self.session
        previous = session.level
        fresh = Session()
        for name in Session.__slots__:
            setattr(session, name, getattr(fresh, name))
        self._emit_updated()
        self.event_bus.emit(EVENT_LEVEL_CHANGED, level=session.level, previous_level=previous)

    def _emit_updated(self):
        session = self.session
        self.event_bus.emit(
            EVENT_SESSION_UPDATED,
            score=session.score,
            stability=session.stability,
            collected=session.collected_target_count,
            required=session.required_target_count,
        )
