import pytest

from tilecascade.events.bus import EVENT_LEVEL_CHANGED, EVENT_TARGET_REACHED, EventBus
from tilecascade.systems.board_ops import MatchDetail, type_grid
from tilecascade.systems.match import MatchSystem
from tilecascade.systems.match_resolution import MatchResolutionSystem
from tilecascade.systems.progression_system import (
    ProgressionSystem,
    required_target_for_level,
    target_type_for_level,
)
from tilecascade.systems.board import BoardSystem
from tilecascade.world import create_world

from tests.helpers import SWAPPABLE_5X5 as SWAPPABLE, ScriptedRandom, capture, click, make_board


def details(*types):
    return [MatchDetail(type_name=t) for t in types]


def test_score_and_stability_from_match():
    bus = EventBus(); world = create_world(seed=0)
    progression = ProgressionSystem(world, bus)
    progression.session.stability = 50
    progression.apply_match(details('force', 'force', 'mass'), False)
    assert progression.session.score == 75
    assert progression.session.stability == 56


def test_obstacle_bonus_and_stability_cap():
    bus = EventBus(); world = create_world(seed=0)
    progression = ProgressionSystem(world, bus)
    progression.session.stability = 95
    progression.apply_match(details(*(['force'] * 5 + ['obstacle'] * 2)), True)
    assert progression.session.score == 7 * 25 + 500
    assert progression.session.stability == 100


def test_target_counter_and_single_announcement():
    bus = EventBus(); world = create_world(seed=0)
    reached = capture(bus, EVENT_TARGET_REACHED)
    progression = ProgressionSystem(world, bus)
    assert progression.session.target_type == 'gravity'
    progression.apply_match(details('gravity', 'gravity', 'gravity', 'mass'), False)
    assert progression.session.collected_target_count == 3
    assert reached == []
    progression.apply_match(details(*(['gravity'] * 5)), False)
    progression.apply_match(details('gravity'), False)
    assert progression.session.collected_target_count == 9
    assert len(reached) == 1
    assert reached[0]['required'] == 8


def test_advance_level_resets_target_and_rebuilds_board():
    bus, world, board = make_board(SWAPPABLE)
    progression = ProgressionSystem(world, bus)
    changes = capture(bus, EVENT_LEVEL_CHANGED)
    progression.session.collected_target_count = 12
    level = progression.advance_level()
    assert level == 2
    assert changes == [{'level': 2, 'previous_level': 1}]
    session = progression.session
    assert session.score == 5000
    assert session.stability == 100
    assert session.collected_target_count == 0
    assert session.required_target_count == 16
    assert session.target_type == 'mass'
    assert board.board.level == 2
    assert all(t is not None for row in type_grid(world) for t in row)


def test_reset_returns_to_level_one():
    bus, world, board = make_board(SWAPPABLE)
    progression = ProgressionSystem(world, bus)
    progression.advance_level()
    progression.advance_level()
    progression.reset()
    assert progression.session.level == 1
    assert progression.session.score == 0
    assert progression.session.required_target_count == 8
    assert board.board.level == 1


@pytest.mark.parametrize("level, target, required", [(6, 'force', 32), (2, 'mass', 16), (5, 'gravity', 28)])
def test_level_tables(level, target, required):
    assert target_type_for_level(level) == target
    assert required_target_for_level(level) == required


def test_resolved_swap_feeds_progression():
    bus, world, _ = make_board(SWAPPABLE)
    MatchSystem(world, bus)
    MatchResolutionSystem(world, bus)
    progression = ProgressionSystem(world, bus)
    setattr(world, "random", ScriptedRandom("GVF"))
    click(bus, 4, 2)
    click(bus, 4, 3)
    assert progression.session.score == 75
    assert progression.session.stability == 100


def test_rebuild_rejects_invalid_level():
    bus = EventBus(); world = create_world(seed=0)
    board = BoardSystem(world, bus, 5)
    with pytest.raises(ValueError):
        board.rebuild(0)
