import pytest

from tilecascade.events.bus import EventBus
from tilecascade.systems.board import BoardSystem
from tilecascade.systems.board_ops import find_all_matches, find_match_groups, tile_views, type_grid
from tilecascade.world import create_world


@pytest.mark.parametrize("seed", range(10))
def test_initial_board_has_no_matches(seed):
    bus = EventBus(); world = create_world(seed=seed); BoardSystem(world, bus, 7, level=5)
    assert not find_all_matches(world), 'Initial board should not contain any matches'


def test_initial_board_is_square_and_in_sync():
    bus = EventBus(); world = create_world(seed=3); BoardSystem(world, bus, 7)
    views = tile_views(world)
    assert len(views) == 7 and all(len(row) == 7 for row in views)
    for r, row in enumerate(views):
        for c, view in enumerate(row):
            assert (view.row, view.col) == (r, c)
    assert len({view.uid for row in views for view in row}) == 49


def test_level_one_board_has_no_obstacles():
    bus = EventBus(); world = create_world(seed=11); BoardSystem(world, bus, 7, level=1)
    assert all(t != 'obstacle' for row in type_grid(world) for t in row)


def test_high_level_board_spawns_obstacles():
    bus = EventBus(); world = create_world(seed=5); BoardSystem(world, bus, 9, level=8)
    types = [t for row in type_grid(world) for t in row]
    assert 'obstacle' in types
    assert find_match_groups(type_grid(world)) == []


def test_board_size_below_three_fails_fast():
    bus = EventBus(); world = create_world(seed=0)
    with pytest.raises(ValueError):
        BoardSystem(world, bus, 2)
