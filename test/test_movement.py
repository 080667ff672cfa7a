"""
Reachability on the board graph, with and without occupied tiles.
"""

from collections import deque

import pytest

from backend.engine.movement import (
    can_deploy_to,
    flatten_reach,
    get_deploy_tiles,
    get_reachable_tiles,
    is_tile_reachable,
)

EMPTY = [False] * 28


def distances_from(board, start, occupancy):
    """Plain BFS over unoccupied tiles, for comparison."""
    dist = {start: 0}
    queue = deque([start])
    while queue:
        tile = queue.popleft()
        for other in board.adjacent_tiles(tile):
            if other not in dist and not occupancy[other]:
                dist[other] = dist[tile] + 1
                queue.append(other)
    return dist


def test_layer_zero_is_origin(board):
    assert get_reachable_tiles(board, 1, 0, EMPTY) == [[1]]


def test_layers_from_player1_spawn(board):
    reach = get_reachable_tiles(board, 1, 2, EMPTY)
    assert reach[0] == [1]
    assert sorted(reach[1]) == [4, 7, 12]
    assert {3, 8, 11, 13} <= set(reach[2])


@pytest.mark.parametrize("movement", [0, 1, 2, 3, 4])
def test_reach_is_bounded_and_complete(board, movement):
    for start in range(board.size):
        dist = distances_from(board, start, EMPTY)
        reach = get_reachable_tiles(board, start, movement, EMPTY)
        assert len(reach) == movement + 1
        for step, layer in enumerate(reach):
            for tile in layer:
                assert dist[tile] <= step
        expected = {t for t, d in dist.items() if d <= movement}
        assert set(flatten_reach(reach)) == expected


def test_reach_grows_with_movement(board):
    for start in range(board.size):
        previous = set()
        for movement in range(5):
            current = set(flatten_reach(get_reachable_tiles(board, start, movement, EMPTY)))
            assert previous <= current
            previous = current


def test_occupied_tiles_block(board):
    occupancy = list(EMPTY)
    occupancy[7] = True
    reach = flatten_reach(get_reachable_tiles(board, 1, 3, occupancy))
    assert 7 not in reach
    # 8 is only reachable through 7 within three steps
    assert 8 not in reach
    assert not is_tile_reachable(board, 8, 1, 3, occupancy)


def test_short_circuit_agrees_with_full_walk(board):
    occupancy = list(EMPTY)
    for tile in (11, 17, 20):
        occupancy[tile] = True
    for start in (1, 2, 12, 25):
        for movement in range(4):
            reach = set(flatten_reach(get_reachable_tiles(board, start, movement, occupancy)))
            for target in range(board.size):
                assert is_tile_reachable(board, target, start, movement, occupancy) == (target in reach)


def test_target_equal_to_origin_is_reachable(board):
    assert is_tile_reachable(board, 5, 5, 0, EMPTY)


def test_deploy_tiles_for_slowest_archetype_are_spawns(board):
    assert get_deploy_tiles(board, 0, 1, EMPTY) == [1, 2]
    assert get_deploy_tiles(board, 1, 1, EMPTY) == [25, 26]
    occupancy = list(EMPTY)
    occupancy[1] = True
    assert get_deploy_tiles(board, 0, 1, occupancy) == [2]


def test_deploy_tiles_extend_from_spawns(board):
    assert get_deploy_tiles(board, 0, 2, EMPTY) == sorted({1, 2, 4, 7, 12, 6, 10, 18})
    assert can_deploy_to(board, 0, 3, 8, EMPTY)
    assert not can_deploy_to(board, 0, 2, 8, EMPTY)


def test_deploy_skips_occupied_spawns(board):
    occupancy = list(EMPTY)
    occupancy[1] = True
    assert not can_deploy_to(board, 0, 2, 7, occupancy)
    assert can_deploy_to(board, 0, 2, 10, occupancy)
    assert 7 not in get_deploy_tiles(board, 0, 2, occupancy)
