"""
Board graph: topology of the arena, roles and loading.
"""

import pytest

from backend.engine.definitions import board_from_dict, list_boards, load_board, load_unit_definitions

# Undirected adjacency of the arena, tile -> neighbors
ARENA_ADJACENCY = {
    0: {3, 5}, 1: {4, 7, 12}, 2: {6, 10, 18}, 3: {0, 4, 11}, 4: {1, 3}, 5: {0, 6}, 6: {2, 5},
    7: {1, 8}, 8: {7, 9}, 9: {8, 25},
    10: {2, 11, 14}, 11: {3, 10, 12}, 12: {1, 11, 13}, 13: {12, 17},
    14: {10, 15}, 15: {14, 16, 26}, 16: {15, 17, 24}, 17: {13, 16, 25},
    18: {2, 19}, 19: {18, 20}, 20: {19, 26},
    21: {22, 25}, 22: {21, 27}, 23: {24, 26}, 24: {16, 23, 27}, 25: {9, 17, 21}, 26: {15, 20, 23},
    27: {22, 24},
}


def test_arena_adjacency_matches_topology(board):
    assert board.size == 28
    for tile, expected in ARENA_ADJACENCY.items():
        assert set(board.adjacent_tiles(tile)) == expected, tile
        assert len(board.adjacent_tiles(tile)) == len(expected)


def test_adjacency_is_symmetric(board):
    for tile in range(board.size):
        for other in board.adjacent_tiles(tile):
            assert board.are_adjacent(other, tile)


def test_forward_neighbors_come_first(board):
    assert board.adjacent_tiles(25) == [17, 9, 21]
    assert board.adjacent_tiles(2) == [10, 6, 18]


def test_roles(board):
    assert board.spawn_tiles_for(0) == [1, 2]
    assert board.spawn_tiles_for(1) == [25, 26]
    assert board.goal_tile_for(0) == 0
    assert board.goal_tile_for(1) == 27
    assert board.spawn_tiles_for(2) == []
    assert board.goal_tile_for(5) == -1


def test_in_bounds(board):
    assert board.in_bounds(0)
    assert board.in_bounds(27)
    assert not board.in_bounds(28)
    assert not board.in_bounds(-1)


def test_board_is_cached_and_immutable(board):
    assert load_board() is board
    assert load_board(None) is load_board("arena")
    with pytest.raises(Exception):
        board.roles = ()


def test_unknown_board():
    with pytest.raises(FileNotFoundError):
        load_board("no-such-board")


@pytest.mark.parametrize("board_id", ["../units", "boards/arena", "..", "arena.json", ""])
def test_board_ids_are_file_stems_only(board_id):
    with pytest.raises(FileNotFoundError):
        load_board(board_id)


def test_list_boards():
    boards = list_boards()
    assert {"id": "arena", "display_name": "Arena"} in boards
    for entry in boards:
        assert load_board(entry["id"]).id == entry["id"]


def test_board_round_trips_through_dict(board):
    assert board_from_dict(board.to_dict()) == board


@pytest.mark.parametrize("data", [
    {"tiles": ["player1_goal", "player2_goal"], "edges": [[1]]},
    {"tiles": ["player1_goal", "lava"], "edges": [[1], []]},
    {"tiles": ["player1_goal", "player2_goal"], "edges": [[2], []]},
    {"tiles": ["player1_goal", "player2_goal"], "edges": [[0], []]},
    {"tiles": ["player1_goal", "player1_spawn", "player2_spawn"], "edges": [[1], [2], []]},
    {"tiles": "player1_goal", "edges": []},
    {"tiles": ["player1_goal", "player2_goal"], "edges": [1, []]},
    {"tiles": ["player1_goal", "player2_goal"], "edges": [["x"], []]},
    [],
    "arena",
    None,
])
def test_malformed_boards_rejected(data):
    with pytest.raises(ValueError):
        board_from_dict(data)


def test_unit_archetypes_in_bench_order():
    units = load_unit_definitions()
    assert [(u.movement, u.attack_dice) for u in units] == [(1, 3), (2, 2), (3, 1)]
