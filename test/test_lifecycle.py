"""
Setup, join/leave and the turn timer.
"""

import random

import pytest

from backend import config
from backend.engine import BENCH_SIZE
from backend.engine.actions import InvalidAction, attack, end_turn, move_unit, play_unit
from backend.engine.queries import get_attack_targets, get_deploy_targets, get_unit_reach
from backend.engine.lifecycle import player_joined, player_left, tick
from backend.engine.reducer import apply_action
from backend.engine.state import LOST, WON, PersistedPlayer
from backend.engine.definitions import UnitDefinition
from backend.engine.utils import count_units, initialize_match_state


# ===== Setup =====

def test_initial_state(state):
    assert state.board == [None] * 28
    assert state.seats == ["p1", "p2"]
    assert [p.id for p in state.players] == ["p1", "p2"]
    assert state.turn_holder == "p1"
    assert state.turn_started_at == config.INITIAL_GRACE_MS
    assert state.attacking_tile is None
    assert state.results is None
    for index in (0, 1):
        assert [(u.owner, u.movement, u.attack_dice) for u in state.benches[index]] == [
            (index, 1, 3), (index, 2, 2), (index, 3, 1),
        ]


def test_setup_counts_a_session(board):
    state = initialize_match_state(
        ["p1", "p2"], 0, persisted={"p1": PersistedPlayer(4)}, board_def=board,
    )
    assert state.persisted["p1"].session_count == 5
    assert state.persisted["p2"].session_count == 1


def test_setup_does_not_alias_persisted_input(board):
    persisted = {"p1": PersistedPlayer(4)}
    initialize_match_state(["p1", "p2"], 0, persisted=persisted, board_def=board)
    assert persisted["p1"].session_count == 4


@pytest.mark.parametrize("ids", [["p1"], ["p1", "p2", "p3"], ["p1", "p1"], []])
def test_setup_needs_two_distinct_players(board, ids):
    with pytest.raises(ValueError):
        initialize_match_state(ids, 0, board_def=board)


def archetypes(count):
    return tuple(
        UnitDefinition(id=f"u{i}", display_name=f"Unit {i}", movement=1 + i % 3, attack_dice=3 - i % 3)
        for i in range(count)
    )


def test_setup_fills_bench_with_every_archetype(board):
    state = initialize_match_state(["p1", "p2"], 0, board_def=board, unit_defs=archetypes(4))
    assert [len(bench) for bench in state.benches] == [4, 4]


def test_full_bench_of_archetypes_is_accepted(board):
    state = initialize_match_state(["p1", "p2"], 0, board_def=board, unit_defs=archetypes(BENCH_SIZE))
    assert [len(bench) for bench in state.benches] == [BENCH_SIZE, BENCH_SIZE]


def test_more_archetypes_than_bench_slots(board):
    with pytest.raises(ValueError):
        initialize_match_state(["p1", "p2"], 0, board_def=board, unit_defs=archetypes(BENCH_SIZE + 1))


# ===== Join =====

def test_join_bumps_session_count(state):
    events = player_joined(state, "p2")
    assert state.persisted["p2"].session_count == 2
    assert events[0].type == "player_joined"
    assert events[0].payload == {"player_id": "p2", "session_count": 2}
    assert state.turn_holder == "p1"


# ===== Leave =====

def test_leaving_ends_match_for_remaining_player(state, board):
    events = player_left(state, "p2")
    assert state.results == {"p1": WON, "p2": LOST}
    assert [p.id for p in state.players] == ["p1"]
    assert [e.type for e in events] == ["player_left", "game_over"]
    assert events[-1].payload["reason"] == "opponent_left"

    result = apply_action(state, end_turn("p1"), board, 2000)
    assert result.error == InvalidAction.GAME_OVER
    assert tick(state, 10 ** 9) == []


def test_turn_holder_leaving(state):
    events = player_left(state, "p1")
    assert state.results == {"p1": LOST, "p2": WON}
    assert [e.type for e in events] == ["player_left", "game_over"]
    assert state.turn_holder == "p1"


def test_unknown_player_leaving_is_ignored(state):
    before = state.to_dict()
    assert player_left(state, "mallory") == []
    assert state.to_dict() == before


def test_leaving_after_match_ended_keeps_results(state):
    player_left(state, "p2")
    events = player_left(state, "p1")
    assert [e.type for e in events] == ["player_left"]
    assert state.results == {"p1": WON, "p2": LOST}


# ===== Timer =====

def test_tick_within_budget_does_nothing(state):
    limit = state.turn_started_at + config.TURN_TIME_MS
    assert tick(state, limit) == []
    assert state.turn_holder == "p1"


def test_timeout_passes_turn(state):
    now = state.turn_started_at + config.TURN_TIME_MS + 1
    events = tick(state, now)
    assert state.turn_holder == "p2"
    assert state.turn_started_at == now
    assert [e.type for e in events] == ["turn_timed_out", "turn_ended", "turn_started"]
    assert events[1].payload["reason"] == "timeout"


def test_timeout_clears_attack_lock(state, board, place):
    place(state, 8, 1, 2, 2)
    apply_action(state, play_unit("p1", 2, 7), board, 1000)
    assert state.attacking_tile == 7

    now = state.turn_started_at + config.TURN_TIME_MS + 1
    events = tick(state, now)
    assert state.attacking_tile is None
    assert state.turn_holder == "p2"
    assert state.turn_started_at == now
    assert events[0].payload["attack_was_pending"] is True


def test_custom_turn_budget(state):
    assert tick(state, state.turn_started_at + 11, turn_time_ms=10)
    assert state.turn_holder == "p2"


# ===== Invariants over a long random match =====

def test_random_play_keeps_invariants(board):
    rng = random.Random(1234)
    state = initialize_match_state(["p1", "p2"], 0, board_def=board)
    now = 0
    for _ in range(400):
        if state.is_over:
            break
        now += 100
        holder = state.turn_holder
        index = state.player_index(holder)
        candidates = [end_turn(holder)]
        for bench_index in range(len(state.benches[index])):
            candidates += [play_unit(holder, bench_index, t)
                           for t in get_deploy_targets(state, board, holder, bench_index)]
        for tile, unit in enumerate(state.board):
            if unit is None or unit.owner != index:
                continue
            candidates += [move_unit(holder, tile, t) for t in get_unit_reach(state, board, tile)]
            candidates += [attack(holder, tile, t) for t in get_attack_targets(state, board, tile)]
        if state.attack_pending:
            candidates = [attack(holder, state.attacking_tile, t)
                          for t in get_attack_targets(state, board, state.attacking_tile)]

        result = apply_action(state, rng.choice(candidates), board, now, rng)
        assert result.accepted, result.error

        assert state.turn_holder in state.seats
        for owner in (0, 1):
            assert count_units(state, owner) == 3
            assert len(state.benches[owner]) <= BENCH_SIZE
        if state.attack_pending:
            unit = state.board[state.attacking_tile]
            assert unit is not None and state.seats[unit.owner] == state.turn_holder
