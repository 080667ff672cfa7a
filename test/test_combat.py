"""
Combat resolution: dice order, casualties, benching and combat reports.
"""

import random

from backend.engine.actions import attack, end_turn
from backend.engine.combat import resolve_combat, roll_dice
from backend.engine.reducer import apply_action
from backend.engine.state import Unit


def test_roll_dice_range():
    rng = random.Random(3)
    rolls = roll_dice(50, rng)
    assert len(rolls) == 50
    assert all(1 <= r <= 6 for r in rolls)
    assert roll_dice(0, rng) == []


def test_attacker_rolls_first(scripted):
    outcome = resolve_combat(Unit(0, 2, 2), Unit(1, 3, 1), scripted([3, 4, 4]), 7, 8, "p1")
    assert outcome.report.attacker_dice == [3, 4]
    assert outcome.report.defender_dice == [4]
    assert outcome.report.result == 3
    assert outcome.defender_destroyed
    assert not outcome.attacker_destroyed


def test_tie_destroys_both(scripted):
    outcome = resolve_combat(Unit(0, 2, 2), Unit(1, 3, 1), scripted([3, 3, 6]), 7, 8, "p1")
    assert outcome.report.result == 0
    assert outcome.defender_destroyed
    assert outcome.attacker_destroyed


def test_attacker_wins_seven_against_four(state, board, place, scripted):
    place(state, 7, 0, 2, 2)
    place(state, 8, 1, 3, 1)
    result = apply_action(state, attack("p1", 7, 8), board, 5000, scripted([3, 4, 4]))

    assert result.accepted
    assert state.board[7] == Unit(0, 2, 2)
    assert state.board[8] is None
    assert state.benches[1][-1] == Unit(1, 3, 1)
    assert len(state.benches[1]) == 3
    assert state.turn_holder == "p2"
    assert state.turn_started_at == 5000

    report = state.get_player("p1").last_combat
    assert report.to_dict() == {
        "attacker_dice": [3, 4],
        "defender_dice": [4],
        "from_tile": 7,
        "to_tile": 8,
        "attacker": "p1",
        "result": 3,
    }
    types = [e.type for e in result.events]
    assert types == ["combat_resolved", "unit_benched", "turn_ended", "turn_started"]
    assert result.events[0].payload["defender"] == "p2"


def test_defender_wins(state, board, place, scripted):
    place(state, 7, 0, 2, 2)
    place(state, 8, 1, 1, 3)
    apply_action(state, attack("p1", 7, 8), board, 5000, scripted([1, 1, 2, 2, 2]))
    assert state.board[7] is None
    assert state.board[8] == Unit(1, 1, 3)
    assert state.benches[0][-1] == Unit(0, 2, 2)


def test_tie_benches_both_units(state, board, place, scripted):
    place(state, 7, 0, 2, 2)
    place(state, 8, 1, 3, 1)
    result = apply_action(state, attack("p1", 7, 8), board, 5000, scripted([2, 2, 4]))
    assert state.board[7] is None
    assert state.board[8] is None
    assert len(state.benches[0]) == 3
    assert len(state.benches[1]) == 3
    assert [e.type for e in result.events].count("unit_benched") == 2


def test_report_cleared_when_attackers_next_turn_begins(state, board, place, scripted):
    place(state, 7, 0, 2, 2)
    place(state, 8, 1, 3, 1)
    apply_action(state, attack("p1", 7, 8), board, 5000, scripted([6, 6, 1]))
    # Still visible during the opponent's turn
    assert state.get_player("p1").last_combat is not None
    apply_action(state, end_turn("p2"), board, 6000)
    assert state.get_player("p1").last_combat is None
