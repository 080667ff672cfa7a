"""
Shared fixtures. The API tests need DATABASE_URL set before backend.api is imported,
so it is pointed at a throwaway SQLite file here.
"""

import os
import random
import tempfile

os.environ.setdefault(
    "DATABASE_URL",
    "sqlite:///" + os.path.join(tempfile.mkdtemp(prefix="arena-test-"), "test.db"),
)

import pytest

from backend.engine.definitions import load_board
from backend.engine.state import Unit
from backend.engine.utils import initialize_match_state


class ScriptedRandom(random.Random):
    """Dice source that returns a fixed sequence of rolls, then fails loudly."""

    def __init__(self, rolls):
        super().__init__(0)
        self.rolls = list(rolls)

    def randint(self, a, b):
        if not self.rolls:
            raise AssertionError("ran out of scripted rolls")
        roll = self.rolls.pop(0)
        assert a <= roll <= b
        return roll


@pytest.fixture
def board():
    return load_board("arena")


@pytest.fixture
def state(board):
    """Fresh match: p1 (seat 0) holds the turn, both benches full, board empty."""
    return initialize_match_state(["p1", "p2"], 0, board_def=board)


@pytest.fixture
def scripted():
    return ScriptedRandom


def put(state, tile, owner, movement, attack_dice):
    """Place a unit taken from owner's bench (matched by stats) so unit totals are kept."""
    unit = Unit(owner=owner, movement=movement, attack_dice=attack_dice)
    bench = state.benches[owner]
    if unit in bench:
        bench.remove(unit)
    state.board[tile] = unit
    return unit


@pytest.fixture
def place():
    return put
