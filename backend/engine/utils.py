"""
Utility functions for the game engine: match setup and debug printing.
"""

from backend import config
from backend.engine import BENCH_SIZE, PLAYER_COUNT
from backend.engine.definitions import (
    ROLE_NONE,
    BoardDefinition,
    UnitDefinition,
    load_board,
    load_unit_definitions,
)
from backend.engine.lifecycle import bump_session_count
from backend.engine.state import MatchState, PersistedPlayer, PlayerState, Unit


def build_bench(player_index: int, unit_defs: tuple[UnitDefinition, ...]) -> list[Unit]:
    """One unit of every archetype, owned by player_index, in archetype order."""
    return [
        Unit(owner=player_index, movement=unit_def.movement, attack_dice=unit_def.attack_dice)
        for unit_def in unit_defs
    ]


def initialize_match_state(
    participant_ids: list[str],
    now: int,
    persisted: dict[str, PersistedPlayer] | None = None,
    board_def: BoardDefinition | None = None,
    unit_defs: tuple[UnitDefinition, ...] | None = None,
) -> MatchState:
    """
    Create the initial state of a match.

    Args:
        participant_ids: Exactly two player ids; index 0 takes the first turn
        now: Game clock in ms. The first turn gets INITIAL_GRACE_MS on top
        persisted: Session counters carried over from earlier matches
        board_def: Board graph (default board if not provided)
        unit_defs: Archetypes for the starting benches (data/units.json if not provided)

    Raises:
        ValueError: if participant_ids is not two distinct ids
    """
    if len(participant_ids) != PLAYER_COUNT or len(set(participant_ids)) != PLAYER_COUNT:
        raise ValueError(f"A match needs exactly {PLAYER_COUNT} distinct participants, got {participant_ids!r}")
    if board_def is None:
        board_def = load_board()
    if unit_defs is None:
        unit_defs = load_unit_definitions()
    if len(unit_defs) > BENCH_SIZE:
        raise ValueError(f"{len(unit_defs)} archetypes do not fit a bench of {BENCH_SIZE}")

    state = MatchState(
        board=[None] * board_def.size,
        benches=[build_bench(index, unit_defs) for index in range(PLAYER_COUNT)],
        seats=list(participant_ids),
        players=[PlayerState(id=player_id) for player_id in participant_ids],
        turn_holder=participant_ids[0],
        turn_started_at=now + config.INITIAL_GRACE_MS,
        persisted={pid: PersistedPlayer(p.session_count) for pid, p in (persisted or {}).items()},
        board_id=board_def.id,
    )
    for player_id in participant_ids:
        bump_session_count(state, player_id)
    return state


def count_units(state: MatchState, player_index: int) -> int:
    """Units owned by player_index across the board and their bench."""
    on_board = sum(1 for unit in state.board if unit is not None and unit.owner == player_index)
    return on_board + len(state.benches[player_index])


def print_match_state(state: MatchState, board_def: BoardDefinition):
    """Pretty-print the current match state."""
    print(f"\n{'='*60}")
    status = "over" if state.is_over else ("attack pending" if state.attack_pending else "idle")
    print(f"Turn: {state.turn_holder} | Status: {status} | Started at: {state.turn_started_at}")
    print(f"{'='*60}")

    for tile, unit in enumerate(state.board):
        if unit is None:
            continue
        owner_id = state.seats[unit.owner]
        role = board_def.roles[tile]
        role_str = f" [{role}]" if role != ROLE_NONE else ""
        print(f"  tile {tile:2d}{role_str}: {owner_id} mv={unit.movement} dice={unit.attack_dice}")

    print(f"\n{'Benches':.<40}")
    for index, bench in enumerate(state.benches):
        units = ", ".join(f"mv{u.movement}/d{u.attack_dice}" for u in bench) or "-"
        print(f"  {state.seats[index]}: {units}")

    for player in state.players:
        if player.last_combat:
            report = player.last_combat
            print(f"\nLast combat ({player.id}): {report.attacker_dice} vs {report.defender_dice} "
                  f"-> {report.result:+d}")
    if state.results:
        print(f"\nResults: {state.results}")
    print()
