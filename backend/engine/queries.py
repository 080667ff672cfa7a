"""
Query functions for UI integration.
These functions help clients highlight legal moves and targets without mutating
match state.
"""

from typing import Any

from backend.engine.actions import Action, ActionType, ValidationResult
from backend.engine.definitions import BoardDefinition
from backend.engine.movement import (
    flatten_reach,
    get_deploy_tiles,
    get_occupancy,
    get_reachable_tiles,
)
from backend.engine.reducer import find_attack_targets, validate_action as _validate
from backend.engine.state import MatchState


# ===== Action Validation =====

def validate_action(
    state: MatchState,
    action: Action,
    board_def: BoardDefinition,
) -> ValidationResult:
    """
    Dry run: would this action be accepted right now?
    Uses the exact checks apply_action runs, and never touches state.
    """
    return _validate(state, action, board_def)


def is_players_turn(state: MatchState, player_id: str) -> bool:
    return not state.is_over and state.turn_holder == player_id


def get_available_action_types(state: MatchState, player_id: str) -> list[str]:
    """Action kinds player_id may attempt next (payload checks aside)."""
    if not is_players_turn(state, player_id):
        return []
    if state.attack_pending:
        return [ActionType.ATTACK.value]
    return [
        ActionType.MOVE_UNIT.value,
        ActionType.PLAY_UNIT.value,
        ActionType.ATTACK.value,
        ActionType.END_TURN.value,
    ]


# ===== Board Queries =====

def get_unit_reach(
    state: MatchState,
    board_def: BoardDefinition,
    tile: int,
) -> list[int]:
    """
    Tiles the unit on tile could move to, nearest first.
    Empty when the tile is out of range, empty, or holds an immobile unit.
    """
    if not board_def.in_bounds(tile):
        return []
    unit = state.board[tile]
    if unit is None or unit.movement < 1:
        return []
    reach = get_reachable_tiles(board_def, tile, unit.movement, get_occupancy(state.board))
    return [t for t in flatten_reach(reach) if t != tile]


def get_attack_targets(
    state: MatchState,
    board_def: BoardDefinition,
    tile: int,
) -> list[int]:
    """Enemy-held tiles adjacent to the unit on tile (the tiles it may attack)."""
    if not board_def.in_bounds(tile):
        return []
    unit = state.board[tile]
    if unit is None:
        return []
    return find_attack_targets(state, board_def, tile, unit.owner)


def get_deploy_targets(
    state: MatchState,
    board_def: BoardDefinition,
    player_id: str,
    bench_index: int,
) -> list[int]:
    """Tiles the bench unit at bench_index of player_id may be deployed to."""
    player_index = state.player_index(player_id)
    if player_index < 0:
        return []
    bench = state.benches[player_index]
    if not 0 <= bench_index < len(bench):
        return []
    unit = bench[bench_index]
    return get_deploy_tiles(board_def, player_index, unit.movement, get_occupancy(state.board))


def get_match_summary(state: MatchState) -> dict[str, Any]:
    """Get a summary of the current match for UI display."""
    units_on_board: dict[str, int] = {player_id: 0 for player_id in state.seats}
    for unit in state.board:
        if unit is not None:
            units_on_board[state.seats[unit.owner]] += 1

    return {
        "turn_holder": state.turn_holder,
        "turn_started_at": state.turn_started_at,
        "attacking_tile": state.attacking_tile,
        "results": state.results,
        "roster": [p.id for p in state.players],
        "units_on_board": units_on_board,
        "bench_sizes": {state.seats[i]: len(bench) for i, bench in enumerate(state.benches)},
        "available_actions": get_available_action_types(state, state.turn_holder),
    }
