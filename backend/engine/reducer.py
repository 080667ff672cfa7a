"""
Main game reducer.
Validates actions against the board graph and match state, then applies them in
place. Validation runs to completion before anything is touched, so a rejected
action leaves the state exactly as it was.

Turn flow:
    Idle(holder) --move/deploy next to an enemy--> AttackPending(holder, tile)
    Idle(holder) --end_turn / quiet move or deploy / timeout--> Idle(other)
    AttackPending --attack (any outcome) / timeout--> Idle(other)
    any --unit reaches the opponent's goal / roster below two--> match over
"""

import random
from typing import Any

from backend.engine.actions import (
    VALID,
    Action,
    ActionResult,
    ActionType,
    AttackPayload,
    InvalidAction,
    MoveUnitPayload,
    PlayUnitPayload,
    ValidationResult,
    action_from_dict,
    invalid,
)
from backend.engine.combat import resolve_combat
from backend.engine.definitions import BoardDefinition
from backend.engine.events import (
    GameEvent,
    attack_pending,
    combat_resolved,
    game_over,
    turn_ended,
    turn_started,
    unit_benched,
    unit_deployed,
    unit_moved,
)
from backend.engine.movement import can_deploy_to, get_occupancy, is_tile_reachable
from backend.engine.state import LOST, WON, MatchState


def find_attack_targets(
    state: MatchState,
    board_def: BoardDefinition,
    tile: int,
    player_index: int,
) -> list[int]:
    """Tiles adjacent to tile that hold a unit not owned by player_index."""
    targets = []
    for adjacent in board_def.adjacent_tiles(tile):
        unit = state.board[adjacent]
        if unit is not None and unit.owner != player_index:
            targets.append(adjacent)
    return targets


def is_winning_move(board_def: BoardDefinition, player_index: int, tile: int) -> bool:
    """A unit wins by landing on the goal tile of the other player."""
    return tile == board_def.goal_tile_for((player_index + 1) % 2)


def declare_winner(state: MatchState, winner_id: str) -> dict[str, str]:
    """Mark the match over: winner_id WON, every other seated player LOST."""
    state.results = {
        player_id: WON if player_id == winner_id else LOST
        for player_id in state.seats
    }
    state.attacking_tile = None
    return state.results


def pass_turn(state: MatchState, now: int, reason: str) -> list[GameEvent]:
    """
    Hand the turn to the other seat.
    Clears the attack lock, restarts the turn timer, and clears the new holder's
    last combat report (it belonged to their previous turn).
    """
    old_holder = state.turn_holder
    new_holder = state.opponent_of(old_holder)
    state.turn_holder = new_holder
    state.attacking_tile = None
    state.turn_started_at = now
    player = state.get_player(new_holder)
    if player is not None:
        player.last_combat = None
    return [turn_ended(old_holder, reason), turn_started(new_holder, now)]


# ===== Validation =====

def _validate_turn(state: MatchState, action: Action) -> ValidationResult:
    """Checks shared by every action kind."""
    if state.is_over:
        return invalid(InvalidAction.GAME_OVER)
    if state.player_index(action.player_id) < 0 or state.get_player(action.player_id) is None:
        return invalid(InvalidAction.UNKNOWN_PLAYER)
    if action.player_id != state.turn_holder:
        return invalid(InvalidAction.NOT_YOUR_TURN)
    # While an attack is pending only that attack may be made
    if state.attack_pending and action.type != ActionType.ATTACK:
        return invalid(InvalidAction.ATTACK_PENDING)
    return VALID


def _validate_move(
    state: MatchState,
    payload: MoveUnitPayload,
    player_index: int,
    board_def: BoardDefinition,
) -> ValidationResult:
    from_tile, to_tile = payload.from_tile, payload.to_tile
    if not board_def.in_bounds(from_tile) or not board_def.in_bounds(to_tile):
        return invalid(InvalidAction.TILE_OUT_OF_RANGE)
    unit = state.board[from_tile]
    if unit is None:
        return invalid(InvalidAction.TILE_EMPTY)
    if unit.movement < 1:
        return invalid(InvalidAction.UNIT_CANNOT_MOVE)
    if unit.owner != player_index:
        return invalid(InvalidAction.NOT_YOUR_UNIT)
    if state.board[to_tile] is not None:
        return invalid(InvalidAction.TILE_OCCUPIED)
    occupancy = get_occupancy(state.board)
    if not is_tile_reachable(board_def, to_tile, from_tile, unit.movement, occupancy):
        return invalid(InvalidAction.UNREACHABLE)
    return VALID


def _validate_play(
    state: MatchState,
    payload: PlayUnitPayload,
    player_index: int,
    board_def: BoardDefinition,
) -> ValidationResult:
    bench = state.benches[player_index]
    if not 0 <= payload.bench_index < len(bench):
        return invalid(InvalidAction.BENCH_INDEX_OUT_OF_RANGE)
    to_tile = payload.to_tile
    if not board_def.in_bounds(to_tile):
        return invalid(InvalidAction.TILE_OUT_OF_RANGE)
    if state.board[to_tile] is not None:
        return invalid(InvalidAction.TILE_OCCUPIED)
    unit = bench[payload.bench_index]
    occupancy = get_occupancy(state.board)
    if unit.movement == 1:
        if to_tile not in board_def.spawn_tiles_for(player_index):
            return invalid(InvalidAction.NOT_A_SPAWN_TILE)
        return VALID
    if not can_deploy_to(board_def, player_index, unit.movement, to_tile, occupancy):
        return invalid(InvalidAction.UNREACHABLE)
    return VALID


def _validate_attack(
    state: MatchState,
    payload: AttackPayload,
    player_index: int,
    board_def: BoardDefinition,
) -> ValidationResult:
    from_tile, to_tile = payload.from_tile, payload.to_tile
    if not board_def.in_bounds(from_tile) or not board_def.in_bounds(to_tile):
        return invalid(InvalidAction.TILE_OUT_OF_RANGE)
    if not board_def.are_adjacent(from_tile, to_tile):
        return invalid(InvalidAction.NOT_ADJACENT)
    if state.attack_pending and from_tile != state.attacking_tile:
        return invalid(InvalidAction.WRONG_ATTACKER)
    attacker = state.board[from_tile]
    if attacker is None:
        return invalid(InvalidAction.TILE_EMPTY)
    if attacker.owner != player_index:
        return invalid(InvalidAction.NOT_YOUR_UNIT)
    defender = state.board[to_tile]
    if defender is None:
        return invalid(InvalidAction.TILE_EMPTY)
    if defender.owner == player_index:
        return invalid(InvalidAction.NOT_AN_ENEMY)
    return VALID


def validate_action(
    state: MatchState,
    action: Action,
    board_def: BoardDefinition,
) -> ValidationResult:
    """
    Validate an action without applying it.
    Returns ValidationResult with valid=True, or valid=False and the reason code.
    """
    result = _validate_turn(state, action)
    if not result.valid:
        return result
    player_index = state.player_index(action.player_id)
    payload = action.payload

    if action.type == ActionType.MOVE_UNIT and isinstance(payload, MoveUnitPayload):
        return _validate_move(state, payload, player_index, board_def)
    elif action.type == ActionType.PLAY_UNIT and isinstance(payload, PlayUnitPayload):
        return _validate_play(state, payload, player_index, board_def)
    elif action.type == ActionType.ATTACK and isinstance(payload, AttackPayload):
        return _validate_attack(state, payload, player_index, board_def)
    elif action.type == ActionType.END_TURN:
        return VALID

    return invalid(InvalidAction.MALFORMED_PAYLOAD)


# ===== Application =====

def apply_action(
    state: MatchState,
    action: Action,
    board_def: BoardDefinition,
    now: int,
    rng: random.Random | None = None,
) -> ActionResult:
    """
    Apply a single action to the match state, in place.

    Args:
        state: Authoritative match state (mutated only if the action is accepted)
        action: Action to apply
        board_def: Board graph
        now: Game clock reading in ms, used to restart the turn timer
        rng: Dice source; pass a seeded random.Random for reproducible combat

    Returns:
        ActionResult: accepted with the events that describe what happened, or
        rejected with an InvalidAction reason code
    """
    validation = validate_action(state, action, board_def)
    if not validation.valid:
        return ActionResult.rejected(validation.error)

    if action.type == ActionType.MOVE_UNIT:
        events = _handle_move_unit(state, action, board_def, now)
    elif action.type == ActionType.PLAY_UNIT:
        events = _handle_play_unit(state, action, board_def, now)
    elif action.type == ActionType.ATTACK:
        events = _handle_attack(state, action, now, rng or random.Random())
    else:
        events = pass_turn(state, now, "end_turn")

    return ActionResult.ok(events)


def _after_landing(
    state: MatchState,
    board_def: BoardDefinition,
    player_id: str,
    tile: int,
    now: int,
    reason: str,
) -> list[GameEvent]:
    """Shared tail of move and deploy: goal check, then attack lock or turn pass."""
    player_index = state.player_index(player_id)
    if is_winning_move(board_def, player_index, tile):
        results = declare_winner(state, player_id)
        return [game_over(dict(results), "goal_reached", winning_tile=tile)]

    targets = find_attack_targets(state, board_def, tile, player_index)
    if targets:
        state.attacking_tile = tile
        return [attack_pending(player_id, tile, targets)]
    return pass_turn(state, now, reason)


def _handle_move_unit(
    state: MatchState,
    action: Action,
    board_def: BoardDefinition,
    now: int,
) -> list[GameEvent]:
    """Relocate a unit along a reachable path."""
    payload = action.payload
    unit = state.board[payload.from_tile]
    state.board[payload.from_tile] = None
    state.board[payload.to_tile] = unit

    events = [unit_moved(action.player_id, payload.from_tile, payload.to_tile)]
    events.extend(_after_landing(state, board_def, action.player_id, payload.to_tile, now, "moved"))
    return events


def _handle_play_unit(
    state: MatchState,
    action: Action,
    board_def: BoardDefinition,
    now: int,
) -> list[GameEvent]:
    """Take a unit off the bench (by position) and place it on the board."""
    payload = action.payload
    player_index = state.player_index(action.player_id)
    unit = state.benches[player_index].pop(payload.bench_index)
    state.board[payload.to_tile] = unit

    events = [unit_deployed(action.player_id, payload.bench_index, payload.to_tile, unit.to_dict())]
    events.extend(_after_landing(state, board_def, action.player_id, payload.to_tile, now, "deployed"))
    return events


def _handle_attack(
    state: MatchState,
    action: Action,
    now: int,
    rng: random.Random,
) -> list[GameEvent]:
    """
    Resolve an attack. The loser (both, on a tie) leaves the board and rejoins its
    owner's bench. The turn always passes afterwards.
    """
    payload = action.payload
    player_index = state.player_index(action.player_id)
    opponent_index = (player_index + 1) % 2
    defender_id = state.seats[opponent_index]
    attacker = state.board[payload.from_tile]
    defender = state.board[payload.to_tile]

    outcome = resolve_combat(attacker, defender, rng, payload.from_tile, payload.to_tile, action.player_id)
    events = [combat_resolved(outcome.report.to_dict(), defender_id)]

    if outcome.defender_destroyed:
        state.board[payload.to_tile] = None
        state.benches[opponent_index].append(defender)
        events.append(unit_benched(defender_id, payload.to_tile, defender.to_dict()))
    if outcome.attacker_destroyed:
        state.board[payload.from_tile] = None
        state.benches[player_index].append(attacker)
        events.append(unit_benched(action.player_id, payload.from_tile, attacker.to_dict()))

    player = state.get_player(action.player_id)
    if player is not None:
        player.last_combat = outcome.report

    events.extend(pass_turn(state, now, "attacked"))
    return events


def replay_from_actions(
    initial_state: MatchState,
    actions: list[tuple[int, Action]],
    board_def: BoardDefinition,
    rng: random.Random,
) -> tuple[MatchState, list[GameEvent]]:
    """
    Replay a timed action log from an initial state.
    Rejected actions are skipped, exactly as the live host drops them.

    Args:
        initial_state: Starting match state (not modified)
        actions: (game clock ms, action) pairs in the order they were received
        board_def: Board graph
        rng: Dice source seeded the same way as the live match

    Returns:
        Tuple of (final_state, all_events)
    """
    current_state = initial_state.copy()
    all_events: list[GameEvent] = []

    for now, action in actions:
        result = apply_action(current_state, action, board_def, now, rng)
        all_events.extend(result.events)

    return current_state, all_events


def apply_raw_action(
    state: MatchState,
    player_id: str,
    action_type: str,
    payload: Any,
    board_def: BoardDefinition,
    now: int,
    rng: random.Random | None = None,
) -> ActionResult:
    """
    Entry point for untrusted input: an action kind string plus a loose payload.
    Unknown kinds and badly shaped payloads are rejected as malformed_payload.
    """
    action = action_from_dict(player_id, action_type, payload)
    if action is None:
        if state.is_over:
            return ActionResult.rejected(InvalidAction.GAME_OVER)
        return ActionResult.rejected(InvalidAction.MALFORMED_PAYLOAD)
    return apply_action(state, action, board_def, now, rng)
