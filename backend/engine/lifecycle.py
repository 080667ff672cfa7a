"""
Lifecycle hooks driven by the host rather than by a player's action:
roster changes and the periodic turn-timer tick.
"""

from backend import config
from backend.engine.events import (
    GameEvent,
    game_over,
    player_joined as player_joined_event,
    player_left as player_left_event,
    turn_timed_out,
)
from backend.engine.reducer import declare_winner, pass_turn
from backend.engine.state import LOST, MatchState, PersistedPlayer


def bump_session_count(state: MatchState, player_id: str) -> int:
    """Increment and return the persisted session counter for player_id."""
    record = state.persisted.setdefault(player_id, PersistedPlayer())
    record.session_count += 1
    return record.session_count


def player_joined(state: MatchState, player_id: str) -> list[GameEvent]:
    """
    A participant (re)connected. Only the session counter changes; seats and the
    roster are fixed at setup.
    """
    count = bump_session_count(state, player_id)
    return [player_joined_event(player_id, count)]


def player_left(state: MatchState, player_id: str) -> list[GameEvent]:
    """
    Remove player_id from the active roster.

    With two seats, any leave drops the roster below two and ends the match:
    whoever is left WON, the leaver LOST.
    """
    player = state.get_player(player_id)
    if player is None:
        return []
    state.players.remove(player)
    remaining = [p.id for p in state.players]
    events = [player_left_event(player_id, remaining)]

    if state.is_over:
        return events

    if remaining:
        results = declare_winner(state, remaining[0])
    else:
        state.results = {pid: LOST for pid in state.seats}
        state.attacking_tile = None
        results = state.results
    events.append(game_over(dict(results), "opponent_left"))
    return events


def tick(state: MatchState, now: int, turn_time_ms: int | None = None) -> list[GameEvent]:
    """
    Periodic timer check. Passes the turn (clearing any pending attack) once the
    holder has used more than turn_time_ms. Does nothing after the match ended.
    """
    if state.is_over:
        return []
    if turn_time_ms is None:
        turn_time_ms = config.TURN_TIME_MS
    elapsed = now - state.turn_started_at
    if elapsed <= turn_time_ms:
        return []
    events = [turn_timed_out(state.turn_holder, elapsed, state.attack_pending)]
    events.extend(pass_turn(state, now, "timeout"))
    return events
