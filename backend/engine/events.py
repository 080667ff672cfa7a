"""
Game events for broadcast and logging.
Events describe what happened while an action, tick or lifecycle hook was processed.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class GameEvent:
    """Base event class. All events have a type and payload."""
    type: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload}


# ===== Event Type Constants =====

# Turn events
TURN_STARTED = "turn_started"
TURN_ENDED = "turn_ended"
TURN_TIMED_OUT = "turn_timed_out"
ATTACK_PENDING = "attack_pending"

# Movement events
UNIT_MOVED = "unit_moved"
UNIT_DEPLOYED = "unit_deployed"

# Combat events
COMBAT_RESOLVED = "combat_resolved"
UNIT_BENCHED = "unit_benched"

# Roster events
PLAYER_JOINED = "player_joined"
PLAYER_LEFT = "player_left"

# Terminal event
GAME_OVER = "game_over"


# ===== Event Factory Functions =====

def turn_started(player_id: str, started_at: int) -> GameEvent:
    return GameEvent(TURN_STARTED, {
        "player_id": player_id,
        "started_at": started_at,
    })


def turn_ended(player_id: str, reason: str) -> GameEvent:
    """reason: "end_turn", "moved", "deployed", "attacked", "timeout"."""
    return GameEvent(TURN_ENDED, {
        "player_id": player_id,
        "reason": reason,
    })


def turn_timed_out(player_id: str, elapsed_ms: int, attack_was_pending: bool) -> GameEvent:
    return GameEvent(TURN_TIMED_OUT, {
        "player_id": player_id,
        "elapsed_ms": elapsed_ms,
        "attack_was_pending": attack_was_pending,
    })


def attack_pending(player_id: str, tile: int, targets: list[int]) -> GameEvent:
    """The unit on tile landed next to enemies and must attack before the turn can pass."""
    return GameEvent(ATTACK_PENDING, {
        "player_id": player_id,
        "tile": tile,
        "targets": targets,
    })


def unit_moved(player_id: str, from_tile: int, to_tile: int) -> GameEvent:
    return GameEvent(UNIT_MOVED, {
        "player_id": player_id,
        "from_tile": from_tile,
        "to_tile": to_tile,
    })


def unit_deployed(player_id: str, bench_index: int, to_tile: int, unit: dict) -> GameEvent:
    return GameEvent(UNIT_DEPLOYED, {
        "player_id": player_id,
        "bench_index": bench_index,
        "to_tile": to_tile,
        "unit": unit,
    })


def combat_resolved(report: dict, defender_id: str) -> GameEvent:
    """
    report is CombatReport.to_dict(): both dice lists, tiles, attacker id and the
    signed result (attacker sum - defender sum).
    """
    return GameEvent(COMBAT_RESOLVED, {
        **report,
        "defender": defender_id,
    })


def unit_benched(owner_id: str, tile: int, unit: dict) -> GameEvent:
    """A defeated unit left the board and returned to its owner's bench."""
    return GameEvent(UNIT_BENCHED, {
        "owner": owner_id,
        "tile": tile,
        "unit": unit,
    })


def player_joined(player_id: str, session_count: int) -> GameEvent:
    return GameEvent(PLAYER_JOINED, {
        "player_id": player_id,
        "session_count": session_count,
    })


def player_left(player_id: str, remaining: list[str]) -> GameEvent:
    return GameEvent(PLAYER_LEFT, {
        "player_id": player_id,
        "remaining": remaining,
    })


def game_over(results: dict[str, str], reason: str, winning_tile: int | None = None) -> GameEvent:
    """
    Emitted once, when the match ends.

    Args:
        results: {player_id: "WON" | "LOST"}
        reason: "goal_reached" or "opponent_left"
        winning_tile: the goal tile reached, for "goal_reached"
    """
    payload: dict[str, Any] = {
        "results": results,
        "reason": reason,
    }
    if winning_tile is not None:
        payload["winning_tile"] = winning_tile
    return GameEvent(GAME_OVER, payload)
