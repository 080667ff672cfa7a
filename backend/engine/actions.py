"""
Action definitions for the game.
Actions are immutable instructions from one player. The set of kinds is closed:
move_unit, play_unit, attack, end_turn, each with its own typed payload.
Handlers never raise for an illegal action; they answer with an ActionResult.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from backend.engine.events import GameEvent


class ActionType(str, Enum):
    MOVE_UNIT = "move_unit"
    PLAY_UNIT = "play_unit"
    ATTACK = "attack"
    END_TURN = "end_turn"


class InvalidAction(str, Enum):
    """Reason codes for a rejected action. Rejection is final for that attempt only."""
    GAME_OVER = "game_over"
    UNKNOWN_PLAYER = "unknown_player"
    NOT_YOUR_TURN = "not_your_turn"
    MALFORMED_PAYLOAD = "malformed_payload"
    TILE_OUT_OF_RANGE = "tile_out_of_range"
    TILE_OCCUPIED = "tile_occupied"
    TILE_EMPTY = "tile_empty"
    UNIT_CANNOT_MOVE = "unit_cannot_move"
    NOT_YOUR_UNIT = "not_your_unit"
    UNREACHABLE = "unreachable"
    NOT_A_SPAWN_TILE = "not_a_spawn_tile"
    BENCH_INDEX_OUT_OF_RANGE = "bench_index_out_of_range"
    NOT_ADJACENT = "not_adjacent"
    NOT_AN_ENEMY = "not_an_enemy"
    ATTACK_PENDING = "attack_pending"
    WRONG_ATTACKER = "wrong_attacker"


@dataclass(frozen=True)
class MoveUnitPayload:
    from_tile: int
    to_tile: int


@dataclass(frozen=True)
class PlayUnitPayload:
    bench_index: int
    to_tile: int


@dataclass(frozen=True)
class AttackPayload:
    from_tile: int
    to_tile: int


@dataclass(frozen=True)
class EndTurnPayload:
    pass


Payload = Union[MoveUnitPayload, PlayUnitPayload, AttackPayload, EndTurnPayload]

# ActionType -> (payload class, required int fields)
PAYLOAD_TYPES: dict[ActionType, tuple[type, tuple[str, ...]]] = {
    ActionType.MOVE_UNIT: (MoveUnitPayload, ("from_tile", "to_tile")),
    ActionType.PLAY_UNIT: (PlayUnitPayload, ("bench_index", "to_tile")),
    ActionType.ATTACK: (AttackPayload, ("from_tile", "to_tile")),
    ActionType.END_TURN: (EndTurnPayload, ()),
}


@dataclass(frozen=True)
class Action:
    """An action: who acts, which kind, and the kind's payload."""
    type: ActionType
    player_id: str
    payload: Payload


@dataclass
class ValidationResult:
    """Result of action validation."""
    valid: bool
    error: InvalidAction | None = None


VALID = ValidationResult(True)


def invalid(reason: InvalidAction) -> ValidationResult:
    return ValidationResult(False, reason)


@dataclass
class ActionResult:
    """Tagged outcome of applying an action: accepted with events, or rejected with a reason."""
    accepted: bool
    error: InvalidAction | None = None
    events: list[GameEvent] = field(default_factory=list)

    @classmethod
    def ok(cls, events: list[GameEvent]) -> "ActionResult":
        return cls(True, None, events)

    @classmethod
    def rejected(cls, reason: InvalidAction) -> "ActionResult":
        return cls(False, reason, [])

    def to_dict(self) -> dict[str, Any]:
        return {
            "accepted": self.accepted,
            "error": self.error.value if self.error else None,
            "events": [e.to_dict() for e in self.events],
        }


def move_unit(player_id: str, from_tile: int, to_tile: int) -> Action:
    """
    Move a unit along the board graph.
    Example: move_unit("p1", 1, 7)
    """
    return Action(ActionType.MOVE_UNIT, player_id, MoveUnitPayload(from_tile, to_tile))


def play_unit(player_id: str, bench_index: int, to_tile: int) -> Action:
    """
    Deploy the bench unit at bench_index onto the board.
    Example: play_unit("p1", 0, 2)  # slowest archetype onto a spawn tile
    """
    return Action(ActionType.PLAY_UNIT, player_id, PlayUnitPayload(bench_index, to_tile))


def attack(player_id: str, from_tile: int, to_tile: int) -> Action:
    """Attack the adjacent enemy on to_tile with the unit on from_tile."""
    return Action(ActionType.ATTACK, player_id, AttackPayload(from_tile, to_tile))


def end_turn(player_id: str) -> Action:
    """Pass the turn voluntarily."""
    return Action(ActionType.END_TURN, player_id, EndTurnPayload())


def action_from_dict(player_id: str, action_type: str, payload: Any) -> Action | None:
    """
    Build an Action from untrusted input (e.g. a request body).
    Returns None if the kind is unknown or the payload shape is wrong.
    """
    try:
        kind = ActionType(action_type)
    except ValueError:
        return None
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        return None
    payload_cls, fields = PAYLOAD_TYPES[kind]
    values = {}
    for name in fields:
        value = payload.get(name)
        # bool is an int subclass; True is not a tile
        if not isinstance(value, int) or isinstance(value, bool):
            return None
        values[name] = value
    return Action(kind, player_id, payload_cls(**values))
