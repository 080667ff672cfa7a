"""
Match state representation.
The authoritative MatchState is owned by a single writer (the host) and mutated in
place by the reducer and lifecycle hooks. Includes JSON serialization so hosts can
broadcast snapshots and tests can restore them.
"""

import json
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any

WON = "WON"
LOST = "LOST"


def _int(v: Any, default: int) -> int:
    try:
        return int(v) if v is not None else default
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Unit:
    """A unit on the board or on a bench. Value-typed: it has no identity beyond its slot."""
    owner: int  # player index, 0 or 1
    movement: int
    attack_dice: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner": self.owner,
            "movement": self.movement,
            "attack_dice": self.attack_dice,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Unit":
        if not isinstance(data, dict):
            data = {}
        return cls(
            owner=_int(data.get("owner"), 0),
            movement=_int(data.get("movement"), 0),
            attack_dice=_int(data.get("attack_dice"), 0),
        )


# One slot per tile
BoardState = list[Unit | None]


@dataclass
class CombatReport:
    """Outcome of one attack, kept for display until the attacker's next turn."""
    attacker_dice: list[int]
    defender_dice: list[int]
    from_tile: int
    to_tile: int
    attacker: str  # player id
    result: int  # attacker sum - defender sum; positive favors the attacker

    def to_dict(self) -> dict[str, Any]:
        return {
            "attacker_dice": list(self.attacker_dice),
            "defender_dice": list(self.defender_dice),
            "from_tile": self.from_tile,
            "to_tile": self.to_tile,
            "attacker": self.attacker,
            "result": self.result,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CombatReport":
        if not isinstance(data, dict):
            data = {}
        def _list(v: Any) -> list[int]:
            return [_int(x, 0) for x in v] if isinstance(v, list) else []
        return cls(
            attacker_dice=_list(data.get("attacker_dice")),
            defender_dice=_list(data.get("defender_dice")),
            from_tile=_int(data.get("from_tile"), -1),
            to_tile=_int(data.get("to_tile"), -1),
            attacker=str(data.get("attacker") or ""),
            result=_int(data.get("result"), 0),
        )


@dataclass
class PlayerState:
    """An active participant."""
    id: str
    last_combat: CombatReport | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "last_combat": self.last_combat.to_dict() if self.last_combat else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlayerState":
        if not isinstance(data, dict):
            data = {}
        return cls(
            id=str(data.get("id") or ""),
            last_combat=CombatReport.from_dict(data["last_combat"])
            if data.get("last_combat") else None,
        )


@dataclass
class PersistedPlayer:
    """Per-player data that outlives a match."""
    session_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"session_count": self.session_count}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PersistedPlayer":
        if not isinstance(data, dict):
            data = {}
        return cls(session_count=max(0, _int(data.get("session_count"), 0)))


@dataclass
class MatchState:
    """Complete state of one match."""
    board: BoardState
    benches: list[list[Unit]]  # player index -> undeployed units, in order
    seats: list[str]  # player index -> player id, fixed for the match
    players: list[PlayerState]  # active roster
    turn_holder: str
    turn_started_at: int  # game clock, ms
    # Tile of the unit that must attack before the turn can pass (None when idle)
    attacking_tile: int | None = None
    # player id -> "WON" / "LOST"; None while the match is running
    results: dict[str, str] | None = None
    persisted: dict[str, PersistedPlayer] = field(default_factory=dict)
    board_id: str = "arena"

    def copy(self) -> "MatchState":
        """Return a deep copy of this match state."""
        return deepcopy(self)

    @property
    def is_over(self) -> bool:
        return self.results is not None

    @property
    def attack_pending(self) -> bool:
        return self.attacking_tile is not None

    def player_index(self, player_id: str) -> int:
        """Seat of player_id, or -1 if they never sat at this match."""
        try:
            return self.seats.index(player_id)
        except ValueError:
            return -1

    def get_player(self, player_id: str) -> PlayerState | None:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def opponent_of(self, player_id: str) -> str:
        index = self.player_index(player_id)
        return self.seats[(index + 1) % len(self.seats)]

    # ===== Serialization Methods =====

    def to_dict(self) -> dict[str, Any]:
        """Convert MatchState to a dictionary for JSON serialization."""
        return {
            "board_id": self.board_id,
            "board": [u.to_dict() if u is not None else None for u in self.board],
            "benches": [[u.to_dict() for u in bench] for bench in self.benches],
            "seats": list(self.seats),
            "players": [p.to_dict() for p in self.players],
            "turn_holder": self.turn_holder,
            "turn_started_at": self.turn_started_at,
            "attacking_tile": self.attacking_tile,
            "results": dict(self.results) if self.results is not None else None,
            "persisted": {pid: p.to_dict() for pid, p in self.persisted.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MatchState":
        """Create MatchState from a dictionary (tolerates missing/None fields)."""
        board_raw = data.get("board") or []
        if not isinstance(board_raw, list):
            board_raw = []
        benches_raw = data.get("benches") or [[], []]
        if not isinstance(benches_raw, list):
            benches_raw = [[], []]
        players_raw = data.get("players") or []
        if not isinstance(players_raw, list):
            players_raw = []
        persisted_raw = data.get("persisted") or {}
        if not isinstance(persisted_raw, dict):
            persisted_raw = {}
        attacking_tile = data.get("attacking_tile")
        results = data.get("results")
        return cls(
            board_id=str(data.get("board_id") or "arena"),
            board=[Unit.from_dict(u) if isinstance(u, dict) else None for u in board_raw],
            benches=[
                [Unit.from_dict(u) for u in bench if isinstance(u, dict)]
                for bench in benches_raw
                if isinstance(bench, list)
            ],
            seats=[str(s) for s in data.get("seats") or []],
            players=[PlayerState.from_dict(p) for p in players_raw if isinstance(p, dict)],
            turn_holder=str(data.get("turn_holder") or ""),
            turn_started_at=_int(data.get("turn_started_at"), 0),
            attacking_tile=_int(attacking_tile, -1) if attacking_tile is not None else None,
            results={str(k): str(v) for k, v in results.items()} if isinstance(results, dict) else None,
            persisted={
                str(pid): PersistedPlayer.from_dict(p) for pid, p in persisted_raw.items()
            },
        )

    def to_json(self, indent: int = 2) -> str:
        """Serialize MatchState to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> "MatchState":
        """Deserialize MatchState from a JSON string."""
        return cls.from_dict(json.loads(json_str))
