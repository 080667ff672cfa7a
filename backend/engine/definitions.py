"""
Static definitions for the board graph and unit archetypes.
Board data lives under data/boards/<board_id>.json (tile roles + stored edges);
unit archetypes live in data/units.json. Both are loaded once per process and
never mutated afterwards.
"""

import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

DATA_DIR = Path(__file__).parent.parent / "data"
BOARDS_DIR = DATA_DIR / "boards"

# Tile roles
ROLE_NONE = "none"
ROLE_PLAYER1_GOAL = "player1_goal"
ROLE_PLAYER2_GOAL = "player2_goal"
ROLE_PLAYER1_SPAWN = "player1_spawn"
ROLE_PLAYER2_SPAWN = "player2_spawn"

TILE_ROLES = (
    ROLE_NONE,
    ROLE_PLAYER1_GOAL,
    ROLE_PLAYER2_GOAL,
    ROLE_PLAYER1_SPAWN,
    ROLE_PLAYER2_SPAWN,
)

# player_index -> role
GOAL_ROLES = (ROLE_PLAYER1_GOAL, ROLE_PLAYER2_GOAL)
SPAWN_ROLES = (ROLE_PLAYER1_SPAWN, ROLE_PLAYER2_SPAWN)


def _default_board_id() -> str:
    """Single place for default: backend.config.DEFAULT_BOARD_ID."""
    from backend.config import DEFAULT_BOARD_ID
    return DEFAULT_BOARD_ID


@dataclass(frozen=True)
class UnitDefinition:
    """Defines an archetype: a fixed movement / attack dice trade-off."""
    id: str
    display_name: str
    movement: int
    attack_dice: int


@dataclass(frozen=True)
class BoardDefinition:
    """
    Immutable board graph.

    edges are stored directed (each tile lists some of its neighbors) but are
    traversed as undirected; neighbors holds the undirected view, precomputed.
    """
    id: str
    display_name: str
    roles: tuple[str, ...]
    edges: tuple[tuple[int, ...], ...]
    neighbors: tuple[tuple[int, ...], ...] = field(default=(), compare=False)

    @property
    def size(self) -> int:
        return len(self.roles)

    def in_bounds(self, tile: int) -> bool:
        return 0 <= tile < self.size

    def adjacent_tiles(self, tile: int) -> list[int]:
        """All tiles sharing an edge with tile, in either stored direction."""
        return list(self.neighbors[tile])

    def are_adjacent(self, a: int, b: int) -> bool:
        return b in self.neighbors[a]

    def spawn_tiles_for(self, player_index: int) -> list[int]:
        if player_index not in (0, 1):
            return []
        role = SPAWN_ROLES[player_index]
        return [i for i, r in enumerate(self.roles) if r == role]

    def goal_tile_for(self, player_index: int) -> int:
        """Goal tile defended by player_index, or -1."""
        if player_index not in (0, 1):
            return -1
        role = GOAL_ROLES[player_index]
        for i, r in enumerate(self.roles):
            if r == role:
                return i
        return -1

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "tiles": list(self.roles),
            "edges": [list(e) for e in self.edges],
        }


def _undirected_neighbors(edges: tuple[tuple[int, ...], ...]) -> tuple[tuple[int, ...], ...]:
    """Forward neighbors first, then every tile that lists this one, ascending."""
    neighbors = []
    for tile, forward in enumerate(edges):
        adjacent = list(dict.fromkeys(forward))
        for other, targets in enumerate(edges):
            if tile in targets and other not in adjacent:
                adjacent.append(other)
        neighbors.append(tuple(adjacent))
    return tuple(neighbors)


def board_from_dict(data: dict) -> BoardDefinition:
    """
    Build a board from its JSON shape: {id, display_name, tiles: [role], edges: [[int]]}.
    Raises ValueError on a malformed topology.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Board data must be an object, got {type(data).__name__}")
    tiles_raw = data.get("tiles") or []
    edges_raw = data.get("edges") or []
    if not isinstance(tiles_raw, list) or not isinstance(edges_raw, list):
        raise ValueError("Board tiles and edges must be lists")
    roles = tuple(str(r) for r in tiles_raw)
    if len(edges_raw) != len(roles):
        raise ValueError(
            f"Board has {len(roles)} tiles but {len(edges_raw)} edge lists")
    for role in roles:
        if role not in TILE_ROLES:
            raise ValueError(f"Unknown tile role: {role}")
    if not all(isinstance(targets, list) for targets in edges_raw):
        raise ValueError("Each tile's edges must be a list")
    try:
        edges = tuple(tuple(int(t) for t in targets) for targets in edges_raw)
    except (TypeError, ValueError):
        raise ValueError("Edge targets must be tile indices")
    for source, targets in enumerate(edges):
        for target in targets:
            if not 0 <= target < len(roles) or target == source:
                raise ValueError(f"Invalid edge {source} -> {target}")
    for player_index in (0, 1):
        if roles.count(GOAL_ROLES[player_index]) != 1:
            raise ValueError(f"Board needs exactly one goal for player {player_index + 1}")
        if SPAWN_ROLES[player_index] not in roles:
            raise ValueError(f"Board needs a spawn tile for player {player_index + 1}")
    return BoardDefinition(
        id=str(data.get("id") or ""),
        display_name=str(data.get("display_name") or data.get("id") or ""),
        roles=roles,
        edges=edges,
        neighbors=_undirected_neighbors(edges),
    )


def load_board(board_id: str | None = None) -> BoardDefinition:
    """
    Load a board by id from data/boards/. Cached per resolved id, so the default
    board and the same board by name are one shared instance.
    Raises FileNotFoundError for ids that are not a board file in data/boards/.
    """
    if board_id is None:
        board_id = _default_board_id()
    if board_id not in _board_ids():
        raise FileNotFoundError(f"Board not found: {board_id}")
    return _load_board_by_id(board_id)


def _board_ids() -> set[str]:
    if not BOARDS_DIR.exists():
        return set()
    return {path.stem for path in BOARDS_DIR.glob("*.json")}


@lru_cache(maxsize=None)
def _load_board_by_id(board_id: str) -> BoardDefinition:
    with open(BOARDS_DIR / f"{board_id}.json", "r") as f:
        return board_from_dict(json.load(f))


def list_boards() -> list[dict]:
    """Return [{ id, display_name }, ...] for all boards under data/boards/. The id is the file stem."""
    out = []
    if not BOARDS_DIR.exists():
        return out
    for path in sorted(BOARDS_DIR.glob("*.json")):
        try:
            with open(path, "r") as f:
                data = json.load(f)
            name = data.get("display_name", path.stem) if isinstance(data, dict) else path.stem
            out.append({"id": path.stem, "display_name": name})
        except (json.JSONDecodeError, OSError):
            out.append({"id": path.stem, "display_name": path.stem})
    return out


@lru_cache(maxsize=None)
def load_unit_definitions(data_dir: Path | str | None = None) -> tuple[UnitDefinition, ...]:
    """
    Load unit archetypes, in bench order.
    Returns a tuple so the cached value cannot be mutated by callers.
    """
    path = Path(data_dir) / "units.json" if data_dir is not None else DATA_DIR / "units.json"
    with open(path, "r") as f:
        units_data = json.load(f)
    return tuple(
        UnitDefinition(
            id=data["id"],
            display_name=data.get("display_name", data["id"]),
            movement=int(data["movement"]),
            attack_dice=int(data["attack_dice"]),
        )
        for data in units_data
    )
