"""
In-memory match registry.
Each room owns one authoritative MatchState and the lock that serializes every
action, lifecycle hook and tick on it.
"""

import random
import threading
import time
import uuid
from dataclasses import dataclass, field

from backend import config
from backend.engine.definitions import BoardDefinition, load_board
from backend.engine.events import GameEvent
from backend.engine.lifecycle import tick
from backend.engine.state import MatchState, PersistedPlayer
from backend.engine.utils import initialize_match_state


def now_ms() -> int:
    """Game clock for every room: monotonic milliseconds."""
    return int(time.monotonic() * 1000)


@dataclass
class Room:
    match_id: str
    state: MatchState
    board_def: BoardDefinition
    rng: random.Random
    lock: threading.Lock = field(default_factory=threading.Lock)
    # Tick clock time at which the match was first seen over.
    finished_at: int | None = None


rooms: dict[str, Room] = {}
_registry_lock = threading.Lock()


def create_room(
    participant_ids: list[str],
    persisted: dict[str, PersistedPlayer] | None = None,
    board_id: str | None = None,
    seed: int | None = None,
) -> Room:
    """
    Set up a new match and register it.

    Raises:
        ValueError: bad participant list or board data
        FileNotFoundError: unknown board_id
    """
    board_def = load_board(board_id)
    state = initialize_match_state(participant_ids, now_ms(), persisted=persisted, board_def=board_def)
    room = Room(
        match_id=str(uuid.uuid4()),
        state=state,
        board_def=board_def,
        rng=random.Random(seed),
    )
    with _registry_lock:
        rooms[room.match_id] = room
    return room


def get_room(match_id: str) -> Room | None:
    with _registry_lock:
        return rooms.get(match_id)


def remove_room(match_id: str) -> Room | None:
    with _registry_lock:
        return rooms.pop(match_id, None)


def tick_all(now: int | None = None, finished_ttl_ms: int | None = None) -> dict[str, list[GameEvent]]:
    """
    Run the turn timer on every room. Returns {match_id: events} for rooms that changed.
    Finished rooms are stamped on the first tick that sees them over and dropped
    once finished_ttl_ms has passed since.
    """
    if now is None:
        now = now_ms()
    if finished_ttl_ms is None:
        finished_ttl_ms = config.FINISHED_ROOM_TTL_MS
    with _registry_lock:
        snapshot = list(rooms.values())
    changed: dict[str, list[GameEvent]] = {}
    expired = []
    for room in snapshot:
        with room.lock:
            events = tick(room.state, now)
            if room.state.is_over:
                if room.finished_at is None:
                    room.finished_at = now
                elif now - room.finished_at > finished_ttl_ms:
                    expired.append(room.match_id)
        if events:
            changed[room.match_id] = events
    for match_id in expired:
        remove_room(match_id)
    return changed
