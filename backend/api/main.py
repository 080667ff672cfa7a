"""
FastAPI host for Arena Tactics.
Owns the authoritative match states (one room per match), serializes every operation
on a match behind that match's lock, and runs the periodic turn-timer tick.
"""

import asyncio
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .database import get_db, init_db
from .models import PlayerRecord
from .auth import (
    Participant,
    create_match_token,
    get_current_participant,
    get_current_participant_optional,
)
from . import rooms
from .rooms import Room, now_ms

from backend import config
from backend.engine.actions import Action, ActionResult, attack, end_turn, move_unit, play_unit
from backend.engine.definitions import list_boards, load_board, load_unit_definitions
from backend.engine.events import GameEvent
from backend.engine.lifecycle import player_joined, player_left
from backend.engine.queries import (
    get_attack_targets,
    get_deploy_targets,
    get_match_summary,
    get_unit_reach,
    is_players_turn,
)
from backend.engine.reducer import apply_action, apply_raw_action
from backend.engine.state import MatchState, PersistedPlayer

app = FastAPI(
    title="Arena Tactics API",
    description="Authoritative host for Arena Tactics - a two-player turn-based tactics game",
    version="1.0.0",
)

# CORS configuration for frontend
CORS_ORIGINS = ["http://localhost:5173", "http://localhost:5174", "http://localhost:3000"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log method and path so 500s can be traced to the failing endpoint."""
    method = getattr(request, "method", "?")
    url = getattr(request, "url", None)
    path = url.path if url else "?"
    try:
        response = await call_next(request)
        if response.status_code >= 500:
            print(f"[500] {method} {path}", flush=True)
        return response
    except Exception:
        print(f"[500] {method} {path} (exception)", flush=True)
        raise


@app.exception_handler(Exception)
async def unhandled_exception_handler(request, exc):
    """Return 500 with CORS headers so the frontend can read the error."""
    import traceback
    traceback.print_exc()
    origin = request.headers.get("origin")
    allow_origin = origin if origin in CORS_ORIGINS else CORS_ORIGINS[0]
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc)},
        headers={
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Credentials": "true",
        },
    )


# ===== Pydantic Models =====

class CreateMatchRequest(BaseModel):
    participant_ids: list[str]
    """Board id from GET /boards. Omitted = backend.config.DEFAULT_BOARD_ID."""
    board_id: str | None = None
    """Seed for the match's dice. Omitted = unpredictable dice."""
    seed: int | None = None


class MoveRequest(BaseModel):
    from_tile: int
    to_tile: int


class PlayRequest(BaseModel):
    bench_index: int
    to_tile: int


class AttackRequest(BaseModel):
    from_tile: int
    to_tile: int


class ActionRequest(BaseModel):
    """Generic action envelope; the payload is checked by the engine, not by pydantic."""
    type: str
    payload: Any = None


# ===== Helpers =====

def get_match(match_id: str) -> Room:
    """Get the room for match_id; raise 404 if not found."""
    room = rooms.get_room(match_id)
    if room is None:
        raise HTTPException(status_code=404, detail=f"Match {match_id} not found")
    return room


def _require_participant(match_id: str, participant: Participant) -> Room:
    """Raise 403 if the token was issued for another match."""
    if participant.match_id != match_id:
        raise HTTPException(status_code=403, detail="Not in this match")
    return get_match(match_id)


def load_persisted(db: Session, player_ids: list[str]) -> dict[str, PersistedPlayer]:
    """Session counters for player_ids (players never seen before are omitted)."""
    records = db.query(PlayerRecord).filter(PlayerRecord.id.in_(player_ids)).all()
    return {r.id: PersistedPlayer(session_count=r.session_count or 0) for r in records}


def save_persisted(db: Session, state: MatchState) -> None:
    """Write the match's session counters back to the DB."""
    for player_id, persisted in state.persisted.items():
        record = db.query(PlayerRecord).filter(PlayerRecord.id == player_id).first()
        if record is None:
            record = PlayerRecord(id=player_id)
            db.add(record)
        record.session_count = persisted.session_count
    db.commit()


def state_for_response(state: MatchState) -> dict[str, Any]:
    """State dict plus a computed summary for the UI."""
    out = state.to_dict()
    out["summary"] = get_match_summary(state)
    return out


def events_for_response(events: list[GameEvent]) -> list[dict[str, Any]]:
    return [e.to_dict() for e in events]


def _action_response(room: Room, result: ActionResult) -> dict[str, Any]:
    """Accepted result plus the post-action state. Rejections go to the requester only, as 400."""
    if not result.accepted:
        raise HTTPException(status_code=400, detail=result.error.value)
    return {"state": state_for_response(room.state), **result.to_dict()}


def _run_action(room: Room, action: Action) -> dict[str, Any]:
    """Apply an action under the room lock."""
    with room.lock:
        result = apply_action(room.state, action, room.board_def, now_ms(), room.rng)
        return _action_response(room, result)


async def _tick_loop():
    """Drive the turn timer of every room."""
    while True:
        await asyncio.sleep(config.TICK_INTERVAL_S)
        try:
            changed = await asyncio.to_thread(rooms.tick_all)
        except Exception:
            import traceback
            traceback.print_exc()
            continue
        for match_id, events in changed.items():
            print(f"[tick] {match_id}: {', '.join(e.type for e in events)}", flush=True)


_tick_task: asyncio.Task | None = None


@app.on_event("startup")
async def on_startup():
    global _tick_task
    init_db()
    _tick_task = asyncio.create_task(_tick_loop())


@app.on_event("shutdown")
async def on_shutdown():
    global _tick_task
    if _tick_task is None:
        return
    _tick_task.cancel()
    try:
        await _tick_task
    except asyncio.CancelledError:
        pass
    _tick_task = None


# ===== API Endpoints =====

@app.get("/")
def root():
    return {"message": "Arena Tactics API", "version": "1.0.0"}


@app.get("/boards")
def get_boards():
    """List available boards (id, display_name)."""
    return {"boards": list_boards()}


@app.get("/boards/{board_id}")
def get_board(board_id: str):
    try:
        return load_board(board_id).to_dict()
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"Board {board_id} not found")


@app.get("/definitions")
def get_definitions():
    """Unit archetypes in bench order."""
    return {
        "units": [
            {"id": u.id, "display_name": u.display_name, "movement": u.movement, "attack_dice": u.attack_dice}
            for u in load_unit_definitions()
        ],
        "turn_time_ms": config.TURN_TIME_MS,
    }


# ----- Matches -----

@app.post("/matches")
def create_match(request: CreateMatchRequest, db: Session = Depends(get_db)):
    """Set up a match for two participants and issue one token per participant."""
    persisted = load_persisted(db, request.participant_ids)
    try:
        room = rooms.create_room(
            request.participant_ids,
            persisted=persisted,
            board_id=request.board_id,
            seed=request.seed,
        )
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    with room.lock:
        save_persisted(db, room.state)
        state = state_for_response(room.state)
    return {
        "match_id": room.match_id,
        "tokens": {pid: create_match_token(pid, room.match_id) for pid in room.state.seats},
        "state": state,
    }


@app.get("/matches/{match_id}")
def get_match_state(
    match_id: str,
    participant: Participant | None = Depends(get_current_participant_optional),
):
    """Current match state. can_act is true only for the authenticated turn holder."""
    room = get_match(match_id)
    with room.lock:
        can_act = (
            participant is not None
            and participant.match_id == match_id
            and is_players_turn(room.state, participant.player_id)
        )
        return {
            "match_id": match_id,
            "state": state_for_response(room.state),
            "can_act": can_act,
        }


@app.delete("/matches/{match_id}")
def delete_match(match_id: str, participant: Participant = Depends(get_current_participant)):
    """Drop a match from memory. Only a participant can delete, and only once it is over."""
    room = _require_participant(match_id, participant)
    with room.lock:
        if not room.state.is_over:
            raise HTTPException(status_code=400, detail="Match is still running")
    rooms.remove_room(match_id)
    return {"deleted": match_id}


@app.post("/matches/{match_id}/move")
def do_move(match_id: str, request: MoveRequest, participant: Participant = Depends(get_current_participant)):
    """Move one of your units along the board graph."""
    room = _require_participant(match_id, participant)
    return _run_action(room, move_unit(participant.player_id, request.from_tile, request.to_tile))


@app.post("/matches/{match_id}/play")
def do_play(match_id: str, request: PlayRequest, participant: Participant = Depends(get_current_participant)):
    """Deploy a unit from your bench."""
    room = _require_participant(match_id, participant)
    return _run_action(room, play_unit(participant.player_id, request.bench_index, request.to_tile))


@app.post("/matches/{match_id}/attack")
def do_attack(match_id: str, request: AttackRequest, participant: Participant = Depends(get_current_participant)):
    """Attack an adjacent enemy unit."""
    room = _require_participant(match_id, participant)
    return _run_action(room, attack(participant.player_id, request.from_tile, request.to_tile))


@app.post("/matches/{match_id}/end-turn")
def do_end_turn(match_id: str, participant: Participant = Depends(get_current_participant)):
    """End your turn."""
    room = _require_participant(match_id, participant)
    return _run_action(room, end_turn(participant.player_id))


@app.post("/matches/{match_id}/actions")
def do_action(match_id: str, request: ActionRequest, participant: Participant = Depends(get_current_participant)):
    """Submit any action kind with a raw payload (for clients that speak the action protocol directly)."""
    room = _require_participant(match_id, participant)
    with room.lock:
        result = apply_raw_action(
            room.state, participant.player_id, request.type, request.payload,
            room.board_def, now_ms(), room.rng,
        )
        return _action_response(room, result)


# ----- Lifecycle -----

@app.post("/matches/{match_id}/join")
def do_join(
    match_id: str,
    participant: Participant = Depends(get_current_participant),
    db: Session = Depends(get_db),
):
    """A participant (re)connected. Bumps their persisted session counter."""
    room = _require_participant(match_id, participant)
    with room.lock:
        events = player_joined(room.state, participant.player_id)
        save_persisted(db, room.state)
        return {
            "state": state_for_response(room.state),
            "events": events_for_response(events),
        }


@app.post("/matches/{match_id}/leave")
def do_leave(match_id: str, participant: Participant = Depends(get_current_participant)):
    """A participant disconnected for good. With one player left, that player wins."""
    room = _require_participant(match_id, participant)
    with room.lock:
        events = player_left(room.state, participant.player_id)
        return {
            "state": state_for_response(room.state),
            "events": events_for_response(events),
        }


# ----- Client hints -----

@app.get("/matches/{match_id}/reach/{tile}")
def get_reach(match_id: str, tile: int):
    """Tiles the unit on tile could move to."""
    room = get_match(match_id)
    with room.lock:
        return {"tile": tile, "reachable": get_unit_reach(room.state, room.board_def, tile)}


@app.get("/matches/{match_id}/attack-targets/{tile}")
def get_attackable(match_id: str, tile: int):
    """Enemy tiles the unit on tile could attack."""
    room = get_match(match_id)
    with room.lock:
        return {"tile": tile, "targets": get_attack_targets(room.state, room.board_def, tile)}


@app.get("/matches/{match_id}/deploy-targets/{bench_index}")
def get_deployable(
    match_id: str,
    bench_index: int,
    participant: Participant = Depends(get_current_participant),
):
    """Tiles your bench unit at bench_index could be deployed to."""
    room = _require_participant(match_id, participant)
    with room.lock:
        return {
            "bench_index": bench_index,
            "targets": get_deploy_targets(room.state, room.board_def, participant.player_id, bench_index),
        }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
