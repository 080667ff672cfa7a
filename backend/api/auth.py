"""
Auth helpers: participant tokens.
A token is a JWT binding one player id to one match; it is issued when the match is
created and presented as a bearer token on every action.
"""

import os
from dataclasses import dataclass
from datetime import datetime, timedelta

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

SECRET_KEY = os.environ.get("JWT_SECRET", "change-me-in-production-use-env")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_HOURS = 12

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Participant:
    player_id: str
    match_id: str


def create_match_token(player_id: str, match_id: str) -> str:
    expire = datetime.utcnow() + timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS)
    payload = {"sub": player_id, "match_id": match_id, "exp": expire}
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Participant | None:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    player_id = payload.get("sub")
    match_id = payload.get("match_id")
    if not player_id or not match_id:
        return None
    return Participant(player_id=str(player_id), match_id=str(match_id))


def get_current_participant(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Participant:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    participant = decode_token(credentials.credentials)
    if participant is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return participant


def get_current_participant_optional(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Participant | None:
    if not credentials:
        return None
    return decode_token(credentials.credentials)
