#!/usr/bin/env python3
"""
List or reset persisted per-player session counters.
Usage:
    python scripts/session_counts.py                 # list every player
    python scripts/session_counts.py reset <player_id>
From repo root with PYTHONPATH=. or after `pip install -e .`.
"""
import sys
import os

# Allow running from repo root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from backend.api.database import SessionLocal, init_db
from backend.api.models import PlayerRecord


def list_counts(db) -> None:
    records = db.query(PlayerRecord).order_by(PlayerRecord.id).all()
    if not records:
        print("No players recorded yet.")
        return
    for record in records:
        print(f"{record.id}: {record.session_count}")


def reset_count(db, player_id: str) -> None:
    record = db.query(PlayerRecord).filter(PlayerRecord.id == player_id).first()
    if not record:
        print(f"No player found with id: {player_id!r}")
        return
    record.session_count = 0
    db.commit()
    print(f"Reset session count for {player_id!r}.")


def main() -> None:
    args = sys.argv[1:]
    if args and (args[0] != "reset" or len(args) != 2):
        print("Usage: python scripts/session_counts.py [reset <player_id>]", file=sys.stderr)
        sys.exit(1)

    init_db()
    db = SessionLocal()
    try:
        if args:
            reset_count(db, args[1].strip())
        else:
            list_counts(db)
    except Exception as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
