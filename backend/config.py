"""
Single place for default match configuration.
Values that operators tune per deployment can be overridden with environment variables.
"""
import os

# Board id from data/boards/<id>.json. This is the board used for new matches.
DEFAULT_BOARD_ID = "arena"

# Real-time budget for a single turn before the tick forces it to pass.
TURN_TIME_MS = int(os.environ.get("TURN_TIME_MS", "30000"))
# Extra time granted to the very first turn of a match (clients are still loading).
INITIAL_GRACE_MS = int(os.environ.get("INITIAL_GRACE_MS", "5000"))
# Cadence of the host's periodic tick.
TICK_INTERVAL_S = float(os.environ.get("TICK_INTERVAL_S", "1.0"))
# How long a finished match stays in memory (for final-state reads) before the tick drops it.
FINISHED_ROOM_TTL_MS = int(os.environ.get("FINISHED_ROOM_TTL_MS", "300000"))
