"""
Arena Tactics game-state engine.
Pure rules core: no web framework, database, or transport.
"""

DICE_SIDES = 6

PLAYER_COUNT = 2

# Bench slots available to each player (units waiting to be deployed).
BENCH_SIZE = 6
