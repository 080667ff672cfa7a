"""
Main entry point for the Arena Tactics game engine.
Demonstrates core functionality with a short simulated match.
"""

import random

from backend.engine.actions import attack, end_turn, move_unit, play_unit
from backend.engine.definitions import load_board
from backend.engine.lifecycle import tick
from backend.engine.queries import get_deploy_targets, get_unit_reach
from backend.engine.reducer import apply_action, replay_from_actions
from backend.engine.utils import initialize_match_state, print_match_state


def show(result) -> None:
    if result.accepted:
        print(f"✓ Events: {[e.type for e in result.events]}")
    else:
        print(f"✗ Rejected: {result.error.value}")


def main():
    print("Arena Tactics Game Engine")
    print("=" * 60)

    board = load_board()
    rng = random.Random(7)
    clock = 0

    state = initialize_match_state(["alice", "bob"], clock, board_def=board)
    initial = state.copy()
    log = []

    print("\n[INITIAL STATE]")
    print_match_state(state, board)

    # ===== SCENARIO 1: deploy =====
    print("\n[SCENARIO 1: Deploy from the bench]")
    print(f"alice's scout could land on: {get_deploy_targets(state, board, 'alice', 2)}")
    for action in (play_unit("alice", 2, 7), play_unit("bob", 2, 21)):
        clock += 1000
        log.append((clock, action))
        show(apply_action(state, action, board, clock, rng))

    # ===== SCENARIO 2: a rejected action changes nothing =====
    print("\n[SCENARIO 2: Out-of-turn action]")
    clock += 1000
    show(apply_action(state, end_turn("bob"), board, clock, rng))

    # ===== SCENARIO 3: move next to an enemy, then attack =====
    print("\n[SCENARIO 3: Forced attack]")
    print(f"alice's scout reaches: {get_unit_reach(state, board, 7)}")
    for action in (move_unit("alice", 7, 25), attack("alice", 25, 21)):
        clock += 1000
        log.append((clock, action))
        show(apply_action(state, action, board, clock, rng))
    print_match_state(state, board)

    # ===== SCENARIO 4: turn timer =====
    print("\n[SCENARIO 4: Timeout]")
    clock += 31000
    print(f"Tick events: {[e.type for e in tick(state, clock)]}")

    # ===== SCENARIO 5: replay =====
    print("\n[SCENARIO 5: Replay the accepted actions]")
    replayed, events = replay_from_actions(initial, log, board, random.Random(7))
    print(f"Replayed {len(log)} actions into {len(events)} events; "
          f"board matches live match: {replayed.board == state.board}")


if __name__ == "__main__":
    main()
