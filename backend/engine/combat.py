"""
Combat resolution.
Each side rolls one d6 per attack die and sums. The higher sum wins; on an exact
tie both units are destroyed (the comparison is >= for the defender's loss and <=
for the attacker's, so both apply). Destroyed units go back to their owner's bench.
"""

import random
from dataclasses import dataclass

from backend.engine import DICE_SIDES
from backend.engine.state import CombatReport, Unit


@dataclass
class CombatOutcome:
    """Result of a single attack."""
    report: CombatReport
    attacker_total: int
    defender_total: int
    defender_destroyed: bool  # attacker_total >= defender_total
    attacker_destroyed: bool  # attacker_total <= defender_total


def roll_dice(count: int, rng: random.Random) -> list[int]:
    """Roll count independent dice, 1 to DICE_SIDES each."""
    return [rng.randint(1, DICE_SIDES) for _ in range(count)]


def resolve_combat(
    attacker: Unit,
    defender: Unit,
    rng: random.Random,
    from_tile: int,
    to_tile: int,
    attacker_id: str,
) -> CombatOutcome:
    """
    Roll for both sides and decide casualties.

    Attacker dice are drawn before defender dice so a seeded rng reproduces the
    same report on every observer.
    """
    attacker_rolls = roll_dice(attacker.attack_dice, rng)
    defender_rolls = roll_dice(defender.attack_dice, rng)
    a = sum(attacker_rolls)
    d = sum(defender_rolls)
    report = CombatReport(
        attacker_dice=attacker_rolls,
        defender_dice=defender_rolls,
        from_tile=from_tile,
        to_tile=to_tile,
        attacker=attacker_id,
        result=a - d,
    )
    return CombatOutcome(
        report=report,
        attacker_total=a,
        defender_total=d,
        defender_destroyed=a >= d,
        attacker_destroyed=a <= d,
    )
