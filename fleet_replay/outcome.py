"""
Outcome evaluation for fight replays.

The outcome always comes from the authoritative flags of the fight
record. Reconstructed fleet state is only checked against them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .fight_record import FightRecord, Side
from .fleet_state import FleetState
from .ships import ShipType

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """Possible fight outcomes."""
    ATTACKER_VICTORY = "attacker_victory"
    DEFENDER_VICTORY = "defender_victory"
    DRAW = "draw"

    @property
    def label(self) -> str:
        return {
            Outcome.ATTACKER_VICTORY: "Attacker Wins",
            Outcome.DEFENDER_VICTORY: "Defender Wins",
            Outcome.DRAW: "Draw",
        }[self]

    @property
    def winner(self) -> Optional[Side]:
        if self is Outcome.ATTACKER_VICTORY:
            return Side.LHS
        if self is Outcome.DEFENDER_VICTORY:
            return Side.RHS
        return None


@dataclass(frozen=True)
class FightResult:
    """Final result reported to the presentation layer."""
    outcome: Outcome
    reason: str
    rounds_played: int
    cancelled: bool = False

    @property
    def winner(self) -> Optional[Side]:
        return self.outcome.winner

    @property
    def label(self) -> str:
        return self.outcome.label

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "label": self.label,
            "winner": self.winner.value if self.winner else None,
            "reason": self.reason,
            "rounds_played": self.rounds_played,
            "cancelled": self.cancelled,
        }


class OutcomeEvaluator:
    """
    Evaluates fight outcomes from authoritative flags.

    lhs_dead takes precedence: a record flagged with both sides dead is a
    defender victory, matching the simulator's own reporting.
    """

    def evaluate(self, record: FightRecord) -> tuple[Outcome, Optional[Side], str]:
        """
        Evaluate the outcome of a fight record.

        Args:
            record: The authoritative fight record.

        Returns:
            Tuple of (outcome, winner, reason)
        """
        if record.lhs_dead:
            return (Outcome.DEFENDER_VICTORY, Side.RHS, "Attacker fleet destroyed")
        if record.rhs_dead:
            return (Outcome.ATTACKER_VICTORY, Side.LHS, "Defender fleet destroyed")
        return (Outcome.DRAW, None, f"Both fleets standing after {record.rounds} rounds")

    def result(self, record: FightRecord, rounds_played: int, cancelled: bool = False) -> FightResult:
        outcome, _, reason = self.evaluate(record)
        return FightResult(
            outcome=outcome,
            reason=reason,
            rounds_played=rounds_played,
            cancelled=cancelled,
        )

    def check_consistency(self, record: FightRecord, fleets: FleetState) -> bool:
        """
        Compare fully reconstructed pools against the authoritative flags.

        Only meaningful after every round has been resolved. A mismatch
        is logged, never corrected; the flags stay authoritative.

        Returns:
            True if wiped sides match lhs_dead / rhs_dead.
        """
        consistent = True
        for side in (Side.LHS, Side.RHS):
            wiped = fleets.is_wiped(side)
            flagged = record.is_dead(side)
            # The simulator never flags lhs dead against an empty rhs fleet
            if side is Side.LHS and sum(record.selection_rhs) == 0:
                flagged = wiped
            if wiped != flagged:
                logger.warning(
                    "Reconstructed %s fleet %s but record says %s_dead=%s (seed %d)",
                    side.value, "wiped" if wiped else "standing", side.value, flagged, record.seed,
                )
                consistent = False
        return consistent


def ships_lost(selection: Sequence[int], pools: Sequence[int], ship_types: Sequence[ShipType]) -> tuple[int, ...]:
    """Units lost per ship type: (selection * hp - max(pool, 0)) // hp."""
    return tuple(
        (count * ship.hp - max(pool, 0)) // ship.hp
        for count, pool, ship in zip(selection, pools, ship_types)
    )
