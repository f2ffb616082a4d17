"""
Fight services - where fight records come from.

FightService is the narrow interface the replay tooling consumes. The
local implementation keeps a ranked ladder in memory and resolves fights
with the reference simulator; the gateway client in client.py talks to a
remote service with the same operations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence, runtime_checkable

from ..errors import DefenceNotFoundError
from ..fight_record import FightRecord
from ..ships import ShipType, ensure_within_cp, fleet_cp
from .simulator import ReferenceSimulator

logger = logging.getLogger(__name__)

DEFAULT_ATTACK_SEED = 1234567


@dataclass(frozen=True)
class PlayerDefence:
    """A fleet registered by an account to defend its ladder position."""
    account: str
    selection: tuple[int, ...]
    variants: tuple[int, ...]
    commander: int = 0
    name: str = ""
    wins: int = 0
    losses: int = 0


@dataclass(frozen=True)
class LeaderboardEntry:
    """Ranked results of one account."""
    address: str
    wins: int
    losses: int


def sort_leaderboard(entries: List[LeaderboardEntry]) -> List[LeaderboardEntry]:
    """Most wins first, then fewest losses, then address."""
    return sorted(entries, key=lambda e: (-e.wins, e.losses, e.address))


@runtime_checkable
class FightService(Protocol):
    """Operations consumed from the authoritative fight collaborator."""

    def replay(
        self,
        seed: int,
        selection_lhs: Sequence[int],
        selection_rhs: Sequence[int],
        variants_lhs: Sequence[int],
        variants_rhs: Sequence[int],
        commander_lhs: int = 0,
        commander_rhs: int = 0,
    ) -> FightRecord: ...

    def attack(
        self,
        attacker: str,
        target: str,
        selection: Sequence[int],
        variants: Sequence[int],
        commander: int = 0,
    ) -> FightRecord: ...

    def register_defence(
        self,
        account: str,
        selection: Sequence[int],
        variants: Sequence[int],
        commander: int = 0,
        name: str = "",
    ) -> None: ...

    def get_own_defence(self, account: str) -> PlayerDefence: ...

    def get_all_defenders(self) -> List[PlayerDefence]: ...

    def get_leaderboard(self) -> List[LeaderboardEntry]: ...


class LocalFightService:
    """
    In-memory ranked ladder backed by the reference simulator.

    Args:
        ship_types: Ship table used by the simulator and CP checks.
        simulator: Simulator to resolve fights (default: ReferenceSimulator).
        attack_seed: Seed used for every ranked attack.
        enforce_cp_cap: Reject attacks whose fleet is worth more CP than
            the defence it attacks.
    """

    def __init__(
        self,
        ship_types: Sequence[ShipType],
        simulator: Optional[ReferenceSimulator] = None,
        attack_seed: int = DEFAULT_ATTACK_SEED,
        enforce_cp_cap: bool = True,
    ):
        self.ship_types = tuple(ship_types)
        self.simulator = simulator or ReferenceSimulator(self.ship_types)
        self.attack_seed = attack_seed
        self.enforce_cp_cap = enforce_cp_cap
        self._defences: Dict[str, PlayerDefence] = {}

    def replay(
        self,
        seed: int,
        selection_lhs: Sequence[int],
        selection_rhs: Sequence[int],
        variants_lhs: Sequence[int],
        variants_rhs: Sequence[int],
        commander_lhs: int = 0,
        commander_rhs: int = 0,
    ) -> FightRecord:
        """Resolve an unranked fight between two arbitrary fleets."""
        return self.simulator.fight(
            seed,
            selection_lhs,
            selection_rhs,
            variants_lhs,
            variants_rhs,
            commander_lhs,
            commander_rhs,
        )

    def register_defence(
        self,
        account: str,
        selection: Sequence[int],
        variants: Sequence[int],
        commander: int = 0,
        name: str = "",
    ) -> None:
        """
        Register (or replace) an account's defence.

        Replacing a defence resets its ladder record.

        Raises:
            ValueError: If selection or variants have the wrong length or
                the selection contains a negative count.
        """
        fleet_cp(selection, self.ship_types)
        if len(variants) != len(self.ship_types):
            raise ValueError(
                f"Variants have {len(variants)} entries, expected {len(self.ship_types)}"
            )
        if any(count < 0 for count in selection):
            raise ValueError("Selection counts must not be negative")

        self._defences[account] = PlayerDefence(
            account=account,
            selection=tuple(selection),
            variants=tuple(variants),
            commander=commander,
            name=name,
        )
        logger.info("Defence registered for %s (%s)", account, name or "unnamed")

    def get_own_defence(self, account: str) -> PlayerDefence:
        """
        Raises:
            DefenceNotFoundError: If the account has no registered defence.
        """
        defence = self._defences.get(account)
        if defence is None:
            raise DefenceNotFoundError(account)
        return defence

    def get_all_defenders(self) -> List[PlayerDefence]:
        return list(self._defences.values())

    def get_leaderboard(self) -> List[LeaderboardEntry]:
        return sort_leaderboard([
            LeaderboardEntry(address=d.account, wins=d.wins, losses=d.losses)
            for d in self._defences.values()
        ])

    def attack(
        self,
        attacker: str,
        target: str,
        selection: Sequence[int],
        variants: Sequence[int],
        commander: int = 0,
    ) -> FightRecord:
        """
        Attack another account's registered defence and record the result.

        Raises:
            DefenceNotFoundError: If either account has no registered defence.
            CPLimitError: If the CP cap is enforced and the attacking fleet
                is worth more than the target's defence.
        """
        self.get_own_defence(attacker)
        defence = self.get_own_defence(target)

        if self.enforce_cp_cap:
            ensure_within_cp(selection, self.ship_types, fleet_cp(defence.selection, self.ship_types))

        record = self.simulator.fight(
            self.attack_seed,
            selection,
            defence.selection,
            variants,
            defence.variants,
            commander,
            defence.commander,
        )

        if record.lhs_dead:
            self._mark(target, won=True)
            self._mark(attacker, won=False)
            logger.info("%s defended against %s", target, attacker)
        elif record.rhs_dead:
            self._mark(attacker, won=True)
            self._mark(target, won=False)
            logger.info("%s defeated %s", attacker, target)
        else:
            logger.info("%s vs %s ended in a draw", attacker, target)

        return record

    def _mark(self, account: str, won: bool) -> None:
        defence = self._defences[account]
        self._defences[account] = PlayerDefence(
            account=defence.account,
            selection=defence.selection,
            variants=defence.variants,
            commander=defence.commander,
            name=defence.name,
            wins=defence.wins + (1 if won else 0),
            losses=defence.losses + (0 if won else 1),
        )
