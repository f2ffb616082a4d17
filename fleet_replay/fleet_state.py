"""
Fleet State Tracker - per-side, per-ship-type hit point pools.

All units of one ship type in a fleet share a single HP pool. Unit counts
are derived from the pool: ceil(pool / hp_per_unit).
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .errors import ResolutionError
from .fight_record import FightRecord, Side
from .ships import ShipType


class FleetState:
    """
    HP pools for both fleets of one replay session.

    Pools never go negative and a ship type never shows more units than
    were initially selected.
    """

    def __init__(self, ship_types: Sequence[ShipType]):
        self.ship_types = tuple(ship_types)
        self._unit_hp = np.array([ship.hp for ship in self.ship_types], dtype=np.int64)
        size = len(self.ship_types)
        self._initial: dict[Side, np.ndarray] = {
            Side.LHS: np.zeros(size, dtype=np.int64),
            Side.RHS: np.zeros(size, dtype=np.int64),
        }
        self._pools: dict[Side, np.ndarray] = {
            Side.LHS: np.zeros(size, dtype=np.int64),
            Side.RHS: np.zeros(size, dtype=np.int64),
        }

    @classmethod
    def from_record(cls, record: FightRecord, ship_types: Sequence[ShipType]) -> FleetState:
        """Create a tracker initialized with both selections of a record."""
        state = cls(ship_types)
        state.initialize(Side.LHS, record.selection_lhs)
        state.initialize(Side.RHS, record.selection_rhs)
        return state

    @property
    def ship_count(self) -> int:
        return len(self.ship_types)

    def initialize(self, side: Side, selection: Sequence[int]) -> None:
        """Set pool[i] = hp[i] * selection[i] for every ship type."""
        if len(selection) != self.ship_count:
            raise ValueError(
                f"Selection has {len(selection)} entries, expected {self.ship_count}"
            )
        counts = np.array(selection, dtype=np.int64)
        if (counts < 0).any():
            raise ValueError("Selection counts must not be negative")
        self._initial[side] = counts
        self._pools[side] = self._unit_hp * counts

    def _check_index(self, type_index: int) -> None:
        if not 0 <= type_index < self.ship_count:
            raise ResolutionError(
                f"Ship type index {type_index} outside [0, {self.ship_count})"
            )

    def apply_damage(self, side: Side, type_index: int, amount: int) -> int:
        """
        Subtract damage from a pool, flooring at zero.

        Args:
            side: The side receiving the damage.
            type_index: Ship type whose pool is reduced.
            amount: Precomputed damage (non-negative).

        Returns:
            The remaining pool.
        """
        self._check_index(type_index)
        pools = self._pools[side]
        pools[type_index] = max(0, int(pools[type_index]) - int(amount))
        return int(pools[type_index])

    def pool(self, side: Side, type_index: int) -> int:
        self._check_index(type_index)
        return int(self._pools[side][type_index])

    def pools(self, side: Side) -> tuple[int, ...]:
        return tuple(int(value) for value in self._pools[side])

    def initial_count(self, side: Side, type_index: int) -> int:
        self._check_index(type_index)
        return int(self._initial[side][type_index])

    def ships_remaining(self, side: Side, type_index: int) -> int:
        """Units still standing: ceil(pool / unit hp), never below zero."""
        self._check_index(type_index)
        pool = int(self._pools[side][type_index])
        unit_hp = int(self._unit_hp[type_index])
        return max(0, -(-pool // unit_hp))

    def ships_remaining_all(self, side: Side) -> tuple[int, ...]:
        remaining = -(-self._pools[side] // self._unit_hp)
        return tuple(int(value) for value in np.maximum(remaining, 0))

    def total_remaining(self, side: Side) -> int:
        return sum(self.ships_remaining_all(side))

    def is_wiped(self, side: Side) -> bool:
        return self.total_remaining(side) == 0
