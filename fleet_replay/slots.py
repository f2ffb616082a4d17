"""
Slot Allocator - collision-free presentation rows for ship groups.

Each ship group occupies one (lane, row) slot. When a group moves into a
lane it takes the smallest row not held by another group in that lane.
Callers must present groups in a fixed order (left side by ascending
ship type, then right side by ascending ship type) so identical input
always yields identical slots.
"""

from __future__ import annotations

import logging
from typing import NamedTuple, Optional, Sequence

from .fight_record import Side

logger = logging.getLogger(__name__)

# Lane of group 0 at the start of a fight; left lanes grow, right lanes shrink
BASE_LANE = 10


class Slot(NamedTuple):
    """Presentation coordinates of a ship group."""
    lane: int
    row: int


GroupKey = tuple[Side, int]


def initial_lane(side: Side, type_index: int) -> int:
    """Starting lane of a group: 10 + i on the left, -(10 + i) on the right."""
    offset = BASE_LANE + type_index
    return offset if side is Side.LHS else -offset


class SlotAllocator:
    """
    Tracks which rows are taken in each lane for one replay session.

    Attributes:
        occupancy: lane -> {row: group} for every placed group.
    """

    def __init__(self):
        self.occupancy: dict[int, dict[int, GroupKey]] = {}
        self._slots: dict[GroupKey, Slot] = {}

    def place_fleets(self, selection_lhs: Sequence[int], selection_rhs: Sequence[int]) -> None:
        """Place every non-empty group at its starting lane."""
        for side, selection in ((Side.LHS, selection_lhs), (Side.RHS, selection_rhs)):
            for type_index, count in enumerate(selection):
                if count > 0:
                    self.assign((side, type_index), initial_lane(side, type_index))

    def slot_of(self, group: GroupKey) -> Optional[Slot]:
        return self._slots.get(group)

    def rows_at(self, lane: int) -> set[int]:
        return set(self.occupancy.get(lane, {}))

    @property
    def slot_occupancy(self) -> dict[int, set[int]]:
        """lane -> set of occupied rows."""
        return {lane: set(rows) for lane, rows in self.occupancy.items() if rows}

    def assign(self, group: GroupKey, lane: int) -> Slot:
        """
        Move a group into `lane` and return its slot.

        A group already in `lane` keeps its row. Otherwise its previous
        slot is released and it takes the smallest free row at `lane`.
        """
        current = self._slots.get(group)
        if current is not None and current.lane == lane:
            return current

        self.release(group)

        rows = self.occupancy.setdefault(lane, {})
        row = 0
        while row in rows:
            row += 1
        rows[row] = group

        slot = Slot(lane, row)
        self._slots[group] = slot
        logger.debug("Group %s/%d -> lane %d row %d", group[0].value, group[1], lane, row)
        return slot

    def release(self, group: GroupKey) -> None:
        """Free the slot held by a group (no-op if it holds none)."""
        slot = self._slots.pop(group, None)
        if slot is None:
            return
        rows = self.occupancy.get(slot.lane)
        if rows is not None:
            rows.pop(slot.row, None)
            if not rows:
                del self.occupancy[slot.lane]
