"""
Unit tests for the slot allocator.

Run with: python -m pytest tests/test_slots.py -v
"""

import random

import pytest

from fleet_replay.fight_record import Side
from fleet_replay.slots import Slot, SlotAllocator, initial_lane


# Fixtures

@pytest.fixture
def allocator() -> SlotAllocator:
    slots = SlotAllocator()
    slots.place_fleets([3, 3, 3, 3], [16, 16, 16, 16])
    return slots


class TestInitialPlacement:
    """Tests for the starting layout."""

    def test_initial_lanes(self):
        assert initial_lane(Side.LHS, 0) == 10
        assert initial_lane(Side.LHS, 3) == 13
        assert initial_lane(Side.RHS, 0) == -10
        assert initial_lane(Side.RHS, 3) == -13

    def test_every_group_on_row_zero(self, allocator):
        for type_index in range(4):
            assert allocator.slot_of((Side.LHS, type_index)) == Slot(10 + type_index, 0)
            assert allocator.slot_of((Side.RHS, type_index)) == Slot(-10 - type_index, 0)

    def test_empty_groups_not_placed(self):
        slots = SlotAllocator()
        slots.place_fleets([1, 0, 0, 2], [0, 0, 0, 0])
        assert slots.slot_of((Side.LHS, 1)) is None
        assert slots.slot_occupancy == {10: {0}, 13: {0}}


class TestAssign:
    """Tests for row assignment within a lane."""

    def test_smallest_free_row(self, allocator):
        """Groups arriving at a lane stack up from row 0."""
        assert allocator.assign((Side.LHS, 0), 0) == Slot(0, 0)
        assert allocator.assign((Side.LHS, 1), 0) == Slot(0, 1)
        assert allocator.assign((Side.RHS, 0), 0) == Slot(0, 2)

    def test_freed_row_is_reused(self, allocator):
        allocator.assign((Side.LHS, 0), 0)
        allocator.assign((Side.LHS, 1), 0)
        allocator.assign((Side.LHS, 0), 5)
        assert allocator.rows_at(0) == {1}
        assert allocator.assign((Side.RHS, 2), 0) == Slot(0, 0)

    def test_staying_keeps_row(self, allocator):
        """A group moving to the lane it already holds keeps its row."""
        allocator.assign((Side.LHS, 0), 0)
        allocator.assign((Side.LHS, 1), 0)
        assert allocator.assign((Side.LHS, 1), 0) == Slot(0, 1)

    def test_moving_releases_previous_lane(self, allocator):
        allocator.assign((Side.LHS, 2), 4)
        assert 12 not in allocator.slot_occupancy
        assert allocator.slot_occupancy[4] == {0}

    def test_release(self, allocator):
        allocator.release((Side.RHS, 3))
        assert allocator.slot_of((Side.RHS, 3)) is None
        assert -13 not in allocator.slot_occupancy
        # Releasing twice is harmless
        allocator.release((Side.RHS, 3))

    def test_deterministic(self):
        """Identical arrival sequences give identical slots."""
        def run():
            slots = SlotAllocator()
            slots.place_fleets([1, 1, 1, 1], [1, 1, 1, 1])
            return [slots.assign((side, i), 0) for side in (Side.LHS, Side.RHS) for i in range(4)]

        assert run() == run()
        assert [slot.row for slot in run()] == list(range(8))

    def test_no_collisions_under_random_moves(self):
        """No two present groups ever share a (lane, row) pair."""
        rng = random.Random(7)
        slots = SlotAllocator()
        slots.place_fleets([1, 1, 1, 1], [1, 1, 1, 1])
        groups = [(side, i) for side in (Side.LHS, Side.RHS) for i in range(4)]

        for _ in range(500):
            group = rng.choice(groups)
            if rng.random() < 0.1:
                slots.release(group)
            else:
                slots.assign(group, rng.randint(-3, 3))

            held = [slots.slot_of(g) for g in groups if slots.slot_of(g) is not None]
            assert len(held) == len(set(held))
            for lane, rows in slots.slot_occupancy.items():
                assert rows == {s.row for s in held if s.lane == lane}
