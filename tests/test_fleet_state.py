"""
Unit tests for the fleet state tracker.

Run with: python -m pytest tests/test_fleet_state.py -v
"""

import pytest

from fleet_replay.errors import ResolutionError
from fleet_replay.fight_record import Side
from fleet_replay.fleet_state import FleetState
from fleet_replay.ships import load_ship_types


# Fixtures

@pytest.fixture
def ship_types():
    return load_ship_types()


@pytest.fixture
def fleets(ship_types) -> FleetState:
    """Attacker [3,3,3,3] against defender [16,16,16,16]."""
    state = FleetState(ship_types)
    state.initialize(Side.LHS, [3, 3, 3, 3])
    state.initialize(Side.RHS, [16, 16, 16, 16])
    return state


class TestInitialize:
    """Tests for pool initialization."""

    def test_pools_are_hp_times_count(self, fleets):
        assert fleets.pools(Side.LHS) == (360, 450, 660, 1350)
        assert fleets.pools(Side.RHS) == (1920, 2400, 3520, 7200)

    def test_counts(self, fleets):
        assert fleets.ships_remaining_all(Side.LHS) == (3, 3, 3, 3)
        assert fleets.total_remaining(Side.RHS) == 64
        assert not fleets.is_wiped(Side.LHS)

    def test_wrong_length(self, ship_types):
        state = FleetState(ship_types)
        with pytest.raises(ValueError):
            state.initialize(Side.LHS, [1, 2])

    def test_negative_count(self, ship_types):
        state = FleetState(ship_types)
        with pytest.raises(ValueError):
            state.initialize(Side.LHS, [1, -2, 0, 0])


class TestApplyDamage:
    """Tests for damage application and derived counts."""

    def test_partial_damage_keeps_damaged_unit(self, fleets):
        """ceil(pool / hp): a damaged unit still counts."""
        remaining = fleets.apply_damage(Side.LHS, 0, 121)
        assert remaining == 239
        assert fleets.ships_remaining(Side.LHS, 0) == 2

    def test_exact_unit_loss(self, fleets):
        fleets.apply_damage(Side.LHS, 0, 120)
        assert fleets.ships_remaining(Side.LHS, 0) == 2

    def test_pool_floors_at_zero(self, fleets):
        """Overkill never drives a pool negative."""
        assert fleets.apply_damage(Side.LHS, 3, 100_000) == 0
        assert fleets.pool(Side.LHS, 3) == 0
        assert fleets.ships_remaining(Side.LHS, 3) == 0

    def test_other_side_untouched(self, fleets):
        fleets.apply_damage(Side.LHS, 1, 50)
        assert fleets.pools(Side.RHS) == (1920, 2400, 3520, 7200)

    def test_never_more_than_selected(self, fleets):
        fleets.apply_damage(Side.RHS, 2, 0)
        assert fleets.ships_remaining(Side.RHS, 2) == 16

    def test_wiped(self, fleets):
        for type_index in range(4):
            fleets.apply_damage(Side.LHS, type_index, 5000)
        assert fleets.total_remaining(Side.LHS) == 0
        assert fleets.is_wiped(Side.LHS)

    def test_index_out_of_range(self, fleets):
        with pytest.raises(ResolutionError):
            fleets.apply_damage(Side.LHS, 4, 10)
        with pytest.raises(ResolutionError):
            fleets.ships_remaining(Side.RHS, -1)


class TestFromRecord:
    """Tests for building a tracker from a fight record."""

    def test_from_record(self, ship_types):
        from fleet_replay.fight_record import FightRecord

        record = FightRecord(
            seed=1,
            selection_lhs=(1, 0, 0, 0),
            selection_rhs=(0, 0, 0, 2),
            variants_lhs=(0, 0, 0, 0),
            variants_rhs=(0, 0, 0, 0),
            commander_lhs=0,
            commander_rhs=0,
            rounds=0,
        )
        state = FleetState.from_record(record, ship_types)
        assert state.pools(Side.LHS) == (120, 0, 0, 0)
        assert state.pools(Side.RHS) == (0, 0, 0, 900)
        assert state.initial_count(Side.RHS, 3) == 2
