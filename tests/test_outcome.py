"""
Unit tests for outcome evaluation.

Run with: python -m pytest tests/test_outcome.py -v
"""

import logging

import pytest

from fleet_replay.fight_record import FightRecord, Side
from fleet_replay.fleet_state import FleetState
from fleet_replay.outcome import FightResult, Outcome, OutcomeEvaluator, ships_lost
from fleet_replay.ships import load_ship_types


# Fixtures

@pytest.fixture
def ship_types():
    return load_ship_types()


@pytest.fixture
def evaluator() -> OutcomeEvaluator:
    return OutcomeEvaluator()


def make_record(lhs_dead: bool, rhs_dead: bool, selection_rhs=(1, 1, 1, 1)) -> FightRecord:
    return FightRecord(
        seed=5,
        selection_lhs=(1, 1, 1, 1),
        selection_rhs=tuple(selection_rhs),
        variants_lhs=(0, 0, 0, 0),
        variants_rhs=(0, 0, 0, 0),
        commander_lhs=0,
        commander_rhs=0,
        rounds=10,
        lhs_dead=lhs_dead,
        rhs_dead=rhs_dead,
    )


class TestEvaluate:
    """Tests for outcome selection from authoritative flags."""

    def test_defender_wins_when_attacker_dead(self, evaluator):
        outcome, winner, reason = evaluator.evaluate(make_record(True, False))
        assert outcome is Outcome.DEFENDER_VICTORY
        assert winner is Side.RHS
        assert outcome.label == "Defender Wins"

    def test_attacker_wins_when_defender_dead(self, evaluator):
        outcome, winner, _ = evaluator.evaluate(make_record(False, True))
        assert outcome is Outcome.ATTACKER_VICTORY
        assert winner is Side.LHS
        assert outcome.label == "Attacker Wins"

    def test_draw(self, evaluator):
        outcome, winner, reason = evaluator.evaluate(make_record(False, False))
        assert outcome is Outcome.DRAW
        assert winner is None
        assert outcome.label == "Draw"
        assert "10 rounds" in reason

    def test_lhs_dead_takes_precedence(self, evaluator):
        outcome, _, _ = evaluator.evaluate(make_record(True, True))
        assert outcome is Outcome.DEFENDER_VICTORY

    def test_result(self, evaluator):
        result = evaluator.result(make_record(False, True), rounds_played=1, cancelled=True)
        assert isinstance(result, FightResult)
        assert result.winner is Side.LHS
        assert result.to_dict() == {
            "outcome": "attacker_victory",
            "label": "Attacker Wins",
            "winner": "lhs",
            "reason": "Defender fleet destroyed",
            "rounds_played": 1,
            "cancelled": True,
        }


class TestConsistency:
    """Tests for checking reconstruction against the flags."""

    def test_consistent(self, evaluator, ship_types):
        record = make_record(False, True)
        fleets = FleetState.from_record(record, ship_types)
        for type_index in range(4):
            fleets.apply_damage(Side.RHS, type_index, 1000)
        assert evaluator.check_consistency(record, fleets)

    def test_mismatch_logged(self, evaluator, ship_types, caplog):
        """A mismatch is reported but the flags stay authoritative."""
        record = make_record(True, False)
        fleets = FleetState.from_record(record, ship_types)

        with caplog.at_level(logging.WARNING, logger="fleet_replay.outcome"):
            assert not evaluator.check_consistency(record, fleets)
        assert "lhs_dead=True" in caplog.text
        assert evaluator.evaluate(record)[0] is Outcome.DEFENDER_VICTORY

    def test_empty_defender(self, evaluator, ship_types):
        """An empty defending fleet never flags the attacker dead."""
        record = FightRecord(
            seed=5,
            selection_lhs=(0, 0, 0, 0),
            selection_rhs=(0, 0, 0, 0),
            variants_lhs=(0, 0, 0, 0),
            variants_rhs=(0, 0, 0, 0),
            commander_lhs=0,
            commander_rhs=0,
            rounds=0,
            lhs_dead=False,
            rhs_dead=True,
        )
        fleets = FleetState.from_record(record, ship_types)
        assert evaluator.check_consistency(record, fleets)


class TestShipsLost:
    """Tests for per-type loss counts."""

    def test_ships_lost(self, ship_types):
        assert ships_lost((3, 3, 3, 3), (239, 450, 0, 451), ship_types) == (1, 0, 3, 1)

    def test_negative_pools_count_as_empty(self, ship_types):
        assert ships_lost((2, 0, 0, 0), (-500, 0, 0, 0), ship_types) == (2, 0, 0, 0)
