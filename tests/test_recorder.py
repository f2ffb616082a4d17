"""
Unit tests for the playback recorder.

Run with: python -m pytest tests/test_recorder.py -v
"""

import asyncio
import json
from datetime import datetime

import pytest

from fleet_replay.config import PlaybackConfig
from fleet_replay.fight_record import FightRecord, Move, MoveType
from fleet_replay.normalizer import decode_fight_record
from fleet_replay.playback import CancellationToken, PlaybackController
from fleet_replay.recorder import (
    EventType,
    PlaybackRecorder,
    ReplayRecording,
    create_replay_filename,
)
from fleet_replay.ships import load_ship_types


# Fixtures

@pytest.fixture
def ship_types():
    return load_ship_types()


@pytest.fixture
def controller(ship_types) -> PlaybackController:
    return PlaybackController(ship_types, PlaybackConfig.instant())


@pytest.fixture
def duel_record() -> FightRecord:
    """Two Hunters against one Luminaris; both fleets die in round 1."""
    return FightRecord(
        seed=99,
        selection_lhs=(2, 0, 0, 0),
        selection_rhs=(0, 0, 0, 1),
        variants_lhs=(0, 0, 0, 0),
        variants_rhs=(0, 0, 0, 0),
        commander_lhs=0,
        commander_rhs=0,
        rounds=2,
        lhs_moves=(
            Move(round=0, move_type=MoveType.MOVE, source=0, target_position=6),
            Move(round=1, move_type=MoveType.ATTACK, source=0, target=3, target_position=2, damage=500),
        ),
        rhs_moves=(
            Move(round=0, move_type=MoveType.ATTACK, source=3, target=0, target_position=-13, damage=130),
            Move(round=1, move_type=MoveType.ATTACK, source=3, target=0, target_position=-13, damage=200),
        ),
        lhs_dead=True,
        rhs_dead=True,
    )


def record_playback(controller, record, token=None) -> PlaybackRecorder:
    recorder = PlaybackRecorder()
    recorder.start_recording(record, recorded_at=datetime(2024, 3, 1, 12, 0, 0))
    asyncio.run(controller.play(record, recorder, token))
    return recorder


class TestRecording:
    """Tests for captured events and metadata."""

    def test_metadata(self, controller, duel_record):
        recording = record_playback(controller, duel_record).get_recording()

        assert recording.recorded_at == "2024-03-01T12:00:00"
        assert recording.seed == 99
        assert recording.selection_lhs == [2, 0, 0, 0]
        assert recording.rounds == 2
        assert recording.lhs_dead and recording.rhs_dead
        assert recording.outcome == "defender_victory"
        assert recording.rounds_played == 2
        assert recording.cancelled is False

    def test_event_stream(self, controller, duel_record):
        recording = record_playback(controller, duel_record).get_recording()
        events = recording.events

        assert [e["sequence"] for e in events] == list(range(len(events)))
        assert events[0] == {
            "sequence": 0,
            "event_type": "round_start",
            "round": 0,
            "side": None,
            "data": {},
        }
        assert events[1]["event_type"] == EventType.MOVE_RESOLVED.value
        assert events[1]["side"] == "lhs"
        assert (events[1]["data"]["lane"], events[1]["data"]["row"]) == (6, 0)
        assert events[-1]["event_type"] == "outcome"
        assert events[-1]["data"]["label"] == "Defender Wins"

    def test_destroyed_ships_recorded(self, controller, duel_record):
        events = record_playback(controller, duel_record).get_recording().events
        destroyed = [
            (e["side"], e["data"]["ship_type"], e["data"]["ordinal"])
            for e in events if e["event_type"] == "ship_destroyed"
        ]
        assert sorted(destroyed) == [("lhs", 0, 0), ("lhs", 0, 1), ("rhs", 3, 0)]

    def test_identical_recordings(self, controller, duel_record):
        first = record_playback(controller, duel_record).get_recording()
        second = record_playback(controller, duel_record).get_recording()
        assert first.events == second.events

    def test_stops_after_outcome(self, controller, duel_record):
        recorder = record_playback(controller, duel_record)
        assert not recorder.is_recording
        count = len(recorder.events)
        recorder.on_round_start(7)
        assert len(recorder.events) == count

    def test_not_recording_until_started(self):
        recorder = PlaybackRecorder()
        recorder.on_round_start(0)
        assert recorder.events == []

    def test_cancelled(self, controller, duel_record):
        token = CancellationToken()
        token.cancel()
        recording = record_playback(controller, duel_record, token).get_recording()

        assert recording.cancelled is True
        assert recording.rounds_played == 0
        assert [e["event_type"] for e in recording.events] == ["outcome"]

    def test_embedded_record_replays(self, controller, duel_record):
        recording = record_playback(controller, duel_record).get_recording()
        assert decode_fight_record(recording.fight_record, 4) == duel_record


class TestSave:
    """Tests for writing recordings to disk."""

    def test_save(self, controller, duel_record, tmp_path):
        recorder = record_playback(controller, duel_record)
        path = recorder.save(str(tmp_path / "nested" / "replay.json"))

        with open(path) as f:
            data = json.load(f)

        assert data["recording_version"] == "1.0"
        assert data["outcome"] == "defender_victory"
        assert len(data["events"]) == len(recorder.events)

    def test_empty_recording_to_json(self):
        data = json.loads(ReplayRecording().to_json())
        assert data["events"] == []
        assert data["outcome"] is None

    def test_filename(self):
        name = create_replay_filename(1337, datetime(2024, 3, 1, 9, 5, 7))
        assert name == "replay_1337_20240301_090507.json"

    def test_filename_default_timestamp(self):
        name = create_replay_filename(5)
        assert name.startswith("replay_5_")
        assert name.endswith(".json")
