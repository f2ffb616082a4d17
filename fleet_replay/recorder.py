"""
Playback Recorder - Records the playback callback stream to a JSON file.

Captures:
- Round starts
- Every presented move with its slot
- Damage applied to each ship group and its remaining pool
- Every destroyed ship instance
- The authoritative outcome and recording metadata

Events carry a sequence number instead of a timestamp, so two recordings
of the same fight record contain identical event lists.
"""

import json
from dataclasses import dataclass, field, asdict
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, List, Optional
from enum import Enum

from .fight_record import FightRecord, Move, Side
from .normalizer import encode_fight_record
from .outcome import FightResult
from .playback import BasePlaybackListener
from .slots import Slot


class EventType(str, Enum):
    """Types of playback events."""
    ROUND_START = "round_start"
    MOVE_RESOLVED = "move_resolved"
    DAMAGE_APPLIED = "damage_applied"
    SHIP_DESTROYED = "ship_destroyed"
    OUTCOME = "outcome"


@dataclass
class ReplayEvent:
    """A single recorded playback event."""
    sequence: int
    event_type: str
    round: int
    side: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence": self.sequence,
            "event_type": self.event_type,
            "round": self.round,
            "side": self.side,
            "data": self.data,
        }


@dataclass
class ReplayRecording:
    """Complete recording of one playback session."""
    # Metadata
    recording_version: str = "1.0"
    recorded_at: str = ""

    # Fight
    seed: int = 0
    selection_lhs: List[int] = field(default_factory=list)
    selection_rhs: List[int] = field(default_factory=list)
    variants_lhs: List[int] = field(default_factory=list)
    variants_rhs: List[int] = field(default_factory=list)
    commander_lhs: int = 0
    commander_rhs: int = 0
    rounds: int = 0
    lhs_dead: bool = False
    rhs_dead: bool = False

    # Wire-format record, so the file can be replayed again
    fight_record: Dict[str, Any] = field(default_factory=dict)

    events: List[Dict[str, Any]] = field(default_factory=list)

    # Result
    outcome: Optional[str] = None
    rounds_played: int = 0
    cancelled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


class PlaybackRecorder(BasePlaybackListener):
    """
    Playback listener that records every callback.

    Usage:
        recorder = PlaybackRecorder()
        recorder.start_recording(record)
        await controller.play(record, listener=recorder)
        recorder.save("data/recordings/replay.json")
    """

    def __init__(self):
        self.recording = ReplayRecording()
        self.events: List[ReplayEvent] = []
        self._round = 0
        self._is_recording = False

    @property
    def is_recording(self) -> bool:
        return self._is_recording

    def start_recording(self, record: FightRecord, recorded_at: Optional[datetime] = None) -> None:
        """Initialize recording metadata from a fight record."""
        recorded_at = recorded_at or datetime.now()
        self.recording = ReplayRecording(
            recorded_at=recorded_at.isoformat(),
            seed=record.seed,
            selection_lhs=list(record.selection_lhs),
            selection_rhs=list(record.selection_rhs),
            variants_lhs=list(record.variants_lhs),
            variants_rhs=list(record.variants_rhs),
            commander_lhs=record.commander_lhs,
            commander_rhs=record.commander_rhs,
            rounds=record.rounds,
            lhs_dead=record.lhs_dead,
            rhs_dead=record.rhs_dead,
            fight_record=encode_fight_record(record),
        )
        self.events = []
        self._round = 0
        self._is_recording = True

    def _record_event(self, event_type: EventType, side: Optional[Side] = None, **data: Any) -> None:
        if not self._is_recording:
            return
        self.events.append(ReplayEvent(
            sequence=len(self.events),
            event_type=event_type.value,
            round=self._round,
            side=side.value if side else None,
            data=data,
        ))

    def on_round_start(self, round_index: int) -> None:
        self._round = round_index
        self._record_event(EventType.ROUND_START)

    def on_move_resolved(self, side: Side, move: Move, slot: Slot) -> None:
        self._record_event(
            EventType.MOVE_RESOLVED,
            side,
            move=move.to_dict(),
            lane=slot.lane,
            row=slot.row,
        )

    def on_damage_applied(self, side: Side, ship_type: int, remaining_pool: int) -> None:
        self._record_event(
            EventType.DAMAGE_APPLIED,
            side,
            ship_type=ship_type,
            remaining_pool=remaining_pool,
        )

    def on_ship_destroyed(self, side: Side, ship_type: int, ordinal: int) -> None:
        self._record_event(
            EventType.SHIP_DESTROYED,
            side,
            ship_type=ship_type,
            ordinal=ordinal,
        )

    def on_outcome(self, result: FightResult) -> None:
        """Record the outcome and finalize the recording."""
        self._record_event(EventType.OUTCOME, **result.to_dict())

        self.recording.outcome = result.outcome.value
        self.recording.rounds_played = result.rounds_played
        self.recording.cancelled = result.cancelled
        self.recording.events = [e.to_dict() for e in self.events]

        self._is_recording = False

    def save(self, filepath: str) -> str:
        """Save recording to JSON file."""
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            f.write(self.recording.to_json())

        return str(path)

    def get_recording(self) -> ReplayRecording:
        """Get the current recording."""
        return self.recording


def create_replay_filename(seed: int, timestamp: Optional[datetime] = None) -> str:
    """Generate a filename for a replay recording."""
    if timestamp is None:
        timestamp = datetime.now()

    date_str = timestamp.strftime("%Y%m%d_%H%M%S")

    return f"replay_{seed}_{date_str}.json"
