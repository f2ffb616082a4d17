"""
Fleet Replay - deterministic playback of precomputed fleet fights.

Takes an authoritative fight record, rebuilds both fleets round by round,
assigns collision-free presentation slots and reports the outcome
carried by the record.
"""

from .errors import (
    FleetReplayError,
    DecodeError,
    ResolutionError,
    CPLimitError,
    DefenceNotFoundError,
    GatewayError,
)
from .ships import (
    ShipType,
    load_ship_types,
    fleet_cp,
    remaining_cp,
    ensure_within_cp,
    TRAINING_SELECTION,
    DEFAULT_VARIANTS,
)
from .fight_record import Side, MoveType, Move, FightRecord, ShipRef
from .normalizer import decode_fight_record, encode_fight_record
from .fleet_state import FleetState
from .slots import Slot, SlotAllocator
from .resolver import RoundResolver, ResolverState, PlaybackState, replay_trace
from .outcome import Outcome, OutcomeEvaluator, FightResult
from .config import PlaybackConfig, ReplayConfig
from .playback import (
    PlaybackController,
    PlaybackListener,
    BasePlaybackListener,
    CombatLogListener,
    ListenerGroup,
    CancellationToken,
    PlaybackResult,
)
from .recorder import PlaybackRecorder, create_replay_filename

__all__ = [
    # Errors
    "FleetReplayError",
    "DecodeError",
    "ResolutionError",
    "CPLimitError",
    "DefenceNotFoundError",
    "GatewayError",
    # Ships
    "ShipType",
    "load_ship_types",
    "fleet_cp",
    "remaining_cp",
    "ensure_within_cp",
    "TRAINING_SELECTION",
    "DEFAULT_VARIANTS",
    # Fight records
    "Side",
    "MoveType",
    "Move",
    "FightRecord",
    "ShipRef",
    "decode_fight_record",
    "encode_fight_record",
    # Replay engine
    "FleetState",
    "Slot",
    "SlotAllocator",
    "RoundResolver",
    "ResolverState",
    "PlaybackState",
    "replay_trace",
    "Outcome",
    "OutcomeEvaluator",
    "FightResult",
    # Playback
    "PlaybackConfig",
    "ReplayConfig",
    "PlaybackController",
    "PlaybackListener",
    "BasePlaybackListener",
    "CombatLogListener",
    "ListenerGroup",
    "CancellationToken",
    "PlaybackResult",
    # Recording
    "PlaybackRecorder",
    "create_replay_filename",
]
