"""
Replay configuration.

Durations pace the presentation only; they never change what is replayed.
Gateway settings may also come from the environment (or a .env file):

    FLEET_REPLAY_GATEWAY_URL=http://localhost:8080
    FLEET_REPLAY_GATEWAY_TIMEOUT=60
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

GATEWAY_URL_ENV = "FLEET_REPLAY_GATEWAY_URL"
GATEWAY_TIMEOUT_ENV = "FLEET_REPLAY_GATEWAY_TIMEOUT"


def env_gateway_url() -> Optional[str]:
    return os.getenv(GATEWAY_URL_ENV) or None


def env_gateway_timeout() -> float:
    value = os.getenv(GATEWAY_TIMEOUT_ENV)
    if not value:
        return 60.0
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(f"{GATEWAY_TIMEOUT_ENV} must be a number, got {value!r}") from e


@dataclass
class PlaybackConfig:
    """Pacing of a playback session."""
    move_duration_s: float = 1.0  # Slide to the new lane
    attack_hold_s: float = 0.5  # Minimum hold after each attack
    beam_duration_s: float = 0.5  # Attack beam visibility (informational)
    short_circuit: bool = True  # Stop once a side has no ships left

    @classmethod
    def instant(cls) -> 'PlaybackConfig':
        """No delays at all (tests, --fast)."""
        return cls(move_duration_s=0.0, attack_hold_s=0.0, beam_duration_s=0.0)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlaybackConfig':
        config = cls(
            move_duration_s=float(data.get("move_duration_s", 1.0)),
            attack_hold_s=float(data.get("attack_hold_s", 0.5)),
            beam_duration_s=float(data.get("beam_duration_s", 0.5)),
            short_circuit=bool(data.get("short_circuit", True)),
        )
        for name in ("move_duration_s", "attack_hold_s", "beam_duration_s"):
            if getattr(config, name) < 0:
                raise ValueError(f"{name} must not be negative")
        return config


@dataclass
class ReplayConfig:
    """Top-level configuration for the replay CLI and services."""
    ship_data_path: Optional[str] = None  # None = packaged reference table
    gateway_url: Optional[str] = field(default_factory=env_gateway_url)
    gateway_timeout_s: float = field(default_factory=env_gateway_timeout)
    recording_dir: str = "data/recordings"
    record_playback: bool = False
    enforce_cp_cap: bool = True
    attack_seed: int = 1234567
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)

    @classmethod
    def from_json(cls, path: str) -> 'ReplayConfig':
        """Load configuration from JSON file."""
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Replay config not found: {path}")

        with open(config_path) as f:
            data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReplayConfig':
        """Create configuration from dictionary. Unknown keys are ignored."""
        return cls(
            ship_data_path=data.get("ship_data_path"),
            gateway_url=data.get("gateway_url") or env_gateway_url(),
            gateway_timeout_s=float(data.get("gateway_timeout_s", env_gateway_timeout())),
            recording_dir=data.get("recording_dir", "data/recordings"),
            record_playback=data.get("record_playback", False),
            enforce_cp_cap=data.get("enforce_cp_cap", True),
            attack_seed=int(data.get("attack_seed", 1234567)),
            playback=PlaybackConfig.from_dict(data.get("playback", {})),
        )
