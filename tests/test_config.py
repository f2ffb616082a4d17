"""
Unit tests for replay configuration.

Run with: python -m pytest tests/test_config.py -v
"""

import json

import pytest

from fleet_replay.config import PlaybackConfig, ReplayConfig, env_gateway_timeout


class TestPlaybackConfig:
    """Tests for playback pacing."""

    def test_defaults(self):
        config = PlaybackConfig()
        assert config.move_duration_s == 1.0
        assert config.attack_hold_s == 0.5
        assert config.beam_duration_s == 0.5
        assert config.short_circuit is True

    def test_instant(self):
        config = PlaybackConfig.instant()
        assert (config.move_duration_s, config.attack_hold_s, config.beam_duration_s) == (0.0, 0.0, 0.0)

    def test_from_dict(self):
        config = PlaybackConfig.from_dict({"move_duration_s": 0.25, "short_circuit": False})
        assert config.move_duration_s == 0.25
        assert config.attack_hold_s == 0.5
        assert config.short_circuit is False

    def test_negative_duration(self):
        with pytest.raises(ValueError, match="attack_hold_s"):
            PlaybackConfig.from_dict({"attack_hold_s": -1})


class TestReplayConfig:
    """Tests for top-level configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("FLEET_REPLAY_GATEWAY_URL", raising=False)
        monkeypatch.delenv("FLEET_REPLAY_GATEWAY_TIMEOUT", raising=False)
        config = ReplayConfig()

        assert config.ship_data_path is None
        assert config.gateway_url is None
        assert config.gateway_timeout_s == 60.0
        assert config.recording_dir == "data/recordings"
        assert config.enforce_cp_cap is True
        assert config.attack_seed == 1234567
        assert config.playback == PlaybackConfig()

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("FLEET_REPLAY_GATEWAY_URL", "http://gateway.test")
        monkeypatch.setenv("FLEET_REPLAY_GATEWAY_TIMEOUT", "5")
        config = ReplayConfig()

        assert config.gateway_url == "http://gateway.test"
        assert config.gateway_timeout_s == 5.0

    def test_bad_timeout(self, monkeypatch):
        monkeypatch.setenv("FLEET_REPLAY_GATEWAY_TIMEOUT", "soon")
        with pytest.raises(ValueError, match="FLEET_REPLAY_GATEWAY_TIMEOUT"):
            env_gateway_timeout()

    def test_from_json(self, tmp_path, monkeypatch):
        monkeypatch.delenv("FLEET_REPLAY_GATEWAY_URL", raising=False)
        path = tmp_path / "replay.json"
        path.write_text(json.dumps({
            "recording_dir": str(tmp_path / "recordings"),
            "record_playback": True,
            "attack_seed": 42,
            "playback": {"move_duration_s": 0.1, "attack_hold_s": 0.05},
            "unknown_key": "ignored",
        }))

        config = ReplayConfig.from_json(str(path))

        assert config.record_playback is True
        assert config.attack_seed == 42
        assert config.playback.move_duration_s == 0.1
        assert config.playback.attack_hold_s == 0.05
        assert config.gateway_url is None

    def test_file_overrides_env_url(self, monkeypatch):
        monkeypatch.setenv("FLEET_REPLAY_GATEWAY_URL", "http://env.test")
        config = ReplayConfig.from_dict({"gateway_url": "http://file.test"})
        assert config.gateway_url == "http://file.test"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Replay config not found"):
            ReplayConfig.from_json(str(tmp_path / "missing.json"))
