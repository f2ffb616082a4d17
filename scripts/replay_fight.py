#!/usr/bin/env python3
"""
Request a fight and play it back to the console.

Usage:
    python scripts/replay_fight.py --fast
    python scripts/replay_fight.py --seed 1337 --lhs 3,3,3,3 --rhs 16,16,16,16
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fleet_replay import (
    BasePlaybackListener,
    CancellationToken,
    CombatLogListener,
    FleetReplayError,
    ListenerGroup,
    PlaybackConfig,
    PlaybackController,
    PlaybackRecorder,
    ReplayConfig,
    create_replay_filename,
    ensure_within_cp,
    fleet_cp,
    load_ship_types,
    TRAINING_SELECTION,
    DEFAULT_VARIANTS,
)
from fleet_replay.service import GatewayFightService, LocalFightService


def parse_counts(text: str) -> tuple:
    """Parse a comma separated list of non-negative integers."""
    try:
        values = tuple(int(part) for part in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected comma separated integers, got {text!r}")
    if any(value < 0 for value in values):
        raise argparse.ArgumentTypeError(f"counts must not be negative: {text!r}")
    if any(value > 255 for value in values):
        raise argparse.ArgumentTypeError(f"counts must not exceed 255: {text!r}")
    return values


def request_fight(service, args):
    """Ask a fight service for the fight described on the command line."""
    return service.replay(
        args.seed,
        args.lhs,
        args.rhs,
        args.variants_lhs,
        args.variants_rhs,
        args.commander_lhs,
        args.commander_rhs,
    )


class CancelAfterRounds(BasePlaybackListener):
    """Cancels playback once a number of rounds has started."""

    def __init__(self, token: CancellationToken, rounds: int):
        self.token = token
        self.rounds = rounds

    def on_round_start(self, round_index: int) -> None:
        if round_index + 1 >= self.rounds:
            self.token.cancel()


def main():
    parser = argparse.ArgumentParser(
        description="Request a fleet fight and replay it round by round",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python scripts/replay_fight.py --fast
    python scripts/replay_fight.py --seed 1337 --lhs 3,3,3,3 --rhs 16,16,16,16
    python scripts/replay_fight.py --variants-lhs 0,1,0,1 --cp-cap --record
    python scripts/replay_fight.py --gateway http://localhost:8080 --cancel-after 3
        """,
    )

    # Fight
    parser.add_argument("--seed", type=int, default=1337, help="Fight seed (default: 1337)")
    parser.add_argument(
        "--lhs",
        type=parse_counts,
        default=TRAINING_SELECTION,
        help="Attacker ship counts per type (default: 35,25,15,10)",
    )
    parser.add_argument(
        "--rhs",
        type=parse_counts,
        default=TRAINING_SELECTION,
        help="Defender ship counts per type (default: 35,25,15,10)",
    )
    parser.add_argument("--variants-lhs", type=parse_counts, default=DEFAULT_VARIANTS,
                        help="Attacker fit variants per type (default: 0,0,0,0)")
    parser.add_argument("--variants-rhs", type=parse_counts, default=DEFAULT_VARIANTS,
                        help="Defender fit variants per type (default: 0,0,0,0)")
    parser.add_argument("--commander-lhs", type=int, default=0, help="Attacker commander")
    parser.add_argument("--commander-rhs", type=int, default=0, help="Defender commander")
    parser.add_argument(
        "--cp-cap",
        action="store_true",
        help="Reject an attacker fleet worth more CP than the defender",
    )

    # Sources
    parser.add_argument("--ship-data", help="Ship table JSON (default: packaged reference table)")
    parser.add_argument(
        "--gateway",
        nargs="?",
        const="",
        default=None,
        metavar="URL",
        help="Request the fight from a remote gateway (URL defaults to FLEET_REPLAY_GATEWAY_URL)",
    )
    parser.add_argument("--config", help="Replay config JSON file")

    # Playback
    parser.add_argument("--fast", action="store_true", help="No presentation delays")
    parser.add_argument(
        "--cancel-after",
        type=int,
        metavar="N",
        help="Cancel playback after N rounds (outcome is still reported)",
    )
    parser.add_argument("--record", action="store_true", help="Save a JSON recording of the playback")

    # Output
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = ReplayConfig.from_json(args.config) if args.config else ReplayConfig()
        if args.ship_data:
            config.ship_data_path = args.ship_data
        if args.fast:
            config.playback = replace(
                PlaybackConfig.instant(), short_circuit=config.playback.short_circuit
            )
        if args.record:
            config.record_playback = True

        ship_types = load_ship_types(config.ship_data_path)

        if args.cp_cap:
            ensure_within_cp(args.lhs, ship_types, fleet_cp(args.rhs, ship_types))

        if args.gateway is not None:
            with GatewayFightService(
                base_url=args.gateway or config.gateway_url,
                ship_count=len(ship_types),
                timeout=config.gateway_timeout_s,
            ) as gateway:
                record = request_fight(gateway, args)
        else:
            service = LocalFightService(
                ship_types,
                attack_seed=config.attack_seed,
                enforce_cp_cap=config.enforce_cp_cap,
            )
            record = request_fight(service, args)

        print(f"\n{'='*60}")
        print(f"FLEET REPLAY: seed {record.seed}, {record.rounds} rounds")
        print(f"{'='*60}")
        print(f"Attacker: {list(record.selection_lhs)} (CP {fleet_cp(record.selection_lhs, ship_types)})")
        print(f"Defender: {list(record.selection_rhs)} (CP {fleet_cp(record.selection_rhs, ship_types)})")
        print(f"{'='*60}\n")

        token = CancellationToken()
        listeners = [CombatLogListener(ship_types, echo=True)]
        if args.cancel_after is not None:
            listeners.append(CancelAfterRounds(token, args.cancel_after))
        recorder = None
        if config.record_playback:
            recorder = PlaybackRecorder()
            recorder.start_recording(record)
            listeners.append(recorder)

        controller = PlaybackController(ship_types, config.playback)
        playback = asyncio.run(controller.play(record, ListenerGroup(*listeners), token))

        print(f"\n{'='*60}")
        print(f"Result: {playback.result.label} ({playback.result.reason})")
        print(f"Rounds played: {playback.rounds_played}/{record.rounds}"
              f"{' (cancelled)' if playback.cancelled else ''}")
        if record.ships_lost_lhs:
            print(f"Ships lost: attacker {list(record.ships_lost_lhs)}, "
                  f"defender {list(record.ships_lost_rhs)}")
        print(f"{'='*60}")

        if recorder is not None:
            path = Path(config.recording_dir) / create_replay_filename(record.seed)
            print(f"Recording saved to {recorder.save(str(path))}")

        return 0

    except (FleetReplayError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
