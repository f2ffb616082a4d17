"""
Playback Controller - paces a fight replay for presentation.

Rounds are resolved one at a time and presented ship index by ship index:
the left and right moves of one index play together, and the next index
starts once both have finished. The controller waits for the whole round
before the next one starts. Cancellation is cooperative and only
honoured at round boundaries; a cancelled playback still reports the
authoritative outcome of the record.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence, runtime_checkable

from .config import PlaybackConfig
from .fight_record import FightRecord, Move, Side
from .outcome import FightResult, Outcome, OutcomeEvaluator
from .resolver import PlaybackState, ResolvedMove, ResolverState, RoundResolution, RoundResolver
from .ships import ShipType
from .slots import Slot

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation signal passed into a playback session."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@runtime_checkable
class PlaybackListener(Protocol):
    """
    Ordered callback stream consumed by a presentation layer.

    Ship instances are identified by (side, ship type, ordinal); the
    listener keeps its own table of visuals keyed on that triple.
    """

    def on_round_start(self, round_index: int) -> None: ...

    def on_move_resolved(self, side: Side, move: Move, slot: Slot) -> None: ...

    def on_damage_applied(self, side: Side, ship_type: int, remaining_pool: int) -> None: ...

    def on_ship_destroyed(self, side: Side, ship_type: int, ordinal: int) -> None: ...

    def on_outcome(self, result: FightResult) -> None: ...


class BasePlaybackListener:
    """Listener that ignores every callback. Subclass and override what you need."""

    def on_round_start(self, round_index: int) -> None:
        pass

    def on_move_resolved(self, side: Side, move: Move, slot: Slot) -> None:
        pass

    def on_damage_applied(self, side: Side, ship_type: int, remaining_pool: int) -> None:
        pass

    def on_ship_destroyed(self, side: Side, ship_type: int, ordinal: int) -> None:
        pass

    def on_outcome(self, result: FightResult) -> None:
        pass


class ListenerGroup(BasePlaybackListener):
    """Forwards every callback to several listeners, in order."""

    def __init__(self, *listeners: PlaybackListener):
        self.listeners = list(listeners)

    def on_round_start(self, round_index: int) -> None:
        for listener in self.listeners:
            listener.on_round_start(round_index)

    def on_move_resolved(self, side: Side, move: Move, slot: Slot) -> None:
        for listener in self.listeners:
            listener.on_move_resolved(side, move, slot)

    def on_damage_applied(self, side: Side, ship_type: int, remaining_pool: int) -> None:
        for listener in self.listeners:
            listener.on_damage_applied(side, ship_type, remaining_pool)

    def on_ship_destroyed(self, side: Side, ship_type: int, ordinal: int) -> None:
        for listener in self.listeners:
            listener.on_ship_destroyed(side, ship_type, ordinal)

    def on_outcome(self, result: FightResult) -> None:
        for listener in self.listeners:
            listener.on_outcome(result)


class CombatLogListener(BasePlaybackListener):
    """
    Builds the human-readable combat log.

    Args:
        ship_types: Ship table used to name ship groups.
        echo: Print each line as it is produced.
    """

    def __init__(self, ship_types: Sequence[ShipType], echo: bool = False):
        self.ship_types = tuple(ship_types)
        self.echo = echo
        self.lines: list[str] = []

    def _emit(self, line: str) -> None:
        self.lines.append(line)
        if self.echo:
            print(line)

    def on_round_start(self, round_index: int) -> None:
        self._emit(f"Round {round_index + 1} begins.")

    def on_move_resolved(self, side: Side, move: Move, slot: Slot) -> None:
        if not move.is_attack:
            return
        source = self.ship_types[move.source].name
        target = self.ship_types[move.target].name
        self._emit(f"[{side.label}] {source} hits {target} for {move.damage} damage.")

    def on_outcome(self, result: FightResult) -> None:
        self._emit(result.label)


@dataclass
class PlaybackResult:
    """
    Summary of one playback session.

    Attributes:
        result: Authoritative result as reported to the listener.
        trace: (round, side, ships remaining per type) for every played round.
        final_state: Fleet and slot state when playback stopped.
        consistent: Whether the reconstruction matched the flags; None
            when playback stopped before the fight was fully resolved.
    """
    result: FightResult
    trace: list[tuple[int, Side, tuple[int, ...]]] = field(default_factory=list)
    final_state: Optional[PlaybackState] = None
    consistent: Optional[bool] = None

    @property
    def outcome(self) -> Outcome:
        return self.result.outcome

    @property
    def cancelled(self) -> bool:
        return self.result.cancelled

    @property
    def rounds_played(self) -> int:
        return self.result.rounds_played


class PlaybackController:
    """
    Drives a RoundResolver and paces the callback stream.

    Each session gets its own resolver and PlaybackState, so one
    controller may play several records concurrently.
    """

    def __init__(
        self,
        ship_types: Sequence[ShipType],
        config: Optional[PlaybackConfig] = None,
        evaluator: Optional[OutcomeEvaluator] = None,
    ):
        self.ship_types = tuple(ship_types)
        self.config = config or PlaybackConfig()
        self.evaluator = evaluator or OutcomeEvaluator()

    async def play(
        self,
        record: FightRecord,
        listener: Optional[PlaybackListener] = None,
        token: Optional[CancellationToken] = None,
    ) -> PlaybackResult:
        """
        Play a fight record to completion or cancellation.

        Args:
            record: Authoritative fight record.
            listener: Receiver of the callback stream.
            token: Cancellation token, checked before every round.

        Returns:
            PlaybackResult with the authoritative outcome.

        Raises:
            ResolutionError: If the record contains an invalid move. No
                outcome is reported in that case.
        """
        listener = listener or BasePlaybackListener()
        token = token or CancellationToken()

        resolver = RoundResolver(record, self.ship_types, short_circuit=self.config.short_circuit)
        playback = resolver.start()
        logger.info("Playback started: seed %d, %d rounds", record.seed, record.rounds)

        trace = []
        while resolver.state is ResolverState.ROUND_IN_PROGRESS:
            if token.cancelled:
                resolver.interrupt()
                break
            resolution = resolver.resolve_round()
            listener.on_round_start(resolution.round)
            await self._present_round(resolution, listener)
            trace.extend(resolution.snapshot())

        cancelled = resolver.state is ResolverState.INTERRUPTED
        consistent = None
        if resolver.state is ResolverState.FINISHED:
            consistent = self.evaluator.check_consistency(record, playback.fleets)

        result = self.evaluator.result(record, resolver.current_round, cancelled=cancelled)
        listener.on_outcome(result)
        logger.info(
            "Playback %s after %d rounds: %s",
            "cancelled" if cancelled else "finished", result.rounds_played, result.label,
        )

        return PlaybackResult(
            result=result,
            trace=trace,
            final_state=playback,
            consistent=consistent,
        )

    async def _present_round(self, resolution: RoundResolution, listener: PlaybackListener) -> None:
        by_source: dict[int, list[ResolvedMove]] = defaultdict(list)
        for entry in resolution.entries:
            by_source[entry.move.source].append(entry)

        for source in sorted(by_source):
            tasks = [
                asyncio.create_task(self._present_move(entry, listener))
                for entry in by_source[source]
            ]
            await asyncio.gather(*tasks)

    async def _present_move(self, entry: ResolvedMove, listener: PlaybackListener) -> None:
        if entry.presented:
            listener.on_move_resolved(entry.side, entry.move, entry.slot)
            await asyncio.sleep(self.config.move_duration_s)

        if not entry.move.is_attack:
            return

        listener.on_damage_applied(entry.target_side, entry.move.target, entry.remaining_pool)
        for ref in entry.destroyed:
            listener.on_ship_destroyed(ref.side, ref.type_index, ref.ordinal)
        await asyncio.sleep(self.config.attack_hold_s)
