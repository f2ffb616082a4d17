"""
Round Resolver - steps a fight record through its rounds.

State machine:

    NOT_STARTED -> ROUND_IN_PROGRESS(r) -> FINISHED
                          |
                          +-> INTERRUPTED (at a round boundary)
                          +-> ABORTED (ResolutionError)

Each round applies every left-side move (ascending ship type) and then
every right-side move (ascending ship type) to the fleet state. Damage
values come precomputed from the simulator and are never recomputed
here; the rebuilt pools only drive presentation.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from .errors import ResolutionError
from .fight_record import FightRecord, Move, MoveType, ShipRef, Side
from .fleet_state import FleetState
from .ships import ShipType
from .slots import Slot, SlotAllocator

logger = logging.getLogger(__name__)


class ResolverState(Enum):
    """Lifecycle of a RoundResolver."""
    NOT_STARTED = "not_started"
    ROUND_IN_PROGRESS = "round_in_progress"
    FINISHED = "finished"
    INTERRUPTED = "interrupted"
    ABORTED = "aborted"


@dataclass
class PlaybackState:
    """
    Ephemeral state of one replay session.

    Created when playback starts and discarded when it ends; never shared
    between sessions.
    """
    fleets: FleetState
    slots: SlotAllocator
    current_round: int = 0

    @property
    def slot_occupancy(self) -> dict[int, set[int]]:
        return self.slots.slot_occupancy


@dataclass(frozen=True)
class RoundMoves:
    """
    Moves of one round, one optional entry per ship type and side.

    Index i holds the move originated by ship type i, or None when that
    group does nothing this round.
    """
    round: int
    lhs: tuple[Optional[Move], ...]
    rhs: tuple[Optional[Move], ...]

    def for_side(self, side: Side) -> tuple[Optional[Move], ...]:
        return self.lhs if side is Side.LHS else self.rhs


@dataclass(frozen=True)
class ResolvedMove:
    """
    One applied move, in application order.

    Attributes:
        side: Side that originated the move.
        move: The move as recorded.
        slot: Slot the acting group ends in (None when not presented).
        presented: False when the acting group had no units left; its
            damage is still applied.
        remaining_pool: Target pool after the damage (attacks only).
        destroyed: Units of the target group lost to this move.
    """
    side: Side
    move: Move
    slot: Optional[Slot]
    presented: bool
    remaining_pool: Optional[int] = None
    destroyed: tuple[ShipRef, ...] = ()

    @property
    def target_side(self) -> Side:
        return self.side.opponent


@dataclass(frozen=True)
class RoundResolution:
    """Result of resolving one round."""
    round: int
    entries: tuple[ResolvedMove, ...]
    remaining: dict[Side, tuple[int, ...]] = field(default_factory=dict)

    def snapshot(self) -> tuple[tuple[int, Side, tuple[int, ...]], ...]:
        """(round, side, ships remaining per type) for both sides."""
        return tuple((self.round, side, self.remaining[side]) for side in (Side.LHS, Side.RHS))


def build_round_table(moves_lhs: Sequence[Move], moves_rhs: Sequence[Move],
                      round_index: int, ship_count: int) -> RoundMoves:
    """
    Index a round's moves by originating ship type.

    Idle moves are dropped.

    Raises:
        ResolutionError: If a move names a ship type outside
            [0, ship_count), or a side has two moves for one ship type.
    """
    tables: dict[Side, list[Optional[Move]]] = {}
    for side, moves in ((Side.LHS, moves_lhs), (Side.RHS, moves_rhs)):
        table: list[Optional[Move]] = [None] * ship_count
        for move in moves:
            if move.round != round_index:
                continue
            for label, index in (("source", move.source), ("target", move.target)):
                if not 0 <= index < ship_count:
                    raise ResolutionError(
                        f"Round {round_index} {side.value} move {label} {index} "
                        f"outside [0, {ship_count})"
                    )
            if move.move_type == MoveType.IDLE:
                continue
            if table[move.source] is not None:
                raise ResolutionError(
                    f"Round {round_index} has two {side.value} moves for ship type {move.source}"
                )
            table[move.source] = move
        tables[side] = table

    return RoundMoves(round=round_index, lhs=tuple(tables[Side.LHS]), rhs=tuple(tables[Side.RHS]))


class RoundResolver:
    """
    Replays a FightRecord round by round against a fresh PlaybackState.

    Usage:
        resolver = RoundResolver(record, ship_types)
        resolver.start()
        while not resolver.is_done:
            resolution = resolver.resolve_round()
    """

    def __init__(
        self,
        record: FightRecord,
        ship_types: Sequence[ShipType],
        short_circuit: bool = True,
    ):
        self.record = record
        self.ship_types = tuple(ship_types)
        self.short_circuit = short_circuit
        self.state = ResolverState.NOT_STARTED
        self.playback: Optional[PlaybackState] = None

        self._moves_by_round: dict[Side, dict[int, list[Move]]] = {}
        for side in (Side.LHS, Side.RHS):
            by_round: dict[int, list[Move]] = defaultdict(list)
            for move in record.moves(side):
                by_round[move.round].append(move)
            self._moves_by_round[side] = by_round

            late = sum(len(moves) for r, moves in by_round.items() if r >= record.rounds)
            if late:
                logger.warning(
                    "%d %s moves fall at or beyond round %d and will not be played",
                    late, side.value, record.rounds,
                )

    @property
    def current_round(self) -> int:
        return self.playback.current_round if self.playback else 0

    @property
    def is_done(self) -> bool:
        return self.state in (
            ResolverState.FINISHED, ResolverState.INTERRUPTED, ResolverState.ABORTED
        )

    @property
    def fleets(self) -> FleetState:
        if self.playback is None:
            raise RuntimeError("Resolver has not been started")
        return self.playback.fleets

    def start(self) -> PlaybackState:
        """Create the session state and enter round 0."""
        if self.state is not ResolverState.NOT_STARTED:
            raise RuntimeError(f"Cannot start resolver in state {self.state.value}")

        fleets = FleetState.from_record(self.record, self.ship_types)
        slots = SlotAllocator()
        slots.place_fleets(self.record.selection_lhs, self.record.selection_rhs)
        self.playback = PlaybackState(fleets=fleets, slots=slots)

        self.state = ResolverState.ROUND_IN_PROGRESS
        if self.record.rounds <= 0:
            self.state = ResolverState.FINISHED
        return self.playback

    def interrupt(self) -> None:
        """Stop at the current round boundary."""
        if self.state is not ResolverState.ROUND_IN_PROGRESS:
            raise RuntimeError(f"Cannot interrupt resolver in state {self.state.value}")
        self.state = ResolverState.INTERRUPTED

    def round_moves(self, round_index: int) -> RoundMoves:
        return build_round_table(
            self._moves_by_round[Side.LHS].get(round_index, []),
            self._moves_by_round[Side.RHS].get(round_index, []),
            round_index,
            len(self.ship_types),
        )

    def resolve_round(self) -> RoundResolution:
        """
        Apply every move of the current round and advance.

        Returns:
            The applied moves in order and the ships remaining afterwards.

        Raises:
            ResolutionError: If a move is invalid. The resolver is aborted
                and no state from this session should be presented.
            RuntimeError: If no round is in progress.
        """
        if self.state is not ResolverState.ROUND_IN_PROGRESS:
            raise RuntimeError(f"Cannot resolve a round in state {self.state.value}")

        round_index = self.playback.current_round
        try:
            table = self.round_moves(round_index)
        except ResolutionError:
            self.state = ResolverState.ABORTED
            raise

        entries = []
        for side in (Side.LHS, Side.RHS):
            for move in table.for_side(side):
                if move is not None:
                    entries.append(self._apply(side, move))

        fleets = self.playback.fleets
        resolution = RoundResolution(
            round=round_index,
            entries=tuple(entries),
            remaining={
                Side.LHS: fleets.ships_remaining_all(Side.LHS),
                Side.RHS: fleets.ships_remaining_all(Side.RHS),
            },
        )
        logger.debug(
            "Round %d resolved: lhs=%s rhs=%s",
            round_index, resolution.remaining[Side.LHS], resolution.remaining[Side.RHS],
        )

        self.playback.current_round = round_index + 1
        wiped = fleets.is_wiped(Side.LHS) or fleets.is_wiped(Side.RHS)
        if self.playback.current_round >= self.record.rounds or (self.short_circuit and wiped):
            self.state = ResolverState.FINISHED

        return resolution

    def _apply(self, side: Side, move: Move) -> ResolvedMove:
        fleets = self.playback.fleets
        slots = self.playback.slots

        presented = fleets.ships_remaining(side, move.source) > 0
        slot = slots.assign((side, move.source), move.target_position) if presented else None

        if not move.is_attack:
            return ResolvedMove(side=side, move=move, slot=slot, presented=presented)

        target_side = side.opponent
        before = fleets.ships_remaining(target_side, move.target)
        remaining_pool = fleets.apply_damage(target_side, move.target, move.damage)
        after = fleets.ships_remaining(target_side, move.target)

        first_lost = fleets.initial_count(target_side, move.target) - before
        destroyed = tuple(
            ShipRef(target_side, move.target, first_lost + k) for k in range(before - after)
        )
        if before > 0 and after == 0:
            slots.release((target_side, move.target))

        return ResolvedMove(
            side=side,
            move=move,
            slot=slot,
            presented=presented,
            remaining_pool=remaining_pool,
            destroyed=destroyed,
        )

    def run(self) -> list[RoundResolution]:
        """Start (if needed) and resolve every remaining round."""
        if self.state is ResolverState.NOT_STARTED:
            self.start()
        resolutions = []
        while self.state is ResolverState.ROUND_IN_PROGRESS:
            resolutions.append(self.resolve_round())
        return resolutions


def replay_trace(record: FightRecord, ship_types: Sequence[ShipType]) -> list[tuple[int, Side, tuple[int, ...]]]:
    """
    Fully resolve a record without presentation.

    Returns:
        Ordered (round, side, ships remaining per type) tuples.
    """
    resolver = RoundResolver(record, ship_types)
    trace = []
    for resolution in resolver.run():
        trace.extend(resolution.snapshot())
    return trace
