"""
Typed fight record produced by the authoritative combat simulator.

A FightRecord is immutable once received. The left side ("lhs") is the
attacker and the right side ("rhs") is the defender.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import NamedTuple


class Side(str, Enum):
    """The two opposing fleets."""
    LHS = "lhs"
    RHS = "rhs"

    @property
    def opponent(self) -> Side:
        return Side.RHS if self is Side.LHS else Side.LHS

    @property
    def label(self) -> str:
        """Role shown to players."""
        return "Attacker" if self is Side.LHS else "Defender"


class MoveType(IntEnum):
    """Move kinds as encoded by the simulator."""
    IDLE = 0
    ATTACK = 1
    MOVE = 2


@dataclass(frozen=True)
class Move:
    """
    A single precomputed action of one ship group in one round.

    Attributes:
        round: Round index, 0-based.
        move_type: Idle, attack or reposition.
        source: Ship type index of the acting group.
        target: Ship type index of the targeted enemy group.
        target_position: Lane the acting group ends the move in (signed).
        damage: Precomputed damage dealt to the target group's HP pool.
    """
    round: int
    move_type: MoveType
    source: int
    target: int = 0
    target_position: int = 0
    damage: int = 0

    @property
    def is_attack(self) -> bool:
        return self.move_type == MoveType.ATTACK

    def to_dict(self) -> dict:
        return {
            "round": self.round,
            "move_type": int(self.move_type),
            "source": self.source,
            "target": self.target,
            "target_position": self.target_position,
            "damage": self.damage,
        }


@dataclass(frozen=True)
class FightRecord:
    """
    Authoritative outcome and move log of one fight.

    Per-type sequences have one entry per ship type. The `lhs_dead` and
    `rhs_dead` flags are the authoritative result; anything rebuilt from
    the move log is for presentation only.
    """
    seed: int
    selection_lhs: tuple[int, ...]
    selection_rhs: tuple[int, ...]
    variants_lhs: tuple[int, ...]
    variants_rhs: tuple[int, ...]
    commander_lhs: int
    commander_rhs: int
    rounds: int
    lhs_moves: tuple[Move, ...] = ()
    rhs_moves: tuple[Move, ...] = ()
    lhs_dead: bool = False
    rhs_dead: bool = False
    ships_lost_lhs: tuple[int, ...] = field(default=())
    ships_lost_rhs: tuple[int, ...] = field(default=())

    def selection(self, side: Side) -> tuple[int, ...]:
        return self.selection_lhs if side is Side.LHS else self.selection_rhs

    def variants(self, side: Side) -> tuple[int, ...]:
        return self.variants_lhs if side is Side.LHS else self.variants_rhs

    def moves(self, side: Side) -> tuple[Move, ...]:
        return self.lhs_moves if side is Side.LHS else self.rhs_moves

    def is_dead(self, side: Side) -> bool:
        return self.lhs_dead if side is Side.LHS else self.rhs_dead


class ShipRef(NamedTuple):
    """
    Arena index of a single ship instance.

    Rendering collaborators key their visuals on this triple instead of
    holding references into the engine.
    """
    side: Side
    type_index: int
    ordinal: int
