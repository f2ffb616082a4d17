"""
Reference authoritative fight simulator.

Deterministic given a seed and both fleets. Produces the FightRecord that
the replay engine plays back, including every precomputed damage value
and the final lhs_dead / rhs_dead flags.

Arithmetic follows the fixed-width integer rules of the on-chain engine:
stats are u16, damage is u32, positions are i8 and HP pools are i32, all
wrapping on overflow.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..fight_record import FightRecord, Move, MoveType, Side
from ..outcome import ships_lost
from ..ships import ShipType
from ..slots import initial_lane

logger = logging.getLogger(__name__)

MAX_ROUNDS = 50
FIT_TO_STAT = 20  # Stat shift applied by fit variants 1 and 2


def _wrap(value: int, bits: int, signed: bool = False) -> int:
    value &= (1 << bits) - 1
    if signed and value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def _u8(value: int) -> int:
    return _wrap(value, 8)


def _i8(value: int) -> int:
    return _wrap(value, 8, signed=True)


def _u16(value: int) -> int:
    return _wrap(value, 16)


def _u32(value: int) -> int:
    return _wrap(value, 32)


def _i32(value: int) -> int:
    return _wrap(value, 32, signed=True)


def attack_stat(base: int, variant: int) -> int:
    """Attack after the fit variant: 1 = -20, 2 = +20, unknown = 0."""
    if variant == 0:
        return base
    if variant == 1:
        return _u16(base - FIT_TO_STAT)
    if variant == 2:
        return _u16(base + FIT_TO_STAT)
    return 0


def defence_stat(base: int, variant: int) -> int:
    """Defence after the fit variant: 1 = +20, 2 = -20, unknown = 0."""
    if variant == 0:
        return base
    if variant == 1:
        return _u16(base + FIT_TO_STAT)
    if variant == 2:
        return _u16(base - FIT_TO_STAT)
    return 0


def _is_dead(pools: Sequence[int]) -> bool:
    return all(hp <= 0 for hp in pools)


class ReferenceSimulator:
    """
    Resolves a fight between two fleets.

    Args:
        ship_types: Ship table, indexed by ship type.
        max_rounds: Upper bound on rounds fought.
    """

    def __init__(self, ship_types: Sequence[ShipType], max_rounds: int = MAX_ROUNDS):
        self.ship_types = tuple(ship_types)
        self.max_rounds = max_rounds

    @property
    def ship_count(self) -> int:
        return len(self.ship_types)

    def get_target(
        self,
        current: int,
        positions_own: Sequence[int],
        positions_enemy: Sequence[int],
        pools_enemy: Sequence[int],
    ) -> tuple[bool, int, int]:
        """
        Pick the highest-index enemy group within range + speed.

        The liveness check reads the enemy pool at the attacker's own
        index, as the on-chain engine does.

        Returns:
            Tuple of (has_target, target, distance to close)
        """
        ship = self.ship_types[current]
        position = positions_own[current]
        reach = _u8(ship.range + ship.speed)

        for enemy in reversed(range(self.ship_count)):
            delta = _u8(abs(_i8(position - positions_enemy[enemy])))
            if delta <= reach and pools_enemy[current] > 0:
                proposed_move = delta - ship.range if delta > ship.range else 0
                return (True, enemy, proposed_move)

        return (False, self.ship_count, 0)

    def calculate_damage(
        self,
        variables: Sequence[int],
        variants_source: Sequence[int],
        variants_target: Sequence[int],
        source: int,
        target: int,
        source_hp: int,
    ) -> int:
        """
        Damage dealt by one ship group to another.

        The attacking group counts as (source_hp // hp + 1) ships. Damage is
        squared-halved for the adjacent-index matchup and clamped to what
        that many target ships could absorb.
        """
        source_ship = self.ship_types[source]
        target_ship = self.ship_types[target]

        attack = _u16(attack_stat(source_ship.attack_base, variants_source[source]) + variables[source])
        count = _u16(_u32(source_hp) // source_ship.hp + 1)
        cap_damage = _u32(count * target_ship.hp)
        defence = defence_stat(target_ship.defence, variants_target[target])
        damage = _u32(_u16(attack - defence) * count)

        if source - target == 1 or (source == 0 and target == self.ship_count - 1):
            damage = _u32(damage * (damage // 2))

        return min(max(0, _i32(damage)), _i32(cap_damage))

    def fight(
        self,
        seed: int,
        selection_lhs: Sequence[int],
        selection_rhs: Sequence[int],
        variants_lhs: Optional[Sequence[int]] = None,
        variants_rhs: Optional[Sequence[int]] = None,
        commander_lhs: int = 0,
        commander_rhs: int = 0,
        log_moves: bool = True,
    ) -> FightRecord:
        """
        Resolve a fight.

        Args:
            seed: Random seed; drives the per-type attack variables.
            selection_lhs: Attacker ship counts per type.
            selection_rhs: Defender ship counts per type.
            variants_lhs: Attacker fit variants (defaults to all 0).
            variants_rhs: Defender fit variants (defaults to all 0).
            commander_lhs: Attacker commander (recorded, no effect).
            commander_rhs: Defender commander (recorded, no effect).
            log_moves: Record the per-round move log.

        Returns:
            The authoritative FightRecord.
        """
        n = self.ship_count
        variants_lhs = tuple(variants_lhs) if variants_lhs is not None else (0,) * n
        variants_rhs = tuple(variants_rhs) if variants_rhs is not None else (0,) * n
        for name, values in (
            ("selection_lhs", selection_lhs), ("selection_rhs", selection_rhs),
            ("variants_lhs", variants_lhs), ("variants_rhs", variants_rhs),
        ):
            if len(values) != n:
                raise ValueError(f"{name} has {len(values)} entries, expected {n}")

        ships = self.ship_types
        positions_lhs = [initial_lane(Side.LHS, i) for i in range(n)]
        positions_rhs = [initial_lane(Side.RHS, i) for i in range(n)]
        pools_lhs = [_i32(ships[i].hp * selection_lhs[i]) for i in range(n)]
        pools_rhs = [_i32(ships[i].hp * selection_rhs[i]) for i in range(n)]
        variables_lhs = [seed % ships[i].attack_variable for i in range(n)]
        variables_rhs = [(seed // 2) % ships[i].attack_variable for i in range(n)]

        lhs_moves: list[Move] = []
        rhs_moves: list[Move] = []
        total_rounds = 0

        for round_index in range(self.max_rounds):
            if _is_dead(pools_lhs) or _is_dead(pools_rhs):
                break
            total_rounds += 1

            for current in range(n):
                lhs_has_target = False
                lhs_target = 0
                lhs_delta = 0
                lhs_damage = 0
                lhs_dead_ship = pools_lhs[current] <= 0
                rhs_dead_ship = pools_rhs[current] <= 0
                speed = ships[current].speed

                if not lhs_dead_ship:
                    lhs_has_target, lhs_target, lhs_delta = self.get_target(
                        current, positions_lhs, positions_rhs, pools_rhs
                    )
                    if lhs_has_target:
                        lhs_damage = self.calculate_damage(
                            variables_lhs, variants_lhs, variants_rhs,
                            current, lhs_target, pools_lhs[current],
                        )
                        lhs_moves.append(Move(
                            round=round_index,
                            move_type=MoveType.ATTACK,
                            source=current,
                            target=lhs_target,
                            target_position=_i8(positions_lhs[current] - lhs_delta),
                            damage=lhs_damage,
                        ))
                    else:
                        lhs_moves.append(Move(
                            round=round_index,
                            move_type=MoveType.MOVE,
                            source=current,
                            target_position=_i8(positions_lhs[current] - speed),
                        ))

                if not rhs_dead_ship:
                    rhs_has_target, rhs_target, rhs_delta = self.get_target(
                        current, positions_rhs, positions_lhs, pools_lhs
                    )
                    if rhs_has_target:
                        rhs_damage = self.calculate_damage(
                            variables_rhs, variants_rhs, variants_lhs,
                            current, rhs_target, pools_rhs[current],
                        )
                        pools_lhs[rhs_target] = _i32(pools_lhs[rhs_target] - rhs_damage)
                        positions_rhs[current] = _i8(positions_rhs[current] + rhs_delta)
                        rhs_moves.append(Move(
                            round=round_index,
                            move_type=MoveType.ATTACK,
                            source=current,
                            target=rhs_target,
                            target_position=positions_rhs[current],
                            damage=rhs_damage,
                        ))
                    else:
                        positions_rhs[current] = _i8(positions_rhs[current] + speed)
                        rhs_moves.append(Move(
                            round=round_index,
                            move_type=MoveType.MOVE,
                            source=current,
                            target_position=positions_rhs[current],
                        ))

                # Left-side effects land after the right side has acted
                if not lhs_dead_ship:
                    if lhs_has_target:
                        pools_rhs[lhs_target] = _i32(pools_rhs[lhs_target] - lhs_damage)
                        positions_lhs[current] = _i8(positions_lhs[current] - lhs_delta)
                    else:
                        positions_lhs[current] = _i8(positions_lhs[current] - speed)

        lhs_dead = sum(selection_rhs) > 0 and _is_dead(pools_lhs)
        rhs_dead = _is_dead(pools_rhs)
        logger.debug(
            "Fight seed %d resolved in %d rounds: lhs_dead=%s rhs_dead=%s",
            seed, total_rounds, lhs_dead, rhs_dead,
        )

        return FightRecord(
            seed=seed,
            selection_lhs=tuple(selection_lhs),
            selection_rhs=tuple(selection_rhs),
            variants_lhs=tuple(variants_lhs),
            variants_rhs=tuple(variants_rhs),
            commander_lhs=commander_lhs,
            commander_rhs=commander_rhs,
            rounds=total_rounds,
            lhs_moves=tuple(lhs_moves) if log_moves else (),
            rhs_moves=tuple(rhs_moves) if log_moves else (),
            lhs_dead=lhs_dead,
            rhs_dead=rhs_dead,
            ships_lost_lhs=ships_lost(selection_lhs, pools_lhs, ships),
            ships_lost_rhs=ships_lost(selection_rhs, pools_rhs, ships),
        )
