"""
Ship type definitions and fleet combat power (CP) accounting.

Ship types are static, loaded once and indexed 0..N-1. Every per-type
sequence in the engine (selections, variants, HP pools) uses the same
indexing.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from .errors import CPLimitError


DEFAULT_SHIP_DATA_PATH = Path(__file__).parent / "data" / "ship_types.json"

# Default opponent fleet used for training fights
TRAINING_SELECTION: tuple[int, ...] = (35, 25, 15, 10)

# Neutral fit for every ship type
DEFAULT_VARIANTS: tuple[int, ...] = (0, 0, 0, 0)


@dataclass(frozen=True)
class ShipType:
    """
    Static definition of a ship type.

    Attributes:
        name: Display name (used by the combat log).
        hp: Hit points of a single unit.
        attack_base: Base attack stat before fit modifiers.
        attack_variable: Modulus for the seed-derived attack bonus.
        defence: Defence stat before fit modifiers.
        speed: Lanes moved per round when no target is in reach.
        range: Firing range in lanes.
        cp: Combat power cost of a single unit.
    """
    name: str
    hp: int
    attack_base: int
    attack_variable: int
    defence: int
    speed: int
    range: int
    cp: int

    @classmethod
    def from_json(cls, data: dict) -> ShipType:
        """
        Create a ShipType from its JSON description.

        Raises:
            ValueError: If hp is missing or not positive.
        """
        hp = int(data.get("hp", 0))
        if hp <= 0:
            raise ValueError(f"Ship type '{data.get('name', '?')}' must have positive hp")

        return cls(
            name=data.get("name", "Unknown"),
            hp=hp,
            attack_base=int(data.get("attack_base", 0)),
            attack_variable=int(data.get("attack_variable", 1)),
            defence=int(data.get("defence", 0)),
            speed=int(data.get("speed", 0)),
            range=int(data.get("range", 0)),
            cp=int(data.get("cp", 0)),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "cp": self.cp,
            "hp": self.hp,
            "attack_base": self.attack_base,
            "attack_variable": self.attack_variable,
            "defence": self.defence,
            "speed": self.speed,
            "range": self.range,
        }


def load_ship_types(filepath: Optional[str | Path] = None) -> tuple[ShipType, ...]:
    """
    Load the ship table from a JSON file.

    Args:
        filepath: Path to a ship table JSON file. Defaults to the packaged
            reference table.

    Returns:
        Ship types in index order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the table is empty or a ship type is invalid.
    """
    path = Path(filepath) if filepath is not None else DEFAULT_SHIP_DATA_PATH
    with open(path, "r") as f:
        data = json.load(f)

    entries = data.get("ship_types", [])
    if not entries:
        raise ValueError(f"No ship types defined in {path}")

    return tuple(ShipType.from_json(entry) for entry in entries)


def fleet_cp(selection: Sequence[int], ship_types: Sequence[ShipType]) -> int:
    """
    Combat power of a fleet selection.

    cp(selection) = sum(selection[i] * ship_types[i].cp)

    Args:
        selection: Unit count per ship type.
        ship_types: Ship table in index order.

    Returns:
        Total combat power.
    """
    if len(selection) != len(ship_types):
        raise ValueError(
            f"Selection has {len(selection)} entries, expected {len(ship_types)}"
        )
    return sum((count or 0) * ship.cp for count, ship in zip(selection, ship_types))


def remaining_cp(selection: Sequence[int], ship_types: Sequence[ShipType], cap: int) -> int:
    """CP still available under `cap` (negative when over the cap)."""
    return cap - fleet_cp(selection, ship_types)


def ensure_within_cp(selection: Sequence[int], ship_types: Sequence[ShipType], cap: int) -> int:
    """
    Check a selection against a CP cap during fleet composition.

    Returns:
        The selection's CP.

    Raises:
        CPLimitError: If the selection costs more than `cap`.
    """
    cp = fleet_cp(selection, ship_types)
    if cp > cap:
        raise CPLimitError(cp, cap)
    return cp
