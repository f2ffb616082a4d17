"""
Move Log Normalizer - decodes wire-format fight records.

The simulator's collaborators deliver numbers in a human-readable form:
per-type arrays as hex byte strings ("0x0a1b2b0f") and scalars as
locale-formatted strings ("1,337"). Decoding is all-or-nothing: either a
fully typed FightRecord is returned or DecodeError is raised.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, Optional

from .errors import DecodeError
from .fight_record import FightRecord, Move, MoveType


# Grouping and decimal separators emitted by locale formatting
_SEPARATORS = re.compile(r"[,._'\s]")
_DIGITS = re.compile(r"^[0-9]+$")


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _get(data: Mapping[str, Any], name: str, default: Any = ...) -> Any:
    """Look up a snake_case field, accepting its camelCase spelling too."""
    if name in data:
        return data[name]
    camel = _camel(name)
    if camel in data:
        return data[camel]
    if default is ...:
        raise DecodeError(f"Missing field '{name}'")
    return default


def parse_int(value: Any, field: str = "value", allow_negative: bool = False) -> int:
    """
    Parse an integer that may arrive as a locale-formatted string.

    Args:
        value: An int or a string such as "1,337" or "-12".
        field: Field name used in error messages.
        allow_negative: Accept a leading minus sign / negative ints.

    Returns:
        The parsed integer.

    Raises:
        DecodeError: If the value is not an integer or is negative when
            negatives are not allowed.
    """
    if isinstance(value, bool):
        raise DecodeError(f"Field '{field}' must be an integer, got a boolean")

    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        negative = text.startswith("-")
        if negative:
            text = text[1:]
        digits = _SEPARATORS.sub("", text)
        if not _DIGITS.match(digits):
            raise DecodeError(f"Field '{field}' is not a valid integer: {value!r}")
        number = -int(digits) if negative else int(digits)
    else:
        raise DecodeError(
            f"Field '{field}' must be an integer, got {type(value).__name__}"
        )

    if number < 0 and not allow_negative:
        raise DecodeError(f"Field '{field}' must not be negative: {number}")
    return number


def parse_bool(value: Any, field: str = "value") -> bool:
    """Parse a flag delivered as a bool or as "true"/"false"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1"):
            return True
        if lowered in ("false", "0"):
            return False
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise DecodeError(f"Field '{field}' is not a boolean: {value!r}")


def _check_bytes(values: tuple[int, ...], field: str) -> None:
    for i, item in enumerate(values):
        if not 0 <= item <= 255:
            raise DecodeError(f"Field '{field}[{i}]' does not fit in a byte: {item}")


def decode_byte_array(value: Any, length: int, field: str = "value") -> tuple[int, ...]:
    """
    Decode a fixed-length per-type array.

    Accepts a "0x"-prefixed hex string, raw bytes, or a sequence of
    integers (each possibly locale-formatted).

    Raises:
        DecodeError: If the array has the wrong length, contains an
            entry outside 0..255 or a non-numeric one, or is not valid hex.
    """
    if isinstance(value, str):
        text = value.strip()
        if text.startswith(("0x", "0X")):
            text = text[2:]
        try:
            values = tuple(bytes.fromhex(text))
        except ValueError as e:
            raise DecodeError(f"Field '{field}' is not a valid hex byte string: {value!r}") from e
    elif isinstance(value, (bytes, bytearray)):
        values = tuple(value)
    elif isinstance(value, (list, tuple)):
        values = tuple(parse_int(item, f"{field}[{i}]") for i, item in enumerate(value))
    else:
        raise DecodeError(
            f"Field '{field}' must be a byte array, got {type(value).__name__}"
        )

    if len(values) != length:
        raise DecodeError(
            f"Field '{field}' has {len(values)} entries, expected {length}"
        )
    _check_bytes(values, field)
    return values


def decode_move(data: Mapping[str, Any], field: str = "move") -> Move:
    """Decode a single wire-format move."""
    if not isinstance(data, Mapping):
        raise DecodeError(f"Field '{field}' must be an object")

    raw_type = parse_int(_get(data, "move_type"), f"{field}.move_type")
    try:
        move_type = MoveType(raw_type)
    except ValueError as e:
        raise DecodeError(f"Field '{field}.move_type' has unknown value {raw_type}") from e

    return Move(
        round=parse_int(_get(data, "round"), f"{field}.round"),
        move_type=move_type,
        source=parse_int(_get(data, "source"), f"{field}.source"),
        target=parse_int(_get(data, "target", 0), f"{field}.target"),
        target_position=parse_int(
            _get(data, "target_position", 0), f"{field}.target_position", allow_negative=True
        ),
        damage=parse_int(_get(data, "damage", 0), f"{field}.damage"),
    )


def decode_moves(value: Optional[Iterable[Any]], field: str) -> tuple[Move, ...]:
    """Decode a move list; a missing list (moves not logged) decodes as empty."""
    if value is None:
        return ()
    if isinstance(value, (str, bytes, Mapping)):
        raise DecodeError(f"Field '{field}' must be a list of moves")
    return tuple(decode_move(item, f"{field}[{i}]") for i, item in enumerate(value))


def decode_fight_record(data: Mapping[str, Any], ship_count: int) -> FightRecord:
    """
    Decode a wire-format fight record into a typed FightRecord.

    Args:
        data: Wire-format mapping (snake_case or camelCase keys).
        ship_count: Number of ship types (N); every per-type array must
            have exactly this many entries.

    Returns:
        The decoded record.

    Raises:
        DecodeError: On any malformed field. No partial result is returned.
    """
    if not isinstance(data, Mapping):
        raise DecodeError("Fight record must be an object")

    def array(name: str) -> tuple[int, ...]:
        return decode_byte_array(_get(data, name), ship_count, name)

    def optional_array(name: str) -> tuple[int, ...]:
        value = _get(data, name, None)
        return () if value is None else decode_byte_array(value, ship_count, name)

    return FightRecord(
        seed=parse_int(_get(data, "seed"), "seed"),
        selection_lhs=array("selection_lhs"),
        selection_rhs=array("selection_rhs"),
        variants_lhs=array("variants_lhs"),
        variants_rhs=array("variants_rhs"),
        commander_lhs=parse_int(_get(data, "commander_lhs", 0), "commander_lhs"),
        commander_rhs=parse_int(_get(data, "commander_rhs", 0), "commander_rhs"),
        rounds=parse_int(_get(data, "rounds"), "rounds"),
        lhs_moves=decode_moves(_get(data, "lhs_moves", None), "lhs_moves"),
        rhs_moves=decode_moves(_get(data, "rhs_moves", None), "rhs_moves"),
        lhs_dead=parse_bool(_get(data, "lhs_dead"), "lhs_dead"),
        rhs_dead=parse_bool(_get(data, "rhs_dead"), "rhs_dead"),
        ships_lost_lhs=optional_array("ships_lost_lhs"),
        ships_lost_rhs=optional_array("ships_lost_rhs"),
    )


def encode_byte_array(values: Iterable[int], field: str = "value") -> str:
    """
    Encode a per-type array as a "0x"-prefixed hex byte string.

    Raises:
        DecodeError: If an entry is outside 0..255.
    """
    values = tuple(values)
    _check_bytes(values, field)
    return "0x" + bytes(values).hex()


def encode_fight_record(record: FightRecord) -> dict:
    """Encode a FightRecord in the wire format accepted by decode_fight_record."""
    encoded = {
        "seed": record.seed,
        "selection_lhs": encode_byte_array(record.selection_lhs, "selection_lhs"),
        "selection_rhs": encode_byte_array(record.selection_rhs, "selection_rhs"),
        "variants_lhs": encode_byte_array(record.variants_lhs, "variants_lhs"),
        "variants_rhs": encode_byte_array(record.variants_rhs, "variants_rhs"),
        "commander_lhs": record.commander_lhs,
        "commander_rhs": record.commander_rhs,
        "rounds": record.rounds,
        "lhs_dead": record.lhs_dead,
        "rhs_dead": record.rhs_dead,
        "lhs_moves": [move.to_dict() for move in record.lhs_moves],
        "rhs_moves": [move.to_dict() for move in record.rhs_moves],
    }
    if record.ships_lost_lhs:
        encoded["ships_lost_lhs"] = encode_byte_array(record.ships_lost_lhs, "ships_lost_lhs")
    if record.ships_lost_rhs:
        encoded["ships_lost_rhs"] = encode_byte_array(record.ships_lost_rhs, "ships_lost_rhs")
    return encoded
