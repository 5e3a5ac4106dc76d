"""
Typed contract values — the argument and return-value vocabulary.

Contract arguments are not plain JSON: an ``i128`` and a ``u32`` with the
same numeric value are different values to the contract. Each argument is
therefore carried as an ``ScVal`` (type tag + value) and serialized as
``{"type": "<tag>", "value": ...}``. Integers travel as decimal strings
so 128-bit values survive JSON intact.

Decoding is generic: ``decode_scval()`` turns a wire value into a plain
Python value (int, str, bool, list, dict, None) without knowing what the
contract meant by it.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Any

from apogee_tx.amounts import to_scaled
from apogee_tx.ledger.exceptions import ResponseDecodeError


class ScType(StrEnum):
    """Type tags for contract values."""

    I128 = "i128"
    I64 = "i64"
    U32 = "u32"
    U64 = "u64"
    BOOL = "bool"
    SYMBOL = "symbol"
    STRING = "string"
    ADDRESS = "address"
    VEC = "vec"
    MAP = "map"
    VOID = "void"


# (min, max) inclusive bounds for integer tags.
_INT_BOUNDS: dict[ScType, tuple[int, int]] = {
    ScType.I128: (-(2**127), 2**127 - 1),
    ScType.I64: (-(2**63), 2**63 - 1),
    ScType.U32: (0, 2**32 - 1),
    ScType.U64: (0, 2**64 - 1),
}

_MAX_SYMBOL_LEN = 32


def _check_int(tag: ScType, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{tag} value must be int, got {type(value).__name__}")
    low, high = _INT_BOUNDS[tag]
    if not low <= value <= high:
        raise ValueError(f"{tag} value out of range: {value}")


@dataclass(frozen=True)
class ScVal:
    """A single typed contract value.

    Attributes:
        type: The type tag.
        value: Native payload. ``int`` for integer tags, ``str`` for
            symbol/string/address, ``bool`` for bool, ``tuple[ScVal, ...]``
            for vec, ``tuple[tuple[ScVal, ScVal], ...]`` for map, and
            ``None`` for void.
    """

    type: ScType
    value: Any = None

    def __post_init__(self) -> None:
        tag = self.type
        if tag in _INT_BOUNDS:
            _check_int(tag, self.value)
        elif tag == ScType.BOOL:
            if not isinstance(self.value, bool):
                raise ValueError("bool value must be bool")
        elif tag == ScType.SYMBOL:
            if not isinstance(self.value, str) or not self.value:
                raise ValueError("symbol must be a non-empty string")
            if len(self.value) > _MAX_SYMBOL_LEN:
                raise ValueError(f"symbol longer than {_MAX_SYMBOL_LEN} chars")
        elif tag == ScType.STRING:
            if not isinstance(self.value, str):
                raise ValueError("string value must be str")
        elif tag == ScType.ADDRESS:
            if not isinstance(self.value, str) or not self.value:
                raise ValueError("address must be a non-empty string")
        elif tag == ScType.VEC:
            if not isinstance(self.value, tuple) or not all(
                isinstance(v, ScVal) for v in self.value
            ):
                raise ValueError("vec value must be a tuple of ScVal")
        elif tag == ScType.MAP:
            if not isinstance(self.value, tuple) or not all(
                isinstance(pair, tuple)
                and len(pair) == 2
                and all(isinstance(v, ScVal) for v in pair)
                for pair in self.value
            ):
                raise ValueError("map value must be a tuple of (ScVal, ScVal) pairs")
        elif tag == ScType.VOID:
            if self.value is not None:
                raise ValueError("void carries no value")

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON wire shape."""
        tag = self.type
        if tag in _INT_BOUNDS:
            return {"type": str(tag), "value": str(self.value)}
        if tag == ScType.VEC:
            return {"type": "vec", "value": [v.to_wire() for v in self.value]}
        if tag == ScType.MAP:
            return {
                "type": "map",
                "value": [
                    {"key": k.to_wire(), "val": v.to_wire()} for k, v in self.value
                ],
            }
        if tag == ScType.VOID:
            return {"type": "void"}
        return {"type": str(tag), "value": self.value}


# =========================================================================
# Constructors
# =========================================================================


def i128(value: int) -> ScVal:
    return ScVal(ScType.I128, value)


def i64(value: int) -> ScVal:
    return ScVal(ScType.I64, value)


def u32(value: int) -> ScVal:
    return ScVal(ScType.U32, value)


def u64(value: int) -> ScVal:
    return ScVal(ScType.U64, value)


def boolean(value: bool) -> ScVal:
    return ScVal(ScType.BOOL, value)


def symbol(value: str) -> ScVal:
    return ScVal(ScType.SYMBOL, value)


def string(value: str) -> ScVal:
    return ScVal(ScType.STRING, value)


def address(value: str) -> ScVal:
    return ScVal(ScType.ADDRESS, value)


def vec(*values: ScVal) -> ScVal:
    return ScVal(ScType.VEC, tuple(values))


def amount(value: Decimal | int | float | str) -> ScVal:
    """Human amount → scaled ``i128`` (10^7 fixed point)."""
    return i128(to_scaled(value))


# =========================================================================
# Decoding
# =========================================================================


def decode_scval(wire: Any) -> Any:
    """Decode a wire value into a native Python value.

    Raises:
        ResponseDecodeError: If the value is not a well-formed typed
            value. Unknown tags are reported as a bad union switch, the
            same way an XDR decoder reports an unknown arm.
    """
    if not isinstance(wire, dict) or "type" not in wire:
        raise ResponseDecodeError(f"expected typed value, got: {wire!r}")

    raw_tag = wire["type"]
    try:
        tag = ScType(raw_tag)
    except ValueError:
        raise ResponseDecodeError(f"bad union switch: {raw_tag!r}") from None

    if tag == ScType.VOID:
        return None
    if "value" not in wire:
        raise ResponseDecodeError(f"{tag} value missing")
    value = wire["value"]

    if tag in _INT_BOUNDS:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ResponseDecodeError(f"{tag} value is not an integer: {value!r}") from None
    if tag == ScType.BOOL:
        if not isinstance(value, bool):
            raise ResponseDecodeError(f"bool value is not a bool: {value!r}")
        return value
    if tag in (ScType.SYMBOL, ScType.STRING, ScType.ADDRESS):
        if not isinstance(value, str):
            raise ResponseDecodeError(f"{tag} value is not a string: {value!r}")
        return value
    if tag == ScType.VEC:
        if not isinstance(value, list):
            raise ResponseDecodeError("vec value is not a list")
        return [decode_scval(item) for item in value]

    # map: symbol/string keys become dict keys, anything else stays hashable
    if not isinstance(value, list):
        raise ResponseDecodeError("map value is not a list")
    decoded: dict[Any, Any] = {}
    for entry in value:
        if not isinstance(entry, dict) or "key" not in entry or "val" not in entry:
            raise ResponseDecodeError(f"malformed map entry: {entry!r}")
        key = decode_scval(entry["key"])
        if isinstance(key, list):
            key = tuple(key)
        elif isinstance(key, dict):
            raise ResponseDecodeError("map keys must not be maps")
        decoded[key] = decode_scval(entry["val"])
    return decoded
