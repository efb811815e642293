"""
Decoded values.

Each class mirrors one TypeRef variant. `to_json()` renders plain JSON data:
integers wider than 64 bits become decimal strings, pubkeys base58 strings,
byte strings lists of ints and enums `{"name": ..., "fields": ...}`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Optional, Tuple, Union

from .pubkey import Pubkey

JSON_SAFE_INT = 2**64


@dataclass(frozen=True)
class BoolValue:
    value: bool

    def to_json(self) -> Any:
        return self.value


@dataclass(frozen=True)
class UIntValue:
    value: int

    def to_json(self) -> Any:
        return self.value if self.value < JSON_SAFE_INT else str(self.value)


@dataclass(frozen=True)
class IntValue:
    value: int

    def to_json(self) -> Any:
        if -JSON_SAFE_INT // 2 <= self.value < JSON_SAFE_INT // 2:
            return self.value
        return str(self.value)


@dataclass(frozen=True)
class FloatValue:
    value: float

    def to_json(self) -> Any:
        return self.value


@dataclass(frozen=True)
class BytesValue:
    value: bytes

    def to_json(self) -> Any:
        return list(self.value)


@dataclass(frozen=True)
class StrValue:
    value: str

    def to_json(self) -> Any:
        return self.value


@dataclass(frozen=True)
class PubkeyValue:
    value: Pubkey

    def to_json(self) -> Any:
        return str(self.value)


@dataclass(frozen=True)
class ListValue:
    items: Tuple["Value", ...]

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> "Value":
        return self.items[index]

    def __iter__(self) -> Iterator["Value"]:
        return iter(self.items)

    def to_json(self) -> Any:
        return [item.to_json() for item in self.items]


@dataclass(frozen=True)
class OptionValue:
    value: Optional["Value"]

    @property
    def is_some(self) -> bool:
        return self.value is not None

    def to_json(self) -> Any:
        return None if self.value is None else self.value.to_json()


@dataclass(frozen=True)
class StructValue:
    """Ordered name/value pairs; order matches the declaring struct."""

    fields: Tuple[Tuple[str, "Value"], ...] = ()

    def __getitem__(self, name: str) -> "Value":
        for key, value in self.fields:
            if key == name:
                return value
        raise KeyError(name)

    def __contains__(self, name: object) -> bool:
        return any(key == name for key, _ in self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def keys(self) -> Tuple[str, ...]:
        return tuple(key for key, _ in self.fields)

    def get(self, name: str, default: Optional["Value"] = None) -> Optional["Value"]:
        try:
            return self[name]
        except KeyError:
            return default

    def to_json(self) -> Any:
        return {key: value.to_json() for key, value in self.fields}


@dataclass(frozen=True)
class EnumValue:
    name: str
    payload: Optional["Value"] = None

    def to_json(self) -> Any:
        return {
            "name": self.name,
            "fields": None if self.payload is None else self.payload.to_json(),
        }


Value = Union[
    BoolValue,
    UIntValue,
    IntValue,
    FloatValue,
    BytesValue,
    StrValue,
    PubkeyValue,
    ListValue,
    OptionValue,
    StructValue,
    EnumValue,
]


__all__ = [
    "BoolValue",
    "UIntValue",
    "IntValue",
    "FloatValue",
    "BytesValue",
    "StrValue",
    "PubkeyValue",
    "ListValue",
    "OptionValue",
    "StructValue",
    "EnumValue",
    "Value",
]
