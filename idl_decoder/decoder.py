"""
Recursive, forward-only decoder from Borsh bytes to `Value` trees.

Layout rules:
  - integers / floats: fixed width, little-endian;
  - bool: one byte, strictly 0 or 1;
  - bytes / string / vec: u32 little-endian length prefix;
  - option: one flag byte (coption: four) then the payload when set;
  - array: N items, no prefix;
  - struct: fields in declared order;
  - enum: little-endian variant index (1 byte unless the type says otherwise).
"""

from __future__ import annotations

import logging
import struct
from typing import Callable, Dict, Mapping, Optional, Tuple

from .errors import (
    DepthExceeded,
    InvalidBool,
    InvalidDiscriminant,
    InvalidOption,
    InvalidUtf8,
    LengthExceeded,
    SchemaInconsistent,
    Truncated,
)
from .pubkey import PUBKEY_LENGTH, Pubkey
from .types import (
    BoolType,
    BytesType,
    DefinedType,
    EnumType,
    FixedArrayType,
    FloatType,
    IntType,
    ListType,
    OptionType,
    PubkeyType,
    StringType,
    StructType,
    TypeRef,
    UIntType,
)
from .values import (
    BoolValue,
    BytesValue,
    EnumValue,
    FloatValue,
    IntValue,
    ListValue,
    OptionValue,
    PubkeyValue,
    StrValue,
    StructValue,
    UIntValue,
    Value,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64
LENGTH_PREFIX = 4
# Zero-size items consume no input, so their count is bounded separately.
MAX_EMPTY_ITEMS = 1 << 16
FLOAT_FORMATS = {4: "<f", 8: "<d"}


class Cursor:
    """Read position over an immutable buffer."""

    def __init__(self, data: bytes, position: int = 0) -> None:
        self.data = bytes(data)
        self.position = position

    @property
    def remaining(self) -> int:
        return len(self.data) - self.position

    def read(self, size: int) -> bytes:
        if size > self.remaining:
            raise Truncated(size, self.remaining, self.position)
        chunk = self.data[self.position : self.position + size]
        self.position += size
        return chunk

    def read_uint(self, width: int) -> int:
        return int.from_bytes(self.read(width), "little")

    def rest(self) -> bytes:
        return self.data[self.position :]


class ValueDecoder:
    """
    Decode values against one schema's type table.

    `types` maps the names usable in `DefinedType`. The decoder keeps no state
    between calls, so one instance can serve concurrent decodes.
    """

    def __init__(
        self,
        types: Optional[Mapping[str, TypeRef]] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.types: Mapping[str, TypeRef] = types or {}
        self.max_depth = max_depth
        self._handlers: Dict[type, Callable[[TypeRef, Cursor, int], Value]] = {
            BoolType: self._bool,
            UIntType: self._uint,
            IntType: self._int,
            FloatType: self._float,
            BytesType: self._bytes,
            StringType: self._string,
            PubkeyType: self._pubkey,
            ListType: self._list,
            OptionType: self._option,
            FixedArrayType: self._array,
            StructType: self._struct,
            EnumType: self._enum,
            DefinedType: self._defined,
        }

    def decode(self, type_ref: TypeRef, cursor: Cursor, depth: int = 0) -> Value:
        if depth > self.max_depth:
            raise DepthExceeded(
                f"value nests deeper than {self.max_depth} at offset {cursor.position}"
            )
        handler = self._handlers.get(type(type_ref))
        if handler is None:
            raise SchemaInconsistent(f"not a type descriptor: {type_ref!r}")
        return handler(type_ref, cursor, depth)

    def decode_struct(self, fields: StructType, data: bytes) -> Tuple[StructValue, int]:
        """Decode a whole payload as `fields`; returns the value and unread byte count."""
        cursor = Cursor(data)
        value = self._struct(fields, cursor, 0)
        if cursor.remaining:
            logger.debug("%d trailing bytes left after decoding", cursor.remaining)
        return value, cursor.remaining

    def min_size(self, type_ref: TypeRef, depth: int = 0) -> int:
        """Smallest encoding of `type_ref` in bytes."""
        if depth > self.max_depth:
            raise SchemaInconsistent(f"type nesting deeper than {self.max_depth}")
        if isinstance(type_ref, BoolType):
            return 1
        if isinstance(type_ref, (UIntType, IntType, FloatType)):
            return type_ref.width
        if isinstance(type_ref, (BytesType, StringType, ListType)):
            return LENGTH_PREFIX
        if isinstance(type_ref, PubkeyType):
            return PUBKEY_LENGTH
        if isinstance(type_ref, OptionType):
            return type_ref.flag_width
        if isinstance(type_ref, FixedArrayType):
            return type_ref.size * self.min_size(type_ref.item, depth + 1)
        if isinstance(type_ref, StructType):
            return sum(self.min_size(f.type, depth + 1) for f in type_ref.fields)
        if isinstance(type_ref, EnumType):
            return type_ref.tag_width
        if isinstance(type_ref, DefinedType):
            return self.min_size(self._resolve(type_ref), depth + 1)
        raise SchemaInconsistent(f"not a type descriptor: {type_ref!r}")

    def _resolve(self, type_ref: DefinedType) -> TypeRef:
        try:
            return self.types[type_ref.name]
        except KeyError:
            raise SchemaInconsistent(f"undefined type {type_ref.name!r}") from None

    def _bool(self, type_ref: BoolType, cursor: Cursor, depth: int) -> Value:
        position = cursor.position
        raw = cursor.read(1)[0]
        if raw > 1:
            raise InvalidBool(f"bool byte 0x{raw:02x} at offset {position}")
        return BoolValue(raw == 1)

    def _uint(self, type_ref: UIntType, cursor: Cursor, depth: int) -> Value:
        return UIntValue(cursor.read_uint(type_ref.width))

    def _int(self, type_ref: IntType, cursor: Cursor, depth: int) -> Value:
        return IntValue(int.from_bytes(cursor.read(type_ref.width), "little", signed=True))

    def _float(self, type_ref: FloatType, cursor: Cursor, depth: int) -> Value:
        fmt = FLOAT_FORMATS.get(type_ref.width)
        if fmt is None:
            raise SchemaInconsistent(f"unsupported float width {type_ref.width}")
        return FloatValue(struct.unpack(fmt, cursor.read(type_ref.width))[0])

    def _bytes(self, type_ref: BytesType, cursor: Cursor, depth: int) -> Value:
        length = cursor.read_uint(LENGTH_PREFIX)
        return BytesValue(cursor.read(length))

    def _string(self, type_ref: StringType, cursor: Cursor, depth: int) -> Value:
        length = cursor.read_uint(LENGTH_PREFIX)
        position = cursor.position
        raw = cursor.read(length)
        try:
            return StrValue(raw.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise InvalidUtf8(f"string at offset {position}: {exc.reason}") from exc

    def _pubkey(self, type_ref: PubkeyType, cursor: Cursor, depth: int) -> Value:
        return PubkeyValue(Pubkey(cursor.read(PUBKEY_LENGTH)))

    def _list(self, type_ref: ListType, cursor: Cursor, depth: int) -> Value:
        count = cursor.read_uint(LENGTH_PREFIX)
        item_size = self.min_size(type_ref.item, depth + 1)
        if count * item_size > cursor.remaining:
            raise Truncated(count * item_size, cursor.remaining, cursor.position)
        if item_size == 0 and count:
            if count > MAX_EMPTY_ITEMS:
                raise LengthExceeded(
                    f"{count} zero-size items at offset {cursor.position}, "
                    f"limit is {MAX_EMPTY_ITEMS}"
                )
            # A zero-size type has exactly one encoding, so every item is equal.
            return ListValue((self.decode(type_ref.item, cursor, depth + 1),) * count)
        return ListValue(
            tuple(self.decode(type_ref.item, cursor, depth + 1) for _ in range(count))
        )

    def _option(self, type_ref: OptionType, cursor: Cursor, depth: int) -> Value:
        position = cursor.position
        flag = cursor.read_uint(type_ref.flag_width)
        if flag == 0:
            return OptionValue(None)
        if flag != 1:
            raise InvalidOption(f"option flag {flag} at offset {position}")
        return OptionValue(self.decode(type_ref.item, cursor, depth + 1))

    def _array(self, type_ref: FixedArrayType, cursor: Cursor, depth: int) -> Value:
        return ListValue(
            tuple(self.decode(type_ref.item, cursor, depth + 1) for _ in range(type_ref.size))
        )

    def _struct(self, type_ref: StructType, cursor: Cursor, depth: int) -> StructValue:
        return StructValue(
            tuple((f.name, self.decode(f.type, cursor, depth + 1)) for f in type_ref.fields)
        )

    def _enum(self, type_ref: EnumType, cursor: Cursor, depth: int) -> Value:
        position = cursor.position
        index = cursor.read_uint(type_ref.tag_width)
        if index >= len(type_ref.variants):
            raise InvalidDiscriminant(
                f"variant {index} at offset {position}, "
                f"enum has {len(type_ref.variants)} variants"
            )
        variant = type_ref.variants[index]
        if variant.payload is None:
            return EnumValue(variant.name)
        return EnumValue(variant.name, self.decode(variant.payload, cursor, depth + 1))

    def _defined(self, type_ref: DefinedType, cursor: Cursor, depth: int) -> Value:
        return self.decode(self._resolve(type_ref), cursor, depth + 1)


__all__ = ["Cursor", "ValueDecoder", "DEFAULT_MAX_DEPTH", "MAX_EMPTY_ITEMS"]
