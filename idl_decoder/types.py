"""
Type descriptors for IDL schemas.

A TypeRef is one of the frozen dataclasses below. `DefinedType` is the only
indirection: it names an entry of the owning schema's type table and is
resolved by the decoder, so descriptors never hold references to each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from .errors import IdlParseError

INTEGER_WIDTHS = {"8": 1, "16": 2, "32": 4, "64": 8, "128": 16}


@dataclass(frozen=True)
class BoolType:
    pass


@dataclass(frozen=True)
class UIntType:
    width: int


@dataclass(frozen=True)
class IntType:
    width: int


@dataclass(frozen=True)
class FloatType:
    width: int


@dataclass(frozen=True)
class BytesType:
    pass


@dataclass(frozen=True)
class StringType:
    pass


@dataclass(frozen=True)
class PubkeyType:
    pass


@dataclass(frozen=True)
class ListType:
    item: "TypeRef"


@dataclass(frozen=True)
class OptionType:
    item: "TypeRef"
    # `coption` (SPL token style) stores the presence flag as a u32.
    flag_width: int = 1


@dataclass(frozen=True)
class FixedArrayType:
    item: "TypeRef"
    size: int


@dataclass(frozen=True)
class Field:
    name: str
    type: "TypeRef"


@dataclass(frozen=True)
class StructType:
    fields: Tuple[Field, ...] = ()

    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)


@dataclass(frozen=True)
class Variant:
    name: str
    payload: Optional["TypeRef"] = None


@dataclass(frozen=True)
class EnumType:
    variants: Tuple[Variant, ...]
    tag_width: int = 1


@dataclass(frozen=True)
class DefinedType:
    name: str


TypeRef = Union[
    BoolType,
    UIntType,
    IntType,
    FloatType,
    BytesType,
    StringType,
    PubkeyType,
    ListType,
    OptionType,
    FixedArrayType,
    StructType,
    EnumType,
    DefinedType,
]

_SIMPLE_TYPES = {
    "bool": BoolType(),
    "bytes": BytesType(),
    "string": StringType(),
    "publicKey": PubkeyType(),
    "pubkey": PubkeyType(),
    "f32": FloatType(4),
    "f64": FloatType(8),
}


def parse_type(node: Any) -> TypeRef:
    """Convert IDL JSON type notation (legacy or 0.30 style) into a TypeRef."""
    if isinstance(node, str):
        if node in _SIMPLE_TYPES:
            return _SIMPLE_TYPES[node]
        if node[:1] in ("u", "i") and node[1:] in INTEGER_WIDTHS:
            width = INTEGER_WIDTHS[node[1:]]
            return UIntType(width) if node[0] == "u" else IntType(width)
        raise IdlParseError(f"unsupported type {node!r}")

    if not isinstance(node, dict) or len(node) != 1:
        raise IdlParseError(f"malformed type node: {node!r}")

    (kind, inner), = node.items()
    if kind == "vec":
        return ListType(parse_type(inner))
    if kind == "option":
        return OptionType(parse_type(inner))
    if kind == "coption":
        return OptionType(parse_type(inner), flag_width=4)
    if kind == "array":
        if not isinstance(inner, list) or len(inner) != 2 or not isinstance(inner[1], int):
            raise IdlParseError(f"array type needs [type, length]: {inner!r}")
        if inner[1] < 0:
            raise IdlParseError(f"negative array length {inner[1]}")
        return FixedArrayType(parse_type(inner[0]), inner[1])
    if kind == "defined":
        name = inner.get("name") if isinstance(inner, dict) else inner
        if not isinstance(name, str) or not name:
            raise IdlParseError(f"defined type needs a name: {inner!r}")
        return DefinedType(name)
    raise IdlParseError(f"unsupported type {kind!r}")


def parse_fields(nodes: Any) -> StructType:
    if nodes is None:
        return StructType()
    if not isinstance(nodes, list):
        raise IdlParseError(f"field list expected, got {type(nodes).__name__}")
    fields = []
    seen = set()
    for node in nodes:
        if not isinstance(node, dict) or not isinstance(node.get("name"), str) or "type" not in node:
            raise IdlParseError(f"malformed field: {node!r}")
        name = node["name"]
        if name in seen:
            raise IdlParseError(f"duplicate field {name!r}")
        seen.add(name)
        fields.append(Field(name, parse_type(node["type"])))
    return StructType(tuple(fields))


def parse_variant(node: Any) -> Variant:
    if not isinstance(node, dict) or not isinstance(node.get("name"), str):
        raise IdlParseError(f"malformed enum variant: {node!r}")
    members = node.get("fields")
    if not members:
        return Variant(node["name"])
    if not isinstance(members, list):
        raise IdlParseError(f"variant {node['name']!r}: fields must be a list")
    # Named members look like fields; tuple members are bare types.
    if all(isinstance(m, dict) and "name" in m and "type" in m for m in members):
        return Variant(node["name"], parse_fields(members))
    types = [parse_type(m) for m in members]
    if len(types) == 1:
        return Variant(node["name"], types[0])
    return Variant(
        node["name"],
        StructType(tuple(Field(str(idx), ty) for idx, ty in enumerate(types))),
    )


def parse_type_definition(node: Any) -> TypeRef:
    """Parse the `type` body of a named type: struct, enum or alias."""
    if not isinstance(node, dict) or "kind" not in node:
        raise IdlParseError(f"malformed type definition: {node!r}")
    kind = node["kind"]
    if kind == "struct":
        return parse_fields(node.get("fields"))
    if kind == "enum":
        variants = node.get("variants")
        if not isinstance(variants, list) or not variants:
            raise IdlParseError("enum needs at least one variant")
        return EnumType(tuple(parse_variant(v) for v in variants))
    if kind in ("alias", "type"):
        return parse_type(node.get("value", node.get("alias")))
    raise IdlParseError(f"unsupported type definition kind {kind!r}")


def referenced_names(type_ref: TypeRef):
    """Yield every `DefinedType` name reachable without crossing a definition."""
    if isinstance(type_ref, DefinedType):
        yield type_ref.name
    elif isinstance(type_ref, (ListType, OptionType, FixedArrayType)):
        yield from referenced_names(type_ref.item)
    elif isinstance(type_ref, StructType):
        for field in type_ref.fields:
            yield from referenced_names(field.type)
    elif isinstance(type_ref, EnumType):
        for variant in type_ref.variants:
            if variant.payload is not None:
                yield from referenced_names(variant.payload)


__all__ = [
    "BoolType",
    "UIntType",
    "IntType",
    "FloatType",
    "BytesType",
    "StringType",
    "PubkeyType",
    "ListType",
    "OptionType",
    "FixedArrayType",
    "Field",
    "StructType",
    "Variant",
    "EnumType",
    "DefinedType",
    "TypeRef",
    "parse_type",
    "parse_fields",
    "parse_variant",
    "parse_type_definition",
    "referenced_names",
]
