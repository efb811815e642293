"""Tests for IDL type notation parsing."""
import pytest

from idl_decoder.errors import IdlParseError
from idl_decoder.types import (
    BoolType,
    DefinedType,
    EnumType,
    Field,
    FixedArrayType,
    FloatType,
    IntType,
    ListType,
    OptionType,
    PubkeyType,
    StringType,
    StructType,
    UIntType,
    parse_fields,
    parse_type,
    parse_type_definition,
    parse_variant,
    referenced_names,
)


class TestParseType:
    @pytest.mark.parametrize(
        "node,expected",
        [
            ("bool", BoolType()),
            ("u8", UIntType(1)),
            ("u128", UIntType(16)),
            ("i64", IntType(8)),
            ("f32", FloatType(4)),
            ("string", StringType()),
            ("publicKey", PubkeyType()),
            ("pubkey", PubkeyType()),
        ],
    )
    def test_primitives(self, node, expected):
        assert parse_type(node) == expected

    def test_containers(self):
        assert parse_type({"vec": "u16"}) == ListType(UIntType(2))
        assert parse_type({"option": "pubkey"}) == OptionType(PubkeyType())
        assert parse_type({"coption": "u64"}) == OptionType(UIntType(8), flag_width=4)
        assert parse_type({"array": ["u8", 32]}) == FixedArrayType(UIntType(1), 32)

    def test_defined_both_notations(self):
        assert parse_type({"defined": "Pool"}) == DefinedType("Pool")
        assert parse_type({"defined": {"name": "Pool"}}) == DefinedType("Pool")

    @pytest.mark.parametrize(
        "node",
        ["u7", "usize", {"array": ["u8"]}, {"array": ["u8", -1]}, {"tuple": []}, [], {"vec": "u8", "option": "u8"}],
    )
    def test_rejects_malformed(self, node):
        with pytest.raises(IdlParseError):
            parse_type(node)


class TestDefinitions:
    def test_struct_keeps_field_order(self):
        fields = parse_fields(
            [{"name": "b", "type": "u8"}, {"name": "a", "type": "bool"}]
        )
        assert fields.field_names() == ("b", "a")

    def test_duplicate_field_rejected(self):
        with pytest.raises(IdlParseError):
            parse_fields([{"name": "a", "type": "u8"}, {"name": "a", "type": "u16"}])

    def test_variant_shapes(self):
        assert parse_variant({"name": "Empty"}).payload is None
        named = parse_variant({"name": "Named", "fields": [{"name": "x", "type": "u8"}]})
        assert named.payload == StructType((Field("x", UIntType(1)),))
        single = parse_variant({"name": "One", "fields": ["u64"]})
        assert single.payload == UIntType(8)
        pair = parse_variant({"name": "Two", "fields": ["u8", "bool"]})
        assert pair.payload.field_names() == ("0", "1")

    def test_enum_and_alias(self):
        enum = parse_type_definition(
            {"kind": "enum", "variants": [{"name": "A"}, {"name": "B"}]}
        )
        assert isinstance(enum, EnumType)
        assert [v.name for v in enum.variants] == ["A", "B"]
        assert parse_type_definition({"kind": "type", "alias": "u32"}) == UIntType(4)

    def test_enum_needs_variants(self):
        with pytest.raises(IdlParseError):
            parse_type_definition({"kind": "enum", "variants": []})

    def test_referenced_names(self):
        ty = StructType(
            (
                Field("a", ListType(DefinedType("X"))),
                Field("b", OptionType(DefinedType("Y"))),
            )
        )
        assert list(referenced_names(ty)) == ["X", "Y"]
