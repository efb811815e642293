"""Tests for the recursive Borsh value decoder."""
import struct

import pytest

from idl_decoder.decoder import MAX_EMPTY_ITEMS, Cursor, ValueDecoder
from idl_decoder.errors import (
    DepthExceeded,
    InvalidBool,
    InvalidDiscriminant,
    InvalidOption,
    InvalidUtf8,
    LengthExceeded,
    SchemaInconsistent,
    Truncated,
)
from idl_decoder.schema import parse_schema
from idl_decoder.types import (
    BoolType,
    BytesType,
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
    Variant,
)
from idl_decoder.values import (
    EnumValue,
    ListValue,
    OptionValue,
    PubkeyValue,
    StructValue,
    UIntValue,
)

from conftest import make_key


def decode(type_ref, data, types=None, **kwargs):
    return ValueDecoder(types, **kwargs).decode(type_ref, Cursor(data))


class TestPrimitives:
    def test_integers_little_endian(self):
        assert decode(UIntType(2), b"\x34\x12").value == 0x1234
        assert decode(IntType(2), struct.pack("<h", -2)).value == -2
        assert decode(UIntType(8), struct.pack("<Q", 100_000_000)).value == 100_000_000

    def test_u128_json_as_string(self):
        value = decode(UIntType(16), (2**100).to_bytes(16, "little"))
        assert value.value == 2**100
        assert value.to_json() == str(2**100)

    def test_float(self):
        assert decode(FloatType(8), struct.pack("<d", 1.5)).value == 1.5

    def test_bool_strict(self):
        assert decode(BoolType(), b"\x01").value is True
        assert decode(BoolType(), b"\x00").value is False
        with pytest.raises(InvalidBool):
            decode(BoolType(), b"\x02")

    def test_string_and_bytes(self):
        assert decode(StringType(), b"\x02\x00\x00\x00hi").value == "hi"
        assert decode(BytesType(), b"\x03\x00\x00\x00abc").to_json() == [97, 98, 99]

    def test_invalid_utf8(self):
        with pytest.raises(InvalidUtf8):
            decode(StringType(), b"\x01\x00\x00\x00\xff")

    def test_pubkey(self):
        key = make_key(3)
        value = decode(PubkeyType(), bytes(key))
        assert value == PubkeyValue(key)
        assert value.to_json() == str(key)


class TestTruncation:
    @pytest.mark.parametrize(
        "type_ref,data",
        [
            (UIntType(8), b"\x00" * 4),
            (PubkeyType(), b"\x00" * 31),
            (StringType(), b"\x05\x00\x00\x00abc"),
            (FixedArrayType(UIntType(4), 2), b"\x00" * 7),
            (OptionType(UIntType(4)), b"\x01\x00"),
        ],
    )
    def test_short_buffers(self, type_ref, data):
        with pytest.raises(Truncated):
            decode(type_ref, data)

    def test_list_count_checked_up_front(self):
        with pytest.raises(Truncated) as excinfo:
            decode(ListType(UIntType(8)), struct.pack("<I", 1000) + b"\x00" * 8)
        assert excinfo.value.needed == 8000
        assert excinfo.value.remaining == 8

    def test_huge_count_of_empty_structs_rejected(self):
        with pytest.raises(LengthExceeded):
            decode(ListType(StructType()), b"\xff\xff\xff\xff")

    def test_huge_count_of_empty_alias_rejected(self):
        types = {"Nothing": FixedArrayType(UIntType(8), 0)}
        with pytest.raises(LengthExceeded):
            decode(ListType(DefinedType("Nothing")), struct.pack("<I", MAX_EMPTY_ITEMS + 1), types)

    def test_empty_items_within_limit(self):
        value = decode(ListType(StructType()), struct.pack("<I", 3) + b"\x2a")
        assert value.to_json() == [{}, {}, {}]

    def test_truncated_reports_position(self):
        ty = StructType((Field("a", UIntType(4)), Field("b", UIntType(8))))
        with pytest.raises(Truncated) as excinfo:
            decode(ty, b"\x00" * 6)
        assert excinfo.value.position == 4


class TestContainers:
    def test_option(self):
        assert decode(OptionType(UIntType(1)), b"\x00") == OptionValue(None)
        some = decode(OptionType(UIntType(1)), b"\x01\x2a")
        assert some.is_some and some.value == UIntValue(42)

    def test_invalid_option_flag(self):
        with pytest.raises(InvalidOption):
            decode(OptionType(UIntType(1)), b"\x02\x2a")

    def test_coption_has_four_byte_flag(self):
        ty = OptionType(UIntType(8), flag_width=4)
        assert decode(ty, b"\x00" * 4).to_json() is None
        assert decode(ty, b"\x01\x00\x00\x00" + struct.pack("<Q", 5)).to_json() == 5

    def test_vec_and_array(self):
        assert decode(ListType(UIntType(2)), b"\x02\x00\x00\x00\x01\x00\x02\x00").to_json() == [1, 2]
        assert decode(FixedArrayType(UIntType(1), 3), b"\x01\x02\x03").to_json() == [1, 2, 3]
        assert decode(ListType(UIntType(2)), b"\x00\x00\x00\x00") == ListValue(())

    def test_struct_keeps_order(self):
        ty = StructType((Field("z", UIntType(1)), Field("a", BoolType())))
        value = decode(ty, b"\x07\x01")
        assert value.keys() == ("z", "a")
        assert value["z"].value == 7
        assert value.to_json() == {"z": 7, "a": True}


class TestEnums:
    ENUM = EnumType(
        (
            Variant("Idle"),
            Variant("Amount", UIntType(4)),
            Variant("Pair", StructType((Field("0", UIntType(1)), Field("1", BoolType())))),
        )
    )

    def test_unit_variant(self):
        assert decode(self.ENUM, b"\x00") == EnumValue("Idle")

    def test_payload_variants(self):
        assert decode(self.ENUM, b"\x01\x10\x00\x00\x00").to_json() == {"name": "Amount", "fields": 16}
        assert decode(self.ENUM, b"\x02\x03\x00").to_json() == {
            "name": "Pair",
            "fields": {"0": 3, "1": False},
        }

    def test_discriminant_equal_to_variant_count(self):
        with pytest.raises(InvalidDiscriminant):
            decode(self.ENUM, b"\x03")

    def test_wide_tag(self):
        ty = EnumType((Variant("A"), Variant("B")), tag_width=4)
        assert decode(ty, b"\x01\x00\x00\x00").name == "B"


class TestDefinedTypes:
    def test_resolves_through_type_table(self, transfer_idl):
        doc = parse_schema(transfer_idl)
        owner = make_key(5)
        data = bytes(owner) + struct.pack("<Q", 10) + b"\x01"
        value, trailing = ValueDecoder(doc.type_table()).decode_struct(doc.accounts[0].fields, data)
        assert trailing == 0
        assert value["owner"] == PubkeyValue(owner)
        assert value["state"] == EnumValue("Frozen")

    def test_undefined_name(self):
        with pytest.raises(SchemaInconsistent):
            decode(DefinedType("Missing"), b"\x00")

    def test_depth_guard(self):
        types = {"Node": OptionType(DefinedType("Node"))}
        with pytest.raises(DepthExceeded):
            decode(DefinedType("Node"), b"\x01" * 100, types, max_depth=8)

    def test_recursive_type_within_depth(self):
        types = {"Node": OptionType(DefinedType("Node"))}
        value = decode(DefinedType("Node"), b"\x01\x01\x00", types)
        assert isinstance(value.value, OptionValue)
        assert value.value.value == OptionValue(None)

    def test_trailing_bytes_counted(self):
        ty = StructType((Field("a", UIntType(1)),))
        value, trailing = ValueDecoder().decode_struct(ty, b"\x01\x02\x03")
        assert value == StructValue((("a", UIntValue(1)),))
        assert trailing == 2


class TestMinSize:
    def test_min_size(self):
        decoder = ValueDecoder({"P": StructType((Field("k", PubkeyType()),))})
        assert decoder.min_size(DefinedType("P")) == 32
        assert decoder.min_size(FixedArrayType(UIntType(2), 3)) == 6
        assert decoder.min_size(ListType(PubkeyType())) == 4
        assert decoder.min_size(OptionType(PubkeyType(), flag_width=4)) == 4
