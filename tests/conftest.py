"""Shared fixtures for the idl_decoder test suite."""
import struct
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from idl_decoder.pubkey import Pubkey


def make_key(fill: int) -> Pubkey:
    """Deterministic test address: 32 copies of one byte."""
    return Pubkey(bytes([fill]) * 32)


TRANSFER_TAG = [1, 2, 3, 4, 5, 6, 7, 8]


@pytest.fixture
def program_id() -> Pubkey:
    return make_key(7)


@pytest.fixture
def other_program_id() -> Pubkey:
    return make_key(9)


@pytest.fixture
def alice() -> Pubkey:
    return make_key(1)


@pytest.fixture
def bob() -> Pubkey:
    return make_key(2)


@pytest.fixture
def transfer_idl(program_id) -> Dict[str, Any]:
    """Minimal 0.30 style IDL with one explicitly tagged instruction."""
    return {
        "address": str(program_id),
        "metadata": {"name": "vault", "version": "0.1.0"},
        "instructions": [
            {
                "name": "transfer",
                "discriminator": TRANSFER_TAG,
                "accounts": [
                    {"name": "from", "signer": True, "writable": True},
                    {"name": "to", "writable": True},
                ],
                "args": [{"name": "amount", "type": "u64"}],
            }
        ],
        "accounts": [{"name": "Vault", "discriminator": [9, 9, 9, 9, 9, 9, 9, 9]}],
        "types": [
            {
                "name": "Vault",
                "type": {
                    "kind": "struct",
                    "fields": [
                        {"name": "owner", "type": "pubkey"},
                        {"name": "balance", "type": "u64"},
                        {"name": "state", "type": {"defined": {"name": "VaultState"}}},
                    ],
                },
            },
            {
                "name": "VaultState",
                "type": {
                    "kind": "enum",
                    "variants": [{"name": "Open"}, {"name": "Frozen"}],
                },
            },
        ],
        "errors": [{"code": 6000, "name": "Empty", "msg": "vault is empty"}],
    }


@pytest.fixture
def legacy_idl() -> Dict[str, Any]:
    """Pre-0.30 IDL: hashed tags, isMut/isSigner, inline account layouts."""
    return {
        "version": "0.1.0",
        "name": "counter",
        "instructions": [
            {
                "name": "initialize",
                "accounts": [
                    {"name": "counter", "isMut": True, "isSigner": False},
                    {"name": "authority", "isMut": False, "isSigner": True},
                    {"name": "referrer", "isMut": False, "isSigner": False, "isOptional": True},
                ],
                "args": [{"name": "start", "type": "u32"}],
            },
            {
                "name": "setLabel",
                "accounts": [
                    {
                        "name": "common",
                        "accounts": [
                            {"name": "counter", "isMut": True, "isSigner": False},
                            {"name": "authority", "isMut": False, "isSigner": True},
                        ],
                    }
                ],
                "args": [
                    {"name": "label", "type": "string"},
                    {"name": "tags", "type": {"vec": {"defined": "Tag"}}},
                ],
            },
        ],
        "accounts": [
            {
                "name": "Counter",
                "type": {
                    "kind": "struct",
                    "fields": [
                        {"name": "authority", "type": "publicKey"},
                        {"name": "count", "type": "u64"},
                        {"name": "label", "type": {"option": "string"}},
                    ],
                },
            }
        ],
        "types": [
            {
                "name": "Tag",
                "type": {
                    "kind": "struct",
                    "fields": [
                        {"name": "key", "type": {"array": ["u8", 4]}},
                        {"name": "weight", "type": "i16"},
                    ],
                },
            }
        ],
    }


@pytest.fixture
def transfer_data() -> bytes:
    return bytes(TRANSFER_TAG) + struct.pack("<Q", 100_000_000)
