"""
Hand-written IDL documents for native programs that publish none.

They use explicit discriminators: System instructions carry a u32 tag, the
others a single byte. The Associated Token Account program also accepts an
empty payload as its original `create`.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .schema import SchemaDocument, parse_schema

SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
COMPUTE_BUDGET_PROGRAM_ID = "ComputeBudget111111111111111111111111111111"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
ASSOCIATED_TOKEN_PROGRAM_ID = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"


def _acc(name: str, signer: bool = False, writable: bool = False) -> Dict[str, Any]:
    return {"name": name, "signer": signer, "writable": writable}


def _ix(
    name: str,
    tag: List[int],
    accounts: List[Dict[str, Any]],
    args: List[Dict[str, Any]],
) -> Dict[str, Any]:
    return {"name": name, "discriminator": tag, "accounts": accounts, "args": args}


def _u32_tag(index: int) -> List[int]:
    return list(index.to_bytes(4, "little"))


SYSTEM_IDL: Dict[str, Any] = {
    "address": SYSTEM_PROGRAM_ID,
    "metadata": {"name": "system_program", "version": "0.0.0"},
    "instructions": [
        _ix(
            "create_account",
            _u32_tag(0),
            [_acc("funding_account", True, True), _acc("new_account", True, True)],
            [
                {"name": "lamports", "type": "u64"},
                {"name": "space", "type": "u64"},
                {"name": "owner", "type": "pubkey"},
            ],
        ),
        _ix("assign", _u32_tag(1), [_acc("assigned_account", True, True)],
            [{"name": "owner", "type": "pubkey"}]),
        _ix(
            "transfer",
            _u32_tag(2),
            [_acc("from", True, True), _acc("to", writable=True)],
            [{"name": "lamports", "type": "u64"}],
        ),
        _ix(
            "advance_nonce_account",
            _u32_tag(4),
            [
                _acc("nonce_account", writable=True),
                _acc("recent_blockhashes_sysvar"),
                _acc("nonce_authority", signer=True),
            ],
            [],
        ),
        _ix(
            "withdraw_nonce_account",
            _u32_tag(5),
            [
                _acc("nonce_account", writable=True),
                _acc("recipient", writable=True),
                _acc("recent_blockhashes_sysvar"),
                _acc("rent_sysvar"),
                _acc("nonce_authority", signer=True),
            ],
            [{"name": "lamports", "type": "u64"}],
        ),
        _ix(
            "initialize_nonce_account",
            _u32_tag(6),
            [
                _acc("nonce_account", writable=True),
                _acc("recent_blockhashes_sysvar"),
                _acc("rent_sysvar"),
            ],
            [{"name": "authority", "type": "pubkey"}],
        ),
        _ix(
            "authorize_nonce_account",
            _u32_tag(7),
            [_acc("nonce_account", writable=True), _acc("nonce_authority", signer=True)],
            [{"name": "new_authority", "type": "pubkey"}],
        ),
        _ix("allocate", _u32_tag(8), [_acc("new_account", True, True)],
            [{"name": "space", "type": "u64"}]),
        _ix("upgrade_nonce_account", _u32_tag(12), [_acc("nonce_account", writable=True)], []),
    ],
}

COMPUTE_BUDGET_IDL: Dict[str, Any] = {
    "address": COMPUTE_BUDGET_PROGRAM_ID,
    "metadata": {"name": "compute_budget_program", "version": "0.0.0"},
    "instructions": [
        _ix("request_heap_frame", [1], [], [{"name": "bytes", "type": "u32"}]),
        _ix("set_compute_unit_limit", [2], [], [{"name": "units", "type": "u32"}]),
        _ix("set_compute_unit_price", [3], [], [{"name": "micro_lamports", "type": "u64"}]),
        _ix("set_loaded_accounts_data_size_limit", [4], [], [{"name": "bytes", "type": "u32"}]),
    ],
}

TOKEN_IDL: Dict[str, Any] = {
    "address": TOKEN_PROGRAM_ID,
    "metadata": {"name": "spl_token", "version": "3.5.0"},
    "instructions": [
        _ix(
            "initialize_mint",
            [0],
            [_acc("mint", writable=True), _acc("rent_sysvar")],
            [
                {"name": "decimals", "type": "u8"},
                {"name": "mint_authority", "type": "pubkey"},
                {"name": "freeze_authority", "type": {"option": "pubkey"}},
            ],
        ),
        _ix(
            "initialize_account",
            [1],
            [
                _acc("account", writable=True),
                _acc("mint"),
                _acc("owner"),
                _acc("rent_sysvar"),
            ],
            [],
        ),
        # Multisig signers follow the authority and land in remaining accounts.
        _ix(
            "transfer",
            [3],
            [_acc("source", writable=True), _acc("destination", writable=True), _acc("authority", signer=True)],
            [{"name": "amount", "type": "u64"}],
        ),
        _ix(
            "approve",
            [4],
            [_acc("source", writable=True), _acc("delegate"), _acc("owner", signer=True)],
            [{"name": "amount", "type": "u64"}],
        ),
        _ix("revoke", [5], [_acc("source", writable=True), _acc("owner", signer=True)], []),
        _ix(
            "mint_to",
            [7],
            [_acc("mint", writable=True), _acc("account", writable=True), _acc("authority", signer=True)],
            [{"name": "amount", "type": "u64"}],
        ),
        _ix(
            "burn",
            [8],
            [_acc("account", writable=True), _acc("mint", writable=True), _acc("authority", signer=True)],
            [{"name": "amount", "type": "u64"}],
        ),
        _ix(
            "close_account",
            [9],
            [_acc("account", writable=True), _acc("destination", writable=True), _acc("owner", signer=True)],
            [],
        ),
        _ix(
            "transfer_checked",
            [12],
            [
                _acc("source", writable=True),
                _acc("mint"),
                _acc("destination", writable=True),
                _acc("authority", signer=True),
            ],
            [{"name": "amount", "type": "u64"}, {"name": "decimals", "type": "u8"}],
        ),
        _ix("sync_native", [17], [_acc("account", writable=True)], []),
    ],
}

_ATA_CREATE_ACCOUNTS = [
    _acc("funding_account", True, True),
    _acc("associated_account", writable=True),
    _acc("wallet"),
    _acc("mint"),
    _acc("system_program"),
    _acc("token_program"),
]

ASSOCIATED_TOKEN_IDL: Dict[str, Any] = {
    "address": ASSOCIATED_TOKEN_PROGRAM_ID,
    "metadata": {"name": "spl_associated_token_program", "version": "1.1.1"},
    "instructions": [
        # Before tags existed `create` was sent with no data and a trailing rent sysvar.
        _ix(
            "create",
            [],
            _ATA_CREATE_ACCOUNTS + [dict(_acc("rent_sysvar"), optional=True)],
            [],
        ),
        _ix("create", [0], _ATA_CREATE_ACCOUNTS, []),
        _ix("create_idempotent", [1], _ATA_CREATE_ACCOUNTS, []),
        _ix(
            "recover_nested",
            [2],
            [
                _acc("nested_associated_account", writable=True),
                _acc("nested_mint"),
                _acc("destination_associated_account", writable=True),
                _acc("owner_associated_account"),
                _acc("owner_mint"),
                _acc("wallet", True, True),
                _acc("token_program"),
            ],
            [],
        ),
    ],
}

BUILTIN_IDLS = (SYSTEM_IDL, COMPUTE_BUDGET_IDL, TOKEN_IDL, ASSOCIATED_TOKEN_IDL)


def builtin_schemas() -> List[SchemaDocument]:
    return [parse_schema(doc) for doc in BUILTIN_IDLS]


__all__ = [
    "SYSTEM_PROGRAM_ID",
    "COMPUTE_BUDGET_PROGRAM_ID",
    "TOKEN_PROGRAM_ID",
    "ASSOCIATED_TOKEN_PROGRAM_ID",
    "builtin_schemas",
]
