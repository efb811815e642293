"""
Turn a `getTransaction` RPC result (encoding "json") into raw calls.

Account flags come from the message header: the first `numRequiredSignatures`
keys sign, and the trailing `numReadonly*` keys of each group are read-only.
Addresses loaded from lookup tables follow the static keys, writable first.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence, Tuple

from .calls import AccountRef, RawCall
from .pubkey import Pubkey, b58decode

CompositeEntries = List[Tuple[RawCall, List[RawCall]]]


def build_account_table(result: Mapping[str, Any]) -> List[AccountRef]:
    """Static message keys with their header flags, then lookup-table addresses."""
    transaction = result.get("transaction")
    if not transaction or not transaction.get("message"):
        raise ValueError("RPC response carries no transaction message")
    message = transaction["message"]
    keys = message.get("accountKeys", [])
    header = message.get("header") or {}
    signed = int(header.get("numRequiredSignatures", 0))
    # Each group ends with its read-only keys.
    signed_writable_end = signed - int(header.get("numReadonlySignedAccounts", 0))
    unsigned_writable_end = len(keys) - int(header.get("numReadonlyUnsignedAccounts", 0))

    table: List[AccountRef] = []
    for idx, key in enumerate(keys):
        is_signer = idx < signed
        writable = idx < (signed_writable_end if is_signer else unsigned_writable_end)
        if isinstance(key, dict):
            # jsonParsed keys carry their own flags.
            if key.get("writable") is not None:
                writable = bool(key["writable"])
            key = key.get("pubkey")
        if not key:
            raise ValueError(f"account key {idx} has no pubkey")
        table.append(AccountRef(Pubkey.from_string(str(key)), is_signer, writable))

    loaded = (result.get("meta") or {}).get("loadedAddresses") or {}
    table.extend(AccountRef(Pubkey.from_string(str(a)), False, True) for a in loaded.get("writable", []))
    table.extend(AccountRef(Pubkey.from_string(str(a)), False, False) for a in loaded.get("readonly", []))
    return table


def _raw_call(instr: Mapping[str, Any], table: Sequence[AccountRef]) -> RawCall:
    try:
        program = table[int(instr["programIdIndex"])].address
        accounts = tuple(table[int(i)] for i in instr.get("accounts", []))
    except (KeyError, IndexError, TypeError) as exc:
        raise ValueError(f"instruction refers to an unknown account: {exc}") from exc
    return RawCall(program, accounts, b58decode(instr.get("data", "")))


def composite_from_rpc(tx_json: Mapping[str, Any]) -> CompositeEntries:
    """Top-level calls in order, each paired with its inner calls."""
    result = tx_json["result"] if "result" in tx_json else tx_json
    if not result:
        raise ValueError("transaction not found")

    table = build_account_table(result)
    message = result["transaction"]["message"]
    meta = result.get("meta") or {}

    inner_by_index: Dict[int, List[RawCall]] = {}
    for block in meta.get("innerInstructions") or []:
        outer_index = int(block.get("index", -1))
        inner_by_index.setdefault(outer_index, []).extend(
            _raw_call(instr, table) for instr in block.get("instructions", [])
        )

    return [
        (_raw_call(instr, table), inner_by_index.get(idx, []))
        for idx, instr in enumerate(message.get("instructions", []))
    ]


__all__ = ["build_account_table", "composite_from_rpc"]
