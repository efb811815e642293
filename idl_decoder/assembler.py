"""
Bind decoded payloads to their definitions.

Instruction accounts are paired positionally with the supplied references:
declared account i <-> supplied reference i. Optional accounts at the end of the
declaration may be missing; surplus references are kept as remaining accounts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence, Tuple

from .calls import AccountBinding, AccountRef, DecodedAccount, DecodedCall, RawCall
from .errors import AccountCountMismatch
from .pubkey import Pubkey
from .schema import InstructionDef

if TYPE_CHECKING:
    from .cache import CompiledSchema


def bind_accounts(
    instruction: InstructionDef,
    refs: Sequence[AccountRef],
) -> Tuple[Tuple[AccountBinding, ...], Tuple[AccountRef, ...]]:
    required = instruction.required_accounts
    if len(refs) < required:
        raise AccountCountMismatch(instruction.name, required, len(refs))

    bindings: List[AccountBinding] = []
    for idx, item in enumerate(instruction.accounts):
        if idx < len(refs):
            ref = refs[idx]
            bindings.append(
                AccountBinding(
                    name=item.name,
                    address=ref.address,
                    is_signer=ref.is_signer,
                    is_writable=ref.is_writable,
                    expects_signer=item.is_signer,
                    expects_mutable=item.is_mutable,
                    is_optional=item.is_optional,
                )
            )
        else:
            bindings.append(
                AccountBinding(
                    name=item.name,
                    address=None,
                    expects_signer=item.is_signer,
                    expects_mutable=item.is_mutable,
                    is_optional=True,
                )
            )
    remaining = tuple(refs[len(instruction.accounts) :])
    return tuple(bindings), remaining


def assemble_instruction(compiled: "CompiledSchema", call: RawCall) -> DecodedCall:
    instruction, body = compiled.tags.match_instruction(call.data)
    args, _trailing = compiled.decoder.decode_struct(instruction.args, body)
    bindings, remaining = bind_accounts(instruction, call.accounts)
    return DecodedCall(
        raw=call,
        schema_name=compiled.document.name,
        name=instruction.name,
        accounts=bindings,
        args=args,
        remaining_accounts=remaining,
    )


def assemble_account(compiled: "CompiledSchema", owner: Pubkey, data: bytes) -> DecodedAccount:
    account, body = compiled.tags.match_account(data)
    value, _trailing = compiled.decoder.decode_struct(account.fields, body)
    return DecodedAccount(
        owner=owner,
        data=bytes(data),
        schema_name=compiled.document.name,
        name=account.name,
        value=value,
    )


__all__ = ["bind_accounts", "assemble_instruction", "assemble_account"]
