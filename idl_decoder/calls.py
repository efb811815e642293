"""
Raw call inputs and decoded results.

Results always keep their raw input, so a caller can fall back to a hex dump
when decoding fails.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .pubkey import Pubkey
from .values import StructValue

STATUS_TRUE = "true"
STATUS_FALSE = "false"
STATUS_FAILED_ESCALATION = "failed_to_escalate_privilege"
STATUS_UNNECESSARY_ESCALATION = "unnecessary_privilege_escalation"


def privilege_status(expected: bool, granted: bool) -> str:
    if expected and granted:
        return STATUS_TRUE
    if expected:
        return STATUS_FAILED_ESCALATION
    if granted:
        return STATUS_UNNECESSARY_ESCALATION
    return STATUS_FALSE


@dataclass(frozen=True)
class AccountRef:
    address: Pubkey
    is_signer: bool = False
    is_writable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pubkey": str(self.address),
            "is_signer": self.is_signer,
            "is_writable": self.is_writable,
        }


@dataclass(frozen=True)
class RawCall:
    program_id: Pubkey
    accounts: Tuple[AccountRef, ...]
    data: bytes


@dataclass(frozen=True)
class DecodeFailure:
    kind: str
    message: str

    @classmethod
    def from_exception(cls, exc: Exception) -> "DecodeFailure":
        return cls(kind=type(exc).__name__, message=str(exc))

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


@dataclass(frozen=True)
class AccountBinding:
    """A declared instruction account paired with the supplied reference."""

    name: str
    address: Optional[Pubkey]
    is_signer: bool = False
    is_writable: bool = False
    expects_signer: bool = False
    expects_mutable: bool = False
    is_optional: bool = False

    @property
    def is_bound(self) -> bool:
        return self.address is not None

    @property
    def signer_status(self) -> str:
        return privilege_status(self.expects_signer, self.is_signer)

    @property
    def mutable_status(self) -> str:
        return privilege_status(self.expects_mutable, self.is_writable)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "pubkey": None if self.address is None else str(self.address),
            "is_signer": self.signer_status,
            "is_mut": self.mutable_status,
        }


@dataclass(frozen=True)
class DecodedCall:
    raw: RawCall
    schema_name: Optional[str] = None
    name: Optional[str] = None
    accounts: Tuple[AccountBinding, ...] = ()
    args: Optional[StructValue] = None
    remaining_accounts: Tuple[AccountRef, ...] = ()
    error: Optional[DecodeFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def program_id(self) -> Pubkey:
        return self.raw.program_id

    def account(self, name: str) -> AccountBinding:
        for binding in self.accounts:
            if binding.name == name:
                return binding
        raise KeyError(name)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "program_id": str(self.program_id),
            "program_name": self.schema_name,
        }
        if self.error is not None:
            out["error"] = self.error.to_dict()
            out["data"] = self.raw.data.hex()
            out["accounts"] = [ref.to_dict() for ref in self.raw.accounts]
            return out
        out["name"] = self.name
        out["data"] = self.args.to_json() if self.args is not None else {}
        out["accounts"] = [binding.to_dict() for binding in self.accounts]
        if self.remaining_accounts:
            out["remaining_accounts"] = [ref.to_dict() for ref in self.remaining_accounts]
        return out


@dataclass(frozen=True)
class DecodedAccount:
    owner: Pubkey
    data: bytes
    schema_name: Optional[str] = None
    name: Optional[str] = None
    value: Optional[StructValue] = None
    error: Optional[DecodeFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "owner": str(self.owner),
            "program_name": self.schema_name,
        }
        if self.error is not None:
            out["error"] = self.error.to_dict()
            out["data"] = self.data.hex()
        else:
            out["account_type"] = self.name
            out["deserialized"] = self.value.to_json() if self.value is not None else {}
        return out


@dataclass(frozen=True)
class CompositeEntry:
    call: DecodedCall
    inner: Tuple[DecodedCall, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        out = self.call.to_dict()
        out["inner_instructions"] = [call.to_dict() for call in self.inner]
        return out


@dataclass(frozen=True)
class CompositeView:
    entries: Tuple[CompositeEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> CompositeEntry:
        return self.entries[index]

    def __iter__(self) -> Iterator[CompositeEntry]:
        return iter(self.entries)

    def calls(self) -> List[DecodedCall]:
        """Every call, top-level first, each followed by its inner calls."""
        out: List[DecodedCall] = []
        for entry in self.entries:
            out.append(entry.call)
            out.extend(entry.inner)
        return out

    def failures(self) -> List[DecodedCall]:
        return [call for call in self.calls() if not call.ok]

    def to_dict(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.entries]


def make_call(
    program_id,
    accounts: Sequence = (),
    data: bytes = b"",
) -> RawCall:
    """Build a RawCall from loose inputs (strings, tuples, AccountRefs)."""
    refs = []
    for item in accounts:
        if isinstance(item, AccountRef):
            refs.append(item)
        elif isinstance(item, tuple):
            address, *flags = item
            refs.append(AccountRef(Pubkey.coerce(address), *flags))
        else:
            refs.append(AccountRef(Pubkey.coerce(item)))
    return RawCall(Pubkey.coerce(program_id), tuple(refs), bytes(data))


__all__ = [
    "AccountRef",
    "RawCall",
    "DecodeFailure",
    "AccountBinding",
    "DecodedCall",
    "DecodedAccount",
    "CompositeEntry",
    "CompositeView",
    "privilege_status",
    "make_call",
]
