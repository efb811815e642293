"""
Public keys, base58 and derived addresses.

The PDA helpers follow the runtime exactly: sha256 over the seeds, the program
id and the `ProgramDerivedAddress` marker, rejecting digests that land on the
ed25519 curve.
"""

from __future__ import annotations

import hashlib
from typing import Iterable, Sequence, Tuple, Union

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_B58_INDEX = {c: i for i, c in enumerate(BASE58_ALPHABET)}
ED25519_P = 2**255 - 19
ED25519_D = (-121665 * pow(121666, -1, ED25519_P)) % ED25519_P
PUBKEY_LENGTH = 32
MAX_SEED_LENGTH = 32


def b58encode(data: bytes) -> str:
    zeros = len(data) - len(data.lstrip(b"\0"))
    num = int.from_bytes(data, "big")
    digits = []
    while num:
        num, rem = divmod(num, 58)
        digits.append(BASE58_ALPHABET[rem])
    return "1" * zeros + "".join(reversed(digits))


def b58decode(data: str) -> bytes:
    """Decode base58 of any length (instruction data is not always 32 bytes)."""
    num = 0
    for ch in data:
        try:
            num = num * 58 + _B58_INDEX[ch]
        except KeyError:
            raise ValueError(f"invalid base58 character {ch!r}") from None
    pad = len(data) - len(data.lstrip("1"))
    raw = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    return b"\x00" * pad + raw


class Pubkey:
    """Immutable 32-byte account address."""

    __slots__ = ("_raw",)

    def __init__(self, raw: bytes) -> None:
        if len(raw) != PUBKEY_LENGTH:
            raise ValueError(f"pubkey must be {PUBKEY_LENGTH} bytes, got {len(raw)}")
        self._raw = bytes(raw)

    @classmethod
    def from_string(cls, value: str) -> "Pubkey":
        return cls(b58decode(value))

    @classmethod
    def coerce(cls, value: Union["Pubkey", str, bytes]) -> "Pubkey":
        if isinstance(value, Pubkey):
            return value
        if isinstance(value, str):
            return cls.from_string(value)
        return cls(value)

    def __bytes__(self) -> bytes:
        return self._raw

    def __str__(self) -> str:
        return b58encode(self._raw)

    def __repr__(self) -> str:
        return f"Pubkey({self})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Pubkey):
            return self._raw == other._raw
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._raw)


def is_on_curve(pubkey: bytes) -> bool:
    """
    Whether 32 bytes decompress to an ed25519 point.

    With the sign bit masked off the bytes give y, and the point exists iff
    x^2 = (y^2 - 1) / (d*y^2 + 1) has a root mod p (Euler's criterion).
    """
    if len(pubkey) != PUBKEY_LENGTH:
        return False
    y = (int.from_bytes(pubkey, "little") & ((1 << 255) - 1)) % ED25519_P
    yy = y * y % ED25519_P
    x2 = (yy - 1) * pow(ED25519_D * yy + 1, -1, ED25519_P) % ED25519_P
    return x2 == 0 or pow(x2, (ED25519_P - 1) // 2, ED25519_P) == 1


def create_program_address(seeds: Iterable[bytes], program_id: Pubkey) -> Pubkey:
    hasher = hashlib.sha256()
    for seed in seeds:
        if len(seed) > MAX_SEED_LENGTH:
            raise ValueError("seed longer than 32 bytes")
        hasher.update(seed)
    hasher.update(bytes(program_id))
    hasher.update(b"ProgramDerivedAddress")
    digest = hasher.digest()
    if is_on_curve(digest):
        raise ValueError("derived address lies on the curve")
    return Pubkey(digest)


def find_program_address(
    seeds: Sequence[bytes],
    program_id: Pubkey,
) -> Tuple[Pubkey, int]:
    seeds_tuple = tuple(seeds)
    for bump in range(255, -1, -1):
        try:
            addr = create_program_address(seeds_tuple + (bytes([bump]),), program_id)
            return addr, bump
        except ValueError:
            continue
    raise RuntimeError("no viable bump seed")


def create_with_seed(base: Pubkey, seed: str, owner: Pubkey) -> Pubkey:
    raw_seed = seed.encode("utf-8")
    if len(raw_seed) > MAX_SEED_LENGTH:
        raise ValueError("seed longer than 32 bytes")
    digest = hashlib.sha256(bytes(base) + raw_seed + bytes(owner)).digest()
    return Pubkey(digest)


def idl_address(program_id: Pubkey) -> Pubkey:
    """Address of the account holding a program's compressed IDL."""
    base, _bump = find_program_address((), program_id)
    return create_with_seed(base, "anchor:idl", program_id)


__all__ = [
    "BASE58_ALPHABET",
    "Pubkey",
    "b58encode",
    "b58decode",
    "is_on_curve",
    "create_program_address",
    "find_program_address",
    "create_with_seed",
    "idl_address",
]
