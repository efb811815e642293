"""
Tag derivation and tag -> definition lookup tables.

Anchor tags are the first 8 bytes of sha256 over a namespaced name:
  - instructions: ``global:<snake_case_name>`` (and legacy ``state:<name>``)
  - accounts:     ``account:<Name>``
A schema may override any of them with an explicit byte array, which is how
non-Anchor programs (0, 1 or 4 byte tags) are described. A zero-width tag
matches only an empty payload.
"""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Tuple

from .errors import Truncated, UnknownTag

if TYPE_CHECKING:
    from .schema import AccountDef, InstructionDef, SchemaDocument

logger = logging.getLogger(__name__)

TAG_LENGTH = 8

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")


def snake_case(name: str) -> str:
    value = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    value = _WORD_BOUNDARY.sub(r"\1_\2", value)
    return value.replace("-", "_").replace(" ", "_").lower()


def sighash(namespace: str, name: str) -> bytes:
    return hashlib.sha256(f"{namespace}:{name}".encode("utf-8")).digest()[:TAG_LENGTH]


def instruction_tag(name: str) -> bytes:
    return sighash("global", snake_case(name))


def state_instruction_tag(name: str) -> bytes:
    return sighash("state", name)


def account_tag(name: str) -> bytes:
    return sighash("account", name)


@dataclass
class TagTable:
    """Per-schema lookup tables, built once when the schema is loaded."""

    instructions: Dict[bytes, "InstructionDef"] = field(default_factory=dict)
    accounts: Dict[bytes, "AccountDef"] = field(default_factory=dict)

    @classmethod
    def from_schema(cls, document: "SchemaDocument") -> "TagTable":
        table = cls()
        for ix in document.instructions:
            table.instructions[ix.tag] = ix
            for alias in ix.aliases:
                # An explicit tag on another instruction wins over a legacy alias.
                table.instructions.setdefault(alias, ix)
        for account in document.accounts:
            table.accounts[account.tag] = account
        logger.debug(
            "tag table for %s: %d instruction tags, %d account tags",
            document.name,
            len(table.instructions),
            len(table.accounts),
        )
        return table

    @staticmethod
    def _widths(entries: Dict[bytes, object]) -> Tuple[int, ...]:
        return tuple(sorted({len(tag) for tag in entries}, reverse=True))

    def resolve_instruction(self, tag: bytes) -> "InstructionDef":
        try:
            return self.instructions[bytes(tag)]
        except KeyError:
            raise UnknownTag(bytes(tag), "instruction") from None

    def resolve_account(self, tag: bytes) -> "AccountDef":
        try:
            return self.accounts[bytes(tag)]
        except KeyError:
            raise UnknownTag(bytes(tag), "account") from None

    def match_instruction(self, data: bytes) -> Tuple["InstructionDef", bytes]:
        """Split an instruction payload into its definition and argument bytes."""
        return self._match(self.instructions, data, "instruction")

    def match_account(self, data: bytes) -> Tuple["AccountDef", bytes]:
        return self._match(self.accounts, data, "account")

    def _match(self, entries, data: bytes, section: str):
        widths = self._widths(entries) or (TAG_LENGTH,)
        if len(data) < widths[-1]:
            raise Truncated(widths[-1], len(data), 0)
        for width in widths:
            if len(data) < width or (width == 0 and data):
                continue
            definition = entries.get(bytes(data[:width]))
            if definition is not None:
                return definition, bytes(data[width:])
        raise UnknownTag(bytes(data[: widths[0]]), section)


__all__ = [
    "TAG_LENGTH",
    "snake_case",
    "sighash",
    "instruction_tag",
    "state_instruction_tag",
    "account_tag",
    "TagTable",
]
