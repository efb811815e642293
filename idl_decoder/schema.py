"""
Schema documents: a program's instructions, account layouts, named types and
error codes, parsed from Anchor IDL JSON.

Both IDL generations are accepted:
  - legacy (<0.30): ``isMut`` / ``isSigner``, ``publicKey``, ``{"defined": "X"}``,
    account layouts inline under ``accounts``;
  - 0.30+: ``writable`` / ``signer``, ``pubkey``, ``{"defined": {"name": "X"}}``,
    explicit ``discriminator`` arrays, account layouts under ``types``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .errors import IdlDecoderError, IdlParseError, SchemaInconsistent
from .pubkey import Pubkey
from .tags import account_tag, instruction_tag, state_instruction_tag
from .types import (
    StructType,
    TypeRef,
    parse_fields,
    parse_type_definition,
    referenced_names,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountItem:
    name: str
    is_signer: bool = False
    is_mutable: bool = False
    is_optional: bool = False


@dataclass(frozen=True)
class InstructionDef:
    name: str
    tag: bytes
    accounts: Tuple[AccountItem, ...] = ()
    args: StructType = StructType()
    aliases: Tuple[bytes, ...] = ()

    @property
    def required_accounts(self) -> int:
        """Declared accounts minus the optional ones at the end of the list."""
        count = len(self.accounts)
        while count and self.accounts[count - 1].is_optional:
            count -= 1
        return count


@dataclass(frozen=True)
class AccountDef:
    name: str
    tag: bytes
    fields: StructType = StructType()


@dataclass(frozen=True)
class ErrorDef:
    code: int
    name: str
    message: Optional[str] = None


@dataclass(frozen=True)
class SchemaDocument:
    address: Optional[Pubkey]
    name: str
    instructions: Tuple[InstructionDef, ...] = ()
    accounts: Tuple[AccountDef, ...] = ()
    types: Mapping[str, TypeRef] = field(default_factory=dict)
    errors: Mapping[int, ErrorDef] = field(default_factory=dict)
    version: Optional[str] = None

    def type_table(self) -> Dict[str, TypeRef]:
        """Named types visible to `Defined`; `types` shadow account layouts."""
        table: Dict[str, TypeRef] = {acc.name: acc.fields for acc in self.accounts}
        table.update(self.types)
        return table

    def error_message(self, code: int) -> Optional[str]:
        entry = self.errors.get(code)
        if entry is None:
            return None
        return entry.message or entry.name

    def instruction(self, name: str) -> Optional[InstructionDef]:
        for ix in self.instructions:
            if ix.name == name:
                return ix
        return None

    def with_address(self, address: Pubkey) -> "SchemaDocument":
        if self.address == address:
            return self
        return SchemaDocument(
            address=address,
            name=self.name,
            instructions=self.instructions,
            accounts=self.accounts,
            types=self.types,
            errors=self.errors,
            version=self.version,
        )

    def validate(self) -> None:
        """Reject clashing tags (`IdlParseError`) and dangling references."""
        _check_unique((ix.tag for ix in self.instructions), "instruction")
        _check_unique((acc.tag for acc in self.accounts), "account")

        known = self.type_table()
        owners: List[Tuple[str, TypeRef]] = []
        owners.extend((f"type {name}", ty) for name, ty in self.types.items())
        owners.extend((f"account {acc.name}", acc.fields) for acc in self.accounts)
        owners.extend((f"instruction {ix.name}", ix.args) for ix in self.instructions)
        for owner, type_ref in owners:
            for name in referenced_names(type_ref):
                if name not in known:
                    raise SchemaInconsistent(
                        f"{self.name}: {owner} refers to undefined type {name!r}"
                    )


def _check_unique(tags: Iterable[bytes], section: str) -> None:
    seen = set()
    for tag in tags:
        if tag in seen:
            raise IdlParseError(f"duplicate {section} tag {tag.hex()}")
        seen.add(tag)


def _explicit_tag(node: Mapping[str, Any]) -> Optional[bytes]:
    raw = node.get("discriminator")
    if raw is None:
        return None
    # An empty list is a zero-width tag that names only the empty payload.
    if not isinstance(raw, list):
        raise IdlParseError(f"{node.get('name')}: discriminator must be a byte list")
    try:
        return bytes(raw)
    except (TypeError, ValueError) as exc:
        raise IdlParseError(f"{node.get('name')}: bad discriminator {raw!r}") from exc


def _flag(node: Mapping[str, Any], *keys: str) -> bool:
    for key in keys:
        if key in node:
            return bool(node[key])
    return False


def _parse_account_items(nodes: Any, prefix: str = "") -> List[AccountItem]:
    if nodes is None:
        return []
    if not isinstance(nodes, list):
        raise IdlParseError("instruction accounts must be a list")
    items: List[AccountItem] = []
    for node in nodes:
        if not isinstance(node, dict) or not isinstance(node.get("name"), str):
            raise IdlParseError(f"malformed account item: {node!r}")
        name = prefix + node["name"]
        if "accounts" in node:
            # Composite account groups are flattened in declaration order.
            items.extend(_parse_account_items(node["accounts"], prefix=name + "."))
            continue
        items.append(
            AccountItem(
                name=name,
                is_signer=_flag(node, "signer", "isSigner"),
                is_mutable=_flag(node, "writable", "isMut"),
                is_optional=_flag(node, "optional", "isOptional"),
            )
        )
    return items


def _parse_instruction(node: Any) -> InstructionDef:
    if not isinstance(node, dict) or not isinstance(node.get("name"), str):
        raise IdlParseError(f"malformed instruction: {node!r}")
    name = node["name"]
    explicit = _explicit_tag(node)
    return InstructionDef(
        name=name,
        tag=explicit if explicit is not None else instruction_tag(name),
        accounts=tuple(_parse_account_items(node.get("accounts"))),
        args=parse_fields(node.get("args")),
        aliases=() if explicit is not None else (state_instruction_tag(name),),
    )


def _parse_types(nodes: Any) -> Dict[str, TypeRef]:
    types: Dict[str, TypeRef] = {}
    for node in nodes or []:
        if not isinstance(node, dict) or not isinstance(node.get("name"), str):
            raise IdlParseError(f"malformed type definition: {node!r}")
        if node["name"] in types:
            raise IdlParseError(f"duplicate type {node['name']!r}")
        types[node["name"]] = parse_type_definition(node.get("type"))
    return types


def _parse_account(node: Any, types: Mapping[str, TypeRef]) -> AccountDef:
    if not isinstance(node, dict) or not isinstance(node.get("name"), str):
        raise IdlParseError(f"malformed account definition: {node!r}")
    name = node["name"]
    if "type" in node:
        layout = parse_type_definition(node["type"])
    elif name in types:
        layout = types[name]
    else:
        raise SchemaInconsistent(f"account {name!r} has no layout in types")
    if not isinstance(layout, StructType):
        raise IdlParseError(f"account {name!r} layout must be a struct")
    explicit = _explicit_tag(node)
    return AccountDef(
        name=name,
        tag=explicit if explicit is not None else account_tag(name),
        fields=layout,
    )


def _parse_errors(nodes: Any) -> Dict[int, ErrorDef]:
    errors: Dict[int, ErrorDef] = {}
    for node in nodes or []:
        if not isinstance(node, dict) or not isinstance(node.get("code"), int):
            raise IdlParseError(f"malformed error entry: {node!r}")
        errors[node["code"]] = ErrorDef(
            code=node["code"],
            name=str(node.get("name", "")),
            message=node.get("msg"),
        )
    return errors


def parse_schema(
    raw: Union[bytes, str, Mapping[str, Any]],
    address: Union[Pubkey, str, None] = None,
) -> SchemaDocument:
    """
    Parse and validate an IDL document.

    Raises `IdlParseError` for any malformed input, including shapes the field
    level checks do not anticipate and nesting too deep to walk.
    """
    try:
        return _build_schema(raw, address)
    except IdlDecoderError:
        raise
    except (TypeError, ValueError, KeyError, AttributeError, RecursionError) as exc:
        raise IdlParseError(f"malformed IDL: {type(exc).__name__}: {exc}") from exc


def _build_schema(
    raw: Union[bytes, str, Mapping[str, Any]],
    address: Union[Pubkey, str, None],
) -> SchemaDocument:
    if isinstance(raw, (bytes, bytearray, str)):
        try:
            doc = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise IdlParseError(f"IDL is not valid JSON: {exc}") from exc
    else:
        doc = raw
    if not isinstance(doc, Mapping):
        raise IdlParseError("IDL document must be a JSON object")

    metadata = doc.get("metadata") or {}
    if not isinstance(metadata, Mapping):
        raise IdlParseError("IDL metadata must be an object")
    name = doc.get("name") or metadata.get("name") or "<unnamed>"
    version = doc.get("version") or metadata.get("version")

    if address is None:
        address = doc.get("address") or metadata.get("address")
    try:
        program = Pubkey.coerce(address) if address is not None else None
    except ValueError as exc:
        raise IdlParseError(f"{name}: invalid program address {address!r}") from exc

    instructions = doc.get("instructions", [])
    if not isinstance(instructions, list):
        raise IdlParseError(f"{name}: instructions must be a list")

    types = _parse_types(doc.get("types"))
    document = SchemaDocument(
        address=program,
        name=str(name),
        version=str(version) if version is not None else None,
        instructions=tuple(_parse_instruction(node) for node in instructions),
        accounts=tuple(_parse_account(node, types) for node in doc.get("accounts") or []),
        types=types,
        errors=_parse_errors(doc.get("errors")),
    )
    document.validate()
    logger.debug(
        "parsed IDL %s: %d instructions, %d accounts, %d types",
        document.name,
        len(document.instructions),
        len(document.accounts),
        len(document.types),
    )
    return document


__all__ = [
    "AccountItem",
    "InstructionDef",
    "AccountDef",
    "ErrorDef",
    "SchemaDocument",
    "parse_schema",
]
