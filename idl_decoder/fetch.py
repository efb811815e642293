"""
Schema fetch collaborators.

Any callable `fetch(program_id) -> bytes` can back a `SchemaCache`. Two are
provided:
  - `RpcIdlFetcher` reads the program's on-chain IDL account over JSON-RPC;
  - `DirectoryIdlFetcher` reads `<program_id>.json` files for offline work.

On-chain IDL account layout:
  0x00  8 bytes   account tag
  0x08  32 bytes  authority
  0x28  u32       compressed length
  0x2C  ...       zlib(IDL JSON)
"""

from __future__ import annotations

import base64
import logging
import zlib
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import requests

from .config import RPC_DEFAULT, TIMEOUT_DEFAULT
from .errors import IdlParseError, RpcError, SchemaUnavailable
from .pubkey import Pubkey, idl_address

logger = logging.getLogger(__name__)

IDL_AUTHORITY_OFFSET = 8
IDL_LENGTH_OFFSET = 40
IDL_DATA_OFFSET = 44


def inflate_idl_account(data: bytes) -> bytes:
    if len(data) < IDL_DATA_OFFSET:
        raise IdlParseError(f"IDL account is the wrong size: {len(data)} bytes")
    length = int.from_bytes(data[IDL_LENGTH_OFFSET:IDL_DATA_OFFSET], "little")
    compressed = data[IDL_DATA_OFFSET : IDL_DATA_OFFSET + length]
    if len(compressed) != length:
        raise IdlParseError(
            f"IDL account declares {length} compressed bytes, holds {len(compressed)}"
        )
    try:
        return zlib.decompress(compressed)
    except zlib.error as exc:
        raise IdlParseError(f"IDL payload is not zlib data: {exc}") from exc


class RpcIdlFetcher:
    def __init__(
        self,
        endpoint: str = RPC_DEFAULT,
        *,
        timeout: float = TIMEOUT_DEFAULT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self._session = session or requests.Session()

    def rpc_request(self, method: str, params: List[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params,
        }
        try:
            response = self._session.post(
                self.endpoint,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            doc = response.json()
        except requests.RequestException as exc:
            raise RpcError(f"{method} request failed: {exc}") from exc
        except ValueError as exc:
            raise RpcError(f"{method} returned invalid JSON") from exc
        if "error" in doc:
            raise RpcError(f"{method} returned error: {doc['error']}")
        return doc.get("result")

    def get_account(self, address: Pubkey) -> Optional[Dict[str, Any]]:
        result = self.rpc_request(
            "getAccountInfo",
            [str(address), {"encoding": "base64", "commitment": "confirmed"}],
        )
        value = result.get("value") if result else None
        if not value:
            return None
        data_b64, _encoding = value["data"]
        return {
            "data": base64.b64decode(data_b64),
            "owner": value.get("owner"),
            "executable": bool(value.get("executable")),
        }

    def __call__(self, program_id: Pubkey) -> bytes:
        account = self.get_account(program_id)
        if account is None:
            raise SchemaUnavailable(f"account {program_id} not found")
        if account["executable"]:
            idl_account = idl_address(program_id)
            logger.debug("IDL account for %s is %s", program_id, idl_account)
            account = self.get_account(idl_account)
            if account is None:
                raise SchemaUnavailable(f"{program_id} has no on-chain IDL")
        return inflate_idl_account(account["data"])


class DirectoryIdlFetcher:
    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)

    def __call__(self, program_id: Pubkey) -> bytes:
        path = self.root / f"{program_id}.json"
        if not path.is_file():
            raise SchemaUnavailable(f"no IDL file {path}")
        return path.read_bytes()


__all__ = ["RpcIdlFetcher", "DirectoryIdlFetcher", "inflate_idl_account"]
