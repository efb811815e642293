"""
Session scoped program address -> schema cache.

Entries are compiled once (document + tag table + decoder) and replaced
wholesale on re-registration. A miss calls the injected fetcher; concurrent
misses for the same address wait on a single in-flight fetch, misses for
different addresses proceed independently. The lock is never held while a
fetch runs.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .decoder import DEFAULT_MAX_DEPTH, ValueDecoder
from .errors import SchemaLoadError, SchemaUnavailable
from .pubkey import Pubkey
from .schema import SchemaDocument, parse_schema
from .tags import TagTable

logger = logging.getLogger(__name__)

Fetcher = Callable[[Pubkey], bytes]
AddressLike = Union[Pubkey, str, bytes]


@dataclass(frozen=True)
class CompiledSchema:
    document: SchemaDocument
    tags: TagTable
    decoder: ValueDecoder

    @classmethod
    def build(cls, document: SchemaDocument, max_depth: int = DEFAULT_MAX_DEPTH) -> "CompiledSchema":
        return cls(
            document=document,
            tags=TagTable.from_schema(document),
            decoder=ValueDecoder(document.type_table(), max_depth=max_depth),
        )


class SchemaCache:
    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self._fetcher = fetcher
        self._max_depth = max_depth
        self._entries: Dict[Pubkey, CompiledSchema] = {}
        self._inflight: Dict[Pubkey, concurrent.futures.Future] = {}
        self._lock = threading.Lock()

    def __contains__(self, address: object) -> bool:
        try:
            key = Pubkey.coerce(address)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return False
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def addresses(self) -> List[Pubkey]:
        with self._lock:
            return list(self._entries)

    def entries(self) -> List[Tuple[Pubkey, CompiledSchema]]:
        with self._lock:
            return list(self._entries.items())

    def peek(self, address: AddressLike) -> Optional[CompiledSchema]:
        """Cached entry or None; never fetches."""
        key = Pubkey.coerce(address)
        with self._lock:
            return self._entries.get(key)

    def register(
        self,
        address: AddressLike,
        document: Union[SchemaDocument, bytes, str, Mapping[str, Any]],
    ) -> CompiledSchema:
        key = Pubkey.coerce(address)
        if not isinstance(document, SchemaDocument):
            document = parse_schema(document, key)
        else:
            document.validate()
        compiled = CompiledSchema.build(document.with_address(key), self._max_depth)
        with self._lock:
            replaced = key in self._entries
            self._entries[key] = compiled
        logger.info(
            "%s schema %s for %s", "replaced" if replaced else "registered", document.name, key
        )
        return compiled

    def get(self, address: AddressLike) -> CompiledSchema:
        key = Pubkey.coerce(address)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                logger.debug("schema cache hit for %s", key)
                return entry
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = concurrent.futures.Future()
                self._inflight[key] = future

        if not owner:
            logger.debug("waiting on in-flight fetch for %s", key)
            return future.result()

        try:
            compiled = self._load(key)
        except Exception as exc:
            with self._lock:
                self._inflight.pop(key, None)
            future.set_exception(exc)
            raise

        with self._lock:
            # A registration that raced the fetch wins.
            compiled = self._entries.setdefault(key, compiled)
            self._inflight.pop(key, None)
        future.set_result(compiled)
        return compiled

    def _load(self, address: Pubkey) -> CompiledSchema:
        if self._fetcher is None:
            raise SchemaUnavailable(f"no schema registered for {address}")
        logger.info("fetching IDL for %s", address)
        try:
            raw = self._fetcher(address)
        except SchemaLoadError:
            raise
        except Exception as exc:
            logger.warning("IDL fetch for %s failed: %s", address, exc)
            raise SchemaUnavailable(f"fetching IDL for {address} failed: {exc}") from exc
        if not raw:
            raise SchemaUnavailable(f"no IDL published for {address}")
        return CompiledSchema.build(parse_schema(raw, address), self._max_depth)

    def prefetch(
        self,
        addresses: Iterable[AddressLike],
        max_workers: int = 8,
    ) -> Dict[Pubkey, Exception]:
        """Load many schemas in parallel; returns the failures keyed by address."""
        pending = {Pubkey.coerce(a) for a in addresses}
        pending = {a for a in pending if a not in self}
        failures: Dict[Pubkey, Exception] = {}
        if not pending:
            return failures
        workers = max(1, min(max_workers, len(pending)))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_address = {executor.submit(self.get, a): a for a in pending}
            for future in concurrent.futures.as_completed(future_to_address):
                address = future_to_address[future]
                try:
                    future.result()
                except Exception as exc:
                    failures[address] = exc
        return failures


__all__ = ["CompiledSchema", "SchemaCache", "Fetcher"]
