"""
Decoder facade: schema lookup, tag resolution, value decoding and account
binding for single calls, account blobs and whole transactions.

Every call is decoded in isolation. A schema that cannot be loaded or a payload
that does not match its schema turns into `DecodedCall.error` for that call
only; neighbouring calls are unaffected.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

from .assembler import assemble_account, assemble_instruction
from .builtins import builtin_schemas
from .cache import AddressLike, CompiledSchema, Fetcher, SchemaCache
from .calls import (
    CompositeEntry,
    CompositeView,
    DecodedAccount,
    DecodedCall,
    DecodeFailure,
    RawCall,
)
from .config import WORKERS_DEFAULT
from .decoder import DEFAULT_MAX_DEPTH
from .errors import IdlDecoderError
from .pubkey import Pubkey
from .schema import SchemaDocument
from .transaction import composite_from_rpc

logger = logging.getLogger(__name__)

EntryLike = Tuple[RawCall, Sequence[RawCall]]


class Decoder:
    def __init__(
        self,
        cache: Optional[SchemaCache] = None,
        fetcher: Optional[Fetcher] = None,
        builtins: bool = True,
        max_depth: int = DEFAULT_MAX_DEPTH,
        workers: int = WORKERS_DEFAULT,
    ) -> None:
        self.cache = cache if cache is not None else SchemaCache(fetcher, max_depth=max_depth)
        self.workers = workers
        if builtins:
            for document in builtin_schemas():
                if document.address not in self.cache:
                    self.cache.register(document.address, document)

    def register(
        self,
        address: AddressLike,
        document: Union[SchemaDocument, bytes, str, Mapping[str, Any]],
    ) -> CompiledSchema:
        return self.cache.register(address, document)

    def prefetch(self, addresses: Iterable[AddressLike]) -> Dict[Pubkey, Exception]:
        return self.cache.prefetch(addresses, max_workers=self.workers)

    def decode_instruction(self, call: RawCall) -> DecodedCall:
        compiled = None
        try:
            compiled = self.cache.get(call.program_id)
            return assemble_instruction(compiled, call)
        except IdlDecoderError as exc:
            return self._failed_call(call, compiled, exc)

    def decode_account(
        self,
        owner: AddressLike,
        data: bytes,
        try_all: bool = False,
    ) -> DecodedAccount:
        """
        Decode an account blob with its owner's schema. With try_all, fall back
        to every other cached schema and keep the first one whose layout fits.
        """
        owner = Pubkey.coerce(owner)
        data = bytes(data)
        compiled = None
        try:
            compiled = self.cache.get(owner)
            return assemble_account(compiled, owner, data)
        except IdlDecoderError as exc:
            failure = exc

        if try_all:
            for address, candidate in self.cache.entries():
                if address == owner or not candidate.document.accounts:
                    continue
                try:
                    decoded = assemble_account(candidate, owner, data)
                except IdlDecoderError:
                    continue
                logger.info("account owned by %s decoded with schema of %s", owner, address)
                return decoded

        logger.debug("account owned by %s not decoded: %s", owner, failure)
        return DecodedAccount(
            owner=owner,
            data=data,
            schema_name=compiled.document.name if compiled else None,
            error=DecodeFailure.from_exception(failure),
        )

    def decode_composite(self, entries: Iterable[EntryLike]) -> CompositeView:
        entries = [(call, tuple(inner)) for call, inner in entries]
        programs = {call.program_id for call, _ in entries}
        for _, inner in entries:
            programs.update(call.program_id for call in inner)
        unavailable = self.prefetch(programs)

        def decode(call: RawCall) -> DecodedCall:
            if call.program_id in unavailable:
                return self._failed_call(call, None, unavailable[call.program_id])
            return self.decode_instruction(call)

        view = CompositeView(
            tuple(
                CompositeEntry(decode(call), tuple(decode(c) for c in inner))
                for call, inner in entries
            )
        )
        failed = len(view.failures())
        if failed:
            logger.info("%d of %d calls not decoded", failed, len(view.calls()))
        return view

    def decode_transaction(self, tx_json: Mapping[str, Any]) -> CompositeView:
        return self.decode_composite(composite_from_rpc(tx_json))

    @staticmethod
    def _failed_call(
        call: RawCall,
        compiled: Optional[CompiledSchema],
        exc: Exception,
    ) -> DecodedCall:
        logger.debug("call to %s not decoded: %s", call.program_id, exc)
        return DecodedCall(
            raw=call,
            schema_name=compiled.document.name if compiled else None,
            error=DecodeFailure.from_exception(exc),
        )


__all__ = ["Decoder"]
