"""Schema-driven decoding of Solana program instructions and accounts."""

from .cache import CompiledSchema, SchemaCache
from .calls import (
    AccountBinding,
    AccountRef,
    CompositeView,
    DecodedAccount,
    DecodedCall,
    DecodeFailure,
    RawCall,
    make_call,
)
from .engine import Decoder
from .errors import (
    AccountCountMismatch,
    DecodeError,
    DepthExceeded,
    IdlDecoderError,
    IdlParseError,
    InvalidBool,
    InvalidDiscriminant,
    InvalidOption,
    InvalidUtf8,
    LengthExceeded,
    RpcError,
    SchemaInconsistent,
    SchemaLoadError,
    SchemaUnavailable,
    Truncated,
    UnknownTag,
)
from .fetch import DirectoryIdlFetcher, RpcIdlFetcher
from .pubkey import Pubkey
from .schema import SchemaDocument, parse_schema
from .transaction import composite_from_rpc

__version__ = "0.1.0"

__all__ = [
    "AccountBinding",
    "AccountCountMismatch",
    "AccountRef",
    "CompiledSchema",
    "CompositeView",
    "DecodeError",
    "DecodeFailure",
    "DecodedAccount",
    "DecodedCall",
    "Decoder",
    "DepthExceeded",
    "DirectoryIdlFetcher",
    "IdlDecoderError",
    "IdlParseError",
    "InvalidBool",
    "InvalidDiscriminant",
    "InvalidOption",
    "InvalidUtf8",
    "LengthExceeded",
    "Pubkey",
    "RawCall",
    "RpcError",
    "RpcIdlFetcher",
    "SchemaCache",
    "SchemaDocument",
    "SchemaInconsistent",
    "SchemaLoadError",
    "SchemaUnavailable",
    "Truncated",
    "UnknownTag",
    "composite_from_rpc",
    "make_call",
    "parse_schema",
]
