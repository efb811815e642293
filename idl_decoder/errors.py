"""
Exception hierarchy shared by the schema loader, the decoder and the engine.

Decode-path errors are raised by the low level modules and turned into
`DecodeFailure` records by `idl_decoder.engine.Decoder`; they never escape a
composite decode.
"""

from __future__ import annotations


class IdlDecoderError(RuntimeError):
    """Root of every error raised by this package."""


class RpcError(IdlDecoderError):
    pass


class SchemaLoadError(IdlDecoderError):
    """A program's schema could not be obtained."""


class SchemaUnavailable(SchemaLoadError):
    pass


class IdlParseError(SchemaLoadError):
    pass


class SchemaInconsistent(IdlDecoderError):
    """A parsed schema refers to a type it does not define."""


class DecodeError(IdlDecoderError):
    pass


class UnknownTag(DecodeError):
    def __init__(self, tag: bytes, section: str = "instruction") -> None:
        super().__init__(f"no {section} matches tag {tag.hex() or '<empty>'}")
        self.tag = tag
        self.section = section


class Truncated(DecodeError):
    def __init__(self, needed: int, remaining: int, position: int) -> None:
        super().__init__(
            f"need {needed} bytes at offset {position}, only {remaining} left"
        )
        self.needed = needed
        self.remaining = remaining
        self.position = position


class InvalidUtf8(DecodeError):
    pass


class InvalidOption(DecodeError):
    pass


class InvalidDiscriminant(DecodeError):
    pass


class InvalidBool(DecodeError):
    pass


class AccountCountMismatch(DecodeError):
    def __init__(self, instruction: str, expected: int, supplied: int) -> None:
        super().__init__(
            f"{instruction} requires at least {expected} accounts, got {supplied}"
        )
        self.instruction = instruction
        self.expected = expected
        self.supplied = supplied


__all__ = [
    "IdlDecoderError",
    "RpcError",
    "SchemaLoadError",
    "SchemaUnavailable",
    "IdlParseError",
    "SchemaInconsistent",
    "DecodeError",
    "UnknownTag",
    "Truncated",
    "InvalidUtf8",
    "InvalidOption",
    "InvalidDiscriminant",
    "InvalidBool",
    "AccountCountMismatch",
]


class DepthExceeded(DecodeError):
    """A value nests deeper than the decoder's `max_depth`."""


class LengthExceeded(DecodeError):
    """A length prefix asks for more items than the decoder will build."""
