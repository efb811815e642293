"""
Runtime defaults. Every value can be overridden from the environment:

  IDL_DECODER_RPC        JSON-RPC endpoint used to fetch on-chain IDLs
  IDL_DECODER_TIMEOUT    HTTP timeout in seconds
  IDL_DECODER_MAX_DEPTH  maximum type nesting the decoder follows
  IDL_DECODER_WORKERS    threads used to prefetch schemas
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

RPC_DEFAULT = "https://api.mainnet-beta.solana.com"
TIMEOUT_DEFAULT = 15.0
MAX_DEPTH_DEFAULT = 64
WORKERS_DEFAULT = 8


@dataclass(frozen=True)
class DecoderConfig:
    rpc_url: str = RPC_DEFAULT
    timeout: float = TIMEOUT_DEFAULT
    max_depth: int = MAX_DEPTH_DEFAULT
    workers: int = WORKERS_DEFAULT


def _number(env: Mapping[str, str], key: str, default, cast):
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {raw!r}")
    return value


def load_config(env: Optional[Mapping[str, str]] = None) -> DecoderConfig:
    env = os.environ if env is None else env
    return DecoderConfig(
        rpc_url=env.get("IDL_DECODER_RPC", "").strip() or RPC_DEFAULT,
        timeout=_number(env, "IDL_DECODER_TIMEOUT", TIMEOUT_DEFAULT, float),
        max_depth=_number(env, "IDL_DECODER_MAX_DEPTH", MAX_DEPTH_DEFAULT, int),
        workers=_number(env, "IDL_DECODER_WORKERS", WORKERS_DEFAULT, int),
    )


__all__ = ["DecoderConfig", "load_config"]
