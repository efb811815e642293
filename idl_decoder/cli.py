"""
Command line front end.

    idl-decoder tx tx.json
    idl-decoder ix <program> <data> --account ADDR:s:w --account ADDR:w
    idl-decoder account <owner> <data> --encoding base64 --try-all

Exit codes: 0 everything decoded, 1 bad input, 2 some calls not decoded.
"""

from __future__ import annotations

import argparse
import base64
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional, Sequence

from .calls import AccountRef, DecodedCall, RawCall
from .config import DecoderConfig, load_config
from .engine import Decoder
from .errors import IdlDecoderError
from .fetch import DirectoryIdlFetcher, RpcIdlFetcher
from .pubkey import Pubkey, b58decode

ENCODINGS = ("base58", "base64", "hex")


def parse_data(value: str, encoding: str) -> bytes:
    if encoding == "hex":
        return bytes.fromhex(value.removeprefix("0x"))
    if encoding == "base64":
        return base64.b64decode(value, validate=True)
    return b58decode(value)


def parse_account(text: str) -> AccountRef:
    """ADDR[:s][:w] -> AccountRef (s = signer, w = writable)."""
    address, *flags = text.split(":")
    unknown = set(flags) - {"s", "w"}
    if unknown:
        raise ValueError(f"unknown account flag(s) {','.join(sorted(unknown))} in {text!r}")
    return AccountRef(Pubkey.from_string(address), "s" in flags, "w" in flags)


def build_parser(config: DecoderConfig) -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--idl",
        action="append",
        default=[],
        metavar="PROGRAM=PATH",
        help="register a local IDL file for a program (repeatable)",
    )
    common.add_argument(
        "--idl-dir",
        help="directory of <program>.json IDL files used instead of RPC",
    )
    common.add_argument(
        "--rpc",
        default=config.rpc_url,
        help=f"JSON-RPC endpoint for on-chain IDLs (default: {config.rpc_url})",
    )
    common.add_argument(
        "--no-fetch",
        action="store_true",
        help="only use built-in and --idl schemas",
    )
    common.add_argument("--json", action="store_true", help="print JSON output")
    common.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    parser = argparse.ArgumentParser(
        prog="idl-decoder",
        description="Decode Solana instructions and accounts with Anchor IDLs",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    tx = sub.add_parser("tx", parents=[common], help="decode a getTransaction JSON file")
    tx.add_argument("file", help="path to the JSON result, '-' for stdin")

    ix = sub.add_parser("ix", parents=[common], help="decode one instruction")
    ix.add_argument("program", help="program id")
    ix.add_argument("data", help="instruction data")
    ix.add_argument(
        "--account",
        action="append",
        default=[],
        metavar="ADDR[:s][:w]",
        help="instruction account in order (repeatable)",
    )
    ix.add_argument("--encoding", choices=ENCODINGS, default="base58")

    account = sub.add_parser("account", parents=[common], help="decode one account blob")
    account.add_argument("owner", help="owning program id")
    account.add_argument("data", help="account data")
    account.add_argument("--encoding", choices=ENCODINGS, default="base64")
    account.add_argument(
        "--try-all",
        action="store_true",
        help="fall back to every loaded schema when the owner's does not fit",
    )
    return parser


def build_decoder(args: argparse.Namespace, config: DecoderConfig) -> Decoder:
    if args.no_fetch:
        fetcher = None
    elif args.idl_dir:
        fetcher = DirectoryIdlFetcher(args.idl_dir)
    else:
        fetcher = RpcIdlFetcher(args.rpc, timeout=config.timeout)
    decoder = Decoder(fetcher=fetcher, max_depth=config.max_depth, workers=config.workers)
    for item in args.idl:
        program, sep, path = item.partition("=")
        if not sep or not path:
            raise ValueError(f"--idl expects PROGRAM=PATH, got {item!r}")
        decoder.register(program, Path(path).read_bytes())
    return decoder


def describe_call(call: DecodedCall, label: str) -> List[str]:
    head = f"{label} {call.program_id}"
    if not call.ok:
        return [
            f"{head} <{call.schema_name or 'unknown'}> failed: "
            f"{call.error.kind}: {call.error.message}",
            f"    data: {call.raw.data.hex()}",
        ]
    lines = [f"{head} {call.schema_name}.{call.name}"]
    for binding in call.accounts:
        flags = []
        if binding.is_signer:
            flags.append("signer")
        if binding.is_writable:
            flags.append("writable")
        address = binding.address if binding.is_bound else "<missing>"
        suffix = f" ({', '.join(flags)})" if flags else ""
        lines.append(f"    {binding.name}: {address}{suffix}")
    for ref in call.remaining_accounts:
        lines.append(f"    +: {ref.address}")
    if call.args is not None:
        for name, value in call.args.fields:
            lines.append(f"    {name} = {json.dumps(value.to_json())}")
    return lines


def emit(payload: Any, as_json: bool, lines: Sequence[str]) -> None:
    if as_json:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        for line in lines:
            print(line)


def run(args: argparse.Namespace, config: DecoderConfig) -> int:
    decoder = build_decoder(args, config)

    if args.command == "tx":
        if args.file == "-":
            tx_json = json.load(sys.stdin)
        else:
            tx_json = json.loads(Path(args.file).read_text(encoding="utf-8"))
        view = decoder.decode_transaction(tx_json)
        lines: List[str] = []
        for idx, entry in enumerate(view):
            lines.extend(describe_call(entry.call, f"#{idx}"))
            for inner_idx, inner in enumerate(entry.inner):
                lines.extend("  " + line for line in describe_call(inner, f"#{idx}.{inner_idx}"))
        emit(view.to_dict(), args.json, lines)
        return 2 if view.failures() else 0

    if args.command == "ix":
        call = RawCall(
            Pubkey.from_string(args.program),
            tuple(parse_account(item) for item in args.account),
            parse_data(args.data, args.encoding),
        )
        decoded = decoder.decode_instruction(call)
        emit(decoded.to_dict(), args.json, describe_call(decoded, "ix"))
        return 0 if decoded.ok else 2

    decoded_account = decoder.decode_account(
        args.owner,
        parse_data(args.data, args.encoding),
        try_all=args.try_all,
    )
    if decoded_account.ok:
        lines = [f"{decoded_account.schema_name}.{decoded_account.name}"]
        lines.extend(
            f"    {name} = {json.dumps(value.to_json())}"
            for name, value in decoded_account.value.fields
        )
    else:
        error = decoded_account.error
        lines = [f"failed: {error.kind}: {error.message}"]
    emit(decoded_account.to_dict(), args.json, lines)
    return 0 if decoded_account.ok else 2


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        config = load_config()
    except ValueError as exc:
        print(f"invalid configuration: {exc}", file=sys.stderr)
        return 1

    args = build_parser(config).parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return run(args, config)
    except (OSError, ValueError, IdlDecoderError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
