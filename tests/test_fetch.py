"""Tests for the schema fetch collaborators."""
import base64
import json
import struct
import zlib
from unittest.mock import MagicMock

import pytest
import requests

from idl_decoder.cache import SchemaCache
from idl_decoder.errors import IdlParseError, RpcError, SchemaUnavailable
from idl_decoder.fetch import DirectoryIdlFetcher, RpcIdlFetcher, inflate_idl_account
from idl_decoder.pubkey import idl_address

from conftest import make_key


def idl_account_data(document) -> bytes:
    compressed = zlib.compress(json.dumps(document).encode())
    return b"\x18" * 8 + bytes(make_key(50)) + struct.pack("<I", len(compressed)) + compressed


def rpc_response(value):
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = {"jsonrpc": "2.0", "id": 1, "result": {"value": value}}
    return response


def account_value(data: bytes, executable: bool = False):
    return {
        "data": [base64.b64encode(data).decode(), "base64"],
        "owner": "BPFLoaderUpgradeab1e11111111111111111111111",
        "executable": executable,
        "lamports": 1,
    }


class TestInflate:
    def test_round_trip(self, transfer_idl):
        assert json.loads(inflate_idl_account(idl_account_data(transfer_idl))) == transfer_idl

    def test_too_short(self):
        with pytest.raises(IdlParseError):
            inflate_idl_account(b"\x00" * 43)

    def test_declared_length_exceeds_data(self):
        data = b"\x00" * 40 + struct.pack("<I", 100) + b"\x00" * 10
        with pytest.raises(IdlParseError):
            inflate_idl_account(data)

    def test_not_zlib(self):
        data = b"\x00" * 40 + struct.pack("<I", 4) + b"nope"
        with pytest.raises(IdlParseError):
            inflate_idl_account(data)


class TestRpcIdlFetcher:
    def test_executable_program_reads_idl_account(self, transfer_idl, program_id):
        session = MagicMock()
        session.post.side_effect = [
            rpc_response(account_value(b"\x02\x00\x00\x00" + b"\x00" * 32, executable=True)),
            rpc_response(account_value(idl_account_data(transfer_idl))),
        ]
        fetcher = RpcIdlFetcher("http://rpc.test", timeout=3, session=session)

        raw = fetcher(program_id)

        assert json.loads(raw)["metadata"]["name"] == "vault"
        first, second = session.post.call_args_list
        assert first.kwargs["json"]["method"] == "getAccountInfo"
        assert first.kwargs["json"]["params"][0] == str(program_id)
        assert first.kwargs["timeout"] == 3
        assert second.kwargs["json"]["params"][0] == str(idl_address(program_id))

    def test_idl_account_passed_directly(self, transfer_idl, program_id):
        session = MagicMock()
        session.post.return_value = rpc_response(account_value(idl_account_data(transfer_idl)))
        raw = RpcIdlFetcher("http://rpc.test", session=session)(program_id)
        assert json.loads(raw) == transfer_idl
        assert session.post.call_count == 1

    def test_missing_account(self, program_id):
        session = MagicMock()
        session.post.return_value = rpc_response(None)
        with pytest.raises(SchemaUnavailable):
            RpcIdlFetcher("http://rpc.test", session=session)(program_id)

    def test_program_without_idl(self, program_id):
        session = MagicMock()
        session.post.side_effect = [
            rpc_response(account_value(b"\x02", executable=True)),
            rpc_response(None),
        ]
        with pytest.raises(SchemaUnavailable):
            RpcIdlFetcher("http://rpc.test", session=session)(program_id)

    def test_transport_error(self, program_id):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(RpcError):
            RpcIdlFetcher("http://rpc.test", session=session)(program_id)

    def test_json_rpc_error(self, program_id):
        response = MagicMock()
        response.json.return_value = {"error": {"code": -32602, "message": "bad params"}}
        session = MagicMock()
        session.post.return_value = response
        with pytest.raises(RpcError):
            RpcIdlFetcher("http://rpc.test", session=session)(program_id)

    def test_backs_a_cache(self, transfer_idl, program_id):
        session = MagicMock()
        session.post.return_value = rpc_response(account_value(idl_account_data(transfer_idl)))
        cache = SchemaCache(RpcIdlFetcher("http://rpc.test", session=session))
        assert cache.get(program_id).document.name == "vault"


class TestDirectoryIdlFetcher:
    def test_reads_file(self, tmp_path, transfer_idl, program_id):
        (tmp_path / f"{program_id}.json").write_text(json.dumps(transfer_idl))
        raw = DirectoryIdlFetcher(tmp_path)(program_id)
        assert json.loads(raw) == transfer_idl

    def test_missing_file(self, tmp_path, program_id):
        with pytest.raises(SchemaUnavailable):
            DirectoryIdlFetcher(tmp_path)(program_id)
