"""Unit tests for the JSON-RPC client."""

from __future__ import annotations

import json
from unittest.mock import patch

import httpx
import pytest

from vestal.chain.rpc import RpcClient
from vestal.errors import ConfirmationTimeout, RpcError


def _client(handler) -> RpcClient:
    return RpcClient("http://node.test", transport=httpx.MockTransport(handler))


def _result(value):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": value})

    return handler


def test_request_payload_shape() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": seen[-1]["id"], "result": "0x1"})

    with _client(handler) as client:
        client.get_nonce("0xabc")
        client.get_gas_price()

    assert seen[0]["method"] == "eth_getTransactionCount"
    assert seen[0]["params"] == ["0xabc", "pending"]
    assert seen[0]["jsonrpc"] == "2.0"
    assert seen[1]["params"] == []
    assert seen[1]["id"] != seen[0]["id"]


def test_hex_and_decimal_quantities() -> None:
    assert _client(_result("0x89")).chain_id() == 137
    assert _client(_result("5")).network_id() == 5


def test_error_object_becomes_rpc_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        error = {"code": -32000, "message": "nonce too low", "data": "0xdead"}
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": error})

    with pytest.raises(RpcError) as excinfo:
        _client(handler).send_raw_transaction("0x00")

    assert excinfo.value.code == -32000
    assert excinfo.value.data == "0xdead"
    assert str(excinfo.value) == "eth_sendRawTransaction: nonce too low"


def test_http_failure_becomes_rpc_error() -> None:
    with pytest.raises(RpcError, match="eth_gasPrice"):
        _client(lambda request: httpx.Response(502, text="bad gateway")).get_gas_price()


def test_non_json_response() -> None:
    with pytest.raises(RpcError, match="invalid JSON"):
        _client(lambda request: httpx.Response(200, text="<html>")).chain_id()


def test_empty_call_result_is_none() -> None:
    assert _client(_result("0x")).call("0xabc", "0x") is None
    assert _client(_result("0x01")).call("0xabc", "0x") == "0x01"


def test_wait_for_receipt_polls_until_found() -> None:
    polls = []

    def handler(request: httpx.Request) -> httpx.Response:
        polls.append(1)
        result = {"transactionHash": "0xaa", "status": "0x1"} if len(polls) >= 3 else None
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})

    receipt = _client(handler).wait_for_receipt("0xaa", timeout=5, poll_interval=0)

    assert receipt["status"] == "0x1"
    assert len(polls) == 3


def test_wait_for_receipt_timeout() -> None:
    with pytest.raises(ConfirmationTimeout) as excinfo:
        _client(_result(None)).wait_for_receipt("0xaa", timeout=0, poll_interval=0)
    assert excinfo.value.tx_hash == "0xaa"


def test_wait_for_receipt_never_sleeps_past_timeout() -> None:
    naps = []

    with patch("vestal.chain.rpc.time.sleep", side_effect=naps.append):
        with pytest.raises(ConfirmationTimeout):
            _client(_result(None)).wait_for_receipt("0xaa", timeout=0.05, poll_interval=60)

    assert naps
    assert all(0 < nap <= 0.05 for nap in naps)
