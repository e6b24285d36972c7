"""
Shared fixtures: an in-process JSON-RPC node and a vesting contract artifact.

The fake node speaks just enough of the Ethereum JSON-RPC surface for the
allotment workflow. It decodes real signed transactions, enforces nonces,
EIP-155 chain ids and owner-only writes, and records every method called.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest
import rlp
from eth_abi import decode, encode
from eth_account import Account
from eth_hash.auto import keccak

from vestal.chain.abi import function_selector
from vestal.config import Settings

OWNER_KEY = "0x" + "11" * 32
STRANGER_KEY = "0x" + "22" * 32
OWNER = Account.from_key(OWNER_KEY).address
STRANGER = Account.from_key(STRANGER_KEY).address

CONTRACT = "0x" + "ab" * 20
RECIPIENT = "0x" + "de" * 20

SET_SELECTOR = function_selector("setAllotment(address,uint256)")
GET_SELECTOR = function_selector("getAllotment(address)")
OWNER_SELECTOR = function_selector("owner()")

VESTING_ABI = [
    {
        "type": "function",
        "name": "setAllotment",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "beneficiary", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "getAllotment",
        "stateMutability": "view",
        "inputs": [{"name": "beneficiary", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "owner",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "event",
        "name": "AllotmentSet",
        "inputs": [
            {"name": "beneficiary", "type": "address", "indexed": True},
            {"name": "amount", "type": "uint256", "indexed": False},
        ],
    },
]


class NodeError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class FakeNode:
    def __init__(
        self,
        owner: str = OWNER,
        network_id: int = 1,
        chain_id: int = 1,
        gas_price: int = 10**9,
    ) -> None:
        self.owner = owner
        self.network_id = network_id
        self.chain_id = chain_id
        self.gas_price = gas_price
        self.mining = True
        self.revert_on_include = False
        self.block = 100
        self.allotments: dict[str, int] = {}
        self.nonces: dict[str, int] = {}
        self.receipts: dict[str, dict[str, Any]] = {}
        self.raw_transactions: list[bytes] = []
        self.calls: list[str] = []
        # Methods answering with an internal error object.
        self.failing: set[str] = set()
        # Methods that execute but whose response never arrives (HTTP 502).
        self.lost_responses: set[str] = set()

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def count(self, method: str) -> int:
        return self.calls.count(method)

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method = body["method"]
        self.calls.append(method)

        handler = getattr(self, "_" + method, None)
        try:
            if handler is None:
                raise NodeError(-32601, f"the method {method} does not exist")
            if method in self.failing:
                raise NodeError(-32603, "internal error")
            result = handler(*body.get("params", []))
        except NodeError as exc:
            error = {"code": exc.code, "message": exc.message}
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": error})
        if method in self.lost_responses:
            return httpx.Response(502, text="bad gateway")
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    # ---- contract ----

    def _execute(self, sender: str, data: bytes, dry_run: bool) -> None:
        selector, args = data[:4], data[4:]
        if selector != SET_SELECTOR:
            raise NodeError(3, "execution reverted")
        if sender.lower() != self.owner.lower():
            raise NodeError(3, "execution reverted: Ownable: caller is not the owner")
        beneficiary, amount = decode(["address", "uint256"], args)
        if not dry_run:
            self.allotments[beneficiary.lower()] = amount

    # ---- RPC methods ----

    def _net_version(self) -> str:
        return str(self.network_id)

    def _eth_chainId(self) -> str:
        return hex(self.chain_id)

    def _eth_gasPrice(self) -> str:
        return hex(self.gas_price)

    def _eth_getTransactionCount(self, address: str, block: str) -> str:
        return hex(self.nonces.get(address.lower(), 0))

    def _eth_estimateGas(self, tx: dict[str, Any]) -> str:
        self._execute(tx.get("from", ""), bytes.fromhex(tx["data"][2:]), dry_run=True)
        return hex(52_000)

    def _eth_call(self, tx: dict[str, Any], block: str) -> str:
        data = bytes.fromhex(tx["data"][2:])
        selector, args = data[:4], data[4:]
        if selector == GET_SELECTOR:
            (beneficiary,) = decode(["address"], args)
            return "0x" + encode(["uint256"], [self.allotments.get(beneficiary.lower(), 0)]).hex()
        if selector == OWNER_SELECTOR:
            return "0x" + encode(["address"], [self.owner]).hex()
        raise NodeError(3, "execution reverted")

    def _eth_sendRawTransaction(self, raw_hex: str) -> str:
        raw = bytes.fromhex(raw_hex[2:])
        tx_hash = "0x" + keccak(raw).hex()
        if tx_hash in self.receipts:
            raise NodeError(-32000, "already known")

        nonce, _gas_price, _gas, _to, _value, data, v, _r, _s = rlp.decode(raw)
        if (int.from_bytes(v, "big") - 35) // 2 != self.chain_id:
            raise NodeError(-32000, "invalid chain id for signer")

        sender = Account.recover_transaction(raw)
        expected = self.nonces.get(sender.lower(), 0)
        if int.from_bytes(nonce, "big") != expected:
            raise NodeError(-32000, f"nonce too low: next nonce {expected}")
        self.nonces[sender.lower()] = expected + 1
        self.raw_transactions.append(raw)

        status = 1
        try:
            self._execute(sender, data, dry_run=False)
        except NodeError:
            status = 0
        if self.revert_on_include:
            status = 0

        self.block += 1
        self.receipts[tx_hash] = {
            "transactionHash": tx_hash,
            "status": hex(status),
            "blockNumber": hex(self.block),
            "gasUsed": hex(48_000),
        }
        return tx_hash

    def _eth_getTransactionReceipt(self, tx_hash: str) -> Optional[dict[str, Any]]:
        if not self.mining:
            return None
        return self.receipts.get(tx_hash)


def write_artifact(path: Path, networks: Optional[dict[str, Any]] = None) -> Path:
    payload = {
        "contractName": "Vesting",
        "abi": VESTING_ABI,
        "networks": {"1": {"address": CONTRACT}} if networks is None else networks,
    }
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


@pytest.fixture()
def node() -> FakeNode:
    return FakeNode()


@pytest.fixture()
def artifact_path(tmp_path: Path) -> Path:
    return write_artifact(tmp_path / "Vesting.json")


@pytest.fixture()
def settings(artifact_path: Path) -> Settings:
    return Settings(
        rpc_url="http://node.test",
        artifact_path=artifact_path,
        private_key=OWNER_KEY,
        confirm_timeout=0.2,
        poll_interval=0.0,
    )
