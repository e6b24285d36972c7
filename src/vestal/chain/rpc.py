"""
JSON-RPC client for an Ethereum-compatible node.

Lightweight alternative to web3.py: uses httpx for HTTP transport. One
client wraps one HTTP session and is passed explicitly through the
workflow, so tests can mount it on an in-process transport.
"""

from __future__ import annotations

import itertools
import logging
import time
from typing import Any, Optional

import httpx

from ..errors import ConfirmationTimeout, RpcError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.startswith("0x"):
        return int(value, 16)
    return int(value)


class RpcClient:
    """Minimal JSON-RPC 2.0 client over a single httpx session."""

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url
        self._ids = itertools.count(1)
        self._http = httpx.Client(timeout=timeout, transport=transport)

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def request(self, method: str, params: Optional[list] = None) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_call")
            params: RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            RpcError: On transport failure or an error object in the response
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(self._ids),
        }
        logger.debug("rpc %s", method)

        try:
            response = self._http.post(self.url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise RpcError(f"{method}: {exc}") from exc
        except ValueError as exc:
            raise RpcError(f"{method}: invalid JSON response") from exc

        error = data.get("error")
        if error:
            if isinstance(error, dict):
                raise RpcError(
                    f"{method}: {error.get('message', 'unknown error')}",
                    code=error.get("code"),
                    data=error.get("data"),
                )
            raise RpcError(f"{method}: {error}")

        return data.get("result")

    # ---- Network ----

    def network_id(self) -> int:
        """Network identifier (net_version); keys deployment registries."""
        return _to_int(self.request("net_version"))

    def chain_id(self) -> int:
        """EIP-155 chain id the node enforces on signed transactions."""
        return _to_int(self.request("eth_chainId"))

    # ---- Accounts and fees ----

    def get_nonce(self, address: str, block: str = "pending") -> int:
        result = self.request("eth_getTransactionCount", [address, block])
        return _to_int(result)

    def get_gas_price(self) -> int:
        """Current gas price in wei."""
        return _to_int(self.request("eth_gasPrice"))

    def estimate_gas(self, tx: dict[str, Any]) -> int:
        return _to_int(self.request("eth_estimateGas", [tx]))

    # ---- Calls and transactions ----

    def call(self, to: str, data: str, block: str = "latest") -> Optional[str]:
        """Read-only eth_call. Returns hex return data, or None if empty."""
        result = self.request("eth_call", [{"to": to, "data": data}, block])
        if result is None or result == "0x":
            return None
        return result

    def send_raw_transaction(self, raw_tx: str) -> str:
        """
        Send a signed raw transaction.

        Args:
            raw_tx: 0x-prefixed hex encoded signed transaction

        Returns:
            Transaction hash (0x-prefixed hex)
        """
        return self.request("eth_sendRawTransaction", [raw_tx])

    def get_receipt(self, tx_hash: str) -> Optional[dict]:
        return self.request("eth_getTransactionReceipt", [tx_hash])

    def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: float = 120.0,
        poll_interval: float = 2.0,
    ) -> dict:
        """
        Wait for a transaction receipt.

        Args:
            tx_hash: Transaction hash
            timeout: Maximum wait time in seconds
            poll_interval: Polling interval in seconds

        Returns:
            Transaction receipt dict

        Raises:
            ConfirmationTimeout: If receipt not found within timeout
        """
        start = time.monotonic()
        while True:
            receipt = self.get_receipt(tx_hash)
            if receipt is not None:
                return receipt
            remaining = timeout - (time.monotonic() - start)
            if remaining <= 0:
                break
            time.sleep(min(poll_interval, remaining))

        raise ConfirmationTimeout(
            f"Transaction {tx_hash} not confirmed within {timeout}s; "
            f"it may still be included",
            tx_hash=tx_hash,
        )
