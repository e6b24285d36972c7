"""
On-chain interaction layer.

Provides the JSON-RPC client, contract artifact loading and ABI encoding,
and transaction signing.

Uses httpx + eth-account + eth-abi instead of the heavyweight web3.py.
"""
