"""
Transaction Builder - Build and sign Ethereum transactions.

Uses eth-account for signing. Transactions are legacy (EIP-155) payloads
with an explicit gas price; every field is fixed before signing and the
signed form is immutable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import ValidationError, to_checksum_address

from ..errors import SigningError


@dataclass(frozen=True)
class UnsignedTransaction:
    to: str
    data: str
    gas: int
    gas_price: int
    nonce: int
    chain_id: int
    value: int = 0

    def as_dict(self) -> dict[str, Any]:
        """Transaction dict in the shape eth-account expects."""
        return {
            "to": to_checksum_address(self.to),
            "data": self.data,
            "value": self.value,
            "nonce": self.nonce,
            "gas": self.gas,
            "gasPrice": self.gas_price,
            "chainId": self.chain_id,
        }


@dataclass(frozen=True)
class SignedTransaction:
    raw: bytes = field(repr=False)
    tx_hash: str
    chain_id: int
    sender: str

    @property
    def raw_hex(self) -> str:
        return "0x" + self.raw.hex()


@dataclass(frozen=True)
class Receipt:
    tx_hash: str
    status: int
    block_number: Optional[int] = None
    gas_used: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    @classmethod
    def from_rpc(cls, payload: dict[str, Any]) -> "Receipt":
        def _int(key: str) -> Optional[int]:
            value = payload.get(key)
            if value is None:
                return None
            return int(value, 16) if isinstance(value, str) else int(value)

        return cls(
            tx_hash=payload["transactionHash"],
            status=_int("status") or 0,
            block_number=_int("blockNumber"),
            gas_used=_int("gasUsed"),
        )


def sign_transaction(tx: UnsignedTransaction, account: LocalAccount) -> SignedTransaction:
    """
    Sign a transaction with a local account.

    Signing is deterministic (RFC 6979): identical inputs produce identical
    raw bytes.

    Raises:
        SigningError: If the payload cannot be signed, or the signature
            does not recover to the signing account
    """
    try:
        signed = account.sign_transaction(tx.as_dict())
    except (TypeError, ValueError, ValidationError) as exc:
        raise SigningError(f"Cannot sign transaction: {exc}", step="sign") from exc

    result = SignedTransaction(
        raw=bytes(signed.raw_transaction),
        tx_hash="0x" + bytes(signed.hash).hex(),
        chain_id=tx.chain_id,
        sender=account.address,
    )
    signer = recover_sender(result)
    if signer != account.address:
        raise SigningError(f"Signature recovers to {signer}, not {account.address}", step="sign")
    return result


def recover_sender(signed: SignedTransaction) -> str:
    """Address that produced the signature on ``signed``."""
    return Account.recover_transaction(signed.raw)
