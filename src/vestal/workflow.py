"""
Allotment workflow - one signed state change, then a confirmatory read.

Steps run strictly in order, each feeding the next:

1. connect           - open the RPC session, read network id and chain id
2. resolve contract  - look up the deployment for the network id
3. build transaction - encode the call, estimate gas as the sender,
                       then fetch gas price and nonce
4. sign              - sign locally with the sender's key
5. broadcast         - check the chain id, send, wait for the receipt
6. verify            - eth_call the getter against the new state

Any failure ends the run with a ``VestalError`` naming the step.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import httpx
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

from .chain.abi import ContractArtifact, load_artifact
from .chain.rpc import RpcClient
from .chain.tx import Receipt, SignedTransaction, UnsignedTransaction, sign_transaction
from .config import DEFAULT_GET_METHOD, Settings
from .errors import (
    ChainMismatchError,
    ConfigError,
    ConfirmationTimeout,
    EstimationError,
    RpcError,
    SigningError,
    SubmissionError,
    TransactionReverted,
    VestalError,
)
from .keys import get_account, same_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Network:
    client: RpcClient
    network_id: int
    chain_id: int


@dataclass(frozen=True)
class ContractBinding:
    artifact: ContractArtifact
    address: str

    def encode(self, method: str, args: list) -> str:
        return self.artifact.encode_call(method, args)

    def call(self, client: RpcClient, method: str, args: list) -> Any:
        """Read-only call; never part of a broadcast transaction."""
        result = client.call(self.address, self.encode(method, args))
        return self.artifact.decode_result(method, result)


@dataclass(frozen=True)
class AllotmentResult:
    recipient: str
    expected: int
    allotment: Optional[int]
    receipt: Receipt

    @property
    def tx_hash(self) -> str:
        return self.receipt.tx_hash

    @property
    def confirmed(self) -> bool:
        return self.allotment == self.expected


@contextmanager
def _step(name: str, error_cls: Optional[type[VestalError]] = None) -> Iterator[None]:
    """
    Tag errors with the step name.

    Error objects returned by the node are reclassified as ``error_cls`` when
    given. Transport failures carry no code and stay ``RpcError``.
    """
    logger.debug("step: %s", name)
    try:
        yield
    except RpcError as exc:
        if error_cls is not None and exc.code is not None:
            raise error_cls(str(exc), step=name) from exc
        exc.step = exc.step or name
        raise
    except VestalError as exc:
        exc.step = exc.step or name
        raise


def _in_flight(signed: SignedTransaction, exc: VestalError, step: str) -> ConfirmationTimeout:
    return ConfirmationTimeout(
        f"{exc}; transaction {signed.tx_hash} was broadcast and may still be included",
        tx_hash=signed.tx_hash,
        step=step,
    )


def checksum(address: str, label: str = "address") -> str:
    try:
        return to_checksum_address(address)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {label}: {address!r}", step="configure") from exc


# ---- 1. Network Connector ----


def connect(settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> Network:
    client = RpcClient(settings.rpc_url, timeout=settings.rpc_timeout, transport=transport)
    try:
        with _step("connect"):
            network_id = client.network_id()
            chain_id = client.chain_id()
    except VestalError:
        client.close()
        raise

    logger.debug("connected: network id %s, chain id %s", network_id, chain_id)
    return Network(client=client, network_id=network_id, chain_id=chain_id)


# ---- 2. Contract Resolver ----


def resolve_contract(
    network: Network,
    artifact: ContractArtifact,
    address_override: Optional[str] = None,
) -> ContractBinding:
    with _step("resolve contract"):
        if address_override:
            address = checksum(address_override, "contract address")
        else:
            address = artifact.address_for(network.network_id)

    logger.debug("%s resolved at %s", artifact.contract_name, address)
    return ContractBinding(artifact=artifact, address=address)


# ---- 3. Transaction Builder ----


def build_transaction(
    network: Network,
    binding: ContractBinding,
    method: str,
    args: list,
    account: LocalAccount,
    sender: str,
    chain_id: Optional[int] = None,
) -> UnsignedTransaction:
    """
    Assemble an unsigned call to ``method``.

    The signing key must control ``sender``; gas is estimated as ``sender``.
    Gas price and nonce are fetched last, right before signing.

    Raises:
        SigningError: If the signing key does not match ``sender``
        EstimationError: If the node rejects the estimate (e.g. the call reverts)
    """
    if not same_address(account.address, sender):
        raise SigningError(
            f"Signing key controls {account.address}, not sender {sender}",
            step="check sender",
        )

    with _step("encode call"):
        data = binding.encode(method, args)

    client = network.client
    with _step("estimate gas", EstimationError):
        gas = client.estimate_gas({"from": sender, "to": binding.address, "data": data})
    with _step("fetch gas price"):
        gas_price = client.get_gas_price()
    with _step("fetch nonce"):
        nonce = client.get_nonce(sender)

    tx = UnsignedTransaction(
        to=binding.address,
        data=data,
        gas=gas,
        gas_price=gas_price,
        nonce=nonce,
        chain_id=network.network_id if chain_id is None else chain_id,
    )
    logger.debug("built %s: gas %d, gas price %d, nonce %d", method, gas, gas_price, nonce)
    return tx


# ---- 5. Broadcaster ----


def ensure_chain(signed: SignedTransaction, network: Network) -> None:
    if signed.chain_id != network.chain_id:
        raise ChainMismatchError(
            f"Transaction signed for chain {signed.chain_id} but the node is on "
            f"chain {network.chain_id}",
            step="check chain",
        )


def broadcast(
    network: Network,
    signed: SignedTransaction,
    timeout: float = 120.0,
    poll_interval: float = 2.0,
) -> Receipt:
    """
    Submit a signed transaction and block until it is included.

    Raises:
        ChainMismatchError: Before sending, if the chain ids differ
        SubmissionError: If the node rejects the transaction
        ConfirmationTimeout: If no receipt appears within ``timeout``, or the
            node fails after the transaction may have been accepted
        TransactionReverted: If the receipt reports failure
    """
    ensure_chain(signed, network)

    try:
        with _step("broadcast", SubmissionError):
            node_hash = network.client.send_raw_transaction(signed.raw_hex)
    except RpcError as exc:
        raise _in_flight(signed, exc, "broadcast") from exc
    if node_hash and node_hash.lower() != signed.tx_hash.lower():
        logger.warning("node returned hash %s, expected %s", node_hash, signed.tx_hash)
    logger.info("broadcast %s, waiting for inclusion", signed.tx_hash)

    try:
        with _step("await confirmation"):
            payload = network.client.wait_for_receipt(
                signed.tx_hash, timeout=timeout, poll_interval=poll_interval
            )
            receipt = Receipt.from_rpc(payload)
    except RpcError as exc:
        raise _in_flight(signed, exc, "await confirmation") from exc

    if not receipt.succeeded:
        raise TransactionReverted(
            f"Transaction {receipt.tx_hash} was included but reverted",
            tx_hash=receipt.tx_hash,
            step="await confirmation",
        )

    logger.info("confirmed %s in block %s", receipt.tx_hash, receipt.block_number)
    return receipt


def submit(
    network: Network,
    binding: ContractBinding,
    method: str,
    args: list,
    account: LocalAccount,
    sender: Optional[str] = None,
    chain_id: Optional[int] = None,
    timeout: float = 120.0,
    poll_interval: float = 2.0,
) -> tuple[SignedTransaction, Receipt]:
    """Build, sign and broadcast one state-changing call."""
    sender = sender or account.address
    unsigned = build_transaction(network, binding, method, args, account, sender, chain_id)
    with _step("sign"):
        signed = sign_transaction(unsigned, account)
    receipt = broadcast(network, signed, timeout=timeout, poll_interval=poll_interval)
    return signed, receipt


# ---- 6. Verifier ----


def read_allotment(
    network: Network,
    binding: ContractBinding,
    recipient: str,
    method: str = DEFAULT_GET_METHOD,
) -> Optional[int]:
    with _step("verify"):
        return binding.call(network.client, method, [checksum(recipient, "recipient")])


def read_owner(network: Network, binding: ContractBinding) -> Optional[str]:
    if not binding.artifact.has_function("owner"):
        return None
    with _step("read owner"):
        return binding.call(network.client, "owner", [])


# ---- Entry point ----


def update_allotment(
    settings: Settings,
    recipient: str,
    amount: int,
    sender: Optional[str] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> AllotmentResult:
    """
    Set ``recipient``'s allotment to ``amount`` and read it back.

    Args:
        settings: Run configuration (endpoint, artifact, key, ...)
        recipient: Address whose allotment is updated
        amount: New allotment, in the token's smallest unit
        sender: Account sending the transaction (default: the key's address)
        transport: Optional httpx transport for the RPC session

    Returns:
        AllotmentResult with the receipt and the observed allotment
    """
    recipient = checksum(recipient, "recipient")
    if amount < 0:
        raise ConfigError("Allotment amount must not be negative", step="configure")
    if sender is not None:
        sender = checksum(sender, "sender")

    with _step("load artifact"):
        artifact = load_artifact(settings.artifact_path)
    account = get_account(settings.require_private_key())

    network = connect(settings, transport=transport)
    with network.client:
        binding = resolve_contract(network, artifact, settings.contract_address)
        _, receipt = submit(
            network,
            binding,
            settings.set_method,
            [recipient, amount],
            account,
            sender=sender,
            chain_id=settings.chain_id,
            timeout=settings.confirm_timeout,
            poll_interval=settings.poll_interval,
        )
        try:
            allotment = read_allotment(network, binding, recipient, settings.get_method)
        except VestalError as exc:
            exc.tx_hash = receipt.tx_hash
            raise

    if allotment != amount:
        logger.warning("read back %s for %s, expected %s", allotment, recipient, amount)

    return AllotmentResult(
        recipient=recipient,
        expected=amount,
        allotment=allotment,
        receipt=receipt,
    )
