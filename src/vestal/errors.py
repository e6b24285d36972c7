"""
Error taxonomy for the allotment workflow.

Every error carries the name of the workflow step that raised it and an
exit code used by the CLI. Nothing is recovered locally: each error
propagates to the top level.
"""

from __future__ import annotations

from typing import Any, Optional


class VestalError(RuntimeError):
    exit_code: int = 1
    # Set once a transaction has been broadcast; the outcome may be unknown.
    tx_hash: Optional[str] = None

    def __init__(self, message: str, step: Optional[str] = None) -> None:
        super().__init__(message)
        self.step = step


class ConfigError(VestalError):
    exit_code = 2


class RpcError(VestalError):
    """Transport failure or JSON-RPC error returned by the node."""

    exit_code = 3

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data: Any = None,
        step: Optional[str] = None,
    ) -> None:
        super().__init__(message, step=step)
        self.code = code
        self.data = data


class ResolutionError(VestalError):
    exit_code = 4


class EstimationError(VestalError):
    exit_code = 5


class SigningError(VestalError):
    exit_code = 6


class ChainMismatchError(VestalError):
    exit_code = 7


class SubmissionError(VestalError):
    exit_code = 8


class TransactionReverted(SubmissionError):
    exit_code = 9

    def __init__(self, message: str, tx_hash: str, step: Optional[str] = None) -> None:
        super().__init__(message, step=step)
        self.tx_hash = tx_hash


class ConfirmationTimeout(VestalError):
    """Inclusion was not observed in time. The transaction may still land."""

    exit_code = 10

    def __init__(self, message: str, tx_hash: str, step: Optional[str] = None) -> None:
        super().__init__(message, step=step)
        self.tx_hash = tx_hash


__all__ = [
    "VestalError",
    "ConfigError",
    "RpcError",
    "ResolutionError",
    "EstimationError",
    "SigningError",
    "ChainMismatchError",
    "SubmissionError",
    "TransactionReverted",
    "ConfirmationTimeout",
]
