"""
ECDSA / secp256k1 key handling.

The signing key is read from ``PRIVATE_KEY`` (process environment or
``~/.vestal/.env``). It is never logged, printed or placed in an error
message.

Dependencies: eth-account (lightweight, no full web3.py needed)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import ValidationError

from .errors import ConfigError, SigningError


# Default config directory
VESTAL_DIR = Path.home() / ".vestal"
VESTAL_ENV = VESTAL_DIR / ".env"


def load_env(env_path: Optional[Path] = None) -> None:
    """Load ``~/.vestal/.env`` without overriding variables already set."""
    env_path = env_path or VESTAL_ENV
    if env_path.exists():
        load_dotenv(env_path, override=False)


def load_private_key(env_path: Optional[Path] = None) -> str:
    """
    Load private key from the environment or .env file.

    Args:
        env_path: Path to .env file (default: ~/.vestal/.env)

    Returns:
        0x-prefixed hex private key

    Raises:
        ConfigError: If PRIVATE_KEY is not set
    """
    load_env(env_path)

    private_key = os.environ.get("PRIVATE_KEY", "").strip()
    if not private_key:
        raise ConfigError(
            f"PRIVATE_KEY not found. Set it in the environment or in "
            f"{env_path or VESTAL_ENV}",
            step="load key",
        )

    # Ensure 0x prefix
    if not private_key.startswith("0x"):
        private_key = "0x" + private_key

    return private_key


def get_account(private_key: str) -> LocalAccount:
    """
    Get an eth-account LocalAccount from a private key.

    Raises:
        SigningError: If the key is malformed
    """
    try:
        return Account.from_key(private_key)
    except (TypeError, ValueError, ValidationError) as exc:
        # The key itself must not end up in the message.
        raise SigningError(
            f"Malformed private key ({type(exc).__name__})", step="load key"
        ) from None


def get_address(private_key: str) -> str:
    """0x-prefixed checksummed address for a private key."""
    return get_account(private_key).address


def same_address(a: str, b: str) -> bool:
    """Compare two addresses ignoring case and checksum."""
    return a.lower() == b.lower()
