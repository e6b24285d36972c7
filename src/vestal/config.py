"""Explicit run configuration for the allotment workflow."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigError
from .keys import load_env

DEFAULT_ARTIFACT = Path("build") / "contracts" / "Contract.json"
DEFAULT_SET_METHOD = "setAllotment"
DEFAULT_GET_METHOD = "getAllotment"


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    artifact_path: Path = DEFAULT_ARTIFACT
    private_key: Optional[str] = field(default=None, repr=False)
    contract_address: Optional[str] = None
    chain_id: Optional[int] = None
    set_method: str = DEFAULT_SET_METHOD
    get_method: str = DEFAULT_GET_METHOD
    rpc_timeout: float = 30.0
    confirm_timeout: float = 120.0
    poll_interval: float = 2.0

    def require_private_key(self) -> str:
        if not self.private_key:
            raise ConfigError("PRIVATE_KEY is required to sign transactions", step="load key")
        return self.private_key

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        env_path: Optional[Path] = None,
    ) -> "Settings":
        """Build settings from environment variables.

        When ``environ`` is omitted, ``~/.vestal/.env`` is loaded first and
        ``os.environ`` is read.
        """
        if environ is None:
            load_env(env_path)
            environ = os.environ

        rpc_url = environ.get("VESTAL_RPC_URL", "").strip()
        if not rpc_url:
            raise ConfigError("VESTAL_RPC_URL is not set", step="configure")

        private_key = environ.get("PRIVATE_KEY", "").strip() or None
        if private_key and not private_key.startswith("0x"):
            private_key = "0x" + private_key

        return cls(
            rpc_url=rpc_url,
            artifact_path=Path(environ.get("VESTAL_ARTIFACT") or DEFAULT_ARTIFACT),
            private_key=private_key,
            contract_address=environ.get("VESTAL_CONTRACT_ADDRESS") or None,
            chain_id=_optional_int(environ, "VESTAL_CHAIN_ID"),
            set_method=environ.get("VESTAL_SET_METHOD") or DEFAULT_SET_METHOD,
            get_method=environ.get("VESTAL_GET_METHOD") or DEFAULT_GET_METHOD,
            rpc_timeout=_float(environ, "VESTAL_RPC_TIMEOUT", 30.0),
            confirm_timeout=_float(environ, "VESTAL_CONFIRM_TIMEOUT", 120.0),
            poll_interval=_float(environ, "VESTAL_POLL_INTERVAL", 2.0),
        )


def _optional_int(environ: Mapping[str, str], key: str) -> Optional[int]:
    raw = environ.get(key)
    if not raw:
        return None
    try:
        return int(raw, 0)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}", step="configure") from exc


def _float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number, got {raw!r}", step="configure") from exc
    if value < 0:
        raise ConfigError(f"{key} must not be negative", step="configure")
    return value
