"""Options and error reporting shared by the CLI commands."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, NoReturn, Optional

import click

from ..config import DEFAULT_ARTIFACT, DEFAULT_GET_METHOD, Settings
from ..errors import ConfigError, VestalError
from ..keys import load_private_key


_CONTRACT_OPTIONS = [
    click.option(
        "--rpc-url",
        envvar="VESTAL_RPC_URL",
        required=True,
        help="JSON-RPC endpoint of the node",
    ),
    click.option(
        "--artifact",
        "artifact_path",
        envvar="VESTAL_ARTIFACT",
        default=str(DEFAULT_ARTIFACT),
        show_default=True,
        type=click.Path(dir_okay=False, path_type=Path),
        help="Compiled contract artifact (ABI + networks)",
    ),
    click.option(
        "--contract-address",
        envvar="VESTAL_CONTRACT_ADDRESS",
        default=None,
        help="Use this address instead of the artifact's deployment registry",
    ),
    click.option(
        "--chain-id",
        envvar="VESTAL_CHAIN_ID",
        type=int,
        default=None,
        help="Chain id to sign for (default: the network id)",
    ),
    click.option(
        "--get-method",
        envvar="VESTAL_GET_METHOD",
        default=DEFAULT_GET_METHOD,
        show_default=True,
        help="Read-only getter for an allotment",
    ),
    click.option(
        "--rpc-timeout",
        envvar="VESTAL_RPC_TIMEOUT",
        default=30.0,
        type=click.FloatRange(min=0),
        show_default=True,
        help="Seconds to wait for each RPC response",
    ),
]


def contract_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the endpoint, artifact and contract options to a command."""
    for option in reversed(_CONTRACT_OPTIONS):
        func = option(func)
    return func


def build_settings(
    rpc_url: str,
    artifact_path: Path,
    contract_address: Optional[str],
    chain_id: Optional[int],
    get_method: str,
    rpc_timeout: float,
    require_key: bool = False,
    **extra: Any,
) -> Settings:
    try:
        private_key: Optional[str] = load_private_key()
    except ConfigError:
        if require_key:
            raise
        private_key = None

    return Settings(
        rpc_url=rpc_url,
        artifact_path=artifact_path,
        private_key=private_key,
        contract_address=contract_address,
        chain_id=chain_id,
        get_method=get_method,
        rpc_timeout=rpc_timeout,
        **extra,
    )


def fail(exc: VestalError) -> NoReturn:
    """Report a workflow error and exit with its code."""
    step = exc.step or "vestal"
    click.secho(f"ERROR [{step}]: {exc}", fg="red", err=True)
    if exc.tx_hash:
        click.echo(f"  Transaction hash: {exc.tx_hash}", err=True)
    sys.exit(exc.exit_code)
