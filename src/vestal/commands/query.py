"""
Query - Read-only contract lookups.

Nothing here signs or sends a transaction; every value comes from eth_call.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..chain.abi import load_artifact
from ..errors import VestalError
from ..keys import get_address, same_address
from ..workflow import connect, read_allotment, read_owner, resolve_contract
from .options import build_settings, contract_options, fail


@click.command()
@click.option("--recipient", required=True, help="Address to look up")
@contract_options
def show(
    recipient: str,
    rpc_url: str,
    artifact_path: Path,
    contract_address: Optional[str],
    chain_id: Optional[int],
    get_method: str,
    rpc_timeout: float,
) -> None:
    """Show the current allotment of an address."""
    try:
        settings = build_settings(
            rpc_url, artifact_path, contract_address, chain_id, get_method, rpc_timeout
        )
        artifact = load_artifact(settings.artifact_path)
        network = connect(settings)
        with network.client:
            binding = resolve_contract(network, artifact, settings.contract_address)
            allotment = read_allotment(network, binding, recipient, settings.get_method)
    except VestalError as exc:
        fail(exc)

    click.echo(f"Allotment: {allotment if allotment is not None else 0}")


@click.command()
@contract_options
def info(
    rpc_url: str,
    artifact_path: Path,
    contract_address: Optional[str],
    chain_id: Optional[int],
    get_method: str,
    rpc_timeout: float,
) -> None:
    """Show network, contract and signer status."""
    click.echo("=== Vestal Info ===")
    click.echo("")

    try:
        settings = build_settings(
            rpc_url, artifact_path, contract_address, chain_id, get_method, rpc_timeout
        )
        artifact = load_artifact(settings.artifact_path)
        signer = get_address(settings.private_key) if settings.private_key else None

        network = connect(settings)
        with network.client:
            binding = resolve_contract(network, artifact, settings.contract_address)
            owner = read_owner(network, binding)
    except VestalError as exc:
        fail(exc)

    signing_chain = settings.chain_id if settings.chain_id is not None else network.network_id

    click.echo(f"  Network ID:       {network.network_id}")
    click.echo(f"  Chain ID:         {network.chain_id}")
    click.echo(f"  Contract:         {artifact.contract_name} at {binding.address}")
    click.echo(f"  Owner:            {owner or '(no owner() in ABI)'}")
    click.echo(f"  Signer:           {signer or '(no PRIVATE_KEY)'}")

    if signing_chain != network.chain_id:
        click.echo("")
        click.secho(
            f"  WARNING: transactions would be signed for chain {signing_chain}, "
            f"node is on chain {network.chain_id}",
            fg="yellow",
        )

    if signer and owner:
        click.echo("")
        if same_address(signer, owner):
            click.secho("  [SIGNER IS CONTRACT OWNER]", fg="green", bold=True)
        else:
            click.secho("  Signer is not the contract owner; writes may revert.", fg="yellow")
