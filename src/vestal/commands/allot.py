"""
Allot - Update one vesting allotment on-chain.

Sends a single signed transaction from your EOA to the vesting contract,
waits for inclusion, then reads the allotment back.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..errors import VestalError
from ..workflow import update_allotment
from .options import build_settings, contract_options, fail


@click.command()
@click.option("--recipient", required=True, help="Address whose allotment is set")
@click.option("--amount", required=True, type=click.IntRange(min=0), help="New allotment (smallest unit)")
@click.option("--sender", default=None, help="Sending account (default: address of PRIVATE_KEY)")
@click.option(
    "--set-method",
    envvar="VESTAL_SET_METHOD",
    default="setAllotment",
    show_default=True,
    help="State-changing setter on the contract",
)
@click.option(
    "--timeout",
    envvar="VESTAL_CONFIRM_TIMEOUT",
    default=120.0,
    type=click.FloatRange(min=0),
    show_default=True,
    help="Seconds to wait for inclusion",
)
@click.option(
    "--poll-interval",
    envvar="VESTAL_POLL_INTERVAL",
    default=2.0,
    type=click.FloatRange(min=0),
    show_default=True,
    help="Seconds between receipt polls",
)
@contract_options
def allot(
    recipient: str,
    amount: int,
    sender: Optional[str],
    set_method: str,
    timeout: float,
    poll_interval: float,
    rpc_url: str,
    artifact_path: Path,
    contract_address: Optional[str],
    chain_id: Optional[int],
    get_method: str,
    rpc_timeout: float,
) -> None:
    """
    Set an allotment and confirm it.

    Client pays gas. Exactly one transaction is sent per run.
    """
    click.echo("=== Vestal Allot ===")
    click.echo("")

    try:
        settings = build_settings(
            rpc_url=rpc_url,
            artifact_path=artifact_path,
            contract_address=contract_address,
            chain_id=chain_id,
            get_method=get_method,
            rpc_timeout=rpc_timeout,
            require_key=True,
            set_method=set_method,
            confirm_timeout=timeout,
            poll_interval=poll_interval,
        )

        click.echo(f"  Recipient: {recipient}")
        click.echo(f"  Amount: {amount}")
        if sender:
            click.echo(f"  Sender: {sender}")
        click.echo("")

        result = update_allotment(settings, recipient, amount, sender=sender)
    except VestalError as exc:
        fail(exc)

    click.secho("SUCCESS: Transaction confirmed!", fg="green")
    click.echo(f"Transaction hash: {result.tx_hash}")
    click.echo(f"New allotment: {result.allotment}")
    if not result.confirmed:
        click.secho(
            f"WARNING: read back {result.allotment}, expected {result.expected}",
            fg="yellow",
        )
