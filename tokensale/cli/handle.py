"""
tokensale handle / tokensale config

Usage:
    tokensale handle sale.json --sender secret1accepted \\
        --msg '{"deposit": {"from": "secret1user", "amount": "333"}}'
    tokensale config sale.json

handle runs one message through the contract. The state file is only
rewritten if the contract accepts the message; the printed instructions
are what a host would execute next.
"""

import json
from typing import Optional

import click

from tokensale import contract
from tokensale.cli.common import (
    DEFAULT_CODE_HASH,
    DEFAULT_CONTRACT_ADDRESS,
    EXIT_ERROR,
    EXIT_REJECTED,
    echo_response,
    fail,
    make_env,
    open_deps,
    parse_json,
)
from tokensale.core.exceptions import StorageError, TokenSaleError, ValidationError
from tokensale.core.messages import QueryMsg
from tokensale.storage.store import TransactionalStorage


_key_option = click.option(
    "--key",
    "key_path",
    type=click.Path(dir_okay=False),
    default=None,
    metavar="PEM",
    help="Ed25519 key the stored Config is signed with.",
)


@click.command(name="handle")
@click.argument("state", type=click.Path(exists=True, dir_okay=False))
@click.option("--sender", required=True, help="Address invoking the contract.")
@click.option("--msg", "msg_json", required=True, help="Tagged handle message as JSON.")
@click.option("--contract-address", default=DEFAULT_CONTRACT_ADDRESS, show_default=True)
@_key_option
def handle_command(
    state:            str,
    sender:           str,
    msg_json:         str,
    contract_address: str,
    key_path:         Optional[str],
) -> None:
    """Execute one handle message against STATE."""
    deps = open_deps(state, key_path)
    file_storage = deps.storage
    tx = TransactionalStorage(file_storage)
    deps.storage = tx

    env = make_env(sender, contract_address, DEFAULT_CODE_HASH)

    try:
        msg = parse_json(msg_json, "--msg")
        response = contract.handle(deps, env, msg)
    except (StorageError, ValidationError) as exc:
        fail(str(exc), EXIT_ERROR)
    except TokenSaleError as exc:
        fail(str(exc), EXIT_REJECTED)

    try:
        tx.commit()
    except StorageError as exc:
        fail(str(exc), EXIT_ERROR)

    echo_response(response)


@click.command(name="config")
@click.argument("state", type=click.Path(exists=True, dir_okay=False))
@_key_option
def config_command(state: str, key_path: Optional[str]) -> None:
    """Show the public configuration stored in STATE."""
    deps = open_deps(state, key_path)
    env = make_env(DEFAULT_CONTRACT_ADDRESS, DEFAULT_CONTRACT_ADDRESS, DEFAULT_CODE_HASH)
    try:
        result = contract.query(deps, env, QueryMsg.CONFIG)
    except TokenSaleError as exc:
        fail(str(exc), EXIT_ERROR)
    click.echo(json.dumps(result, indent=2))
