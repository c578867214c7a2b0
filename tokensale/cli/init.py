"""
tokensale init — instantiate a sale from a YAML definition.

Usage:
    tokensale init sale.yaml --state sale.json --sender secret1admin
    tokensale init sale.yaml --state sale.json --sender secret1admin --key sale.pem

Writes the Config record into the state file and prints the registration
handshake the host has to execute. Viewing keys are masked in the output.
"""

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
)
from tokensale.core.exceptions import StorageError, TokenSaleError, ValidationError
from tokensale.policy.sale import load_sale


@click.command(name="init")
@click.argument("sale", type=click.Path(exists=True, dir_okay=False))
@click.option("--state", required=True, type=click.Path(dir_okay=False), help="State file to create.")
@click.option("--sender", required=True, help="Address instantiating the contract.")
@click.option("--contract-address", default=DEFAULT_CONTRACT_ADDRESS, show_default=True)
@click.option("--code-hash", default=DEFAULT_CODE_HASH, show_default=True)
@click.option(
    "--key",
    "key_path",
    type=click.Path(dir_okay=False),
    default=None,
    metavar="PEM",
    help="Ed25519 private key used to sign the stored Config.",
)
def init_command(
    sale:             str,
    state:            str,
    sender:           str,
    contract_address: str,
    code_hash:        str,
    key_path:         Optional[str],
) -> None:
    """Instantiate a token sale into STATE from the SALE definition."""
    try:
        msg = load_sale(sale)
    except (OSError, ValidationError) as exc:
        fail(str(exc), EXIT_ERROR)

    deps = open_deps(state, key_path)
    env = make_env(sender, contract_address, code_hash)

    try:
        response = contract.instantiate(deps, env, msg)
    except (StorageError, ValidationError) as exc:
        fail(str(exc), EXIT_ERROR)
    except TokenSaleError as exc:
        fail(str(exc), EXIT_REJECTED)

    echo_response(response)
