"""
tokensale/cli/__init__.py

tokensale CLI — root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    tokensale = "tokensale.cli:cli"

Adding a new command:
    1. Create tokensale/cli/your_command.py with a @click.command()
    2. Import it here
    3. cli.add_command(your_command)
"""

import logging

import click

from tokensale.cli.init import init_command
from tokensale.cli.handle import config_command, handle_command


@click.group()
@click.version_option(package_name="tokensale")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log settlement details.")
def cli(verbose: bool) -> None:
    """
    tokensale — token sale contract CLI.

    \b
    Commands:
      init      Instantiate a sale from a YAML definition into a state file.
      handle    Execute one handle message against a state file.
      config    Show the public configuration of a state file.

    \b
    Quick start:
      tokensale init sale.yaml --state sale.json --sender secret1admin
      tokensale handle sale.json --sender secret1accepted \\
          --msg '{"deposit": {"from": "secret1user", "amount": "333"}}'
      tokensale config sale.json
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


cli.add_command(init_command)
cli.add_command(handle_command)
cli.add_command(config_command)
