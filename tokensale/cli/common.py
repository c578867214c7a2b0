"""
Shared helpers for CLI commands.

Exit codes (shell-scriptable):
    0  Success
    1  Rejected by the contract (authentication, authorization, overflow, ...)
    2  Error (state file missing or corrupt, bad input, bad key)
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click

from tokensale.core.crypto import ConfigSigner
from tokensale.core.exceptions import StorageError, ValidationError
from tokensale.core.context import Deps, Env, Response
from tokensale.storage.store import FileStorage


EXIT_OK       = 0
EXIT_REJECTED = 1
EXIT_ERROR    = 2

DEFAULT_CONTRACT_ADDRESS = "secret1tokensale"
DEFAULT_CODE_HASH        = "0" * 64


def load_key(key_path: Optional[str]) -> Optional[ConfigSigner]:
    if key_path is None:
        return None
    try:
        return ConfigSigner.load(Path(key_path))
    except (FileNotFoundError, ValueError) as exc:
        fail(str(exc), EXIT_ERROR)


def open_deps(state: str, key_path: Optional[str]) -> Deps:
    try:
        storage = FileStorage(Path(state))
    except StorageError as exc:
        fail(str(exc), EXIT_ERROR)
    return Deps(storage=storage, signer=load_key(key_path))


def make_env(sender: str, contract_address: str, code_hash: str) -> Env:
    return Env(
        sender=sender,
        contract_address=contract_address,
        contract_code_hash=code_hash,
    )


def public_message(message: Any) -> Dict[str, Any]:
    """Instruction as JSON with any viewing key masked."""
    data = message.to_dict()
    for body in data.values():
        if isinstance(body, dict) and "key" in body:
            body["key"] = "***"
    return data


def echo_response(response: Response) -> None:
    payload = {
        "messages":   [public_message(m) for m in response.messages],
        "attributes": dict(response.attributes),
    }
    click.echo(json.dumps(payload, indent=2))


def parse_json(text: str, what: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as exc:
        raise ValidationError(f"{what} is not valid JSON: {exc}") from exc


def fail(message: str, code: int) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)
