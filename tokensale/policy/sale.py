"""
Sale definitions in YAML.

    admin: secret1admin                # optional, defaults to the instantiator
    accepted_token:
      address: secret1accepted
      contract_hash: 0a1b...
    offered_token:
      address: secret1offered
      contract_hash: 2c3d...
    exchange_rate: "123"
    viewing_key: ...                   # optional, generated when missing
    sale_end_time: 1767225600          # optional, stored but not enforced
    policy:
      forward: accrue                  # or immediate
"""

import secrets
from pathlib import Path
from typing import Any, Dict

import yaml

from tokensale.core.exceptions import ValidationError
from tokensale.core.messages import InstantiateMsg
from tokensale.policy.policy import ExchangePolicy


VIEWING_KEY_BYTES = 32


def generate_viewing_key() -> str:
    """Fresh random view credential, URL-safe."""
    return "api_key_" + secrets.token_urlsafe(VIEWING_KEY_BYTES)


def sale_from_dict(data: Dict[str, Any]) -> InstantiateMsg:
    """Build the instantiate message from a parsed sale definition."""
    if not isinstance(data, dict):
        raise ValidationError("sale definition must be a mapping")

    policy = ExchangePolicy.from_dict(data)
    fields = {key: value for key, value in data.items() if key != "policy"}
    fields.update(policy.to_instantiate_fields())
    if not fields.get("viewing_key"):
        fields["viewing_key"] = generate_viewing_key()

    return InstantiateMsg.from_dict(fields)


def load_sale(path: Path) -> InstantiateMsg:
    """Load a YAML sale definition."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ValidationError(f"Sale definition {path} is not valid YAML: {exc}") from exc
    return sale_from_dict(data or {})
