"""
Exchange policy for the settlement engine.

Two orthogonal flags cover every deployed flavour of the sale contract:

    forward  — ACCRUE (admin withdraws later) or IMMEDIATE (forward on deposit)
    rate     — fixed integer multiplier, offered = accepted * rate (1 = plain swap)

Both are fixed when the contract is instantiated.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from tokensale.core.exceptions import ValidationError
from tokensale.core.math import format_uint128, parse_uint128
from tokensale.core.models import Config, ForwardPolicy


@dataclass(frozen=True)
class ExchangePolicy:
    """Fixed-multiplier exchange with a forward policy."""
    rate:    int
    forward: ForwardPolicy = ForwardPolicy.ACCRUE

    @property
    def forwards_immediately(self) -> bool:
        return self.forward is ForwardPolicy.IMMEDIATE

    @classmethod
    def from_config(cls, config: Config) -> "ExchangePolicy":
        return cls(rate=config.exchange_rate, forward=config.forward_policy)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ExchangePolicy":
        """
        Load policy from a sale definition.

        Accepts either the flat instantiate keys (exchange_rate,
        forward_policy) or a nested policy block:

            exchange_rate: "123"
            policy:
              forward: immediate
        """
        if not isinstance(data, dict):
            raise ValidationError("policy definition must be a mapping")

        nested = data.get("policy") or {}
        if not isinstance(nested, dict):
            raise ValidationError("policy block must be a mapping")

        forward_raw = nested.get("forward", data.get("forward_policy", "accrue"))
        try:
            forward = ForwardPolicy(forward_raw)
        except ValueError:
            raise ValidationError(
                f"Unknown forward policy {forward_raw!r}. "
                f"Valid: {[p.value for p in ForwardPolicy]}"
            )

        rate_raw = nested.get("rate", data.get("exchange_rate"))
        return ExchangePolicy(
            rate=parse_uint128(rate_raw, "exchange_rate"),
            forward=forward,
        )

    @classmethod
    def from_yaml(cls, policy_file: Path) -> "ExchangePolicy":
        """Load policy from a YAML sale definition."""
        with open(policy_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    def to_instantiate_fields(self) -> Dict[str, str]:
        """The instantiate-message keys this policy maps onto."""
        return {
            "exchange_rate":  format_uint128(self.rate),
            "forward_policy": self.forward.value,
        }
