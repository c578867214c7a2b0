"""
tokensale/core/models.py

Data model for the token sale contract.

Persistent:
    Config             — the single contract record (stored under b"config")

Transient, one invocation only:
    DepositEvent        — normalized deposit notification
    WithdrawalRequest   — admin withdrawal
    TransferInstruction / RegisterReceiveInstruction / SetViewingKeyInstruction
                        — outbound instructions executed by the host after commit

Responses:
    ConfigResponse, BalanceResponse

Wire form of every Uint128 is a decimal string; see core/math.py.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional

from tokensale.core.exceptions import ValidationError
from tokensale.core.math import format_uint128, parse_uint128


CONFIG_KEY = b"config"


def require_address(value: Any, field_name: str) -> str:
    """Addresses are opaque non-empty strings."""
    if not isinstance(value, str) or not value:
        raise ValidationError(
            f"{field_name} must be a non-empty address string, got {value!r}",
            {"field": field_name},
        )
    return value


def require_viewing_key(value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationError("viewing_key must be a non-empty string")
    return value


def optional_timestamp(value: Any, field_name: str) -> Optional[int]:
    """None or a non-negative integer of seconds."""
    if value is not None and (
        isinstance(value, bool) or not isinstance(value, int) or value < 0
    ):
        raise ValidationError(
            f"{field_name} must be a non-negative integer, got {value!r}",
            {"field": field_name},
        )
    return value


class ForwardPolicy(Enum):
    """What happens to the accepted tokens a deposit brings in."""
    ACCRUE    = "accrue"     # stay in the contract until the admin withdraws
    IMMEDIATE = "immediate"  # forwarded to the admin in the same settlement


# ─────────────────────────────────────────────────────────────
# AssetRef
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AssetRef:
    """Identity of an external fungible-token ledger."""
    address:   str
    code_hash: str

    def to_dict(self) -> Dict[str, str]:
        return {"address": self.address, "contract_hash": self.code_hash}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], field_name: str = "token") -> "AssetRef":
        if not isinstance(data, dict):
            raise ValidationError(
                f"{field_name} must be an object with address and contract_hash",
                {"field": field_name},
            )
        return cls(
            address=require_address(data.get("address"), f"{field_name}.address"),
            code_hash=require_address(
                data.get("contract_hash"), f"{field_name}.contract_hash"
            ),
        )


# ─────────────────────────────────────────────────────────────
# Config
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Config:
    """
    The contract's single persisted record.

    Everything except total_raised is fixed at instantiation.
    view_credential is kept out of repr() and out of every response;
    only to_dict() (the storage form) carries it.
    """
    admin:           str
    accepted_token:  AssetRef
    offered_token:   AssetRef
    exchange_rate:   int
    view_credential: str = field(repr=False)
    total_raised:    int = 0
    sale_end_time:   Optional[int] = None
    forward_policy:  ForwardPolicy = ForwardPolicy.ACCRUE

    def with_total_raised(self, total_raised: int) -> "Config":
        """Return a copy with a new running total. The only post-init mutation."""
        return replace(self, total_raised=total_raised)

    def to_dict(self) -> Dict[str, Any]:
        """Storage form. Contains the view credential: never return it to callers."""
        return {
            "admin":           self.admin,
            "accepted_token":  self.accepted_token.to_dict(),
            "offered_token":   self.offered_token.to_dict(),
            "exchange_rate":   format_uint128(self.exchange_rate),
            "viewing_key":     self.view_credential,
            "total_raised":    format_uint128(self.total_raised),
            "sale_end_time":   self.sale_end_time,
            "forward_policy":  self.forward_policy.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """
        Decode the storage form.

        Raises ValidationError, KeyError or ValueError on malformed data;
        the store turns any of them into StorageCorruptionError.
        """
        return cls(
            admin=           require_address(data["admin"], "admin"),
            accepted_token=  AssetRef.from_dict(data["accepted_token"], "accepted_token"),
            offered_token=   AssetRef.from_dict(data["offered_token"], "offered_token"),
            exchange_rate=   parse_uint128(data["exchange_rate"], "exchange_rate"),
            view_credential= require_viewing_key(data["viewing_key"]),
            total_raised=    parse_uint128(data["total_raised"], "total_raised"),
            sale_end_time=   optional_timestamp(data.get("sale_end_time"), "sale_end_time"),
            forward_policy=  ForwardPolicy(data.get("forward_policy", "accrue")),
        )


# ─────────────────────────────────────────────────────────────
# Transient inputs
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DepositEvent:
    """
    One deposit notification, normalized from either inbound shape.

    depositor and amount are whatever the caller claims. They mean
    nothing until the caller has been proven to be the accepted token
    ledger.
    """
    depositor: str
    amount:    int
    payload:   Optional[bytes] = None
    sender:    Optional[str] = None


@dataclass(frozen=True)
class WithdrawalRequest:
    amount: int


# ─────────────────────────────────────────────────────────────
# Outbound instructions
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TransferInstruction:
    """Move amount of token from the contract to recipient."""
    token:     AssetRef
    recipient: str
    amount:    int

    kind = "transfer"

    def to_dict(self) -> Dict[str, Any]:
        return {
            self.kind: {
                "token":     self.token.to_dict(),
                "recipient": self.recipient,
                "amount":    format_uint128(self.amount),
            }
        }


@dataclass(frozen=True)
class RegisterReceiveInstruction:
    """Subscribe the contract to deposit notifications from token."""
    token:     AssetRef
    code_hash: str

    kind = "register_receive"

    def to_dict(self) -> Dict[str, Any]:
        return {
            self.kind: {
                "token":     self.token.to_dict(),
                "code_hash": self.code_hash,
            }
        }


@dataclass(frozen=True)
class SetViewingKeyInstruction:
    """Register the contract's view credential with token."""
    token: AssetRef
    key:   str = field(repr=False)

    kind = "set_viewing_key"

    def to_dict(self) -> Dict[str, Any]:
        # Carries the key in clear. Callers mask it before display.
        return {
            self.kind: {
                "token": self.token.to_dict(),
                "key":   self.key,
            }
        }


# ─────────────────────────────────────────────────────────────
# Responses
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ConfigResponse:
    accepted_token: AssetRef
    offered_token:  AssetRef
    admin:          str
    exchange_rate:  int
    total_raised:   int

    @classmethod
    def from_config(cls, config: Config) -> "ConfigResponse":
        return cls(
            accepted_token=config.accepted_token,
            offered_token=config.offered_token,
            admin=config.admin,
            exchange_rate=config.exchange_rate,
            total_raised=config.total_raised,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accepted_token": self.accepted_token.to_dict(),
            "offered_token":  self.offered_token.to_dict(),
            "admin":          self.admin,
            "exchange_rate":  format_uint128(self.exchange_rate),
            "total_raised":   format_uint128(self.total_raised),
        }


@dataclass(frozen=True)
class BalanceResponse:
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": format_uint128(self.amount)}
