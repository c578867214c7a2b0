"""
tokensale/core/messages.py

Inbound message vocabulary.

Every message travels as a single-key JSON object whose key is the
snake_case tag:

    {"receive":          {"sender": ..., "from": ..., "amount": "333", "msg": "<b64>"}}
    {"deposit":          {"from": ..., "amount": "333"}}
    {"withdraw_funding": {"amount": "123"}}

    {"config": {}}
    {"accepted_token_available": {}}
    {"offered_token_available": {}}

parse_handle_msg() / parse_query_msg() are the only way in. Both deposit
shapes normalize into one DepositEvent via to_event(), so authentication
and settlement are written once.
"""

import base64
import binascii
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from tokensale.core.exceptions import ValidationError
from tokensale.core.math import parse_uint128
from tokensale.core.models import (
    AssetRef,
    DepositEvent,
    ForwardPolicy,
    WithdrawalRequest,
    optional_timestamp,
    require_address,
    require_viewing_key,
)


def _split_tagged(data: Any, kind: str) -> Tuple[str, Dict[str, Any]]:
    if not isinstance(data, dict) or len(data) != 1:
        raise ValidationError(
            f"{kind} message must be an object with exactly one tag"
        )
    tag, body = next(iter(data.items()))
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise ValidationError(
            f"{kind} message body for '{tag}' must be an object",
            {"tag": tag},
        )
    return tag, body


# ─────────────────────────────────────────────────────────────
# Instantiate
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class InstantiateMsg:
    accepted_token: AssetRef
    offered_token:  AssetRef
    exchange_rate:  int
    viewing_key:    str
    admin:          Optional[str] = None
    sale_end_time:  Optional[int] = None
    forward_policy: ForwardPolicy = ForwardPolicy.ACCRUE

    def __repr__(self) -> str:
        return (
            f"InstantiateMsg(accepted_token={self.accepted_token.address!r}, "
            f"offered_token={self.offered_token.address!r}, "
            f"exchange_rate={self.exchange_rate}, "
            f"forward_policy={self.forward_policy.value})"
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InstantiateMsg":
        if not isinstance(data, dict):
            raise ValidationError("instantiate message must be an object")

        viewing_key = require_viewing_key(data.get("viewing_key"))

        admin = data.get("admin")
        if admin is not None:
            admin = require_address(admin, "admin")

        sale_end_time = optional_timestamp(data.get("sale_end_time"), "sale_end_time")

        try:
            forward_policy = ForwardPolicy(data.get("forward_policy", "accrue"))
        except ValueError:
            raise ValidationError(
                f"forward_policy must be one of "
                f"{[p.value for p in ForwardPolicy]}, got {data.get('forward_policy')!r}"
            )

        return cls(
            accepted_token=AssetRef.from_dict(data.get("accepted_token"), "accepted_token"),
            offered_token=AssetRef.from_dict(data.get("offered_token"), "offered_token"),
            exchange_rate=parse_uint128(data.get("exchange_rate"), "exchange_rate"),
            viewing_key=viewing_key,
            admin=admin,
            sale_end_time=sale_end_time,
            forward_policy=forward_policy,
        )


# ─────────────────────────────────────────────────────────────
# Handle messages
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Receive:
    """Generic token hook: the ledger reports that sender moved from's tokens here."""
    sender: str
    from_:  str
    amount: int
    msg:    Optional[bytes] = None

    tag = "receive"

    def to_event(self) -> DepositEvent:
        return DepositEvent(
            depositor=self.from_,
            amount=self.amount,
            payload=self.msg,
            sender=self.sender,
        )

    @classmethod
    def from_body(cls, body: Dict[str, Any]) -> "Receive":
        raw_msg = body.get("msg")
        payload = None
        if raw_msg is not None:
            if not isinstance(raw_msg, str):
                raise ValidationError("receive.msg must be a base64 string")
            try:
                payload = base64.b64decode(raw_msg, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise ValidationError(f"receive.msg is not valid base64: {exc}")

        return cls(
            sender=require_address(body.get("sender"), "receive.sender"),
            from_=require_address(body.get("from"), "receive.from"),
            amount=parse_uint128(body.get("amount"), "receive.amount"),
            msg=payload,
        )


@dataclass(frozen=True)
class Deposit:
    """Dedicated deposit callback carrying only who paid and how much."""
    from_:  str
    amount: int

    tag = "deposit"

    def to_event(self) -> DepositEvent:
        return DepositEvent(depositor=self.from_, amount=self.amount)

    @classmethod
    def from_body(cls, body: Dict[str, Any]) -> "Deposit":
        return cls(
            from_=require_address(body.get("from"), "deposit.from"),
            amount=parse_uint128(body.get("amount"), "deposit.amount"),
        )


@dataclass(frozen=True)
class WithdrawFunding:
    amount: int

    tag = "withdraw_funding"

    def to_request(self) -> WithdrawalRequest:
        return WithdrawalRequest(amount=self.amount)

    @classmethod
    def from_body(cls, body: Dict[str, Any]) -> "WithdrawFunding":
        return cls(amount=parse_uint128(body.get("amount"), "withdraw_funding.amount"))


HandleMsg = Union[Receive, Deposit, WithdrawFunding]

_HANDLE_TAGS = {
    Receive.tag:         Receive,
    Deposit.tag:         Deposit,
    WithdrawFunding.tag: WithdrawFunding,
}


def parse_handle_msg(data: Any) -> HandleMsg:
    """Parse a tagged handle message. Raises ValidationError on unknown tags."""
    tag, body = _split_tagged(data, "handle")
    msg_cls = _HANDLE_TAGS.get(tag)
    if msg_cls is None:
        raise ValidationError(
            f"Unknown handle message '{tag}'. Valid: {sorted(_HANDLE_TAGS)}",
            {"tag": tag},
        )
    return msg_cls.from_body(body)


# ─────────────────────────────────────────────────────────────
# Queries
# ─────────────────────────────────────────────────────────────

class QueryMsg:
    """Query tags. Queries carry no fields."""
    CONFIG                   = "config"
    ACCEPTED_TOKEN_AVAILABLE = "accepted_token_available"
    OFFERED_TOKEN_AVAILABLE  = "offered_token_available"


_QUERY_TAGS = {
    QueryMsg.CONFIG,
    QueryMsg.ACCEPTED_TOKEN_AVAILABLE,
    QueryMsg.OFFERED_TOKEN_AVAILABLE,
}


def parse_query_msg(data: Any) -> str:
    """Parse a tagged query message and return its tag."""
    tag, body = _split_tagged(data, "query")
    if tag not in _QUERY_TAGS:
        raise ValidationError(
            f"Unknown query '{tag}'. Valid: {sorted(_QUERY_TAGS)}",
            {"tag": tag},
        )
    if body:
        raise ValidationError(f"Query '{tag}' takes no fields", {"tag": tag})
    return tag
