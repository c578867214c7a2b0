"""
tokensale/contract.py

Contract entry points.

    instantiate(deps, env, msg) → Response   registration handshake
    handle(deps, env, msg)      → Response   deposits and withdrawals
    query(deps, env, msg)       → dict       config and balances

Every handle follows the same shape: load Config, route by message kind,
validate completely, then save and return instructions. The only write
is the last step, so a raised error leaves storage as it was even on a
host without transactions.
"""

import logging
from typing import Any, Dict, List, Union

from tokensale.core.exceptions import ValidationError
from tokensale.core.math import format_uint128
from tokensale.core.messages import (
    Deposit,
    HandleMsg,
    InstantiateMsg,
    QueryMsg,
    Receive,
    WithdrawFunding,
    parse_handle_msg,
    parse_query_msg,
)
from tokensale.core.models import (
    Config,
    ConfigResponse,
    RegisterReceiveInstruction,
    SetViewingKeyInstruction,
)
from tokensale.oracle.balance import BalanceOracle
from tokensale.core.context import Deps, Env, Response
from tokensale.settlement.engine import SettlementEngine
from tokensale.settlement.withdrawal import WithdrawalAuthorizer


logger = logging.getLogger(__name__)


# ── Instantiate ───────────────────────────────────────────────

def instantiate(
    deps: Deps,
    env: Env,
    msg: Union[InstantiateMsg, Dict[str, Any]],
) -> Response:
    """
    Create the Config and issue the registration handshake.

    The admin defaults to whoever instantiates. The handshake subscribes
    the contract to deposit notifications on both token ledgers and
    registers the view credential with both, so the balance queries work.
    """
    if not isinstance(msg, InstantiateMsg):
        msg = InstantiateMsg.from_dict(msg)

    store = deps.config_store()
    if store.exists():
        raise ValidationError("Contract is already instantiated")

    config = Config(
        admin=msg.admin or env.sender,
        accepted_token=msg.accepted_token,
        offered_token=msg.offered_token,
        exchange_rate=msg.exchange_rate,
        view_credential=msg.viewing_key,
        total_raised=0,
        sale_end_time=msg.sale_end_time,
        forward_policy=msg.forward_policy,
    )
    store.save(config)

    logger.debug("Contract was initialized by %s", env.sender)

    return Response(
        messages=registration_messages(config, env.contract_code_hash),
        attributes={"action": "instantiate", "admin": config.admin},
    )


def registration_messages(config: Config, code_hash: str) -> List[Any]:
    """The four one-time handshake instructions, in execution order."""
    return [
        RegisterReceiveInstruction(token=config.accepted_token, code_hash=code_hash),
        RegisterReceiveInstruction(token=config.offered_token, code_hash=code_hash),
        SetViewingKeyInstruction(token=config.accepted_token, key=config.view_credential),
        SetViewingKeyInstruction(token=config.offered_token, key=config.view_credential),
    ]


# ── Handle ────────────────────────────────────────────────────

def handle(
    deps: Deps,
    env: Env,
    msg: Union[HandleMsg, Dict[str, Any]],
) -> Response:
    if isinstance(msg, dict):
        msg = parse_handle_msg(msg)

    store = deps.config_store()
    config = store.load()

    if isinstance(msg, (Receive, Deposit)):
        return _handle_deposit(store, config, env, msg)
    if isinstance(msg, WithdrawFunding):
        return _handle_withdraw(config, env, msg)

    raise ValidationError(f"Unsupported handle message: {type(msg).__name__}")


def _handle_deposit(store, config: Config, env: Env, msg) -> Response:
    settlement = SettlementEngine(config).settle(env.sender, msg.to_event())
    store.save(settlement.config)
    return Response(
        messages=list(settlement.instructions),
        attributes={
            "action":         "deposit",
            "depositor":      msg.from_,
            "amount":         format_uint128(msg.amount),
            "offered_amount": format_uint128(settlement.offered_amount),
        },
    )


def _handle_withdraw(config: Config, env: Env, msg: WithdrawFunding) -> Response:
    instruction = WithdrawalAuthorizer(config).authorize(env.sender, msg.to_request())
    return Response(
        messages=[instruction],
        attributes={
            "action": "withdraw_funding",
            "amount": format_uint128(msg.amount),
        },
    )


# ── Query ─────────────────────────────────────────────────────

def query(deps: Deps, env: Env, msg: Union[str, Dict[str, Any]]) -> Dict[str, Any]:
    """
    Answer a query. Reads only: never saves.

    msg is either a parsed query tag or the tagged JSON object.
    """
    tag = parse_query_msg({msg: {}} if isinstance(msg, str) else msg)
    config = deps.config_store().load()

    if tag == QueryMsg.CONFIG:
        return ConfigResponse.from_config(config).to_dict()

    if deps.querier is None:
        raise ValidationError("Balance queries need a host querier")
    oracle = BalanceOracle(config, deps.querier, env.contract_address)

    if tag == QueryMsg.ACCEPTED_TOKEN_AVAILABLE:
        return oracle.accepted_token_available().to_dict()
    if tag == QueryMsg.OFFERED_TOKEN_AVAILABLE:
        return oracle.offered_token_available().to_dict()

    raise ValidationError(f"Unknown query '{tag}'")
