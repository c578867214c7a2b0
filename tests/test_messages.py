"""
tests/test_messages.py

Message parsing: the tagged handle union, queries and instantiate.

Run:
    pytest tests/test_messages.py -v
"""

import base64

import pytest

from tokensale.core.exceptions import ValidationError
from tokensale.core.messages import (
    Deposit,
    InstantiateMsg,
    QueryMsg,
    Receive,
    WithdrawFunding,
    parse_handle_msg,
    parse_query_msg,
)
from tokensale.core.models import AssetRef, DepositEvent, ForwardPolicy


ACCEPTED = {"address": "secret1accepted", "contract_hash": "a" * 64}
OFFERED  = {"address": "secret1offered",  "contract_hash": "b" * 64}


def instantiate_dict(**overrides) -> dict:
    data = {
        "accepted_token": ACCEPTED,
        "offered_token":  OFFERED,
        "exchange_rate":  "123",
        "viewing_key":    "api_key_secret",
    }
    data.update(overrides)
    return data


# ─────────────────────────────────────────────────────────────
# Deposit shapes
# ─────────────────────────────────────────────────────────────

class TestDepositShapes:

    def test_receive_hook_parses(self):
        payload = base64.b64encode(b'{"deposit":{}}').decode()
        msg = parse_handle_msg({
            "receive": {
                "sender": "secret1operator",
                "from":   "secret1user",
                "amount": "333",
                "msg":    payload,
            }
        })
        assert isinstance(msg, Receive)
        assert msg.sender == "secret1operator"
        assert msg.from_ == "secret1user"
        assert msg.amount == 333
        assert msg.msg == b'{"deposit":{}}'

    def test_receive_without_payload(self):
        msg = parse_handle_msg({
            "receive": {"sender": "secret1user", "from": "secret1user", "amount": 5}
        })
        assert msg.msg is None

    def test_receive_bad_base64_rejected(self):
        with pytest.raises(ValidationError):
            parse_handle_msg({
                "receive": {
                    "sender": "secret1user",
                    "from":   "secret1user",
                    "amount": "5",
                    "msg":    "not base64!",
                }
            })

    def test_dedicated_deposit_parses(self):
        msg = parse_handle_msg({"deposit": {"from": "secret1user", "amount": "333"}})
        assert isinstance(msg, Deposit)
        assert msg.from_ == "secret1user"
        assert msg.amount == 333

    def test_both_shapes_normalize_to_same_event(self):
        """The claimed depositor is 'from' in both shapes; 'sender' is only context."""
        receive = Receive(sender="secret1operator", from_="secret1user", amount=333)
        deposit = Deposit(from_="secret1user", amount=333)

        r_event = receive.to_event()
        d_event = deposit.to_event()

        assert r_event.depositor == d_event.depositor == "secret1user"
        assert r_event.amount == d_event.amount == 333
        assert d_event == DepositEvent(depositor="secret1user", amount=333)

    def test_missing_amount_rejected(self):
        with pytest.raises(ValidationError):
            parse_handle_msg({"deposit": {"from": "secret1user"}})

    def test_oversized_amount_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_handle_msg({"deposit": {"from": "secret1user", "amount": "9" * 5000}})
        assert exc_info.value.details["field"] == "deposit.amount"

    def test_empty_from_rejected(self):
        with pytest.raises(ValidationError):
            parse_handle_msg({"deposit": {"from": "", "amount": "1"}})


# ─────────────────────────────────────────────────────────────
# Tagged union edge cases
# ─────────────────────────────────────────────────────────────

class TestHandleUnion:

    def test_withdraw_funding_parses(self):
        msg = parse_handle_msg({"withdraw_funding": {"amount": "123"}})
        assert msg == WithdrawFunding(amount=123)
        assert msg.to_request().amount == 123

    def test_unknown_tag_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_handle_msg({"mint": {"amount": "1"}})
        assert exc_info.value.details["tag"] == "mint"

    def test_two_tags_rejected(self):
        with pytest.raises(ValidationError):
            parse_handle_msg({
                "deposit":          {"from": "secret1user", "amount": "1"},
                "withdraw_funding": {"amount": "1"},
            })

    def test_non_object_rejected(self):
        with pytest.raises(ValidationError):
            parse_handle_msg(["deposit"])

    def test_body_must_be_object(self):
        with pytest.raises(ValidationError):
            parse_handle_msg({"withdraw_funding": "123"})


class TestQueries:

    @pytest.mark.parametrize("tag", [
        QueryMsg.CONFIG,
        QueryMsg.ACCEPTED_TOKEN_AVAILABLE,
        QueryMsg.OFFERED_TOKEN_AVAILABLE,
    ])
    def test_known_queries(self, tag):
        assert parse_query_msg({tag: {}}) == tag

    def test_null_body_allowed(self):
        assert parse_query_msg({"config": None}) == QueryMsg.CONFIG

    def test_unknown_query_rejected(self):
        with pytest.raises(ValidationError):
            parse_query_msg({"viewing_key": {}})

    def test_query_fields_rejected(self):
        with pytest.raises(ValidationError):
            parse_query_msg({"config": {"include_key": True}})


# ─────────────────────────────────────────────────────────────
# Instantiate
# ─────────────────────────────────────────────────────────────

class TestInstantiateMsg:

    def test_minimal(self):
        msg = InstantiateMsg.from_dict(instantiate_dict())
        assert msg.accepted_token == AssetRef("secret1accepted", "a" * 64)
        assert msg.offered_token == AssetRef("secret1offered", "b" * 64)
        assert msg.exchange_rate == 123
        assert msg.admin is None
        assert msg.sale_end_time is None
        assert msg.forward_policy is ForwardPolicy.ACCRUE

    def test_all_fields(self):
        msg = InstantiateMsg.from_dict(instantiate_dict(
            admin="secret1admin",
            sale_end_time=1767225600,
            forward_policy="immediate",
        ))
        assert msg.admin == "secret1admin"
        assert msg.sale_end_time == 1767225600
        assert msg.forward_policy is ForwardPolicy.IMMEDIATE

    def test_repr_hides_viewing_key(self):
        msg = InstantiateMsg.from_dict(instantiate_dict())
        assert "api_key_secret" not in repr(msg)

    def test_unknown_forward_policy_rejected(self):
        with pytest.raises(ValidationError):
            InstantiateMsg.from_dict(instantiate_dict(forward_policy="later"))

    def test_missing_viewing_key_rejected(self):
        data = instantiate_dict()
        del data["viewing_key"]
        with pytest.raises(ValidationError):
            InstantiateMsg.from_dict(data)

    def test_token_without_hash_rejected(self):
        with pytest.raises(ValidationError):
            InstantiateMsg.from_dict(instantiate_dict(
                accepted_token={"address": "secret1accepted"}
            ))

    def test_negative_sale_end_time_rejected(self):
        with pytest.raises(ValidationError):
            InstantiateMsg.from_dict(instantiate_dict(sale_end_time=-1))
