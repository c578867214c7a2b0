"""
tests/test_settlement.py

Trust boundary, settlement engine and withdrawal authorizer in isolation.
No storage, no host: Config in, Settlement / instruction out.

Run:
    pytest tests/test_settlement.py -v
"""

import pytest

from tokensale.core.exceptions import (
    ArithmeticOverflowError,
    AuthenticationError,
    AuthorizationError,
)
from tokensale.core.math import UINT128_MAX
from tokensale.core.models import (
    AssetRef,
    Config,
    DepositEvent,
    ForwardPolicy,
    TransferInstruction,
    WithdrawalRequest,
)
from tokensale.policy import ExchangePolicy
from tokensale.settlement import SettlementEngine, WithdrawalAuthorizer
from tokensale.verification.trust import TrustBoundaryValidator


ADMIN    = "secret1admin"
USER     = "secret1user"
ACCEPTED = AssetRef("secret1accepted", "a" * 64)
OFFERED  = AssetRef("secret1offered",  "b" * 64)


def make_config(
    rate: int = 123,
    total_raised: int = 0,
    forward: ForwardPolicy = ForwardPolicy.ACCRUE,
) -> Config:
    return Config(
        admin=ADMIN,
        accepted_token=ACCEPTED,
        offered_token=OFFERED,
        exchange_rate=rate,
        view_credential="api_key_secret",
        total_raised=total_raised,
        forward_policy=forward,
    )


# ─────────────────────────────────────────────────────────────
# Trust boundary
# ─────────────────────────────────────────────────────────────

class TestTrustBoundary:

    def test_accepted_ledger_is_trusted(self):
        validator = TrustBoundaryValidator(ACCEPTED)
        validator.authenticate(ACCEPTED.address)
        assert validator.is_trusted(ACCEPTED.address)

    def test_offered_ledger_is_not_trusted(self):
        """Only the accepted token can report deposits, not the other token."""
        validator = TrustBoundaryValidator(ACCEPTED)
        with pytest.raises(AuthenticationError):
            validator.authenticate(OFFERED.address)

    def test_error_names_expected_and_actual(self):
        validator = TrustBoundaryValidator(ACCEPTED)
        with pytest.raises(AuthenticationError) as exc_info:
            validator.authenticate(USER)
        err = exc_info.value
        assert err.expected == ACCEPTED.address
        assert err.actual == USER
        assert ACCEPTED.address in str(err)
        assert USER in str(err)


# ─────────────────────────────────────────────────────────────
# Settlement engine
# ─────────────────────────────────────────────────────────────

class TestSettlementEngine:

    def test_scenario_a(self):
        """333 at rate 123 pays 40959 offered tokens and raises the total by 333."""
        engine = SettlementEngine(make_config(rate=123))
        result = engine.settle(ACCEPTED.address, DepositEvent(depositor=USER, amount=333))

        assert result.instructions == [
            TransferInstruction(token=OFFERED, recipient=USER, amount=40959)
        ]
        assert result.offered_amount == 40959
        assert result.config.total_raised == 333

    def test_accumulates_on_existing_total(self):
        engine = SettlementEngine(make_config(total_raised=1000))
        result = engine.settle(ACCEPTED.address, DepositEvent(depositor=USER, amount=5))
        assert result.config.total_raised == 1005

    @pytest.mark.parametrize("rate,amount", [(1, 7), (123, 333), (0, 50), (10**18, 10**6)])
    def test_payout_is_amount_times_rate(self, rate, amount):
        engine = SettlementEngine(make_config(rate=rate))
        result = engine.settle(ACCEPTED.address, DepositEvent(depositor=USER, amount=amount))
        assert result.instructions[0].amount == amount * rate
        assert result.config.total_raised == amount

    def test_other_config_fields_untouched(self):
        config = make_config()
        result = SettlementEngine(config).settle(
            ACCEPTED.address, DepositEvent(depositor=USER, amount=1)
        )
        assert result.config.admin == config.admin
        assert result.config.accepted_token == config.accepted_token
        assert result.config.offered_token == config.offered_token
        assert result.config.exchange_rate == config.exchange_rate
        assert result.config.view_credential == config.view_credential

    def test_input_config_not_mutated(self):
        config = make_config()
        SettlementEngine(config).settle(ACCEPTED.address, DepositEvent(depositor=USER, amount=9))
        assert config.total_raised == 0

    def test_forged_caller_rejected(self):
        """The depositor claiming its own deposit is rejected whatever it claims."""
        engine = SettlementEngine(make_config())
        with pytest.raises(AuthenticationError):
            engine.settle(USER, DepositEvent(depositor=USER, amount=333))

    def test_authentication_checked_before_arithmetic(self):
        """An overflowing forged deposit reports the forgery, not the overflow."""
        engine = SettlementEngine(make_config(rate=2))
        with pytest.raises(AuthenticationError):
            engine.settle(USER, DepositEvent(depositor=USER, amount=UINT128_MAX))

    def test_rate_overflow_fails_closed(self):
        config = make_config(rate=2)
        engine = SettlementEngine(config)
        with pytest.raises(ArithmeticOverflowError):
            engine.settle(ACCEPTED.address, DepositEvent(depositor=USER, amount=UINT128_MAX))
        assert config.total_raised == 0

    def test_total_overflow_fails_closed(self):
        engine = SettlementEngine(make_config(rate=1, total_raised=UINT128_MAX))
        with pytest.raises(ArithmeticOverflowError):
            engine.settle(ACCEPTED.address, DepositEvent(depositor=USER, amount=1))

    def test_immediate_forward_emits_second_transfer(self):
        engine = SettlementEngine(make_config(forward=ForwardPolicy.IMMEDIATE))
        result = engine.settle(ACCEPTED.address, DepositEvent(depositor=USER, amount=333))

        assert result.instructions == [
            TransferInstruction(token=OFFERED, recipient=USER, amount=40959),
            TransferInstruction(token=ACCEPTED, recipient=ADMIN, amount=333),
        ]
        assert result.config.total_raised == 333

    def test_quote_matches_settlement(self):
        engine = SettlementEngine(make_config(rate=7))
        assert engine.quote(6) == 42


class TestExchangePolicy:

    def test_from_config(self):
        policy = ExchangePolicy.from_config(make_config(rate=9, forward=ForwardPolicy.IMMEDIATE))
        assert policy.rate == 9
        assert policy.forwards_immediately

    def test_nested_policy_block(self):
        policy = ExchangePolicy.from_dict({"exchange_rate": "5", "policy": {"forward": "immediate"}})
        assert policy == ExchangePolicy(rate=5, forward=ForwardPolicy.IMMEDIATE)

    def test_defaults_to_accrue(self):
        policy = ExchangePolicy.from_dict({"exchange_rate": 1})
        assert policy.forward is ForwardPolicy.ACCRUE
        assert not policy.forwards_immediately

    def test_yaml(self, tmp_path):
        path = tmp_path / "policy.yaml"
        path.write_text('exchange_rate: "123"\npolicy:\n  forward: accrue\n')
        assert ExchangePolicy.from_yaml(path) == ExchangePolicy(rate=123)


# ─────────────────────────────────────────────────────────────
# Withdrawal authorizer
# ─────────────────────────────────────────────────────────────

class TestWithdrawalAuthorizer:

    def test_admin_withdrawal(self):
        instruction = WithdrawalAuthorizer(make_config()).authorize(
            ADMIN, WithdrawalRequest(amount=123)
        )
        assert instruction == TransferInstruction(token=ACCEPTED, recipient=ADMIN, amount=123)

    def test_non_admin_rejected(self):
        with pytest.raises(AuthorizationError):
            WithdrawalAuthorizer(make_config()).authorize(USER, WithdrawalRequest(amount=123))

    def test_accepted_ledger_cannot_withdraw(self):
        with pytest.raises(AuthorizationError):
            WithdrawalAuthorizer(make_config()).authorize(
                ACCEPTED.address, WithdrawalRequest(amount=1)
            )

    def test_no_local_sufficiency_check(self):
        """Admin may request more than was ever raised; the ledger decides."""
        instruction = WithdrawalAuthorizer(make_config(total_raised=0)).authorize(
            ADMIN, WithdrawalRequest(amount=UINT128_MAX)
        )
        assert instruction.amount == UINT128_MAX
