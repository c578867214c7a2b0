"""
Settlement engine for authenticated deposits.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from tokensale.core.math import checked_add, checked_mul
from tokensale.core.models import Config, DepositEvent, TransferInstruction
from tokensale.policy.policy import ExchangePolicy
from tokensale.verification.trust import TrustBoundaryValidator


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settlement:
    """Outcome of one settled deposit: the config to persist and what to send."""
    config:         Config
    instructions:   List[TransferInstruction]
    offered_amount: int


class SettlementEngine:
    """
    Exchange Settlement Engine.

    Turns one deposit into:
    - a new running total (total_raised + amount)
    - a transfer of amount * rate offered tokens to the depositor
    - under the immediate-forward policy, a transfer of the accepted
      tokens on to the admin

    Validation order matters: caller, then both checked computations,
    and only then the new Config. A failure at any step leaves the
    caller's Config untouched because nothing has been built yet.
    """

    def __init__(self, config: Config):
        """
        Initialize settlement engine.

        Args:
            config: Config loaded for the current invocation
        """
        self.config = config
        self.policy = ExchangePolicy.from_config(config)
        self.validator = TrustBoundaryValidator(config.accepted_token)

    def settle(self, caller: str, event: DepositEvent) -> Settlement:
        """
        Settle a deposit notification.

        Args:
            caller: host-reported identity of the current invocation's caller
            event: normalized deposit notification

        Returns:
            Settlement with the updated Config and the transfer instructions,
            in the order the host must execute them
        """
        self.validator.authenticate(caller)

        offered_amount, new_total = self._compute(event)

        instructions = [
            TransferInstruction(
                token=self.config.offered_token,
                recipient=event.depositor,
                amount=offered_amount,
            )
        ]

        if self.policy.forwards_immediately:
            instructions.append(
                TransferInstruction(
                    token=self.config.accepted_token,
                    recipient=self.config.admin,
                    amount=event.amount,
                )
            )

        logger.info(
            "Settled deposit of %d from %s: %d offered tokens, total raised %d",
            event.amount,
            event.depositor,
            offered_amount,
            new_total,
        )

        return Settlement(
            config=self.config.with_total_raised(new_total),
            instructions=instructions,
            offered_amount=offered_amount,
        )

    def quote(self, amount: int) -> int:
        """Offered tokens a deposit of amount would buy. Raises on overflow."""
        return checked_mul(amount, self.policy.rate)

    def _compute(self, event: DepositEvent) -> Tuple[int, int]:
        """
        Both checked computations, before anything is built.

        Returns:
            (offered_amount, new_total)
        """
        offered_amount = self.quote(event.amount)
        new_total = checked_add(self.config.total_raised, event.amount)
        return offered_amount, new_total
