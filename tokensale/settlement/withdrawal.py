"""
Admin withdrawal authorization.
"""

import logging

from tokensale.core.exceptions import AuthorizationError
from tokensale.core.models import Config, TransferInstruction, WithdrawalRequest


logger = logging.getLogger(__name__)


class WithdrawalAuthorizer:
    """
    Lets the admin pull accepted tokens out of the contract.

    There is deliberately no check against total_raised or any other local
    figure: the accepted token ledger holds the only real balance and
    rejects a transfer it cannot cover.
    """

    def __init__(self, config: Config):
        self.config = config

    def authorize(self, caller: str, request: WithdrawalRequest) -> TransferInstruction:
        """
        Authorize a withdrawal and build its transfer.

        Raises:
            AuthorizationError: caller is not the configured admin
        """
        if caller != self.config.admin:
            logger.warning("Rejected withdrawal of %d by %s", request.amount, caller)
            raise AuthorizationError(
                "Only the admin can withdraw funding",
                {"caller": caller},
            )

        logger.info("Admin withdrawal of %d accepted tokens", request.amount)

        return TransferInstruction(
            token=self.config.accepted_token,
            recipient=self.config.admin,
            amount=request.amount,
        )
