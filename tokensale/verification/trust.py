"""
tokensale/verification/trust.py

Trust boundary for deposit notifications.

A deposit notification says "from paid amount". Anybody can send that
message. It is only true when the caller of the current invocation, as
reported by the host and not by the message, is the accepted token's own
ledger. This check must pass before a deposit touches Config.
"""

import logging

from tokensale.core.exceptions import AuthenticationError
from tokensale.core.models import AssetRef


logger = logging.getLogger(__name__)


class TrustBoundaryValidator:
    """Authenticates deposit notifications against the accepted token ledger."""

    def __init__(self, accepted_token: AssetRef):
        self.accepted_token = accepted_token

    def is_trusted(self, caller: str) -> bool:
        return caller == self.accepted_token.address

    def authenticate(self, caller: str) -> None:
        """
        Raise AuthenticationError unless caller is the accepted token ledger.

        Args:
            caller: identity of whoever invoked the contract in this step,
                    supplied by the host (Env.sender)
        """
        if not self.is_trusted(caller):
            logger.warning(
                "Rejected deposit notification from %s (expected %s)",
                caller,
                self.accepted_token.address,
            )
            raise AuthenticationError(
                expected=self.accepted_token.address,
                actual=caller,
            )
