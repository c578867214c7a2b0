"""
tokensale/oracle/balance.py

Balance oracle.

The contract keeps no balance of its own. "How much do we hold?" is
always answered by the token ledger, authenticated with the view
credential registered at instantiation. No caching: every call is a
fresh query.
"""

from typing import Protocol

from tokensale.core.exceptions import QueryError
from tokensale.core.math import parse_uint128
from tokensale.core.models import AssetRef, BalanceResponse, Config


class Querier(Protocol):
    """Read-only access to external token ledgers, provided by the host."""

    def query_balance(self, token: AssetRef, address: str, key: str) -> int: ...


class BalanceOracle:
    """Reads the contract's holdings of the accepted or offered token."""

    def __init__(self, config: Config, querier: Querier, contract_address: str):
        self.config = config
        self.querier = querier
        self.contract_address = contract_address

    def accepted_token_available(self) -> BalanceResponse:
        return self.balance_of(self.config.accepted_token)

    def offered_token_available(self) -> BalanceResponse:
        return self.balance_of(self.config.offered_token)

    def balance_of(self, token: AssetRef) -> BalanceResponse:
        """
        Query token's ledger for the contract's balance.

        Raises QueryError if the ledger refuses the query or answers with
        something that is not a Uint128.
        """
        try:
            amount = self.querier.query_balance(
                token,
                self.contract_address,
                self.config.view_credential,
            )
        except QueryError:
            raise
        except Exception as exc:
            raise QueryError(
                f"Balance query to {token.address} failed: {exc}",
                {"token": token.address},
            ) from exc

        try:
            return BalanceResponse(amount=parse_uint128(amount, "balance"))
        except Exception as exc:
            raise QueryError(
                f"Token {token.address} returned an invalid balance: {amount!r}",
                {"token": token.address},
            ) from exc
