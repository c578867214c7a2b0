"""
tokensale Balance Oracle - ground truth for the contract's holdings.
"""

from tokensale.oracle.balance import BalanceOracle, Querier

__all__ = ["BalanceOracle", "Querier"]
