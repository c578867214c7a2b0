"""
tokensale Settlement

The two paths that move funds:
- SettlementEngine: authenticated deposit → offered tokens back
- WithdrawalAuthorizer: admin-only withdrawal of accepted tokens

Critical Invariants:
- Neither component writes storage; both return values the caller persists
- total_raised changes only together with the transfers that justify it
- Nothing here checks a local balance; the token ledgers are authoritative
"""

from tokensale.settlement.engine import Settlement, SettlementEngine
from tokensale.settlement.withdrawal import WithdrawalAuthorizer

__all__ = ["Settlement", "SettlementEngine", "WithdrawalAuthorizer"]
