"""
tokensale/__init__.py

tokensale: settlement core of a token-exchange contract.

Accepts deposit notifications from the accepted token's ledger, pays the
depositor in the offered token at a fixed rate, keeps a running total of
what was raised, and lets the admin withdraw. Balances are never tracked
locally; they are queried from the token ledgers.
"""

__version__ = "0.3.0"

from tokensale.contract import handle, instantiate, query
from tokensale.core.exceptions import (
    ArithmeticOverflowError,
    AuthenticationError,
    AuthorizationError,
    ConfigNotFoundError,
    DispatchError,
    QueryError,
    StorageCorruptionError,
    TokenSaleError,
    ValidationError,
)
from tokensale.core.models import (
    AssetRef,
    Config,
    DepositEvent,
    ForwardPolicy,
    TransferInstruction,
    WithdrawalRequest,
)
from tokensale.runtime import Deps, Env, Host, Response, TokenLedger

__all__ = [
    # Entry points
    "instantiate",
    "handle",
    "query",
    # Data model
    "AssetRef",
    "Config",
    "DepositEvent",
    "ForwardPolicy",
    "TransferInstruction",
    "WithdrawalRequest",
    # Host
    "Deps",
    "Env",
    "Host",
    "Response",
    "TokenLedger",
    # Errors
    "TokenSaleError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "ArithmeticOverflowError",
    "ConfigNotFoundError",
    "StorageCorruptionError",
    "QueryError",
    "DispatchError",
]
