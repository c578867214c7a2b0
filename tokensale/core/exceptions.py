"""
tokensale Exception Hierarchy

All exceptions inherit from TokenSaleError for easy catching.

Every error aborts the current invocation. The host reports it verbatim
to the caller and nothing the invocation wrote becomes visible.
"""


class TokenSaleError(Exception):
    """Base exception for all tokensale errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ValidationError(TokenSaleError):
    """Raised when a message, amount or configuration is malformed"""
    pass


class AuthenticationError(TokenSaleError):
    """Raised when a deposit notification does not come from the accepted token ledger"""

    def __init__(self, expected: str, actual: str):
        super().__init__(
            f"Deposit notification must come from {expected}, got {actual}",
            {"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class AuthorizationError(TokenSaleError):
    """Raised when a caller is not allowed to perform an admin action"""
    pass


class ArithmeticOverflowError(TokenSaleError):
    """Raised when Uint128 arithmetic would leave the representable range"""
    pass


class StorageError(TokenSaleError):
    """Raised when the config store cannot be read or written"""
    pass


class ConfigNotFoundError(StorageError):
    """Raised when the contract is queried or handled before initialization"""
    pass


class StorageCorruptionError(StorageError):
    """Raised when a stored record fails to decode or verify"""
    pass


class QueryError(TokenSaleError):
    """Raised when an external token ledger refuses a query"""
    pass


class DispatchError(TokenSaleError):
    """Raised by the host when a queued instruction cannot be executed"""
    pass


class LedgerError(TokenSaleError):
    """Raised by a token ledger that refuses an operation"""
    pass


class InsufficientFundsError(LedgerError):
    """Raised when an account cannot cover a transfer"""
    pass
