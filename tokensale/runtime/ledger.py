"""
tokensale/runtime/ledger.py

Reference fungible-token ledger.

Stands in for the external token contracts the sale talks to. It holds
the real balances; the sale contract never does. Surface:

    transfer(sender, recipient, amount)          plain move
    send(sender, recipient, amount, msg=None)    move, then notify a
                                                 subscribed recipient
    register_receive(contract, code_hash)        subscribe to notifications
    set_viewing_key(account, key)                register a view credential
    balance(holder, key)                         authenticated balance query

Viewing keys are stored as SHA-256 digests and compared in constant time.
"""

import hashlib
import hmac
import logging
import threading
from typing import TYPE_CHECKING, Dict, Optional

from tokensale.core.exceptions import (
    DispatchError,
    InsufficientFundsError,
    LedgerError,
    QueryError,
)
from tokensale.core.math import checked_add, parse_uint128
from tokensale.core.models import AssetRef

if TYPE_CHECKING:
    from tokensale.runtime.host import Host


logger = logging.getLogger(__name__)


def _key_digest(key: str) -> bytes:
    return hashlib.sha256(key.encode("utf-8")).digest()


class TokenLedger:
    """
    In-memory token ledger.

    hook selects which notification shape send() delivers to a subscribed
    contract: "receive" (sender, from, amount, msg) or "deposit" (from,
    amount).
    """

    HOOKS = ("receive", "deposit")

    def __init__(
        self,
        address: str,
        code_hash: str,
        symbol: str = "TKN",
        hook: str = "receive",
    ):
        if hook not in self.HOOKS:
            raise ValueError(f"hook must be one of {self.HOOKS}, got {hook!r}")
        self.address = address
        self.code_hash = code_hash
        self.symbol = symbol
        self.hook = hook
        self.host: Optional["Host"] = None

        self._balances:     Dict[str, int] = {}
        self._viewing_keys: Dict[str, bytes] = {}
        self._receivers:    Dict[str, str] = {}

        self._lock = threading.Lock()

    @property
    def asset_ref(self) -> AssetRef:
        return AssetRef(address=self.address, code_hash=self.code_hash)

    # ── Supply ────────────────────────────────────────────────

    def mint(self, recipient: str, amount) -> None:
        amount = parse_uint128(amount)
        with self._lock:
            self._balances[recipient] = checked_add(self._balances.get(recipient, 0), amount)

    def balance_of(self, account: str) -> int:
        """Unauthenticated balance, for operators and tests."""
        return self._balances.get(account, 0)

    # ── Transfers ─────────────────────────────────────────────

    def transfer(self, sender: str, recipient: str, amount) -> None:
        self._move(sender, recipient, parse_uint128(amount))

    def send(
        self,
        sender: str,
        recipient: str,
        amount,
        msg: Optional[bytes] = None,
    ) -> None:
        """
        Move tokens and notify the recipient if it subscribed.

        If the recipient contract rejects the notification the move is
        undone. A failure while the host executes the contract's own
        outbound instructions does not undo it: by then the contract has
        committed and the deposit is final.
        """
        amount = parse_uint128(amount)
        subscribed = recipient in self._receivers
        if subscribed and (self.host is None or recipient != self.host.contract_address):
            raise LedgerError(
                f"{self.symbol}: no host to notify subscribed contract {recipient}"
            )

        self._move(sender, recipient, amount)
        if not subscribed:
            return

        try:
            self.host.notify(self, sender, amount, msg)
        except DispatchError:
            raise
        except Exception:
            self._move(recipient, sender, amount)
            raise

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        with self._lock:
            available = self._balances.get(sender, 0)
            if available < amount:
                raise InsufficientFundsError(
                    f"{self.symbol}: insufficient funds",
                    {"account": sender, "balance": available, "required": amount},
                )
            if sender == recipient:
                return
            credited = checked_add(self._balances.get(recipient, 0), amount)
            self._balances[sender] = available - amount
            self._balances[recipient] = credited
        logger.debug("%s: %s -> %s %d", self.symbol, sender, recipient, amount)

    # ── Registration ──────────────────────────────────────────

    def register_receive(self, contract: str, code_hash: str) -> None:
        with self._lock:
            self._receivers[contract] = code_hash

    def is_registered(self, contract: str) -> bool:
        return contract in self._receivers

    def set_viewing_key(self, account: str, key: str) -> None:
        digest = _key_digest(key)
        with self._lock:
            self._viewing_keys[account] = digest

    # ── Queries ───────────────────────────────────────────────

    def balance(self, holder: str, key: str) -> int:
        """Authenticated balance query. Raises QueryError on a wrong or missing key."""
        expected = self._viewing_keys.get(holder)
        if expected is None or not hmac.compare_digest(expected, _key_digest(key)):
            raise QueryError(
                f"{self.symbol}: wrong viewing key or viewing key not set",
                {"holder": holder},
            )
        return self._balances.get(holder, 0)

    def __repr__(self) -> str:
        return f"TokenLedger(symbol={self.symbol!r}, address={self.address!r})"
