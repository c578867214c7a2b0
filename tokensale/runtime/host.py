"""
tokensale/runtime/host.py

In-process host for one sale contract.

Provides what the contract assumes from its chain:

  1. Serialization — one invocation at a time (re-entrant lock, so a
     ledger send() can deliver its deposit notification synchronously)
  2. Atomicity     — the contract writes into a TransactionalStorage that
                     is committed only if the entry point returns
  3. Dispatch      — outbound instructions run after the commit, in
                     emission order, against the registered TokenLedgers
  4. Querier       — authenticated balance queries routed to the ledgers

A dispatch failure raises DispatchError to the outer caller. The
contract's committed state stays committed: the contract cannot see or
compensate for what happens to its instructions.
"""

import logging
import threading
from typing import Any, Dict, List, Optional

from tokensale import contract
from tokensale.core.crypto import ConfigSigner
from tokensale.core.exceptions import DispatchError, LedgerError, QueryError
from tokensale.core.messages import Deposit, Receive
from tokensale.core.models import (
    AssetRef,
    RegisterReceiveInstruction,
    SetViewingKeyInstruction,
    TransferInstruction,
)
from tokensale.core.context import Deps, Env, Response
from tokensale.runtime.ledger import TokenLedger
from tokensale.storage.store import MemoryStorage, Storage, TransactionalStorage


logger = logging.getLogger(__name__)


class Host:
    """Runs one contract instance against a set of token ledgers."""

    def __init__(
        self,
        contract_address: str,
        code_hash: str,
        storage: Optional[Storage] = None,
        signer: Optional[ConfigSigner] = None,
        block_time: int = 0,
    ):
        self.contract_address = contract_address
        self.code_hash = code_hash
        self.storage = storage if storage is not None else MemoryStorage()
        self.signer = signer
        self.block_height = 0
        self.block_time = block_time

        self.ledgers: Dict[str, TokenLedger] = {}
        self.dispatched: List[Any] = []

        self._lock = threading.RLock()

    def add_ledger(self, ledger: TokenLedger) -> TokenLedger:
        ledger.host = self
        self.ledgers[ledger.address] = ledger
        return ledger

    # ── Entry points ──────────────────────────────────────────

    def instantiate(self, sender: str, msg) -> Response:
        return self._invoke(contract.instantiate, sender, msg)

    def execute(self, sender: str, msg) -> Response:
        return self._invoke(contract.handle, sender, msg)

    def query(self, msg) -> Dict[str, Any]:
        with self._lock:
            deps = Deps(storage=self.storage, querier=self, signer=self.signer)
            return contract.query(deps, self._env(self.contract_address), msg)

    def notify(self, ledger: TokenLedger, sender: str, amount: int, msg: Optional[bytes]) -> Response:
        """Deliver a deposit notification from ledger, in the shape the ledger uses."""
        if ledger.hook == "deposit":
            hook_msg = Deposit(from_=sender, amount=amount)
        else:
            hook_msg = Receive(sender=sender, from_=sender, amount=amount, msg=msg)
        return self.execute(ledger.address, hook_msg)

    # ── Querier ───────────────────────────────────────────────

    def query_balance(self, token: AssetRef, address: str, key: str) -> int:
        ledger = self._ledger_for(token, QueryError)
        return ledger.balance(address, key)

    # ── Internal ──────────────────────────────────────────────

    def _env(self, sender: str) -> Env:
        return Env(
            sender=sender,
            contract_address=self.contract_address,
            contract_code_hash=self.code_hash,
            block_height=self.block_height,
            block_time=self.block_time,
        )

    def _invoke(self, entry_point, sender: str, msg) -> Response:
        with self._lock:
            self.block_height += 1
            tx = TransactionalStorage(self.storage)
            deps = Deps(storage=tx, querier=self, signer=self.signer)
            try:
                response = entry_point(deps, self._env(sender), msg)
            except Exception:
                tx.rollback()
                raise
            tx.commit()
            self._dispatch(response.messages)
            return response

    def _dispatch(self, messages: List[Any]) -> None:
        for index, message in enumerate(messages):
            try:
                self._execute_instruction(message)
            except LedgerError as exc:
                logger.warning("Instruction %d failed: %s", index, exc)
                raise DispatchError(
                    f"Instruction {index} ({message.kind}) failed: {exc}",
                    {"index": index},
                ) from exc
            self.dispatched.append(message)

    def _execute_instruction(self, message: Any) -> None:
        ledger = self._ledger_for(message.token, DispatchError)

        if isinstance(message, TransferInstruction):
            ledger.transfer(self.contract_address, message.recipient, message.amount)
        elif isinstance(message, RegisterReceiveInstruction):
            ledger.register_receive(self.contract_address, message.code_hash)
        elif isinstance(message, SetViewingKeyInstruction):
            ledger.set_viewing_key(self.contract_address, message.key)
        else:
            raise DispatchError(f"Unknown instruction {type(message).__name__}")

    def _ledger_for(self, token: AssetRef, error_cls) -> TokenLedger:
        ledger = self.ledgers.get(token.address)
        if ledger is None:
            raise error_cls(f"No token ledger at {token.address}", {"token": token.address})
        if ledger.code_hash != token.code_hash:
            raise error_cls(
                f"Code hash mismatch for {token.address}",
                {"expected": token.code_hash, "actual": ledger.code_hash},
            )
        return ledger
