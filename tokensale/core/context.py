"""
tokensale/core/context.py

Invocation context handed to the contract by its host.

Lives in core so the contract depends only on core; tokensale.runtime
builds these objects and re-exports them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from tokensale.core.crypto import ConfigSigner
from tokensale.oracle.balance import Querier
from tokensale.storage.store import ConfigStore, Storage


@dataclass(frozen=True)
class Env:
    """
    Facts about the current invocation that only the host can supply.

    sender is who actually invoked the contract in this step. It is the
    only identity the contract trusts; addresses inside a message are
    claims.
    """
    sender:             str
    contract_address:   str
    contract_code_hash: str
    block_height:       int = 0
    block_time:         int = 0


@dataclass
class Deps:
    """Storage and querier for one invocation."""

    storage:     Storage
    querier:     Optional[Querier] = None
    signer:      Optional[ConfigSigner] = None

    def config_store(self) -> ConfigStore:
        return ConfigStore(self.storage, signer=self.signer)

    def __repr__(self) -> str:
        return (
            f"Deps(storage={type(self.storage).__name__}, "
            f"signed={self.signer is not None})"
        )


@dataclass
class Response:
    """
    What a successful instantiate or handle returns.

    messages are outbound instructions, to be executed by the host in
    order after the invocation's storage writes are committed.
    """
    messages:   List[Any] = field(default_factory=list)
    attributes: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "messages":   [m.to_dict() for m in self.messages],
            "attributes": dict(self.attributes),
        }
