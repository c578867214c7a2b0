"""
tokensale Runtime - the host side of a contract invocation.

The contract core never imports the host. It receives an Env and Deps
and returns a Response; everything else here exists to provide those.
"""

from tokensale.core.context import Deps, Env, Response
from tokensale.runtime.host import Host
from tokensale.runtime.ledger import TokenLedger

__all__ = [
    "Deps",
    "Env",
    "Host",
    "Response",
    "TokenLedger",
]
