"""
tokensale Exchange Policy

How much of the offered token a deposit buys, and whether the accepted
token stays in the contract or is forwarded straight to the admin.
"""

from tokensale.core.models import ForwardPolicy
from tokensale.policy.policy import ExchangePolicy

__all__ = [
    "ExchangePolicy",
    "ForwardPolicy",
]
