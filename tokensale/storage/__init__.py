"""
tokensale Storage - the contract's only durable state

One Config record under b"config". Nothing else is persisted.
"""

from tokensale.storage.store import (
    ConfigStore,
    FileStorage,
    MemoryStorage,
    Storage,
    TransactionalStorage,
)

__all__ = [
    "ConfigStore",
    "FileStorage",
    "MemoryStorage",
    "Storage",
    "TransactionalStorage",
]
