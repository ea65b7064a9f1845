"""Blacklist store implementations."""

from walletscreen.stores.memory import MemoryBlacklistStore
from walletscreen.stores.postgres import PostgresBlacklistStore

__all__ = [
    "MemoryBlacklistStore",
    "PostgresBlacklistStore",
]
