"""In-memory blacklist store implementation."""

import asyncio
import itertools
import logging
from collections.abc import Iterable
from datetime import datetime

from walletscreen.core.blacklist import BlacklistStore
from walletscreen.core.exceptions import BlacklistEntryExistsError
from walletscreen.models.blockchain import BlacklistEntry

logger = logging.getLogger(__name__)


class MemoryBlacklistStore(BlacklistStore):
    """In-memory blacklist. For development/testing only."""

    def __init__(self, entries: Iterable[BlacklistEntry] = ()) -> None:
        """
        Initialize the store.

        Args:
            entries: Initial entries; ids are assigned when missing.
        """
        self._entries: dict[tuple[str, str], BlacklistEntry] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()
        for entry in entries:
            self._put(entry.chain, entry.address, entry.category, entry.note)

    def _put(
        self, chain: str, address: str, category: str, note: str | None
    ) -> BlacklistEntry:
        key = (chain.lower(), address.lower())
        if key in self._entries:
            raise BlacklistEntryExistsError(*key)
        entry = BlacklistEntry(
            id=next(self._ids),
            chain=key[0],
            address=key[1],
            category=category,
            note=note,
            created_at=datetime.utcnow(),
        )
        self._entries[key] = entry
        return entry

    async def find_direct(self, chain: str, address: str) -> BlacklistEntry | None:
        return self._entries.get((chain, address))

    async def find_batch(
        self, chain: str, addresses: Iterable[str]
    ) -> list[BlacklistEntry]:
        matches: list[BlacklistEntry] = []
        seen: set[str] = set()
        for address in addresses:
            entry = self._entries.get((chain, address))
            if entry is not None and address not in seen:
                seen.add(address)
                matches.append(entry)
        return matches

    async def list_entries(self) -> list[BlacklistEntry]:
        return sorted(self._entries.values(), key=lambda e: e.id or 0, reverse=True)

    async def add_entry(
        self,
        chain: str,
        address: str,
        category: str,
        note: str | None = None,
    ) -> BlacklistEntry:
        async with self._lock:
            return self._put(chain, address, category, note)

    async def delete_entry(self, entry_id: int) -> bool:
        async with self._lock:
            for key, entry in self._entries.items():
                if entry.id == entry_id:
                    del self._entries[key]
                    return True
            return False
