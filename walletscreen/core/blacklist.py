"""Abstract blacklist store interface."""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from walletscreen.models.blockchain import BlacklistEntry


class BlacklistStore(ABC):
    """Abstract base class for blacklist storage backends.

    The screening engine only uses the two read operations. Transport
    failures of the underlying store are never translated into "no match";
    they propagate to the caller unchanged.
    """

    @abstractmethod
    async def find_direct(self, chain: str, address: str) -> BlacklistEntry | None:
        """
        Look up a single address.

        Args:
            chain: Chain identifier.
            address: Canonical address.

        Returns:
            The matching entry, or None.
        """
        ...

    @abstractmethod
    async def find_batch(
        self, chain: str, addresses: Iterable[str]
    ) -> list[BlacklistEntry]:
        """
        Look up many addresses in a single round trip.

        Matches are returned in the order their addresses appear in
        ``addresses``.
        """
        ...

    @abstractmethod
    async def list_entries(self) -> list[BlacklistEntry]:
        """List every entry, newest first."""
        ...

    @abstractmethod
    async def add_entry(
        self,
        chain: str,
        address: str,
        category: str,
        note: str | None = None,
    ) -> BlacklistEntry:
        """
        Add an address to the blacklist.

        Raises:
            BlacklistEntryExistsError: If the address is already listed for the chain.
        """
        ...

    @abstractmethod
    async def delete_entry(self, entry_id: int) -> bool:
        """Delete an entry. Returns False if it did not exist."""
        ...

    async def ping(self) -> bool:
        """Check if the store is reachable."""
        return True

    async def close(self) -> None:
        """Release resources held by the store."""
        return None
