"""Abstract transaction history source interface."""

from abc import ABC, abstractmethod

from walletscreen.models.blockchain import Transaction


class TransactionSource(ABC):
    """Abstract base class for transaction history providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Source name identifier."""
        ...

    @abstractmethod
    async def normal_txs(self, address: str, limit: int) -> list[Transaction]:
        """
        Fetch the most recent native-currency transactions of an address.

        Args:
            address: Canonical (lowercase) address.
            limit: Maximum number of transactions to return.

        Returns:
            Transactions, newest first. An address without history yields
            an empty list, not an error.

        Raises:
            RateLimitedError: If the provider throttled the request.
            ProviderError: For any other provider failure.
        """
        ...

    @abstractmethod
    async def token_txs(self, address: str, limit: int) -> list[Transaction]:
        """
        Fetch the most recent token transfer transactions of an address.

        Same contract as :meth:`normal_txs`.
        """
        ...

    async def close(self) -> None:
        """Release resources held by the source."""
        return None
