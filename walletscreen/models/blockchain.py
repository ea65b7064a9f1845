"""Blockchain-related domain models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from walletscreen.constants import DEFAULT_BLACKLIST_CATEGORY


class Transaction(BaseModel):
    """Normalized account-based transaction, reduced to what screening needs."""

    model_config = ConfigDict(frozen=True)

    from_address: str = ""
    to_address: str = ""
    timestamp: int | None = Field(
        default=None, description="Unix seconds; None when the source has no time data"
    )
    tx_hash: str | None = None

    def counterparty_of(self, subject: str) -> str:
        """Return whichever side of the transaction is not ``subject``."""
        if self.from_address == subject:
            return self.to_address
        return self.from_address

    def is_outgoing_from(self, subject: str) -> bool:
        """Check if ``subject`` sent this transaction."""
        return self.from_address == subject


class BlacklistEntry(BaseModel):
    """Curated bad-actor address, unique per chain."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    chain: str
    address: str
    category: str = DEFAULT_BLACKLIST_CATEGORY
    note: str | None = None
    created_at: datetime | None = None
