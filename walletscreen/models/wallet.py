"""Request and response models for the HTTP surface."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from walletscreen.constants import DEFAULT_BLACKLIST_CATEGORY, DEFAULT_CHAIN


class ScreeningRequest(BaseModel):
    """Request model for screening or onboarding a wallet."""

    address: str = Field(..., description="Address to screen (0x + 40 hex chars)")
    chain: str = Field(default=DEFAULT_CHAIN, description="Blockchain network")


class WalletRecord(BaseModel):
    """Stored wallet with its latest screening status."""

    id: int
    address: str
    chain: str
    status: str | None = None
    last_checked_at: datetime | None = None
    created_at: datetime | None = None


class ScreeningLogRecord(BaseModel):
    """Persisted screening outcome."""

    id: int
    wallet_id: int
    status: str
    reason: str
    direct_match: bool
    one_hop_match: bool
    matched_blacklist_address: str | None = None
    raw_tx_count: int = 0
    details: dict[str, Any] = Field(default_factory=dict)
    checked_at: datetime | None = None


class WalletDetail(BaseModel):
    """Wallet together with its most recent screening log."""

    wallet: WalletRecord
    log: ScreeningLogRecord | None = None


class BlacklistEntryCreate(BaseModel):
    """Request model for adding a blacklist entry."""

    address: str
    chain: str = DEFAULT_CHAIN
    category: str = DEFAULT_BLACKLIST_CATEGORY
    note: str | None = Field(default=None, max_length=500)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: Literal["healthy", "degraded"]
    version: str
    transaction_source: str
    blacklist_status: Literal["connected", "disconnected"]
    timestamp: datetime = Field(default_factory=datetime.utcnow)
