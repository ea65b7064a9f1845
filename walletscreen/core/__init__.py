"""Core module for base interfaces and abstractions."""

from walletscreen.core.blacklist import BlacklistStore
from walletscreen.core.exceptions import (
    BlacklistEntryExistsError,
    InvalidAddressError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitedError,
    WalletNotFoundError,
    WalletScreenError,
)
from walletscreen.core.source import TransactionSource

__all__ = [
    "BlacklistEntryExistsError",
    "BlacklistStore",
    "InvalidAddressError",
    "ProviderError",
    "ProviderTimeoutError",
    "RateLimitedError",
    "TransactionSource",
    "WalletNotFoundError",
    "WalletScreenError",
]
