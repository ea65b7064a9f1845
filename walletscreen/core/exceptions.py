"""Custom exceptions for WalletScreen."""

from walletscreen.constants import ADDRESS_FORMAT_HINT


class WalletScreenError(Exception):
    """Base exception for all WalletScreen errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or "WALLETSCREEN_ERROR"
        super().__init__(self.message)


class InvalidAddressError(WalletScreenError):
    """Raised when an address does not match the expected format."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(
            f"Invalid address: {ADDRESS_FORMAT_HINT}.", "INVALID_ADDRESS"
        )


class ProviderError(WalletScreenError):
    """Raised when a transaction history provider fails."""

    def __init__(self, provider: str, message: str, code: str | None = None) -> None:
        self.provider = provider
        super().__init__(message, code or "PROVIDER_ERROR")


class RateLimitedError(ProviderError):
    """Raised when a provider refuses a request because of rate limiting."""

    def __init__(
        self, provider: str, retry_after: float | None = None
    ) -> None:
        self.retry_after = retry_after
        message = f"Rate limit exceeded for {provider}"
        if retry_after:
            message += f". Retry after {retry_after}s"
        super().__init__(provider, message, "RATE_LIMITED")


class ProviderTimeoutError(ProviderError):
    """Raised when a provider request times out."""

    def __init__(self, provider: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(
            provider, f"API timeout for {provider} after {timeout}s", "PROVIDER_TIMEOUT"
        )


class WalletNotFoundError(WalletScreenError):
    """Raised when a wallet record does not exist."""

    def __init__(self, wallet_id: int) -> None:
        self.wallet_id = wallet_id
        super().__init__(f"Wallet {wallet_id} not found", "WALLET_NOT_FOUND")


class BlacklistEntryExistsError(WalletScreenError):
    """Raised when adding an address that is already blacklisted on a chain."""

    def __init__(self, chain: str, address: str) -> None:
        self.chain = chain
        self.address = address
        super().__init__(
            f"Address {address} is already blacklisted on {chain}", "BLACKLIST_DUPLICATE"
        )
