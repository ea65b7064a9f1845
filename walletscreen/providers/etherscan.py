"""Etherscan API transaction source implementation."""

import asyncio
import logging
from typing import Any

import httpx

from walletscreen.core.exceptions import (
    ProviderError,
    ProviderTimeoutError,
    RateLimitedError,
)
from walletscreen.core.source import TransactionSource
from walletscreen.models.blockchain import Transaction

logger = logging.getLogger(__name__)


class EtherscanSource(TransactionSource):
    """
    Live transaction history from the Etherscan v2 API.

    Features:
    - Client-side request pacing
    - Retries with exponential backoff on timeouts and server errors
    - "No transactions found" answered as an empty history
    - Rate limiting surfaced as RateLimitedError, never retried
    """

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://api.etherscan.io/v2/api",
        chain_id: int = 1,
        requests_per_second: float = 5.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize Etherscan source.

        Args:
            api_key: Etherscan API key (required).
            base_url: Base URL of the v2 multichain endpoint.
            chain_id: EVM chain id sent with every request (1 = Ethereum mainnet).
            requests_per_second: Rate limit for requests.
            max_retries: Maximum number of attempts on transient failures.
            retry_delay: Base delay between retries (exponential backoff).
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, used by tests.
        """
        self._api_key = api_key
        self._base_url = base_url
        self._chain_id = chain_id
        self._requests_per_second = requests_per_second
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay
        self._timeout = timeout
        self._transport = transport
        self._request_count = 0
        self._last_request_time: float = 0
        self._lock = asyncio.Lock()
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        """Source name identifier."""
        return "etherscan"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                headers={
                    "Accept": "application/json",
                    "User-Agent": "WalletScreen/1.0",
                },
                transport=self._transport,
            )
        return self._client

    async def _rate_limit(self) -> None:
        """Apply rate limiting between requests."""
        if self._requests_per_second <= 0:
            return
        async with self._lock:
            now = asyncio.get_event_loop().time()
            min_interval = 1.0 / self._requests_per_second
            elapsed = now - self._last_request_time
            if elapsed < min_interval:
                wait_time = min_interval - elapsed
                logger.debug(f"Rate limiting: waiting {wait_time:.3f}s before next request")
                await asyncio.sleep(wait_time)
            self._last_request_time = asyncio.get_event_loop().time()

    async def _request(self, params: dict[str, Any]) -> dict[str, Any]:
        """
        Make a GET request with retry logic.

        Args:
            params: Query parameters (module, action, ...).

        Returns:
            JSON response data.

        Raises:
            RateLimitedError: If Etherscan answered with HTTP 429.
            ProviderTimeoutError: If every attempt timed out.
            ProviderError: For any other HTTP or transport failure.
        """
        if not self._api_key:
            raise ProviderError(self.name, "ETHERSCAN_API_KEY is not set")

        await self._rate_limit()

        query_params = {"chainid": self._chain_id, **params, "apikey": self._api_key}
        logger.info(
            f"[Etherscan API] {params.get('action')} {params.get('address', '')}"
        )

        client = await self._get_client()

        for attempt in range(self._max_retries):
            self._request_count += 1
            try:
                response = await client.get(self._base_url, params=query_params)
            except httpx.TimeoutException as e:
                logger.warning(f"[Etherscan API] Request timeout after {self._timeout}s")
                if attempt < self._max_retries - 1:
                    await self._backoff(attempt)
                    continue
                raise ProviderTimeoutError(self.name, self._timeout) from e
            except httpx.HTTPError as e:
                raise ProviderError(self.name, f"Etherscan transport error: {e}") from e

            if response.status_code == 429:
                retry_after = response.headers.get("Retry-After")
                logger.warning(f"[Etherscan API] Rate limit hit (429) - Retry after: {retry_after}")
                raise RateLimitedError(self.name, self._retry_after_seconds(retry_after))

            if response.status_code >= 500 and attempt < self._max_retries - 1:
                logger.warning(
                    f"[Etherscan API] Server error {response.status_code} - retrying"
                )
                await self._backoff(attempt)
                continue

            if response.status_code >= 400:
                raise ProviderError(self.name, f"Etherscan HTTP {response.status_code}")

            try:
                data = response.json()
            except ValueError as e:
                raise ProviderError(self.name, "Etherscan returned invalid JSON") from e
            if not isinstance(data, dict):
                raise ProviderError(self.name, "Etherscan returned an unexpected payload")
            return data

        raise ProviderError(self.name, f"Etherscan failed after {self._max_retries} attempts")

    @staticmethod
    def _retry_after_seconds(value: str | None) -> float | None:
        """Parse a delta-seconds ``Retry-After``; HTTP-date values are ignored."""
        if not value:
            return None
        try:
            return float(value)
        except ValueError:
            return None

    async def _backoff(self, attempt: int) -> None:
        wait_time = self._retry_delay * (2**attempt)
        logger.info(f"[Etherscan API] Waiting {wait_time:.2f}s before retry {attempt + 2}/{self._max_retries}")
        await asyncio.sleep(wait_time)

    async def _account_list(self, action: str, address: str, limit: int) -> list[Transaction]:
        """Fetch one page of an ``account`` module list, newest first."""
        data = await self._request(
            {
                "module": "account",
                "action": action,
                "address": address,
                "startblock": 0,
                "endblock": 99999999,
                "sort": "desc",
                "page": 1,
                "offset": limit,
            }
        )

        if str(data.get("status")) == "0":
            message = str(data.get("message") or "")
            result = data.get("result")
            detail = f"{message} {result if isinstance(result, str) else ''}".lower()
            if "no transactions" in detail:
                return []
            if "rate limit" in detail:
                logger.warning(f"[Etherscan API] {action} rate limited: {result}")
                raise RateLimitedError(self.name)
            raise ProviderError(self.name, f"Etherscan {action} error: {message or 'unknown'}")

        result = data.get("result")
        if not isinstance(result, list):
            return []
        items = result[:limit]
        if not all(isinstance(item, dict) for item in items):
            raise ProviderError(self.name, "Etherscan returned an unexpected payload")
        return [self._parse_transaction(item) for item in items]

    @staticmethod
    def _parse_transaction(item: dict[str, Any]) -> Transaction:
        try:
            timestamp = int(item.get("timeStamp"))
        except (TypeError, ValueError):
            timestamp = None
        return Transaction(
            from_address=(item.get("from") or "").lower(),
            to_address=(item.get("to") or "").lower(),
            timestamp=timestamp,
            tx_hash=item.get("hash"),
        )

    async def normal_txs(self, address: str, limit: int) -> list[Transaction]:
        """Fetch normal transactions via ``account/txlist``."""
        return await self._account_list("txlist", address, limit)

    async def token_txs(self, address: str, limit: int) -> list[Transaction]:
        """Fetch ERC-20 transfers via ``account/tokentx``."""
        return await self._account_list("tokentx", address, limit)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def get_request_count(self) -> int:
        """Get total number of API requests made."""
        return self._request_count
