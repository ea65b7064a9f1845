"""Wallet onboarding service: persist wallets and their screening outcomes."""

import json
import logging
from typing import Any

import asyncpg

from walletscreen.core.exceptions import WalletNotFoundError, WalletScreenError
from walletscreen.models.screening import ScreeningResult
from walletscreen.models.wallet import ScreeningLogRecord, WalletDetail, WalletRecord
from walletscreen.services.normalizer import normalize_address, normalize_chain
from walletscreen.services.screening import ScreeningService

logger = logging.getLogger(__name__)


class WalletService:
    """Service for onboarding wallets and recording their screening."""

    def __init__(self, db_pool, screening: ScreeningService):
        """Initialize the service with database pool and screening engine."""
        self.db_pool = db_pool
        self.screening = screening

    async def onboard(self, chain: str, address: str) -> tuple[int, ScreeningResult]:
        """
        Create a wallet, screen it and store the outcome in one transaction.

        If the wallet already exists, it is re-screened instead.

        Returns:
            The wallet id and the screening result.

        Raises:
            InvalidAddressError: If the address is malformed.
        """
        address = normalize_address(address)
        chain = normalize_chain(chain)

        try:
            async with self.db_pool.acquire() as conn:
                async with conn.transaction():
                    wallet_id = await conn.fetchval(
                        """
                        INSERT INTO wallets (address, chain)
                        VALUES ($1, $2)
                        RETURNING id
                        """,
                        address,
                        chain,
                    )
                    result = await self._screen_and_record(conn, wallet_id, chain, address)
        except asyncpg.UniqueViolationError:
            # Concurrent or repeated onboarding of the same address
            existing_id = await self._find_wallet_id(chain, address)
            if existing_id is None:
                raise
            logger.info(f"Wallet {address} on {chain} already exists (id={existing_id}), re-screening")
            return existing_id, await self.rescreen(existing_id)

        logger.info(f"Onboarded wallet {wallet_id} ({address} on {chain}): {result.status.value}")
        return wallet_id, result

    async def rescreen(self, wallet_id: int) -> ScreeningResult:
        """Screen an existing wallet again and append a new log entry."""
        async with self.db_pool.acquire() as conn:
            async with conn.transaction():
                row = await conn.fetchrow(
                    "SELECT id, address, chain FROM wallets WHERE id = $1",
                    wallet_id,
                )
                if row is None:
                    raise WalletNotFoundError(wallet_id)
                return await self._screen_and_record(
                    conn, row["id"], row["chain"], row["address"]
                )

    async def _screen_and_record(
        self, conn, wallet_id: int, chain: str, address: str
    ) -> ScreeningResult:
        result = await self._screen(chain, address)
        record = result.to_record()

        await conn.execute(
            "UPDATE wallets SET status = $1, last_checked_at = NOW() WHERE id = $2",
            record["status"],
            wallet_id,
        )
        await conn.execute(
            """
            INSERT INTO screening_logs
                (wallet_id, direct_match, one_hop_match, matched_blacklist_address,
                 raw_tx_count, status, reason, details)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            """,
            wallet_id,
            record["direct_match"],
            record["one_hop_match"],
            record["matched_blacklist_address"],
            record["raw_tx_count"],
            record["status"],
            record["reason"],
            json.dumps(record["details"]),
        )
        return result

    async def _screen(self, chain: str, address: str) -> ScreeningResult:
        """Run the engine, turning hard provider failures into an error record."""
        try:
            return await self.screening.screen(chain, address)
        except WalletScreenError as e:
            logger.error(f"Screening failed for {address} on {chain}: {e.message}")
            return ScreeningResult.error(e.message, self.screening.limits, e.code)

    async def _find_wallet_id(self, chain: str, address: str) -> int | None:
        async with self.db_pool.acquire() as conn:
            return await conn.fetchval(
                "SELECT id FROM wallets WHERE address = $1 AND chain = $2",
                address,
                chain,
            )

    async def list_wallets(self, limit: int = 100, offset: int = 0) -> list[WalletRecord]:
        """List wallets, most recently created first."""
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, address, chain, status, last_checked_at, created_at
                FROM wallets
                ORDER BY created_at DESC
                LIMIT $1 OFFSET $2
                """,
                limit,
                offset,
            )
        return [WalletRecord(**dict(row)) for row in rows]

    async def get_wallet_detail(self, wallet_id: int) -> WalletDetail:
        """
        Get a wallet and its latest screening log.

        Raises:
            WalletNotFoundError: If the wallet does not exist.
        """
        async with self.db_pool.acquire() as conn:
            wallet = await conn.fetchrow(
                """
                SELECT id, address, chain, status, last_checked_at, created_at
                FROM wallets WHERE id = $1
                """,
                wallet_id,
            )
            if wallet is None:
                raise WalletNotFoundError(wallet_id)

            log = await conn.fetchrow(
                """
                SELECT id, wallet_id, status, reason, direct_match, one_hop_match,
                       matched_blacklist_address, raw_tx_count, details, checked_at
                FROM screening_logs
                WHERE wallet_id = $1
                ORDER BY checked_at DESC
                LIMIT 1
                """,
                wallet_id,
            )

        return WalletDetail(
            wallet=WalletRecord(**dict(wallet)),
            log=self._to_log(log) if log else None,
        )

    @staticmethod
    def _to_log(row: Any) -> ScreeningLogRecord:
        data = dict(row)
        details = data.get("details")
        if isinstance(details, str):
            data["details"] = json.loads(details)
        elif details is None:
            data["details"] = {}
        return ScreeningLogRecord(**data)
