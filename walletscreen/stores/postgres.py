"""PostgreSQL blacklist store implementation."""

import logging
from collections.abc import Iterable
from typing import Any

import asyncpg

from walletscreen.core.blacklist import BlacklistStore
from walletscreen.core.exceptions import BlacklistEntryExistsError
from walletscreen.models.blockchain import BlacklistEntry

logger = logging.getLogger(__name__)


class PostgresBlacklistStore(BlacklistStore):
    """Blacklist backed by the ``blacklist_wallets`` table.

    Query failures are not caught here: a blacklist that cannot be read
    must never look like an empty one.
    """

    def __init__(self, pool: Any) -> None:
        """
        Initialize the store.

        Args:
            pool: asyncpg connection pool.
        """
        self._pool = pool

    @staticmethod
    def _to_entry(row: Any) -> BlacklistEntry:
        return BlacklistEntry(
            id=row["id"],
            chain=row["chain"],
            address=row["address"],
            category=row["category"],
            note=row["note"],
            created_at=row["created_at"],
        )

    async def find_direct(self, chain: str, address: str) -> BlacklistEntry | None:
        """Look up a single address."""
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, chain, address, category, note, created_at
                FROM blacklist_wallets
                WHERE chain = $1 AND address = $2
                LIMIT 1
                """,
                chain,
                address,
            )
        return self._to_entry(row) if row else None

    async def find_batch(
        self, chain: str, addresses: Iterable[str]
    ) -> list[BlacklistEntry]:
        """Look up many addresses with one ``ANY`` query, in input order."""
        candidates = list(addresses)
        if not candidates:
            return []
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, chain, address, category, note, created_at
                FROM blacklist_wallets
                WHERE chain = $1 AND address = ANY($2::text[])
                ORDER BY array_position($2::text[], address)
                """,
                chain,
                candidates,
            )
        return [self._to_entry(row) for row in rows]

    async def list_entries(self) -> list[BlacklistEntry]:
        """List every entry, newest first."""
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, chain, address, category, note, created_at
                FROM blacklist_wallets
                ORDER BY created_at DESC
                """
            )
        return [self._to_entry(row) for row in rows]

    async def add_entry(
        self,
        chain: str,
        address: str,
        category: str,
        note: str | None = None,
    ) -> BlacklistEntry:
        """Insert an entry."""
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    INSERT INTO blacklist_wallets (address, chain, category, note)
                    VALUES ($1, $2, $3, $4)
                    RETURNING id, chain, address, category, note, created_at
                    """,
                    address,
                    chain,
                    category,
                    note,
                )
        except asyncpg.UniqueViolationError as e:
            raise BlacklistEntryExistsError(chain, address) from e
        logger.info(f"Blacklisted {address} on {chain} ({category})")
        return self._to_entry(row)

    async def delete_entry(self, entry_id: int) -> bool:
        """Delete an entry by id."""
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM blacklist_wallets WHERE id = $1", entry_id
            )
        # asyncpg returns the command tag, e.g. "DELETE 1"
        return result.split()[-1] != "0"

    async def ping(self) -> bool:
        """Check database connectivity."""
        try:
            async with self._pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return True
        except (OSError, asyncpg.PostgresError) as e:
            logger.warning(f"Blacklist store ping failed: {e}")
            return False
