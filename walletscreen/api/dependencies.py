"""Dependency injection for FastAPI."""

from typing import Annotated, Optional

import asyncpg
from fastapi import Depends

from walletscreen.config import Settings, get_settings
from walletscreen.core.blacklist import BlacklistStore
from walletscreen.core.source import TransactionSource
from walletscreen.providers.etherscan import EtherscanSource
from walletscreen.providers.static_graph import StaticGraph, StaticGraphSource
from walletscreen.services.screening import ScreeningService
from walletscreen.services.wallet_service import WalletService
from walletscreen.stores.memory import MemoryBlacklistStore
from walletscreen.stores.postgres import PostgresBlacklistStore


_db_pool: Optional[asyncpg.Pool] = None
_blacklist_instance: BlacklistStore | None = None
_source_instance: TransactionSource | None = None
_static_graph: StaticGraph | None = None


async def get_db_pool(
    settings: Annotated[Settings, Depends(get_settings)]
) -> asyncpg.Pool:
    """Get or create database connection pool."""
    global _db_pool

    if _db_pool is None:
        _db_pool = await asyncpg.create_pool(
            dsn=settings.postgres_dsn,
            min_size=2,
            max_size=10,
        )

    return _db_pool


async def get_blacklist_store(
    settings: Annotated[Settings, Depends(get_settings)]
) -> BlacklistStore:
    """Get or create blacklist store instance."""
    global _blacklist_instance

    if _blacklist_instance is None:
        if settings.blacklist_backend == "postgres":
            pool = await get_db_pool(settings)
            _blacklist_instance = PostgresBlacklistStore(pool)
        else:
            _blacklist_instance = MemoryBlacklistStore()

    return _blacklist_instance


def get_static_graph(settings: Settings) -> StaticGraph:
    """Load the static graph once per process."""
    global _static_graph

    if _static_graph is None:
        _static_graph = StaticGraph.load(settings.static_graph_path)

    return _static_graph


def get_transaction_source(
    settings: Annotated[Settings, Depends(get_settings)]
) -> TransactionSource:
    """Get or create the transaction source selected in settings."""
    global _source_instance

    if _source_instance is None:
        if settings.transaction_source == "static":
            _source_instance = StaticGraphSource(get_static_graph(settings))
        else:
            _source_instance = EtherscanSource(
                api_key=settings.etherscan_api_key.get_secret_value(),
                base_url=settings.etherscan_base_url,
                chain_id=settings.etherscan_chain_id,
                requests_per_second=settings.etherscan_requests_per_second,
                max_retries=settings.etherscan_max_retries,
                retry_delay=settings.etherscan_retry_delay,
                timeout=settings.etherscan_timeout,
            )

    return _source_instance


def get_screening_service(
    blacklist: Annotated[BlacklistStore, Depends(get_blacklist_store)],
    source: Annotated[TransactionSource, Depends(get_transaction_source)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ScreeningService:
    """Get screening service instance."""
    return ScreeningService(
        blacklist=blacklist,
        source=source,
        limits=settings.screening_limits(),
        timeout=settings.screen_timeout_seconds,
    )


async def get_wallet_service(
    screening: Annotated[ScreeningService, Depends(get_screening_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> WalletService:
    """Get wallet onboarding service instance."""
    pool = await get_db_pool(settings)
    return WalletService(pool, screening)


async def cleanup_dependencies() -> None:
    """Cleanup dependency instances on shutdown."""
    global _db_pool, _blacklist_instance, _source_instance, _static_graph

    if _source_instance:
        await _source_instance.close()
        _source_instance = None

    if _blacklist_instance:
        await _blacklist_instance.close()
        _blacklist_instance = None

    if _db_pool:
        await _db_pool.close()
        _db_pool = None

    _static_graph = None
