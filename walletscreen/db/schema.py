"""Database schema for wallets, blacklist and screening logs."""

INIT_SCHEMA = """
-- Wallets under onboarding
CREATE TABLE IF NOT EXISTS wallets (
    id BIGSERIAL PRIMARY KEY,
    address VARCHAR(42) NOT NULL,
    chain VARCHAR(32) NOT NULL DEFAULT 'ethereum',
    status VARCHAR(16),
    last_checked_at TIMESTAMP WITH TIME ZONE,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    UNIQUE (address, chain)
);

CREATE INDEX IF NOT EXISTS idx_wallets_created_at ON wallets(created_at DESC);

-- Internal blacklist
CREATE TABLE IF NOT EXISTS blacklist_wallets (
    id BIGSERIAL PRIMARY KEY,
    address VARCHAR(42) NOT NULL,
    chain VARCHAR(32) NOT NULL DEFAULT 'ethereum',
    category VARCHAR(64) NOT NULL DEFAULT 'internal',
    note TEXT,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    UNIQUE (chain, address)
);

-- Screening outcomes
CREATE TABLE IF NOT EXISTS screening_logs (
    id BIGSERIAL PRIMARY KEY,
    wallet_id BIGINT NOT NULL REFERENCES wallets(id) ON DELETE CASCADE,
    direct_match BOOLEAN NOT NULL DEFAULT false,
    one_hop_match BOOLEAN NOT NULL DEFAULT false,
    matched_blacklist_address VARCHAR(42),
    raw_tx_count INTEGER NOT NULL DEFAULT 0,
    status VARCHAR(16) NOT NULL,
    reason TEXT NOT NULL,
    details JSONB,
    checked_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_screening_logs_wallet_id
    ON screening_logs(wallet_id, checked_at DESC);
"""


async def init_tables(db_pool) -> None:
    """Initialize application tables in the database."""
    async with db_pool.acquire() as conn:
        await conn.execute(INIT_SCHEMA)
