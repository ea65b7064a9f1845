"""
Initialize the PostgreSQL database
Run: python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path

import asyncpg

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from walletscreen.config import get_settings
from walletscreen.db.schema import INIT_SCHEMA


async def init_database() -> int:
    """Initialize database tables."""
    settings = get_settings()

    print("=" * 60)
    print("🗄️  WalletScreen - Database Initialization")
    print("=" * 60)

    print("\n🔗 Connecting to PostgreSQL...")
    print(f"   URL: {settings.postgres_dsn[:50]}...")

    try:
        conn = await asyncpg.connect(settings.postgres_dsn)
    except (OSError, asyncpg.PostgresError) as e:
        print(f"\n❌ ERROR: {e}")
        print("\n💡 Hints:")
        print("   - Check that PostgreSQL is running")
        print("   - Confirm DATABASE_URL / POSTGRES_DSN in .env")
        return 1

    print("   ✅ Connected\n")

    try:
        print("📝 Running schema SQL...")
        print("-" * 60)
        await conn.execute(INIT_SCHEMA)
        print("✅ Schema applied\n")

        tables = await conn.fetch("""
            SELECT table_name,
                   (SELECT COUNT(*) FROM information_schema.columns
                    WHERE table_name = t.table_name
                    AND table_schema = 'public') as column_count
            FROM information_schema.tables t
            WHERE table_schema = 'public'
            ORDER BY table_name
        """)

        print("📋 Tables:")
        print("-" * 60)
        for row in tables:
            print(f"   ✅ {row['table_name']:25} ({row['column_count']} columns)")

        blacklisted = await conn.fetchval("SELECT COUNT(*) FROM blacklist_wallets")
        print(f"\n🚫 Blacklist entries: {blacklisted}")
    except asyncpg.PostgresError as e:
        print(f"\n❌ ERROR: {e}")
        return 1
    finally:
        await conn.close()

    print("\n" + "=" * 60)
    print("🎉 Database ready!")
    print("=" * 60)

    print("\n💡 Next steps:")
    print("   1. Add a blacklist entry: POST /api/v1/blacklist")
    print("   2. Onboard a wallet: POST /api/v1/wallets")
    print()

    return 0


if __name__ == "__main__":
    exit_code = asyncio.run(init_database())
    sys.exit(exit_code)
