"""
Script to create all database tables.

Creates the batch_codes and webhook_logs tables at DATABASE_URL.
Safe to run repeatedly.
"""
import asyncio

from batchcode.config import settings
from batchcode.services.store import BatchCodeStore


async def create_all_tables():
    """Create all tables in the database."""
    store = BatchCodeStore(settings.DATABASE_URL)
    try:
        await store.initialize()
        stats = await store.get_stats()
    finally:
        await store.close()
    print("All tables created successfully!")
    print(f"Existing batch codes: {stats['total_codes']}")


async def main():
    """Main entry point."""
    print(f"Creating database tables at {settings.DATABASE_URL}...")
    await create_all_tables()
    print("Done!")


if __name__ == "__main__":
    asyncio.run(main())
