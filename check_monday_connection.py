"""
Monday.com connection check.

Verifies MONDAY_API_KEY against the API and, when an item id is given,
prints the item's columns so the batch code column id can be found.

Usage:
    python check_monday_connection.py [ITEM_ID]
"""
import asyncio
import sys

from batchcode.config import settings
from batchcode.exceptions import RemoteApiError
from batchcode.services.monday_client import MondayClient


async def main(item_id: str | None = None):
    """Run the connection check."""
    print("=" * 60)
    print("Monday.com Connection Check")
    print("=" * 60)

    if not settings.MONDAY_API_KEY:
        print("ERROR: MONDAY_API_KEY is not set")
        return 1

    client = MondayClient(
        api_key=settings.MONDAY_API_KEY,
        api_url=settings.MONDAY_API_URL,
        api_version=settings.MONDAY_API_VERSION,
        timeout=settings.MONDAY_API_TIMEOUT_SECONDS,
    )
    try:
        connected = await client.test_connection()
        print(f"API connection: {'OK' if connected else 'FAILED'}")
        if not connected:
            return 1

        if item_id:
            try:
                item = await client.get_item(item_id)
            except RemoteApiError as e:
                print(f"Could not fetch item {item_id}: {e.message}")
                return 1

            print()
            print(f"Item:  {item.name} ({item.id})")
            print(f"Board: {item.board_name} ({item.board_id})")
            print(f"Group: {item.group_title} ({item.group_id})")
            print()
            print(f"{'COLUMN ID':<30} TEXT")
            for column in item.column_values:
                marker = "  <- batch code column" if column.id == settings.MONDAY_BATCH_CODE_COLUMN_ID else ""
                print(f"{column.id:<30} {column.text or ''}{marker}")
    finally:
        await client.aclose()

    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else None)))
