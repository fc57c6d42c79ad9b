"""
Statistics and Monday.com diagnostics routes.

Diagnostics require the webhook signature header, the same shared secret
Monday.com uses.
"""
from fastapi import APIRouter, Depends

from batchcode.dependencies.services import get_monday_client, get_store
from batchcode.dependencies.webhook_auth import verify_webhook_signature
from batchcode.services.monday_client import ItemSnapshot, MondayClient
from batchcode.services.store import BatchCodeStore

router = APIRouter(prefix="/api", tags=["API"])


@router.get("/stats")
async def get_stats(store: BatchCodeStore = Depends(get_store)):
    """
    Batch code statistics.

    Total codes, codes issued in the last 24 hours and successful webhooks
    in the last 24 hours.
    """
    return await store.get_stats()


@router.get("/monday/connection", dependencies=[Depends(verify_webhook_signature)])
async def monday_connection(monday_client: MondayClient = Depends(get_monday_client)):
    """Check that the configured API key can reach Monday.com."""
    return {"connected": await monday_client.test_connection()}


@router.get(
    "/monday/items/{item_id}",
    response_model=ItemSnapshot,
    dependencies=[Depends(verify_webhook_signature)]
)
async def monday_item(item_id: str, monday_client: MondayClient = Depends(get_monday_client)):
    """Fetch an item's current column values from Monday.com."""
    return await monday_client.get_item(item_id)
