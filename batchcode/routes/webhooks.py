"""
Webhook API routes.

Receives Monday.com item events and assigns batch codes.
"""
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, Request

from batchcode.dependencies.services import get_processor
from batchcode.dependencies.webhook_auth import verify_webhook_signature
from batchcode.exceptions import BatchCodeError, MalformedPayload
from batchcode.routes.metrics import track_webhook_request
from batchcode.services.processor import ProcessingStatus, WebhookProcessor

logger = structlog.get_logger()

router = APIRouter(prefix="/api/webhook", tags=["webhooks"])

WEBHOOK_ENDPOINT = "/api/webhook"


@router.post("")
async def receive_webhook(
    request: Request,
    _: None = Depends(verify_webhook_signature),
    processor: WebhookProcessor = Depends(get_processor)
):
    """
    Monday.com webhook receiver.

    Echoes registration challenges; assigns a batch code on item creation.
    """
    logger.info("webhook_received")

    try:
        try:
            payload = await request.json()
        except ValueError:
            raise MalformedPayload("Request body is not valid JSON")

        result = await processor.process(payload)
    except BatchCodeError as exc:
        track_webhook_request("POST", exc.status_code, WEBHOOK_ENDPOINT)
        raise
    except Exception:
        track_webhook_request("POST", 500, WEBHOOK_ENDPOINT)
        raise

    track_webhook_request("POST", 200, WEBHOOK_ENDPOINT)

    if result.status == ProcessingStatus.CHALLENGE:
        return {"challenge": result.challenge}

    body = result.model_dump(mode="json", exclude={"challenge"}, exclude_none=True)
    body["success"] = True
    return body


@router.get("")
async def webhook_info():
    """Describe the webhook endpoint."""
    return {
        "message": "Monday.com Batch Code Generator webhook endpoint",
        "supportedEvents": ["create_item"],
        "status": "active",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
