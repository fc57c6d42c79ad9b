"""
Webhook signature verification.

Monday.com webhooks are registered with a shared secret that is sent back in
the ``x-webhook-signature`` header. The header must match the configured
secret exactly before the body is read.

Usage:
    @router.post("/webhook")
    async def receive_webhook(
        ...,
        _: None = Depends(verify_webhook_signature),
    ):
        ...
"""
import hmac

import structlog
from fastapi import Header, Request

from batchcode.exceptions import Unauthorized
from batchcode.routes.metrics import route_template, track_webhook_request

logger = structlog.get_logger()


def signature_matches(expected: str, received: str | None) -> bool:
    """Constant-time byte comparison of the received header with the secret."""
    if not received:
        return False
    return hmac.compare_digest(received.encode("utf-8"), expected.encode("utf-8"))


async def verify_webhook_signature(
    request: Request,
    x_webhook_signature: str | None = Header(None),
) -> None:
    """
    Reject the request with 401 unless the signature header matches.

    When MONDAY_WEBHOOK_SECRET is empty the check is skipped; a warning is
    logged once at startup.
    """
    expected = request.app.state.settings.MONDAY_WEBHOOK_SECRET
    if not expected:
        return

    if not signature_matches(expected, x_webhook_signature):
        logger.warning(
            "webhook_signature_rejected",
            path=request.url.path,
            header_present=x_webhook_signature is not None
        )
        track_webhook_request(request.method, 401, route_template(request))
        raise Unauthorized()
