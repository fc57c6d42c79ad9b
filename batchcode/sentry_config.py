"""
Sentry configuration for error tracking.

Webhook failures are captured with the payload and processor context.
"""
import sentry_sdk
import structlog
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from batchcode.config import Settings, settings as default_settings

logger = structlog.get_logger()


def configure_sentry(settings: Settings = default_settings) -> bool:
    """
    Initialize Sentry with FastAPI and SQLAlchemy integrations.

    Requires SENTRY_DSN to be set. Returns True when Sentry was initialized.
    """
    dsn = settings.SENTRY_DSN

    if not dsn:
        logger.warning("sentry_disabled", reason="SENTRY_DSN not set")
        return False

    sentry_sdk.init(
        dsn=dsn,
        integrations=[
            FastApiIntegration(),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        environment=settings.ENVIRONMENT,
        release=settings.APP_VERSION,
    )

    logger.info("sentry_initialized", dsn_prefix=dsn[:20])
    return True


def sentry_enabled() -> bool:
    return sentry_sdk.get_client().is_active()


def capture_webhook_error(error: BaseException, context: dict | None = None):
    """
    Capture a webhook processing error to Sentry.

    The event is tagged with component=webhook and carries the given
    context under "webhook_data".
    """
    if not sentry_enabled():
        return

    with sentry_sdk.new_scope() as scope:
        scope.set_tag("component", "webhook")
        scope.set_context("webhook_data", context or {})
        sentry_sdk.capture_exception(error)


def capture_message(message, level="info"):
    """
    Capture a message to Sentry.

    Usage:
        capture_message("Remote item updated but not recorded", level="error")
    """
    if sentry_enabled():
        sentry_sdk.capture_message(message, level=level)
