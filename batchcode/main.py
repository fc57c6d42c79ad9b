"""
Batch Code Generator - Monday.com webhook integration

FastAPI application entry point.
"""
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# Import observability modules
from batchcode.config import Settings, settings
from batchcode.exceptions import BatchCodeError
from batchcode.logging_config import configure_logging
from batchcode.sentry_config import configure_sentry
from batchcode.middleware.logging import LoggingMiddleware
from batchcode.routes.metrics import router as metrics_router

# Import route modules
from batchcode.routes.api import router as api_router
from batchcode.routes.health import router as health_router
from batchcode.routes.webhooks import router as webhooks_router

# Import services
from batchcode.services.monday_client import MondayClient
from batchcode.services.processor import WebhookProcessor
from batchcode.services.store import BatchCodeStore
from batchcode.services.telemetry import ProcessingObserver, TelemetryObserver

logger = structlog.get_logger()


async def batch_code_error_handler(request: Request, exc: BatchCodeError):
    """Translate service errors into JSON error responses."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "code": exc.error_code.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": str(exc) or "Internal server error",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )


def create_app(
    app_settings: Settings = settings,
    store: BatchCodeStore | None = None,
    monday_client: MondayClient | None = None,
    observer: ProcessingObserver | None = None
) -> FastAPI:
    """
    Build the FastAPI app and its collaborators.

    The store, API client and processor are created once here and shared
    by every request through app.state.
    """
    store = store or BatchCodeStore(app_settings.DATABASE_URL, echo=app_settings.DEBUG)
    monday_client = monday_client or MondayClient(
        api_key=app_settings.MONDAY_API_KEY,
        api_url=app_settings.MONDAY_API_URL,
        api_version=app_settings.MONDAY_API_VERSION,
        timeout=app_settings.MONDAY_API_TIMEOUT_SECONDS,
    )
    processor = WebhookProcessor(
        store=store,
        monday_client=monday_client,
        column_id=app_settings.MONDAY_BATCH_CODE_COLUMN_ID,
        observer=observer or TelemetryObserver(),
        update_delay_seconds=app_settings.MONDAY_UPDATE_DELAY_SECONDS,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not app_settings.MONDAY_API_KEY or not app_settings.MONDAY_BATCH_CODE_COLUMN_ID:
            logger.warning(
                "monday_not_configured",
                api_key_set=bool(app_settings.MONDAY_API_KEY),
                column_id_set=bool(app_settings.MONDAY_BATCH_CODE_COLUMN_ID)
            )
        if not app_settings.MONDAY_WEBHOOK_SECRET:
            logger.warning("webhook_signature_check_disabled", reason="MONDAY_WEBHOOK_SECRET not set")

        await store.initialize()
        yield
        await monday_client.aclose()
        await store.close()

    app = FastAPI(
        title=app_settings.APP_NAME,
        version=app_settings.APP_VERSION,
        description="Assigns unique batch codes to new Monday.com items",
        lifespan=lifespan,
    )

    app.state.settings = app_settings
    app.state.store = store
    app.state.monday_client = monday_client
    app.state.processor = processor
    app.state.started_at = time.monotonic()

    # Add logging middleware FIRST (runs before other middleware)
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(BatchCodeError, batch_code_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include metrics endpoint FIRST (so it's always available)
    app.include_router(metrics_router)
    app.include_router(health_router)
    app.include_router(webhooks_router)
    app.include_router(api_router)

    return app


# Initialize logging first
configure_logging()

# Initialize Sentry (if SENTRY_DSN is set)
configure_sentry()

app = create_app()
