"""
Webhook processor.

Runs one inbound Monday.com webhook through normalization, the per-item
idempotency check, code generation, the remote column update and the local
record. The processor keeps no state between calls; concurrent requests
share only the store and the API client.
"""
import asyncio
import enum
import json
import time
from typing import Any, Awaitable, Callable

import structlog
from pydantic import BaseModel

from batchcode.exceptions import BatchCodeError
from batchcode.models.webhook_log import WebhookStatus
from batchcode.services.code_generator import generate_unique_code
from batchcode.services.monday_client import MondayClient
from batchcode.services.normalizer import (
    CanonicalEvent,
    Challenge,
    EventType,
    NotApplicable,
    normalize_payload,
    raw_event_type,
)
from batchcode.services.store import BatchCodeStore, WebhookLogEntry
from batchcode.services.telemetry import ProcessingObserver

logger = structlog.get_logger()

CodeGenerator = Callable[[BatchCodeStore], Awaitable[str]]


class ProcessingStatus(str, enum.Enum):
    CHALLENGE = "challenge"
    SKIPPED = "skipped"
    ALREADY_ASSIGNED = "already_assigned"
    ASSIGNED = "assigned"


class WebhookResult(BaseModel):
    """Outcome of a processing run, returned to the HTTP layer."""
    status: ProcessingStatus
    message: str
    challenge: Any = None
    event_type: str | None = None
    batch_code: str | None = None
    item_id: str | None = None
    item_name: str | None = None
    board_id: str | None = None
    processing_time_ms: int = 0


def _elapsed_ms(started: float) -> int:
    return int(round((time.perf_counter() - started) * 1000))


class WebhookProcessor:
    """Assigns a batch code to each newly created Monday.com item."""

    def __init__(
        self,
        store: BatchCodeStore,
        monday_client: MondayClient,
        column_id: str,
        observer: ProcessingObserver | None = None,
        update_delay_seconds: float = 0.0,
        code_generator: CodeGenerator = generate_unique_code
    ):
        self.store = store
        self.monday_client = monday_client
        self.column_id = column_id
        self.observer = observer or ProcessingObserver()
        self.update_delay_seconds = update_delay_seconds
        self.code_generator = code_generator

    async def process(self, payload: Any) -> WebhookResult:
        """
        Process one webhook payload.

        Returns a WebhookResult for challenges, skipped events, items that
        already have a code and fresh assignments. Any failure is written to
        the audit log and re-raised.
        """
        started = time.perf_counter()
        event_type = raw_event_type(payload)
        item_id = None

        self.observer.job_started()
        try:
            normalized = normalize_payload(payload)

            if isinstance(normalized, Challenge):
                logger.info("webhook_challenge_received")
                return WebhookResult(
                    status=ProcessingStatus.CHALLENGE,
                    message="Challenge accepted",
                    challenge=normalized.token
                )

            if isinstance(normalized, NotApplicable):
                item_id = normalized.item_id
                return await self._skip(payload, event_type, item_id, normalized.reason, started)

            item_id = normalized.item_id
            if normalized.type != EventType.CREATE_ITEM:
                return await self._skip(payload, event_type, item_id, "Event type not processed", started)

            return await self._assign(payload, event_type, normalized, started)

        except Exception as exc:
            await self._record_failure(payload, event_type, item_id, exc, started)
            raise
        finally:
            self.observer.job_finished()

    async def _assign(
        self,
        payload: Any,
        event_type: str,
        event: CanonicalEvent,
        started: float
    ) -> WebhookResult:
        log = logger.bind(item_id=event.item_id, board_id=event.board_id)
        log.info("processing_new_item", item_name=event.item_name)

        existing = await self.store.get_code_for_item(event.item_id)
        if existing:
            log.info("batch_code_already_assigned", code=existing)
            elapsed_ms = _elapsed_ms(started)
            await self._log(payload, event_type, event.item_id, WebhookStatus.SKIPPED, elapsed_ms)
            self.observer.webhook_processed(WebhookStatus.SKIPPED.value, elapsed_ms / 1000)
            return self._result(
                ProcessingStatus.ALREADY_ASSIGNED,
                "Item already has batch code",
                event_type,
                event,
                existing,
                elapsed_ms
            )

        code = await self.code_generator(self.store)
        log.info("batch_code_generated", code=code)

        if self.update_delay_seconds > 0:
            await asyncio.sleep(self.update_delay_seconds)

        await self.monday_client.update_item_column(
            event.board_id,
            event.item_id,
            self.column_id,
            code
        )

        # Monday.com now holds the code; a failure here leaves it unrecorded
        try:
            await self.store.save_code(code, event.item_id, event.board_id, event.item_name)
        except BatchCodeError as exc:
            context = {"code": code, "item_id": event.item_id, "board_id": event.board_id}
            log.error("reconcile_required", code=code, error=exc.message)
            self.observer.reconcile_required(exc, context)
            raise

        elapsed_ms = _elapsed_ms(started)
        await self._log(payload, event_type, event.item_id, WebhookStatus.SUCCESS, elapsed_ms)
        self.observer.code_assigned(elapsed_ms / 1000)
        self.observer.webhook_processed(WebhookStatus.SUCCESS.value, elapsed_ms / 1000)

        log.info("batch_code_assigned", code=code, duration_ms=elapsed_ms)
        return self._result(
            ProcessingStatus.ASSIGNED,
            "Batch code generated and assigned",
            event_type,
            event,
            code,
            elapsed_ms
        )

    async def _skip(
        self,
        payload: Any,
        event_type: str,
        item_id: str | None,
        reason: str,
        started: float
    ) -> WebhookResult:
        logger.info("webhook_skipped", event_type=event_type, item_id=item_id, reason=reason)
        elapsed_ms = _elapsed_ms(started)
        await self._log(payload, event_type, item_id, WebhookStatus.SKIPPED, elapsed_ms)
        self.observer.webhook_processed(WebhookStatus.SKIPPED.value, elapsed_ms / 1000)
        return WebhookResult(
            status=ProcessingStatus.SKIPPED,
            message=reason,
            event_type=event_type,
            item_id=item_id,
            processing_time_ms=elapsed_ms
        )

    async def _record_failure(
        self,
        payload: Any,
        event_type: str,
        item_id: str | None,
        error: Exception,
        started: float
    ) -> None:
        """Write the error audit entry; a failure to do so never hides `error`."""
        elapsed_ms = _elapsed_ms(started)
        message = error.message if isinstance(error, BatchCodeError) else (str(error) or type(error).__name__)
        logger.error(
            "webhook_processing_failed",
            event_type=event_type,
            item_id=item_id,
            error=message,
            error_type=type(error).__name__
        )

        try:
            await self._log(payload, event_type, item_id, WebhookStatus.ERROR, elapsed_ms, message)
        except Exception as log_error:
            logger.error("webhook_error_log_failed", error=str(log_error))

        self.observer.webhook_processed(WebhookStatus.ERROR.value, elapsed_ms / 1000)
        self.observer.webhook_failed(
            error,
            {"event_type": event_type, "item_id": item_id, "payload": payload}
        )

    async def _log(
        self,
        payload: Any,
        event_type: str,
        item_id: str | None,
        status: WebhookStatus,
        processing_time_ms: int,
        error_message: str | None = None
    ) -> int:
        return await self.store.log_webhook(
            WebhookLogEntry(
                event_type=event_type[:50],
                remote_item_id=item_id,
                payload=json.dumps(payload, default=str),
                status=status,
                error_message=error_message,
                processing_time_ms=processing_time_ms
            )
        )

    @staticmethod
    def _result(
        status: ProcessingStatus,
        message: str,
        event_type: str,
        event: CanonicalEvent,
        code: str,
        elapsed_ms: int
    ) -> WebhookResult:
        return WebhookResult(
            status=status,
            message=message,
            event_type=event_type,
            batch_code=code,
            item_id=event.item_id,
            item_name=event.item_name,
            board_id=event.board_id,
            processing_time_ms=elapsed_ms
        )
