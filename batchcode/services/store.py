"""
Batch code store.

Durable persistence for issued codes and the webhook audit log. One store is
constructed per process; every call opens its own session, so concurrent
requests never share a transaction.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import AsyncIterator

import structlog
from pydantic import BaseModel
from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from batchcode.database import create_engine, create_session_factory, ensure_sqlite_directory
from batchcode.exceptions import ConstraintViolation, StoreError
from batchcode.models.base import Base, utcnow
from batchcode.models.batch_code import BatchCode
from batchcode.models.webhook_log import WebhookLog, WebhookStatus

logger = structlog.get_logger()

STATS_WINDOW = timedelta(hours=24)


class WebhookLogEntry(BaseModel):
    """One audit log row to append."""
    event_type: str
    remote_item_id: str | None = None
    payload: str
    status: WebhookStatus
    error_message: str | None = None
    processing_time_ms: int = 0


class BatchCodeStore:
    """Store for batch codes and webhook processing logs."""

    def __init__(self, database_url: str, echo: bool = False, engine: AsyncEngine | None = None):
        self.database_url = database_url
        self.engine = engine or create_engine(database_url, echo=echo)
        self.session_factory = create_session_factory(self.engine)
        self._closed = False

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session and translate database failures into StoreError."""
        if self._closed:
            raise StoreError(f"{operation} failed: store is closed")
        try:
            async with self.session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("store_operation_failed", operation=operation, error=str(exc))
            raise StoreError(f"{operation} failed: {exc}") from exc

    async def initialize(self) -> None:
        """
        Create tables and indexes if they do not exist.

        Safe to call on every process start.
        """
        ensure_sqlite_directory(self.database_url)
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise StoreError(f"initialize failed: {exc}") from exc
        logger.info("store_initialized", database=self.engine.url.render_as_string(hide_password=True))

    async def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        async with self._session("ping") as session:
            await session.execute(text("SELECT 1"))
        return True

    async def code_exists(self, code: str) -> bool:
        async with self._session("code_exists") as session:
            stmt = select(BatchCode.id).where(BatchCode.code == code).limit(1)
            result = await session.execute(stmt)
            return result.scalar_one_or_none() is not None

    async def get_code_for_item(self, item_id: str) -> str | None:
        """Get the code already assigned to a remote item, if any."""
        async with self._session("get_code_for_item") as session:
            stmt = select(BatchCode.code).where(BatchCode.remote_item_id == item_id).limit(1)
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def save_code(
        self,
        code: str,
        item_id: str,
        board_id: str,
        item_name: str | None = None
    ) -> int:
        """
        Persist an issued code.

        Args:
            code: Generated batch code
            item_id: Remote item the code was written to
            board_id: Board the item belongs to
            item_name: Item name at assignment time (optional)

        Returns:
            Primary key of the new row

        Raises:
            ConstraintViolation: the code, or a code for this item, already exists
        """
        async with self._session("save_code") as session:
            record = BatchCode(
                code=code,
                remote_item_id=item_id,
                remote_board_id=board_id,
                item_name=item_name
            )
            session.add(record)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                if "remote_item_id" in str(exc.orig):
                    raise ConstraintViolation("remote_item_id", item_id) from exc
                raise ConstraintViolation("code", code) from exc
            return record.id

    async def log_webhook(self, entry: WebhookLogEntry) -> int:
        """Append an audit log row and return its id."""
        async with self._session("log_webhook") as session:
            record = WebhookLog(**entry.model_dump())
            session.add(record)
            await session.commit()
            return record.id

    async def get_stats(self, now: datetime | None = None) -> dict[str, int]:
        """
        Aggregate counts for the dashboard.

        The 24 hour window ends at `now` (defaults to the call time, UTC).
        """
        since = (now or utcnow()) - STATS_WINDOW
        async with self._session("get_stats") as session:
            total_codes = await session.scalar(
                select(func.count()).select_from(BatchCode)
            )
            codes_last_24h = await session.scalar(
                select(func.count()).select_from(BatchCode).where(BatchCode.generated_at >= since)
            )
            successful_webhooks = await session.scalar(
                select(func.count()).select_from(WebhookLog).where(
                    WebhookLog.status == WebhookStatus.SUCCESS,
                    WebhookLog.created_at >= since
                )
            )
        return {
            "total_codes": total_codes or 0,
            "codes_last_24h": codes_last_24h or 0,
            "successful_webhooks_last_24h": successful_webhooks or 0,
        }

    async def close(self) -> None:
        """Dispose of the engine. Calling it again is a no-op."""
        if self._closed:
            return
        self._closed = True
        await self.engine.dispose()
        logger.info("store_closed")
