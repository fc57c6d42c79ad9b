"""
Pytest Configuration and Fixtures

Provides fixtures for:
- A batch code store backed by a temporary SQLite file
- A recording fake of the Monday.com client
- A recording processing observer
- An HTTP client bound to the FastAPI app
"""
import asyncio
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from batchcode.config import Settings
from batchcode.exceptions import RemoteApiError
from batchcode.models.batch_code import BatchCode
from batchcode.models.webhook_log import WebhookLog
from batchcode.services.monday_client import ItemSnapshot
from batchcode.services.processor import WebhookProcessor
from batchcode.services.store import BatchCodeStore
from batchcode.services.telemetry import ProcessingObserver

WEBHOOK_SECRET = "test-secret-123"
COLUMN_ID = "text_batch"


def create_item_payload(item_id="123", board_id="456", item_name="Widget", group_id="g1"):
    """Legacy-shape create_item payload."""
    return {
        "event": {
            "type": "create_item",
            "data": {
                "item_id": item_id,
                "board_id": board_id,
                "group_id": group_id,
                "item_name": item_name,
            }
        }
    }


class FakeMondayClient:
    """Records column updates instead of calling Monday.com."""

    def __init__(self):
        self.updates = []
        self.fail_with: Exception | None = None
        self.connected = True
        self.items: dict[str, ItemSnapshot] = {}
        self.barrier: asyncio.Barrier | None = None
        self.closed = False

    async def update_item_column(self, board_id, item_id, column_id, value):
        self.updates.append(
            {"board_id": board_id, "item_id": item_id, "column_id": column_id, "value": value}
        )
        if self.barrier is not None:
            await self.barrier.wait()
        if self.fail_with is not None:
            raise self.fail_with

    async def get_item(self, item_id):
        if item_id not in self.items:
            raise RemoteApiError(f"Monday.com item not found: {item_id}", status=404)
        return self.items[item_id]

    async def test_connection(self):
        return self.connected

    async def aclose(self):
        self.closed = True


class RecordingObserver(ProcessingObserver):
    """Observer that keeps every callback for assertions."""

    def __init__(self):
        self.calls = []

    def job_started(self):
        self.calls.append(("job_started",))

    def job_finished(self):
        self.calls.append(("job_finished",))

    def webhook_processed(self, status, duration_seconds):
        self.calls.append(("webhook_processed", status))

    def code_assigned(self, duration_seconds):
        self.calls.append(("code_assigned",))

    def webhook_failed(self, error, context):
        self.calls.append(("webhook_failed", type(error).__name__))

    def reconcile_required(self, error, context):
        self.calls.append(("reconcile_required", context["code"]))

    def named(self, name):
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'batch_codes.db'}"


@pytest.fixture
async def store(database_url) -> AsyncGenerator[BatchCodeStore, None]:
    """Initialized store, closed after the test."""
    store = BatchCodeStore(database_url)
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def monday_client() -> FakeMondayClient:
    return FakeMondayClient()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def processor(store, monday_client, observer) -> WebhookProcessor:
    return WebhookProcessor(
        store=store,
        monday_client=monday_client,
        column_id=COLUMN_ID,
        observer=observer
    )


@pytest.fixture
def app_settings(database_url) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=database_url,
        MONDAY_API_KEY="test-key",
        MONDAY_BATCH_CODE_COLUMN_ID=COLUMN_ID,
        MONDAY_WEBHOOK_SECRET=WEBHOOK_SECRET,
    )


@pytest.fixture
async def test_client(app_settings, store, monday_client, observer):
    """HTTP client for the app, wired to the test store and fake client."""
    from batchcode.main import create_app

    app = create_app(app_settings, store=store, monday_client=monday_client, observer=observer)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def fetch_logs(store: BatchCodeStore) -> list[WebhookLog]:
    async with store.session_factory() as session:
        result = await session.execute(select(WebhookLog).order_by(WebhookLog.id))
        return list(result.scalars().all())


async def fetch_codes(store: BatchCodeStore) -> list[BatchCode]:
    async with store.session_factory() as session:
        result = await session.execute(select(BatchCode).order_by(BatchCode.id))
        return list(result.scalars().all())
