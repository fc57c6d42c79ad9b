"""
Service dependencies for FastAPI routes.

Collaborators are built once in create_app() and read from app.state.
"""
from fastapi import Request

from batchcode.services.monday_client import MondayClient
from batchcode.services.processor import WebhookProcessor
from batchcode.services.store import BatchCodeStore


def get_store(request: Request) -> BatchCodeStore:
    return request.app.state.store


def get_monday_client(request: Request) -> MondayClient:
    return request.app.state.monday_client


def get_processor(request: Request) -> WebhookProcessor:
    return request.app.state.processor
