"""
Processing observers.

The processor reports outcomes to one observer chosen at construction time.
ProcessingObserver does nothing; TelemetryObserver forwards to Prometheus
and Sentry.
"""
from typing import Any

from batchcode.routes import metrics
from batchcode.sentry_config import capture_message, capture_webhook_error


class ProcessingObserver:
    """Observer that records nothing."""

    def job_started(self) -> None:
        pass

    def job_finished(self) -> None:
        pass

    def webhook_processed(self, status: str, duration_seconds: float) -> None:
        pass

    def code_assigned(self, duration_seconds: float) -> None:
        pass

    def webhook_failed(self, error: BaseException, context: dict[str, Any]) -> None:
        pass

    def reconcile_required(self, error: BaseException, context: dict[str, Any]) -> None:
        pass


class TelemetryObserver(ProcessingObserver):
    """Reports processing outcomes to Prometheus metrics and Sentry."""

    def job_started(self) -> None:
        metrics.increment_active_jobs()

    def job_finished(self) -> None:
        metrics.decrement_active_jobs()

    def webhook_processed(self, status: str, duration_seconds: float) -> None:
        metrics.track_webhook_event(status)

    def code_assigned(self, duration_seconds: float) -> None:
        metrics.track_code_generation("batch_code", True, duration_seconds)

    def webhook_failed(self, error: BaseException, context: dict[str, Any]) -> None:
        error_type = getattr(getattr(error, "error_code", None), "value", type(error).__name__)
        metrics.track_error(error_type)
        capture_webhook_error(error, {**context, "processor": "WebhookProcessor"})

    def reconcile_required(self, error: BaseException, context: dict[str, Any]) -> None:
        metrics.track_reconcile_required()
        capture_message(
            f"Batch code {context.get('code')} written to item {context.get('item_id')} but not recorded",
            level="error"
        )
