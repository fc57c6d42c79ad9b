"""
Webhook Log Model

Append-only audit trail of inbound webhook processing.
"""
import enum
from datetime import datetime
from sqlalchemy import DateTime, Integer, String, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from batchcode.models.base import Base, utcnow


class WebhookStatus(str, enum.Enum):
    """Outcome of one webhook processing run."""
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


class WebhookLog(Base):
    """Webhook processing log entry."""
    __tablename__ = "webhook_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    remote_item_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[WebhookStatus] = mapped_column(
        SQLEnum(WebhookStatus, native_enum=False, length=20),
        nullable=False,
        index=True
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    processing_time_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        nullable=False,
        index=True
    )

    def __repr__(self):
        return f"<WebhookLog(id={self.id}, event={self.event_type}, status={self.status})>"
