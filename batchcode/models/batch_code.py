"""
Batch code model.

One row per code written back to a Monday.com item.
"""
from sqlalchemy import Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from batchcode.models.base import Base, TimestampMixin


class BatchCode(Base, TimestampMixin):
    """
    Issued batch code.

    `code` is globally unique and each remote item holds at most one code.
    """
    __tablename__ = "batch_codes"
    __table_args__ = (
        UniqueConstraint("code", name="uq_batch_codes_code"),
        UniqueConstraint("remote_item_id", name="uq_batch_codes_remote_item_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(10), nullable=False)
    remote_item_id: Mapped[str] = mapped_column(String(50), nullable=False)
    remote_board_id: Mapped[str] = mapped_column(String(50), nullable=False)
    item_name: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self):
        return f"<BatchCode(id={self.id}, code={self.code}, item={self.remote_item_id})>"
